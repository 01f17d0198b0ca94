"""Coercion and comparison rules for values flowing between blocks.

Block inputs are loosely typed. Text that looks like a number is used as a
number by arithmetic, and comparisons fall back to text when either side is
not numeric.
"""

__all__ = [
    "parse_float",
    "to_number",
    "to_text",
    "is_nan",
    "snap_equals",
    "compare",
]

import math
import re

import scriptvm


_LEADING_NUMBER = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


def parse_float(value):
    """Read the leading number from a value.

    Numbers pass through, text is scanned for a numeric prefix. Anything else
    including booleans, empty text and lists is not a number.

    Args:
        value: (any) Value to interpret

    Returns:
        (float | int) Number, or nan when there is no leading number
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return math.nan
    match = _LEADING_NUMBER.match(value)
    if match is None:
        return math.nan
    number = float(match.group(1))
    if number.is_integer() and abs(number) < 2**53:
        return int(number)
    return number


def to_number(value):
    """Numeric value of an input, treating empty and missing as zero."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    return parse_float(value)


def is_nan(value):
    return isinstance(value, float) and math.isnan(value)


def to_text(value):
    """Text rendering of a value, as shown in bubbles and joined strings.

    Args:
        value: (any) Value to render

    Returns:
        (str) Integral floats lose their fraction, booleans are lowercase
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, scriptvm.List):
        return value.as_text()
    return str(value)


def snap_equals(a, b):
    """Compare two values the way the equals block does.

    Lists compare item by item. Two values that both read as numbers compare
    numerically, otherwise they must be identical.
    """
    a_list = isinstance(a, scriptvm.List)
    b_list = isinstance(b, scriptvm.List)
    if a_list or b_list:
        if a_list and b_list:
            return a.equal_to(b)
        return False
    x = parse_float(a)
    y = parse_float(b)
    if is_nan(x) or is_nan(y):
        x, y = a, b
        if type(x) is not type(y):
            return False
    return x == y


def compare(a, b):
    """Order two values for the less/greater than blocks.

    Returns:
        (int) Negative, zero, or positive like a classic cmp
    """
    x = parse_float(a)
    y = parse_float(b)
    if is_nan(x) or is_nan(y):
        x, y = to_text(a), to_text(b)
    if x < y:
        return -1
    if x > y:
        return 1
    return 0
