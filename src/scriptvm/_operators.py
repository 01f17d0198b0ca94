"""Value primitives: arithmetic, comparison, text, lists and sensing.

Reporters here always answer a value. Where there is nothing sensible to
answer they give empty text, since a reporter answering None would leave its
caller waiting for an input that never arrives.
"""

__all__ = ["OperatorPrimitives"]

import logging
import math
import random

import scriptvm

log = logging.getLogger(__name__)


def _num(value):
    return scriptvm.to_number(value)


def _text(value):
    return scriptvm.to_text(value)


class OperatorPrimitives:
    """Reporters and list commands for a Process."""

    # Arithmetic

    @scriptvm.primitive
    def report_sum(self, a, b):
        return _num(a) + _num(b)

    @scriptvm.primitive
    def report_difference(self, a, b):
        return _num(a) - _num(b)

    @scriptvm.primitive
    def report_product(self, a, b):
        return _num(a) * _num(b)

    @scriptvm.primitive
    def report_quotient(self, a, b):
        x, y = _num(a), _num(b)
        if y == 0:
            if x == 0 or scriptvm.is_nan(x):
                return math.nan
            return math.copysign(math.inf, x)
        return x / y

    @scriptvm.primitive
    def report_modulus(self, a, b):
        """Remainder with the sign of the divisor."""
        x, y = _num(a), _num(b)
        if y == 0:
            return math.nan
        return ((x % y) + y) % y

    @scriptvm.primitive
    def report_random(self, low, high):
        floor, ceil = _num(low), _num(high)
        if floor % 1 != 0 or ceil % 1 != 0:
            return random.random() * (ceil - floor) + floor
        return math.floor(random.random() * (ceil - floor + 1)) + int(floor)

    @scriptvm.primitive
    def report_round(self, n):
        value = _num(n)
        if scriptvm.is_nan(value) or math.isinf(value):
            return value
        return math.floor(value + 0.5)

    # Comparison and logic

    @scriptvm.primitive
    def report_less_than(self, a, b):
        return scriptvm.compare(a, b) < 0

    @scriptvm.primitive
    def report_greater_than(self, a, b):
        return scriptvm.compare(a, b) > 0

    @scriptvm.primitive
    def report_equals(self, a, b):
        return scriptvm.snap_equals(a, b)

    @scriptvm.primitive
    def report_and(self, a, b):
        return bool(a) and bool(b)

    @scriptvm.primitive
    def report_or(self, a, b):
        return bool(a) or bool(b)

    @scriptvm.primitive
    def report_not(self, value):
        return not value

    @scriptvm.primitive
    def report_true(self):
        return True

    @scriptvm.primitive
    def report_false(self):
        return False

    # Text

    @scriptvm.primitive
    def report_join(self, a, b):
        return _text(a) + _text(b)

    @scriptvm.primitive
    def report_join_words(self, words):
        if isinstance(words, scriptvm.List):
            return words.as_text()
        return _text(words)

    @scriptvm.primitive
    def report_letter(self, index, text):
        position = _num(index)
        text = _text(text)
        if scriptvm.is_nan(position) or position % 1 != 0:
            return ""
        position = int(position)
        if 1 <= position <= len(text):
            return text[position - 1]
        return ""

    @scriptvm.primitive
    def report_string_size(self, text):
        return len(_text(text))

    @scriptvm.primitive
    def report_unicode(self, text):
        text = _text(text)
        return ord(text[0]) if text else 0

    @scriptvm.primitive
    def report_unicode_as_letter(self, code):
        code = _num(code)
        if scriptvm.is_nan(code) or not 0 <= code <= 0x10FFFF:
            return ""
        return chr(int(code))

    # Lists

    @scriptvm.primitive
    def report_new_list(self, elements=None):
        if elements is None:
            return scriptvm.List()
        return elements

    @scriptvm.primitive
    def report_cons(self, car, cdr):
        return scriptvm.List().cons(car, cdr)

    @scriptvm.primitive
    def report_cdr(self, items):
        return _list(items).cdr()

    @scriptvm.primitive
    def do_add_to_list(self, element, items):
        _list(items).add(element)

    @scriptvm.primitive
    def do_delete_from_list(self, index, items):
        items = _list(items)
        if index == "all":
            items.clear()
        elif index == "last":
            items.remove(items.length())
        elif index != "":
            items.remove(index)

    @scriptvm.primitive
    def do_insert_in_list(self, element, index, items):
        items = _list(items)
        if index == "":
            return None
        if index == "any":
            index = self.report_random(1, items.length())
        elif index == "last":
            index = items.length() + 1
        items.add(element, index)

    @scriptvm.primitive
    def do_replace_in_list(self, index, items, element):
        items = _list(items)
        if index == "":
            return None
        if index == "any":
            index = self.report_random(1, items.length())
        elif index == "last":
            index = items.length()
        items.put(element, index)

    @scriptvm.primitive
    def report_list_item(self, index, items):
        items = _list(items)
        if index == "":
            return ""
        if index == "any":
            index = self.report_random(1, items.length())
        elif index == "last":
            index = items.length()
        return items.at(index)

    @scriptvm.primitive
    def report_list_length(self, items):
        return _list(items).length()

    @scriptvm.primitive
    def report_list_contains_item(self, items, element):
        return _list(items).contains(element)

    # Sensing

    @scriptvm.primitive
    def report_key_pressed(self, key):
        stage = self.stage()
        if stage is None:
            return False
        return _text(key) in stage.keys_pressed

    @scriptvm.primitive
    def do_reset_timer(self):
        stage = self.stage()
        if stage is not None:
            stage.reset_timer()

    @scriptvm.primitive
    def report_timer(self):
        stage = self.stage()
        if stage is None:
            return 0
        return stage.get_timer()

    # Debugging

    @scriptvm.primitive
    def log(self, data):
        """Write a value to the log, only in dev mode."""
        if self.config.dev_mode:
            log.info("%r: %s", self.top_block, _text(data))


def _list(value):
    if not isinstance(value, scriptvm.List):
        raise scriptvm.EvalError(f"expecting a list but getting {_text(value)!r}")
    return value
