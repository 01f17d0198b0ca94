"""Value coercion rules and the List type."""

import math

import scriptvm
import vmtest


@vmtest.params(
    "value expected",
    integer=(7, 7),
    float=(2.5, 2.5),
    text=("42", 42),
    padded=("  -3.25", -3.25),
    leading=("12 monkeys", 12),
    exponent=("1e3", 1000),
    infinity=("Infinity", math.inf),
)
def test_parse_float(key, value, expected):
    assert scriptvm.parse_float(value) == expected


@vmtest.params(
    "value",
    word=("abc",),
    empty=("",),
    boolean=(True,),
    none=(None,),
    listed=(scriptvm.List([1]),),
)
def test_parse_float_nan(key, value):
    assert scriptvm.is_nan(scriptvm.parse_float(value))


@vmtest.params(
    "value expected",
    empty=("", 0),
    none=(None, 0),
    true=(True, 1),
    text=("8", 8),
)
def test_to_number(key, value, expected):
    assert scriptvm.to_number(value) == expected


@vmtest.params(
    "value expected",
    none=(None, ""),
    true=(True, "true"),
    false=(False, "false"),
    whole_float=(3.0, "3"),
    fraction=(0.5, "0.5"),
    nan=(math.nan, "NaN"),
    infinity=(-math.inf, "-Infinity"),
    listed=(scriptvm.List(["a", 1, scriptvm.List(["b"])]), "a 1 b"),
)
def test_to_text(key, value, expected):
    assert scriptvm.to_text(value) == expected


@vmtest.params(
    "a b expected",
    numbers=(3, "3", True),
    floats=("1.0", 1, True),
    different=(1, 2, False),
    words=("cat", "cat", True),
    word_number=("cat", 0, False),
    lists=(scriptvm.List([1, "2"]), scriptvm.List(["1", 2]), True),
    list_lengths=(scriptvm.List([1]), scriptvm.List([1, 1]), False),
    list_scalar=(scriptvm.List([]), "", False),
)
def test_snap_equals(key, a, b, expected):
    assert scriptvm.snap_equals(a, b) is expected


@vmtest.params(
    "a b expected",
    numeric=("10", 9, 1),
    numeric_text=("10", "9", 1),
    text=("apple", "banana", -1),
    same=(4, 4.0, 0),
)
def test_compare(key, a, b, expected):
    assert scriptvm.compare(a, b) == expected


def test_list_positions():
    """Positions are 1-based and out of range reads give empty text."""
    items = scriptvm.List(["a", "b", "c"])
    assert items.at(1) == "a"
    assert items.at("3") == "c"
    assert items.at(0) == ""
    assert items.at(4) == ""
    assert items.length() == 3


def test_list_add():
    items = scriptvm.List(["a"])
    items.add("z")
    items.add("first", 1)
    items.add("end", 99)
    assert items.as_array() == ["first", "a", "z", "end"]


def test_list_remove_put():
    items = scriptvm.List([1, 2, 3])
    items.remove(2)
    items.remove(10)
    items.put("x", 1)
    items.put("y", 5)
    assert items.as_array() == ["x", 3]
    items.clear()
    assert items.length() == 0


def test_list_cons_cdr():
    tail = scriptvm.List([2, 3])
    items = scriptvm.List().cons(1, tail)
    assert items.as_array() == [1, 2, 3]
    assert items.cdr().as_array() == [2, 3]
    assert tail.as_array() == [2, 3]


def test_list_contains():
    items = scriptvm.List(["5", "dog"])
    assert items.contains(5)
    assert items.contains("dog")
    assert not items.contains("cat")
