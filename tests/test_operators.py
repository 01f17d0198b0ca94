"""Reporter primitives evaluated in a lone process."""

import logging
import math

import pytest

import scriptvm
import vmtest
from vmtest import report


@vmtest.params(
    "selector a b expected",
    sum=("report_sum", 2, "3", 5),
    sum_empty=("report_sum", "", 4, 4),
    difference=("report_difference", 1.5, 2, -0.5),
    product=("report_product", "4", True, 4),
    quotient=("report_quotient", 7, 2, 3.5),
    modulus=("report_modulus", -7, 3, 2),
    modulus_negative=("report_modulus", 7, -3, -2),
)
def test_arithmetic(key, selector, a, b, expected):
    assert report(selector, a, b) == expected


@vmtest.params(
    "a b expected",
    positive=(1, 0, math.inf),
    negative=(-1, 0, -math.inf),
)
def test_quotient_by_zero(key, a, b, expected):
    assert report("report_quotient", a, b) == expected


def test_undefined_results():
    assert scriptvm.is_nan(report("report_quotient", 0, 0))
    assert scriptvm.is_nan(report("report_modulus", 5, 0))
    assert scriptvm.is_nan(report("report_sum", "cat", 1))


@vmtest.params(
    "value expected",
    half_up=(2.5, 3),
    negative_half=(-2.5, -2),
    text=("4.4", 4),
)
def test_round(key, value, expected):
    assert report("report_round", value) == expected


def test_random():
    for _ in range(20):
        value = report("report_random", 1, 3)
        assert value in (1, 2, 3)
    fraction = report("report_random", 0.5, 1)
    assert 0.5 <= fraction <= 1


@vmtest.params(
    "selector a b expected",
    less_numeric=("report_less_than", "9", 10, True),
    less_text=("report_less_than", "apple", "banana", True),
    greater=("report_greater_than", 3, "20", False),
    equal_numeric=("report_equals", "2.0", 2, True),
    equal_text=("report_equals", "a", "b", False),
    both=("report_and", True, False, False),
    either=("report_or", False, True, True),
)
def test_comparison_and_logic(key, selector, a, b, expected):
    assert report(selector, a, b) is expected


def test_not():
    assert report("report_not", False) is True
    assert report("report_true") is True
    assert report("report_false") is False


@vmtest.params(
    "selector args expected",
    join=("report_join", ("a", 1), "a1"),
    join_float=("report_join", (0.5, 2.0), "0.52"),
    letter=("report_letter", (2, "cat"), "a"),
    letter_outside=("report_letter", (9, "cat"), ""),
    letter_fraction=("report_letter", (1.5, "cat"), ""),
    size=("report_string_size", ("hello",), 5),
    unicode=("report_unicode", ("A",), 65),
    unicode_empty=("report_unicode", ("",), 0),
    as_letter=("report_unicode_as_letter", (97,), "a"),
)
def test_text(key, selector, args, expected):
    assert report(selector, *args) == expected


def test_lists():
    values = vmtest.sprite_vars("""
        (sprite "S" (variables (items 0) (n 0) (first "") (last "") (has false))
          (when go
            (do_set_var "items" (report_new_list {"a" "b"}))
            (do_add_to_list "c" $items)
            (do_insert_in_list "z" 1 $items)
            (do_replace_in_list "last" $items "C")
            (do_delete_from_list 2 $items)
            (do_set_var "n" (report_list_length $items))
            (do_set_var "first" (report_list_item 1 $items))
            (do_set_var "last" (report_list_item "last" $items))
            (do_set_var "has" (report_list_contains_item $items "b"))))
    """)
    assert values["items"].as_array() == ["z", "b", "C"]
    assert values["n"] == 3
    assert values["first"] == "z"
    assert values["last"] == "C"
    assert values["has"] is True


def test_list_cons_cdr():
    values = vmtest.sprite_vars("""
        (sprite "S" (variables (r 0) (t 0))
          (when go
            (do_set_var "r" (report_cons 1 (report_new_list {2 3})))
            (do_set_var "t" (report_cdr $r))))
    """)
    assert values["r"].as_array() == [1, 2, 3]
    assert values["t"].as_array() == [2, 3]


def test_join_words():
    values = vmtest.sprite_vars("""
        (sprite "S" (variables (r 0))
          (when go (do_set_var "r" (report_join_words (report_new_list {"hello" "world"})))))
    """)
    assert values["r"] == "hello world"


def test_list_expected():
    with pytest.raises(scriptvm.EvalError, match="expecting a list"):
        report("report_list_length", "abc")


def test_empty_new_list():
    result = report("report_new_list")
    assert isinstance(result, scriptvm.List)
    assert result.length() == 0


def test_timer():
    stage = vmtest.load("""
        (sprite "S" (variables (early 0) (late 0))
          (when go
            (do_reset_timer)
            (do_set_var "early" (report_timer))
            (do_wait 1.5)
            (do_set_var "late" (report_timer))))
    """)
    stage.fire_green_flag_event()
    vmtest.run(stage)
    values = stage.sprites[0].variables.vars
    assert values["early"] == 0
    assert 1.5 <= values["late"] <= 1.6


def test_key_pressed_without_stage():
    assert report("report_key_pressed", "space") is False


@vmtest.params(
    "dev_mode logged",
    on=(True, True),
    off=(False, False),
)
def test_log(key, dev_mode, logged, caplog):
    caplog.set_level(logging.INFO, logger="scriptvm")
    vmtest.green_flag(
        '(sprite "S" (when go (log (report_join "x=" 4))))', dev_mode=dev_mode
    )
    assert ("x=4" in caplog.text) is logged
