"""Variable frames, dynamic fallback lookup and upvar alias tables."""

import pytest

import scriptvm
import vmtest


def test_lexical_lookup():
    """Names resolve through the parent chain, closest frame wins."""
    outer = scriptvm.VariableFrame()
    outer.add_var("a", 1)
    outer.add_var("b", 2)
    inner = scriptvm.VariableFrame(outer)
    inner.add_var("b", 20)

    assert inner.get_var("a") == 1
    assert inner.get_var("b") == 20
    assert inner.find("a") is outer


def test_missing_variable():
    frame = scriptvm.VariableFrame()
    with pytest.raises(scriptvm.VariableError, match="'ghost' does not exist"):
        frame.get_var("ghost")


def test_unset_reads_as_zero():
    """A declared variable that was never assigned reads as 0."""
    frame = scriptvm.VariableFrame()
    frame.add_var("fresh")
    assert frame.get_var("fresh") == 0


def test_dynamic_fallback():
    """Failing lexical lookups fall back to the callers' frames."""
    caller = scriptvm.Context()
    caller.variables.add_var("shared", "hello")
    waiting = scriptvm.Context(caller)
    frame = scriptvm.VariableFrame()

    assert frame.get_var("shared", waiting) == "hello"
    with pytest.raises(scriptvm.VariableError):
        frame.get_var("shared")


@vmtest.params(
    "value expected",
    number=(5, 5),
    numeric_text=("12", 12),
    leading_number=("3.5 apples", 3.5),
    text=("apples", "apples"),
    boolean=(True, True),
)
def test_set_var_stores(key, value, expected):
    """Assignment keeps numbers from numeric text."""
    frame = scriptvm.VariableFrame()
    frame.add_var("x", 0)
    frame.set_var("x", value)
    assert frame.get_var("x") == expected


def test_set_var_declared_frame():
    """Assignment updates the frame declaring the name, not the nearest."""
    outer = scriptvm.VariableFrame()
    outer.add_var("x", 1)
    inner = scriptvm.VariableFrame(outer)
    inner.set_var("x", 5)
    assert outer.vars["x"] == 5
    assert "x" not in inner.vars


@vmtest.params(
    "start delta expected",
    numbers=(1, 2, 3),
    text_delta=(1, "2", 3),
    numeric_text=("10", 5, 15),
    replaces_text=("apples", 4, 4),
)
def test_change_var(key, start, delta, expected):
    frame = scriptvm.VariableFrame()
    frame.add_var("x", start)
    frame.change_var("x", delta)
    assert frame.get_var("x") == expected


def test_delete_var():
    outer = scriptvm.VariableFrame()
    outer.add_var("x", 1)
    inner = scriptvm.VariableFrame(outer)
    inner.delete_var("x")
    assert outer.names() == []


def test_names():
    outer = scriptvm.VariableFrame()
    outer.add_var("a")
    outer.add_var("b")
    inner = scriptvm.VariableFrame(outer)
    inner.add_var("b")
    inner.add_var("c")
    assert inner.names() == ["b", "c"]
    assert sorted(inner.all_names()) == ["a", "b", "c"]


def test_copy_shares_parent():
    outer = scriptvm.VariableFrame()
    frame = scriptvm.VariableFrame(outer)
    frame.add_var("x", 1)
    duplicate = frame.copy()
    duplicate.set_var("x", 2)
    assert frame.get_var("x") == 1
    assert duplicate.parent_frame is outer


def test_upvar_alias():
    """An alias reads and writes the variable in the frame it points to."""
    callee = scriptvm.VariableFrame()
    callee.add_var("total", 3)
    upvars = scriptvm.UpvarReference()
    upvars.add_reference("sum", "total", callee)

    assert upvars.find("sum") is upvars
    assert upvars.get_var("sum") == 3
    upvars.set_var("sum", "7")
    assert callee.vars["total"] == 7
    upvars.change_var("sum", 1)
    assert callee.vars["total"] == 8


def test_upvar_chain():
    """Alias tables search their enclosing tables."""
    frame = scriptvm.VariableFrame()
    frame.add_var("i", 1)
    outer = scriptvm.UpvarReference()
    outer.add_reference("index", "i", frame)
    inner = scriptvm.UpvarReference(outer)

    assert inner.find("index") is outer
    assert inner.find("other") is None
    assert inner.all_names() == ["index"]
