"""Context frames and continuation capture."""

import scriptvm


def _sum_block():
    return scriptvm.Block(
        "report_sum",
        "reporter",
        [
            scriptvm.InputSlot(1),
            scriptvm.Block("report_call_cc", "reporter", [scriptvm.ReporterSlot()]),
        ],
    )


def test_receiver_from_outer():
    """A frame runs for the receiver of its lexical scope."""
    kitty = scriptvm.Sprite("Kitty")
    scope = scriptvm.Context(receiver=kitty)
    frame = scriptvm.Context(None, "do_yield", scope)
    assert frame.receiver is kitty
    assert frame.variables.parent_frame is scope.variables


def test_stack_size():
    bottom = scriptvm.Context()
    middle = scriptvm.Context(bottom)
    top = scriptvm.Context(middle)
    assert top.stack_size() == 3
    assert bottom.stack_size() == 1


def test_boundary_round_trip():
    source = scriptvm.Context()
    source.is_lambda = True
    source.is_inside_custom_block = True
    source.upvars = scriptvm.UpvarReference()
    target = scriptvm.Context()
    target.restore_boundary(source.boundary())
    assert target.is_lambda
    assert target.is_inside_custom_block
    assert not target.is_custom_block
    assert target.upvars is source.upvars


def test_continuation_of_sequence():
    """A sequence frame captures itself, remembering its position."""
    sequence = scriptvm.Context(None, [scriptvm.Block("do_yield")] * 3)
    sequence.pc = 2
    captured = sequence.continuation()
    assert captured.is_continuation
    assert captured is not sequence
    assert captured.pc == 2
    assert captured.expression is sequence.expression


def test_continuation_without_caller():
    """Nothing left to run captures a procedure that stops the process."""
    captured = scriptvm.Context(None, scriptvm.Block("do_yield")).continuation()
    assert captured.is_continuation
    assert captured.expression == "do_stop"


def test_continuation_copies_chain():
    """Captured frames are copies, later changes do not leak into them."""
    bottom = scriptvm.Context(None, [scriptvm.Block("do_yield")])
    waiting = scriptvm.Context(bottom, [scriptvm.Block("do_yield")] * 3)
    waiting.pc = 1
    current = scriptvm.Context(waiting, scriptvm.Block("do_yield"))

    captured = current.continuation()
    waiting.pc = 2
    waiting.add_input("late")
    bottom.pc = 1

    assert captured is not waiting
    assert captured.pc == 1
    assert captured.inputs == []
    assert captured.parent_context is not bottom
    assert captured.parent_context.pc == 0
    assert captured.variables is waiting.variables


def test_prepare_for_binding():
    """The call/cc slot of a waiting reporter becomes placeholder 1."""
    scope = scriptvm.Context()
    waiting = scriptvm.Context(None, _sum_block(), scope)
    waiting.add_input(1)
    current = scriptvm.Context(waiting, waiting.expression.args[1])

    captured = current.continuation()

    assert captured.inputs == []
    assert captured.empty_slots == 1
    assert captured.expression is not waiting.expression
    assert captured.expression.args[1].binding_id == 1
    assert waiting.expression.args[1].binding_id is None
    assert captured.outer_context.expression == "bind_continuation"
    assert captured.outer_context.outer_context is scope


def test_rebind_replaces_holder():
    """Rebinding a prepared frame does not stack binding holders."""
    scope = scriptvm.Context()
    captured = scriptvm.Context(None, _sum_block(), scope)
    captured.prepare_continuation_for_binding()
    first = captured.outer_context
    captured.rebind()
    assert captured.outer_context is not first
    assert captured.outer_context.outer_context is scope
