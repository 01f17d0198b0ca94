"""Activation records for running scripts.

A Context is one frame of a process. Frames link to the frame they return to
through `parent_context`, and to the frame holding their lexical scope through
`outer_context`. Neither link uses the Python call stack, so a process can be
suspended between any two steps and resumed later.
"""

__all__ = ["Context"]

import scriptvm


class Context:
    """State of one step of evaluation.

    Args:
        parent_context: (Context | None) Frame to return values to
        expression: (any) Block, list of blocks, pseudo-op name, or None
        outer_context: (Context | None) Frame holding the lexical scope
        receiver: (Scriptable | None) Sprite or stage the frame runs for,
            taken from the outer frame when it has one
        is_inside_custom_block: (bool) Frame is part of a custom block body

    Attributes:
        variables: (VariableFrame) Scope, chained to the outer scope
        upvars: (UpvarReference | None) Aliases visible to this frame
        inputs: (list) Evaluated arguments, or formal parameter names when
            the context is a procedure
        pc: (int) Index of the next block when the expression is a sequence
        start_time: (float | None) When a timed primitive first ran
        start_value: (any) Starting point of an interpolated primitive
        active_audio: (Sound | None) Sound a primitive is waiting on
        active_sends: (list | None) Processes a broadcast is waiting on
        is_lambda: (bool) Return boundary of a called procedure
        is_custom_block: (bool) Return boundary of a custom block body
        empty_slots: (int) Placeholders a procedure binds
        is_continuation: (bool) Captured remainder of a process
    """

    __slots__ = (
        "parent_context",
        "outer_context",
        "expression",
        "receiver",
        "variables",
        "upvars",
        "inputs",
        "pc",
        "start_time",
        "start_value",
        "active_audio",
        "active_sends",
        "is_lambda",
        "is_custom_block",
        "is_inside_custom_block",
        "empty_slots",
        "is_continuation",
    )

    def __init__(
        self,
        parent_context=None,
        expression=None,
        outer_context=None,
        receiver=None,
        is_inside_custom_block=False,
    ):
        self.parent_context = parent_context
        self.outer_context = outer_context
        self.expression = expression
        self.receiver = receiver
        self.variables = scriptvm.VariableFrame()
        if outer_context is not None:
            self.variables.parent_frame = outer_context.variables
            if outer_context.receiver is not None:
                self.receiver = outer_context.receiver
        self.upvars = None
        self.inputs = []
        self.pc = 0
        self.start_time = None
        self.start_value = None
        self.active_audio = None
        self.active_sends = None
        self.is_lambda = False
        self.is_custom_block = False
        self.is_inside_custom_block = is_inside_custom_block
        self.empty_slots = 0
        self.is_continuation = False

    def __repr__(self):
        prefix = "lambda-" if self.is_lambda else ""
        expression = self.expression
        if isinstance(expression, list) and expression:
            expression = f"[{expression[0]!r}...]"
        return f"{prefix}Context<{expression!r}>"

    def add_input(self, value):
        self.inputs.append(value)

    def stack_size(self):
        """Number of frames up to the bottom of the process."""
        size = 0
        context = self
        while context is not None:
            size += 1
            context = context.parent_context
        return size

    def boundary(self):
        """Return-boundary markers and aliases that control blocks carry.

        Returns:
            (tuple) Values for restore_boundary
        """
        return (
            self.is_inside_custom_block,
            self.is_lambda,
            self.is_custom_block,
            self.upvars,
        )

    def restore_boundary(self, boundary):
        (
            self.is_inside_custom_block,
            self.is_lambda,
            self.is_custom_block,
            self.upvars,
        ) = boundary

    def continuation(self):
        """Capture the rest of the process as a procedure.

        Capture starts at this frame when it is a sequence, otherwise at the
        frame waiting for this one. A frame with nothing to return to
        captures a procedure that stops the process.

        Returns:
            (Context) Copy of the frame chain marked as a continuation
        """
        if isinstance(self.expression, list):
            start = self
        elif self.parent_context is not None:
            start = self.parent_context
        else:
            start = Context(None, "do_stop")
            start.is_continuation = True
            return start
        captured = start.copy_for_continuation()
        captured.is_continuation = True
        return captured

    def copy_for_continuation(self):
        """Copy the frame chain from here to the bottom of the process.

        Variable frames are shared, everything a process mutates while it
        runs is copied. A frame waiting on a reporter is prepared to accept
        the value passed when the continuation is invoked.

        Returns:
            (Context) First frame of the copied chain
        """
        first = self._copy()
        if isinstance(self.expression, scriptvm.Block):
            first.prepare_continuation_for_binding()
        current = first
        while current.parent_context is not None:
            current.parent_context = current.parent_context._copy()
            current = current.parent_context
        return first

    def prepare_continuation_for_binding(self):
        """Make the pending call/cc slot read the continuation's argument.

        The expression is copied and the slot holding the call/cc reporter
        is numbered as placeholder 1. Arguments already evaluated before it
        are discarded, they are evaluated again when the continuation runs.
        """
        self.expression = self.expression.full_copy()
        self.inputs = []
        for node in self.expression.inputs():
            if getattr(node, "selector", None) == "report_call_cc":
                node.binding_id = 1
                break
        self.empty_slots = 1
        self.rebind()

    def rebind(self):
        """Give a prepared continuation frame a fresh scope for its argument."""
        scope = self.outer_context
        if scope is not None and scope.expression == "bind_continuation":
            scope = scope.outer_context
        holder = Context(None, "bind_continuation", scope, self.receiver)
        self.outer_context = holder
        self.variables = scriptvm.VariableFrame(holder.variables)

    def _copy(self):
        duplicate = Context.__new__(Context)
        for name in Context.__slots__:
            setattr(duplicate, name, getattr(self, name))
        duplicate.inputs = list(self.inputs)
        duplicate.active_sends = (
            list(self.active_sends) if self.active_sends is not None else None
        )
        return duplicate
