"""Evaluation of one running script.

A Process walks the context chain of a script a bounded amount at a time.
All evaluation state lives in the chain, so a process can stop after any
step and carry on from the same place on the next scheduler tick.
"""

__all__ = ["Process"]

import logging
import time

import scriptvm

log = logging.getLogger(__name__)


class Process(scriptvm.ControlPrimitives, scriptvm.OperatorPrimitives):
    """Running script.

    Args:
        top_block: (Block | None) First block of the script
        threads: (ThreadManager | None) Scheduler running this process,
            supplies config, clock and surface

    Attributes:
        top_block: (Block | None) Script identity for the scheduler
        home_context: (Context) Holds the receiver and the final result
        context: (Context | None) Current frame, None once finished
        ready_to_yield: (bool) Give up control at the end of this step
        ready_to_terminate: (bool) Stop was requested
        error_flag: (bool) Stopped because of an error
        is_atomic: (bool) Inside a warp block, yields are ignored
        prompter: (Prompter | None) Question waiting for an answer
        timeout: (float) Seconds of work allowed per step
        last_yield: (float) Clock reading when control was last given up
    """

    def __init__(self, top_block=None, threads=None):
        self.top_block = top_block
        self.threads = threads
        if threads is not None:
            self.config = threads.config
            self.clock = threads.clock
            self.surface = threads.surface
        else:
            self.config = scriptvm.Config()
            self.clock = time.monotonic
            self.surface = scriptvm.Surface()
        self.timeout = self.config.timeout
        self.ready_to_yield = False
        self.ready_to_terminate = False
        self.error_flag = False
        self.context = None
        self.home_context = scriptvm.Context()
        self.last_yield = self.clock()
        self.is_atomic = False
        self.prompter = None

        if top_block is not None:
            receiver = top_block.receiver()
            self.home_context.receiver = receiver
            if receiver is not None:
                self.home_context.variables.parent_frame = receiver.variables
            self.context = scriptvm.Context(
                None, top_block.block_sequence(), self.home_context
            )
            self.push_context("do_yield")

    def __repr__(self):
        return f"Process<{self.top_block!r}>"

    def is_running(self):
        return self.context is not None and not self.ready_to_terminate

    def stage(self):
        receiver = self.home_context.receiver
        if receiver is None:
            return None
        return receiver.stage

    # Scheduling

    def run_step(self):
        """Evaluate until the process yields, finishes, or runs out of time.

        A stopped process does no more work, its context chain is unwound
        instead.
        """
        self.ready_to_yield = False
        self.last_yield = self.clock()
        while (
            not self.ready_to_yield
            and not self.ready_to_terminate
            and self.context is not None
            and self.clock() - self.last_yield < self.timeout
        ):
            self.evaluate_context()
        self.last_yield = self.clock()
        if self.ready_to_terminate:
            self.terminate()

    def stop(self):
        self.ready_to_yield = True
        self.ready_to_terminate = True
        self.error_flag = False

    def terminate(self):
        """Unwind the whole context chain and end any warp batching."""
        while self.context is not None:
            self.pop_context()
        self.end_warp()

    # Evaluation

    def evaluate_context(self):
        expression = self.context.expression
        if isinstance(expression, list):
            return self.evaluate_sequence(expression)
        if isinstance(expression, scriptvm.MultiArgSlot):
            return self.evaluate_multi_slot(expression, len(expression.inputs()))
        if isinstance(expression, scriptvm.ArgSlot) or (
            getattr(expression, "binding_id", None) is not None
        ):
            return self.evaluate_input(expression)
        if isinstance(expression, scriptvm.Block):
            return self.evaluate_block(expression, len(expression.inputs()))
        if isinstance(expression, str):
            return getattr(self, expression)()
        self.pop_context()

    def evaluate_block(self, block, arg_count):
        """Evaluate the next input, or apply the primitive once all are in."""
        inputs = self.context.inputs
        if arg_count > len(inputs):
            self.evaluate_next_input(block)
            return
        if self.config.catch_errors:
            try:
                value = self.invoke(block, inputs)
            except Exception as error:
                self.handle_error(error, block)
                return
        else:
            value = self.invoke(block, inputs)
        self.return_value_to_parent_context(value)
        self.pop_context()

    def invoke(self, block, inputs):
        return self.primitive_for(block.selector)(*inputs)

    def primitive_for(self, selector):
        """Method implementing a selector.

        Primitives defined on the process win over the receiver's.

        Raises:
            EvalError: neither the process nor the receiver knows the selector
        """
        method = getattr(self, selector, None)
        if scriptvm.is_primitive(method):
            return method
        receiver = self.context.receiver
        method = getattr(receiver, selector, None)
        if scriptvm.is_primitive(method):
            return method
        raise scriptvm.EvalError(f"unknown block {selector!r}")

    def evaluate_multi_slot(self, multi_slot, arg_count):
        inputs = self.context.inputs
        if arg_count > len(inputs):
            self.evaluate_next_input(multi_slot)
        else:
            self.deliver(scriptvm.List(inputs))
            self.pop_context()

    def evaluate_input(self, slot):
        """Deliver the value of a slot, or the argument bound to it."""
        if slot.binding_id is not None:
            if self.config.catch_errors:
                try:
                    value = self.bound_value(slot.binding_id)
                except Exception as error:
                    self.handle_error(error, slot)
                    return
            else:
                value = self.bound_value(slot.binding_id)
        else:
            value = slot.evaluate()
            if value is not None and slot.is_ring():
                value = self.reify(value, scriptvm.List())
        self.deliver(value)
        self.pop_context()

    def bound_value(self, binding_id):
        upvars = self.context.upvars
        if upvars is not None:
            table = upvars.find(binding_id)
            if table is not None:
                return table.get_var(binding_id)
        return self.context.variables.get_var(binding_id)

    def evaluate_sequence(self, blocks):
        """Run the next block of a sequence.

        The last block replaces the sequence frame instead of being pushed
        above it, so long iteration and recursion in tail position do not
        grow the chain.
        """
        context = self.context
        pc = context.pc
        if pc == len(blocks) - 1:
            self.context = scriptvm.Context(
                context.parent_context,
                blocks[pc],
                context.outer_context,
                context.receiver,
                context.is_inside_custom_block,
            )
            self.context.restore_boundary(context.boundary())
        elif pc >= len(blocks):
            self.pop_context()
        else:
            context.pc += 1
            self.push_context(blocks[pc], context.outer_context)

    def evaluate_next_input(self, element):
        inputs = element.inputs()
        node = inputs[len(self.context.inputs)]
        outer = self.context.outer_context
        if node.is_unevaluated():
            selector = getattr(self.context.expression, "selector", None)
            if selector in scriptvm.RAW_INPUTS:
                self.context.add_input(node)
            else:
                self.context.add_input(self.reify(node, scriptvm.List()))
        else:
            self.push_context(node, outer)

    def do_yield(self):
        self.pop_context()
        if not self.is_atomic:
            self.ready_to_yield = True

    # Errors

    def handle_error(self, error, element=None):
        """Stop the process and show what went wrong.

        The message is shown on the failing block when it belongs to this
        script, otherwise on the script's top block marked as coming from
        inside a call.
        """
        self.error_flag = True
        log.info("script %r failed: %s: %s", self.top_block, type(error).__name__, error)
        if self.top_block is None:
            self.terminate()
            return
        self.surface.add_error_highlight(self.top_block)
        target = element
        prefix = ""
        if element is None or element.top_block() is not self.top_block:
            target = self.top_block
            prefix = "Inside: "
        self.surface.show_bubble(
            target, f"{prefix}{type(error).__name__}\n{error}"
        )
        self.terminate()

    # Procedures

    @scriptvm.primitive
    def reify(self, top_block, parameter_names=None):
        """Turn a block into a procedure.

        Empty slots are numbered as placeholders in source order. The
        procedure keeps the current lexical scope.

        Args:
            top_block: (SyntaxElement | None) Block to turn into a procedure
            parameter_names: (List | None) Formal parameter names

        Returns:
            (Context) Detached context usable as a procedure value
        """
        outer = self.context.outer_context if self.context is not None else None
        context = scriptvm.Context(None, None, outer)
        if top_block is not None:
            context.expression = top_block.full_copy()
            slots = context.expression.all_empty_slots()
            for number, slot in enumerate(slots, 1):
                slot.binding_id = number
            context.empty_slots = len(slots)
        if parameter_names is not None:
            context.inputs = [scriptvm.to_text(n) for n in parameter_names.as_array()]
        if self.context is not None:
            context.receiver = self.context.receiver
        elif top_block is not None:
            context.receiver = top_block.receiver()
        return context

    @scriptvm.primitive
    def report_script(self, parameter_names, top_block):
        if isinstance(top_block, scriptvm.Context):
            top_block.inputs = [
                scriptvm.to_text(n) for n in parameter_names.as_array()
            ]
            return top_block
        return self.reify(top_block, parameter_names)

    @scriptvm.primitive
    def do_run(self, context, args=None):
        self.evaluate(context, args, is_command=True)

    @scriptvm.primitive
    def evaluate(self, context, args=None, is_command=False, is_custom_block=False):
        """Call a procedure by splicing its body into this process.

        The body is placed between the calling frame and the frame waiting
        for the call, so it runs right after the calling block completes.
        Commands get a yield point before the body.

        Args:
            context: (Context) Procedure to call
            args: (List | None) Arguments
            is_command: (bool) Called as a command rather than a reporter
            is_custom_block: (bool) Body of a custom block

        Returns:
            (str | None) Empty text when a reporter calls nothing
        """
        if not isinstance(context, scriptvm.Context) or context.expression is None:
            if isinstance(context, scriptvm.Context) or context in (None, ""):
                return None if is_command else ""
            raise scriptvm.EvalError(
                f"expecting a procedure but getting {scriptvm.to_text(context)!r}"
            )
        if context.is_continuation:
            return self.run_continuation(context, args)

        parameters = args.as_array() if args is not None else []
        outer = scriptvm.Context(None, None, context.outer_context)
        if outer.receiver is None:
            outer.receiver = context.receiver
        runnable = scriptvm.Context(
            self.context.parent_context,
            context.expression,
            outer,
            context.receiver,
            is_custom_block or self.context.is_inside_custom_block,
        )
        runnable.is_lambda = True
        runnable.is_custom_block = is_custom_block

        declarations = None
        if is_custom_block:
            declarations = self.context.expression.definition.declarations
        upvars = self.bind_parameters(context, parameters, outer, declarations)
        if upvars is not None:
            runnable.upvars = upvars
        else:
            runnable.upvars = self.context.upvars

        expression = runnable.expression
        if isinstance(expression, scriptvm.Block) and not expression.is_reporter():
            expression = expression.block_sequence()
        if isinstance(expression, list) and not is_command:
            expression = expression + [_empty_report()]
        runnable.expression = expression

        caller = self.context.expression
        is_reporter_block = (
            isinstance(caller, scriptvm.Block) and caller.is_reporter()
        )
        if is_command and not is_reporter_block:
            self.context.parent_context = scriptvm.Context(runnable, "do_yield")
        else:
            self.context.parent_context = runnable
        return None

    def bind_parameters(self, context, parameters, outer, declarations=None):
        """Bind call arguments in the frame of a procedure call.

        Formal parameters are bound in order, missing arguments as 0. A
        procedure without formals binds its arguments to placeholders.

        Returns:
            (UpvarReference | None) Aliases for upvar parameters

        Raises:
            ArityError: placeholders and arguments do not match up
        """
        frame = outer.variables
        upvars = None
        formals = context.inputs
        for index, name in enumerate(formals):
            value = parameters[index] if index < len(parameters) else 0
            if declarations is not None and _is_upvar(declarations, name):
                alias = scriptvm.to_text(value)
                frame.add_var(name, self._caller_value(alias))
                if upvars is None:
                    upvars = scriptvm.UpvarReference(self.context.upvars)
                upvars.add_reference(alias, name, frame)
                self._export_upvar(alias, name, frame)
            else:
                frame.add_var(name, value)

        if declarations is not None or formals:
            return upvars
        if parameters:
            if len(parameters) == 1:
                for number in range(1, context.empty_slots + 1):
                    frame.add_var(number, parameters[0])
            elif len(parameters) == context.empty_slots:
                for number, value in enumerate(parameters, 1):
                    frame.add_var(number, value)
            else:
                raise scriptvm.ArityError(
                    f"expecting {context.empty_slots} input(s), "
                    f"but getting {len(parameters)}"
                )
        elif context.empty_slots:
            raise scriptvm.ArityError(
                f"expecting {context.empty_slots} input(s), but getting none"
            )
        return upvars

    def _caller_value(self, name):
        table = self._upvar_table(name)
        if table is not None:
            return table.get_var(name)
        try:
            return self.context.variables.get_var(name, self.context.parent_context)
        except scriptvm.VariableError:
            return 0

    def _export_upvar(self, alias, name, frame):
        """Let the caller's remaining script see an upvar under its alias."""
        context = self.context.parent_context
        while context is not None and not isinstance(context.expression, list):
            context = context.parent_context
        if context is None:
            return
        if context.upvars is None:
            context.upvars = scriptvm.UpvarReference()
        context.upvars.add_reference(alias, name, frame)

    @scriptvm.primitive
    def fork(self, context, args=None):
        """Start a procedure as a separate process."""
        if not isinstance(context, scriptvm.Context):
            raise scriptvm.EvalError(
                f"expecting a procedure but getting {scriptvm.to_text(context)!r}"
            )
        if context.is_continuation:
            raise scriptvm.ContinuationError("continuations cannot be forked")
        if self.threads is None:
            raise scriptvm.EvalError("cannot launch a process outside a scheduler")
        if context.expression is None:
            return None

        parameters = args.as_array() if args is not None else []
        outer = scriptvm.Context(None, None, context.outer_context)
        if outer.receiver is None:
            outer.receiver = context.receiver
        runnable = scriptvm.Context(None, context.expression, outer)
        runnable.is_lambda = True
        self.bind_parameters(context, parameters, outer)
        expression = runnable.expression
        if isinstance(expression, scriptvm.Block) and not expression.is_reporter():
            runnable.expression = expression.block_sequence()

        process = Process(None, self.threads)
        process.top_block = context.expression
        if context.outer_context is not None:
            process.home_context = context.outer_context
        else:
            process.home_context = scriptvm.Context(receiver=context.receiver)
        process.context = runnable
        process.push_context("do_yield")
        self.threads.add_process(process)
        log.debug("forked %r", process)
        return None

    @scriptvm.primitive
    def do_report(self, value):
        """Answer a value from the procedure or custom block being run.

        Frames are discarded up to the nearest call boundary. Warp blocks
        being left are ended on the way.
        """
        marker = "is_custom_block" if self.context.is_inside_custom_block else "is_lambda"
        while self.context is not None and not getattr(self.context, marker):
            if self.context.expression == "do_stop_warping":
                self.end_warp()
            self.pop_context()
        if self.context is not None and isinstance(self.context.expression, list):
            self.context.pc = len(self.context.expression)
        return value

    # Continuations

    @scriptvm.primitive
    def do_call_cc(self, procedure):
        self.evaluate(
            procedure, scriptvm.List([self.context.continuation()]), is_command=True
        )

    @scriptvm.primitive
    def report_call_cc(self, procedure):
        self.evaluate(procedure, scriptvm.List([self.context.continuation()]))

    def run_continuation(self, continuation, args=None):
        """Resume a captured continuation in place of the rest of this process.

        Every invocation splices in a fresh copy, so a continuation can be
        invoked any number of times.
        """
        parameters = args.as_array() if args is not None else []
        resumed = continuation.copy_for_continuation()
        self.context.parent_context = resumed
        if len(parameters) == 1 and resumed.empty_slots:
            resumed.outer_context.variables.add_var(1, parameters[0])
        return None

    # Custom blocks

    @scriptvm.primitive
    def evaluate_custom_block(self, *inputs):
        block = self.context.expression
        body = block.definition.bound_body(self.context.receiver)
        return self.evaluate(
            body,
            scriptvm.List(inputs),
            is_command=block.is_command(),
            is_custom_block=True,
        )

    # Variables

    @scriptvm.primitive
    def do_declare_variables(self, names):
        frame = self.context.outer_context.variables
        for name in names.as_array():
            frame.add_var(scriptvm.to_text(name), 0)

    @scriptvm.primitive
    def do_set_var(self, name, value):
        table = self._upvar_table(name)
        if table is not None:
            table.set_var(name, value)
        else:
            self.context.variables.set_var(name, value, self.context.parent_context)

    @scriptvm.primitive
    def do_change_var(self, name, delta):
        table = self._upvar_table(name)
        if table is not None:
            table.change_var(name, delta)
        else:
            self.context.variables.change_var(
                name, delta, self.context.parent_context
            )

    @scriptvm.primitive
    def report_get_var(self):
        name = self.context.expression.spec
        table = self._upvar_table(name)
        if table is not None:
            return table.get_var(name)
        return self.context.variables.get_var(name, self.context.parent_context)

    def _upvar_table(self, name):
        if self.context.upvars is None:
            return None
        return self.context.upvars.find(name)

    # Context chain

    def push_context(self, expression=None, outer_context=None):
        current = self.context
        if outer_context is None and current is not None:
            outer_context = current.outer_context
        receiver = current.receiver if current is not None else self.home_context.receiver
        inside = current.is_inside_custom_block if current is not None else False
        self.context = scriptvm.Context(
            current, expression, outer_context, receiver, inside
        )
        if current is not None:
            self.context.upvars = current.upvars

    def pop_context(self):
        if self.context is not None:
            self.context = self.context.parent_context

    def return_value_to_parent_context(self, value):
        """Hand a primitive's answer to the waiting frame, None means no answer."""
        if value is not None:
            self.deliver(value)

    def deliver(self, value):
        target = self.home_context
        if self.context is not None and self.context.parent_context is not None:
            target = self.context.parent_context
        target.add_input(value)


def _is_upvar(declarations, name):
    declaration = declarations.get(name)
    return declaration is not None and declaration[0] == "%upvar"


def _empty_report():
    return scriptvm.Block("do_report", "command", [scriptvm.InputSlot("")])
