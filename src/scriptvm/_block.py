"""Block tree nodes evaluated by processes.

Blocks are the nodes of a script. Command blocks link to the following block
with `next_block`, and every node links back to its container with `parent`.
Argument slots hold literal values, nested scripts, or procedure rings.

A top level block carries an `owner`, the sprite or stage the script belongs
to. Highlight, error and bubble state are recorded directly on the nodes by
the surface.
"""

__all__ = [
    "SyntaxElement",
    "Block",
    "CustomBlock",
    "ArgSlot",
    "InputSlot",
    "MultiArgSlot",
    "CommandSlot",
    "ReporterSlot",
    "UpvarSlot",
    "CustomBlockDefinition",
    "chain",
    "variable_getter",
    "RAW_INPUTS",
]

import scriptvm

# Primitives taking a raw block at this input instead of its value
RAW_INPUTS = {"reify": 0, "report_script": 1}


class SyntaxElement:
    """Common behavior for blocks and slots.

    Attributes:
        parent: (SyntaxElement | None) Containing node
        binding_id: (int | None) Placeholder number assigned by reification
    """

    def __init__(self):
        self.parent = None
        self.binding_id = None

    def inputs(self):
        """Arguments evaluated before this node completes."""
        return []

    def children(self):
        """Every directly contained node, in source order."""
        return self.inputs()

    def evaluate(self):
        return None

    def is_empty_slot(self):
        return False

    def is_unevaluated(self):
        return False

    def is_ring(self):
        return False

    def top_block(self):
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def all_inputs(self):
        """Slots and nested reporters below this node, depth first.

        Rings are not entered, their placeholders belong to the procedure
        the ring makes.
        """
        found = []
        pending = list(reversed(self.children()))
        while pending:
            node = pending.pop()
            if isinstance(node, ArgSlot) or (
                isinstance(node, Block) and node.is_reporter()
            ):
                found.append(node)
            if node.is_ring():
                continue
            pending.extend(reversed(node.children()))
        return found

    def all_empty_slots(self):
        empty = [node for node in self.all_inputs() if node.is_empty_slot()]
        if self.is_empty_slot():
            empty.insert(0, self)
        return empty

    def full_copy(self):
        raise NotImplementedError

    def _adopt(self, node):
        if node is not None:
            node.parent = self
        return node


class Block(SyntaxElement):
    """A block invoking a primitive by selector.

    Args:
        selector: (str) Name of the primitive to invoke
        kind: (str) One of "command", "reporter", "predicate" or "hat"
        args: (list | None) Argument slots and nested reporters
        spec: (str | None) Label, for variable getters the variable name

    Attributes:
        next_block: (Block | None) Following command in the script
        owner: (Scriptable | None) Receiver, only set on top level blocks
        unevaluated: (bool) Occupies a slot that takes the raw block
        is_highlighted: (bool) Script is running
        has_error: (bool) Script stopped with an error
        bubble: (any) Last value or message shown next to the block
    """

    def __init__(self, selector, kind="command", args=None, spec=None):
        super().__init__()
        self.selector = selector
        self.kind = kind
        self.spec = spec if spec is not None else selector
        self.args = []
        for arg in args or []:
            self.args.append(self._adopt(arg))
        self.next_block = None
        self.owner = None
        self.unevaluated = False
        self.is_highlighted = False
        self.has_error = False
        self.bubble = None

    def __repr__(self):
        return f"Block<{self.selector}>"

    def inputs(self):
        return list(self.args)

    def children(self):
        if self.next_block is not None:
            return self.args + [self.next_block]
        return list(self.args)

    def is_reporter(self):
        return self.kind in ("reporter", "predicate")

    def is_command(self):
        return self.kind == "command"

    def is_hat(self):
        return self.kind == "hat"

    def is_unevaluated(self):
        return self.unevaluated

    def receiver(self):
        node = self
        while node is not None:
            if node.owner is not None:
                return node.owner
            node = node.parent
        return None

    def set_next(self, block):
        """Attach a block below this one and answer it."""
        self.next_block = self._adopt(block)
        return block

    def bottom_block(self):
        block = self
        while block.next_block is not None:
            block = block.next_block
        return block

    def block_sequence(self):
        """Blocks run in order starting here.

        Reporters answer themselves, a hat block is not part of the
        sequence it starts.

        Returns:
            (list | Block) The command sequence, or the reporter itself
        """
        if self.is_reporter():
            return self
        sequence = []
        block = self.next_block if self.is_hat() else self
        while block is not None:
            sequence.append(block)
            block = block.next_block
        return sequence

    def full_copy(self):
        duplicate = self._shallow()
        duplicate.binding_id = self.binding_id
        duplicate.unevaluated = self.unevaluated
        duplicate.args = [duplicate._adopt(arg.full_copy()) for arg in self.args]
        if self.next_block is not None:
            duplicate.next_block = duplicate._adopt(self.next_block.full_copy())
        return duplicate

    def _shallow(self):
        return Block(self.selector, self.kind, spec=self.spec)


class CustomBlock(Block):
    """Instance of a user defined block.

    Args:
        definition: (CustomBlockDefinition) What this block runs
        args: (list | None) Argument slots, one per declared parameter
    """

    def __init__(self, definition, args=None):
        super().__init__(
            "evaluate_custom_block", definition.type, args, spec=definition.name
        )
        self.definition = definition

    def __repr__(self):
        return f"CustomBlock<{self.definition.name}>"

    def _shallow(self):
        return CustomBlock(self.definition)


class ArgSlot(SyntaxElement):
    """Base for argument slots."""

    def full_copy(self):
        duplicate = self._shallow()
        duplicate.binding_id = self.binding_id
        return duplicate

    def _shallow(self):
        raise NotImplementedError


class InputSlot(ArgSlot):
    """Slot holding a literal typed into it.

    Args:
        contents: (any) Literal value, empty text means the slot is empty
        is_numeric: (bool) Read numeric text as a number
    """

    def __init__(self, contents="", is_numeric=False):
        super().__init__()
        self.contents = contents
        self.is_numeric = is_numeric

    def __repr__(self):
        return f"InputSlot<{self.contents!r}>"

    def evaluate(self):
        if self.is_numeric and isinstance(self.contents, str):
            number = scriptvm.parse_float(self.contents)
            if not scriptvm.is_nan(number):
                return number
        return self.contents

    def is_empty_slot(self):
        return self.contents == ""

    def _shallow(self):
        return InputSlot(self.contents, self.is_numeric)


class MultiArgSlot(ArgSlot):
    """Variable number of sub-slots, evaluated into a List."""

    def __init__(self, slots=None):
        super().__init__()
        self.slots = [self._adopt(slot) for slot in slots or []]

    def __repr__(self):
        return f"MultiArgSlot<{len(self.slots)}>"

    def inputs(self):
        return list(self.slots)

    def full_copy(self):
        duplicate = MultiArgSlot([slot.full_copy() for slot in self.slots])
        duplicate.binding_id = self.binding_id
        return duplicate


class CommandSlot(ArgSlot):
    """Slot holding a nested command script.

    A static slot is the body of a control block and evaluates to the
    nested block itself. A non-static slot is a command ring, evaluated into
    a procedure.

    Args:
        nested: (Block | None) First block of the nested script
        is_static: (bool) Control structure body rather than a ring
    """

    def __init__(self, nested=None, is_static=True):
        super().__init__()
        self.nested = self._adopt(nested)
        self.is_static = is_static

    def __repr__(self):
        return f"CommandSlot<{self.nested!r}>"

    def children(self):
        return [self.nested] if self.nested is not None else []

    def evaluate(self):
        return self.nested

    def is_empty_slot(self):
        return self.nested is None and not self.is_static

    def is_ring(self):
        return not self.is_static

    def full_copy(self):
        nested = self.nested.full_copy() if self.nested is not None else None
        duplicate = CommandSlot(nested, self.is_static)
        duplicate.binding_id = self.binding_id
        return duplicate


class ReporterSlot(ArgSlot):
    """Reporter ring, evaluated into a procedure."""

    def __init__(self, nested=None):
        super().__init__()
        self.nested = self._adopt(nested)

    def __repr__(self):
        return f"ReporterSlot<{self.nested!r}>"

    def children(self):
        return [self.nested] if self.nested is not None else []

    def evaluate(self):
        return self.nested

    def is_ring(self):
        return True

    def full_copy(self):
        nested = self.nested.full_copy() if self.nested is not None else None
        duplicate = ReporterSlot(nested)
        duplicate.binding_id = self.binding_id
        return duplicate


class UpvarSlot(ArgSlot):
    """Names a caller variable passed by reference."""

    def __init__(self, name):
        super().__init__()
        self.name = name

    def __repr__(self):
        return f"UpvarSlot<{self.name}>"

    def evaluate(self):
        return self.name

    def _shallow(self):
        return UpvarSlot(self.name)


class CustomBlockDefinition:
    """User defined block.

    Args:
        name: (str) Block name used in scripts
        type: (str) "command", "reporter" or "predicate"
        declarations: (dict) Parameter name to (slot type, default value),
            upvar parameters use the "%upvar" type
        body: (Block | None) First block of the body script

    Attributes:
        name: (str) Block name
        type: (str) Block kind
        declarations: (dict) Parameters in order
        body: (Block | None) Body script
    """

    def __init__(self, name, type="command", declarations=None, body=None):
        self.name = name
        self.type = type
        self.declarations = dict(declarations or {})
        self.body = body
        self._bodies = {}

    def __repr__(self):
        return f"CustomBlockDefinition<{self.name}>"

    def input_names(self):
        return list(self.declarations)

    def block_instance(self, args=None):
        return CustomBlock(self, args)

    def bound_body(self, receiver):
        """Procedure running the body for a receiver.

        The procedure's lexical scope is the receiver's variables, so a body
        sees sprite and global variables but not its caller's script
        variables.

        Args:
            receiver: (Scriptable | None) Sprite or stage running the block

        Returns:
            (Context) Reified body with the parameter names as formals
        """
        body = self._bodies.get(id(receiver))
        if body is not None and body.receiver is receiver:
            return body
        scope = scriptvm.Context(receiver=receiver)
        if receiver is not None:
            scope.variables.parent_frame = receiver.variables
        body = scriptvm.Context(outer_context=scope, receiver=receiver)
        if self.body is not None:
            body.expression = self.body.block_sequence()
        body.inputs = self.input_names()
        self._bodies[id(receiver)] = body
        return body


def chain(*blocks):
    """Link command blocks into a script and answer the first one."""
    first = blocks[0]
    current = first
    for block in blocks[1:]:
        current = current.set_next(block)
    return first


def variable_getter(name):
    return Block("report_get_var", "reporter", spec=name)
