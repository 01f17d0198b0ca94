"""Load stages from script notation.

The notation is a small s-expression language. Blocks are written as
`(selector arg...)`, variables as `$name`, static command slots as
`[...]`, rings as `'[...]` or `'(...)` and variadic inputs as `{...}`.
Definitions of custom blocks come first or last, they are collected before
any script is built so scripts and bodies can call each other freely.

```
(define command accumulate (total:upvar n)
  [(do_change_var "total" $n)])
(sprite "Kitty"
  (variables (sum 0))
  (when go
    (accumulate "sum" 5)
    (do_say_for $sum 1)))
```
"""

__all__ = ["parse_tree", "load", "PARAM_TYPES"]

import ast
import logging

import lark

import scriptvm

log = logging.getLogger(__name__)

# Parameter types in definitions and the slot type each one declares
PARAM_TYPES = {
    "any": "%s",
    "num": "%n",
    "text": "%txt",
    "bool": "%b",
    "upvar": "%upvar",
    "unevaluated": "%anyUE",
    "command": "%cs",
    "reporter": "%repRing",
}

_HATS = {
    "hat_go": "receive_go",
    "hat_click": "receive_click",
    "hat_message": "receive_message",
    "hat_key": "receive_key",
}

_parsers = {}


def parse_tree(source):
    """Parse script notation into a lark tree.

    Args:
        source: (str) Script notation

    Returns:
        (lark.Tree) Parse tree

    Raises:
        ParseError: The notation has a syntax error
    """
    try:
        return _lark_parser("script").parse(source)
    except lark.exceptions.UnexpectedInput as error:
        position = error.pos_in_stream
        if position is None or position < 0:
            position = len(source)
        raise scriptvm.ParseError(str(error), position) from error
    except lark.exceptions.LarkError as error:
        raise scriptvm.ParseError(str(error)) from error


def load(source, config=None, surface=None, clock=None):
    """Build a stage with the sprites and scripts described by the notation.

    Args:
        source: (str) Script notation
        config: (Config | None) Settings for the stage's scheduler
        surface: (Surface | None) Display hooks
        clock: (callable | None) Seconds as a float

    Returns:
        (Stage) Stage ready to have events fired at it

    Raises:
        ParseError: The notation is invalid
    """
    tree = parse_tree(source)
    stage = scriptvm.Stage(config=config, surface=surface, clock=clock)
    _Builder(stage).build(tree)
    log.debug("loaded %d sprite(s)", len(stage.sprites))
    return stage


def _lark_parser(name):
    """Get globally shared lark parser.

    Args:
        name: (str) name of the grammar file (without .lark)

    Returns:
        (lark.Lark) Parser instance
    """
    parser = _parsers.get(name)
    if parser is not None:
        return parser

    path = f"lark/{name}.lark"
    parser = lark.Lark.open(
        path, rel_to=__file__, parser="lalr", propagate_positions=True
    )
    _parsers[name] = parser
    return parser


class _Builder:
    """Turns a parse tree into sprites, scripts and definitions on a stage."""

    def __init__(self, stage):
        self.stage = stage
        self.definitions = {}

    def build(self, tree):
        defines = [node for node in tree.children if node.data == "define"]
        for node in defines:
            self.declare(node)
        for node in defines:
            name = node.children[1].value
            self.definitions[name].body = self.sequence(node.children[3].children)

        for node in tree.children:
            if node.data == "sprite":
                name = _string(node.children[0])
                if self.stage.sprite_named(name) is not None:
                    raise scriptvm.ParseError(
                        f"duplicate sprite {name!r}", _position(node)
                    )
                sprite = self.stage.add_sprite(scriptvm.Sprite(name))
                self.members(sprite, node.children[1:])
            elif node.data == "stage":
                self.members(self.stage, node.children)

    def declare(self, node):
        kind, token, params, _body = node.children
        name = token.value
        if name in self.definitions:
            raise scriptvm.ParseError(
                f"block {name!r} is defined twice", _position(node)
            )
        declarations = {}
        for param in params.children:
            param_name, param_type = param.children
            type_name = param_type.value if param_type is not None else "any"
            if type_name not in PARAM_TYPES:
                raise scriptvm.ParseError(
                    f"unknown parameter type {type_name!r}", _position(param)
                )
            declarations[param_name.value] = (PARAM_TYPES[type_name], 0)
        self.definitions[name] = scriptvm.CustomBlockDefinition(
            name, kind.children[0].value, declarations
        )

    def members(self, receiver, nodes):
        for node in nodes:
            kids = node.children
            match node.data:
                case "variables":
                    for variable in kids:
                        name, value = variable.children
                        value = self.literal(value) if value is not None else 0
                        receiver.variables.add_var(name.value, value)
                case "position":
                    if not isinstance(receiver, scriptvm.Sprite):
                        raise scriptvm.ParseError(
                            "only sprites have a position", _position(node)
                        )
                    receiver.goto_xy(_number(kids[0]), _number(kids[1]))
                case "sound":
                    receiver.sounds[_string(kids[0])] = _number(kids[1])
                case "when":
                    hat = kids[0]
                    args = [scriptvm.InputSlot(_string(t)) for t in hat.children]
                    top = scriptvm.Block(_HATS[hat.data], "hat", args)
                    body = self.sequence(kids[1:])
                    if body is not None:
                        top.set_next(body)
                    receiver.add_script(top)
                case "script":
                    receiver.add_script(self.sequence(kids))
                case "reporter":
                    receiver.add_script(self.block(kids[0], "reporter"))

    def sequence(self, nodes):
        """Chain statement nodes into a script, None when there are none."""
        blocks = [self.block(node, "command") for node in nodes]
        if not blocks:
            return None
        return scriptvm.chain(*blocks)

    def block(self, node, kind):
        token, *arg_nodes = node.children
        selector = token.value
        definition = self.definitions.get(selector)
        if definition is not None:
            return self.custom_block(definition, arg_nodes, node)

        args = [self.argument(arg) for arg in arg_nodes]
        raw = scriptvm.RAW_INPUTS.get(selector)
        if raw is not None and raw < len(args) and isinstance(args[raw], scriptvm.Block):
            args[raw].unevaluated = True
        return scriptvm.Block(selector, kind, args)

    def custom_block(self, definition, arg_nodes, node):
        names = definition.input_names()
        if len(arg_nodes) != len(names):
            raise scriptvm.ParseError(
                f"{definition.name} takes {len(names)} input(s), "
                f"but {len(arg_nodes)} were given",
                _position(node),
            )
        args = []
        for name, arg_node in zip(names, arg_nodes):
            slot_type = definition.declarations[name][0]
            args.append(self.custom_argument(slot_type, arg_node))
        return definition.block_instance(args)

    def custom_argument(self, slot_type, node):
        """Slot for a custom block input, shaped by its declared type."""
        if slot_type == "%upvar":
            if node.data != "string":
                raise scriptvm.ParseError(
                    "upvar input must name a variable", _position(node)
                )
            return scriptvm.UpvarSlot(_string(node.children[0]))
        if slot_type == "%cs" and node.data == "cslot":
            return scriptvm.CommandSlot(self.sequence(node.children), is_static=False)
        if slot_type == "%repRing" and node.data == "block":
            return scriptvm.ReporterSlot(self.block(node, "reporter"))
        arg = self.argument(node)
        if slot_type == "%anyUE" and isinstance(arg, scriptvm.Block):
            arg.unevaluated = True
        return arg

    def argument(self, node):
        kids = node.children
        match node.data:
            case "block":
                return self.block(node, "reporter")
            case "var":
                return scriptvm.variable_getter(kids[0].value)
            case "cslot":
                return scriptvm.CommandSlot(self.sequence(kids))
            case "command_ring":
                return scriptvm.CommandSlot(self.sequence(kids), is_static=False)
            case "reporter_ring":
                return scriptvm.ReporterSlot(self.block(kids[0], "reporter"))
            case "multi":
                return scriptvm.MultiArgSlot([self.argument(kid) for kid in kids])
        return scriptvm.InputSlot(self.literal(node))

    def literal(self, node):
        match node.data:
            case "number":
                return _number(node.children[0])
            case "string":
                return _string(node.children[0])
            case "true":
                return True
            case "false":
                return False
        return ""


def _number(token):
    return scriptvm.parse_float(token.value)


def _string(token):
    try:
        return ast.literal_eval(token.value)
    except (ValueError, SyntaxError) as error:
        raise scriptvm.ParseError(
            f"invalid string {token.value}", token.start_pos
        ) from error


def _position(node):
    return getattr(node.meta, "start_pos", None)
