"""Marking Python methods as block primitives"""

__all__ = ["primitive", "is_primitive"]


def primitive(method):
    """Mark a Process method as callable by block selector.

    Only marked methods are dispatched on the process itself, everything else
    falls through to the receiver. This keeps evaluator internals like
    `push_context` from being reachable as a block.
    """
    method.is_primitive = True
    return method


def is_primitive(value):
    return getattr(value, "is_primitive", False)
