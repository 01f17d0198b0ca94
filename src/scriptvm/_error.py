"""Error classes raised by the evaluator and the script loader"""

__all__ = [
    "EvalError",
    "VariableError",
    "ArityError",
    "ContinuationError",
    "ParseError",
]


class EvalError(Exception):
    """Error raised while a process evaluates blocks."""


class VariableError(EvalError):
    """Variable name could not be found in any reachable frame."""


class ArityError(EvalError):
    """Procedure called with a number of inputs it cannot bind."""


class ContinuationError(EvalError):
    """Continuation used in a way it does not support."""


class ParseError(Exception):
    """Exception raised for errors in script notation.

    Args:
        message: (str) Error description
        position: (int | None) Optional character position where error occurred

    Attributes:
        message: (str) Error description
        position: (int | None) Character position where error occurred
    """

    def __init__(self, message, position=None):
        self.message = message
        self.position = position
        super().__init__(message)
