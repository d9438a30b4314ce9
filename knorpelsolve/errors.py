"""
Exceptions raised by knorpelsolve.

Every error derives from :class:`KnorpelError`. The concrete classes also
derive from the built-in exception a caller would expect for the same
situation (``ValueError`` for bad input, ``TypeError`` for operations that
would leave the linear domain, ``RuntimeError`` for backend failures).
"""
from typing import Optional


class KnorpelError(Exception):
    """Base class for all knorpelsolve errors"""


class DuplicateVariableError(KnorpelError, ValueError):
    """A variable with the same name is already registered in the problem"""

    def __init__(self, name: str):
        super().__init__(f"variable '{name}' exists")
        self.name = name


class ParseError(KnorpelError, ValueError):
    """Base class for errors in an interpolated expression or constraint"""


class LexicalError(ParseError):
    """
    An unrecognized character in a literal segment.

    Attributes
    ----------
    char : str
        The offending character
    index : int
        Index of the character within ``segment``
    segment : str
        The literal segment that was being scanned
    source : str
        The whole source with all operands substituted
    """

    def __init__(self, char: str, index: int, segment: str, source: str):
        msg = f"unexpected character '{char}'\n  at index {index}"
        if source != segment:
            msg += f"\n  in the part '{segment}'"
        msg += f"\n  in the expression '{source}'"
        super().__init__(msg)
        self.char = char
        self.index = index
        self.segment = segment
        self.source = source


class UnexpectedEndOfInputError(ParseError):
    """The token stream ended while an operand was required"""


class UnexpectedTokenError(ParseError):
    """A token appeared where an operand was required"""

    def __init__(self, message: str, token=None):
        super().__init__(message)
        self.token = token


class UnmatchedParenthesisError(UnexpectedTokenError):
    """An opening parenthesis has no closing counterpart"""


class MissingComparatorError(UnexpectedTokenError):
    """A constraint has no '<=', '==' or '>='"""


class ChainedComparatorError(UnexpectedTokenError):
    """A constraint has more than one comparator"""


class TrailingTokensError(UnexpectedTokenError):
    """Tokens are left over after a complete expression or constraint"""


class LinearityError(KnorpelError, TypeError):
    """An operation would produce a non-affine term"""


class NonLinearMultiplicationError(LinearityError):
    """Both factors of a product are non-constant"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "Multiplication is only supported between an expression and a number."
        )


class NonConstantDivisorError(LinearityError):
    """The divisor of a quotient is not a number"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Division is only supported by a number.")


class SolverError(KnorpelError, RuntimeError):
    """The backend failed to produce a usable answer"""
