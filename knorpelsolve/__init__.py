"""
knorpelsolve Python Package

Build mixed-integer linear programs from named variables, affine expressions
and constraints, written with a small arithmetic language or with the
algebra combinators.
"""

from .errors import (
    KnorpelError, DuplicateVariableError, ParseError, LexicalError,
    UnexpectedEndOfInputError, UnexpectedTokenError, UnmatchedParenthesisError,
    MissingComparatorError, ChainedComparatorError, TrailingTokensError,
    LinearityError, NonLinearMultiplicationError, NonConstantDivisorError,
    SolverError,
)
from .modeling import (
    Variable, Term, LinearExpression, Expression, Constraint, Sense,
    ConstraintSense, to_expression, add_scaled, add, sub, neg, scale, divide,
)
from .template import Template, exp
from .options import SolveOptions
from .solution import Solution
from .problem import Problem
from .solver import ScipySolver
from .native import NativeLibrary, load_cached

__version__ = "0.1.0"

__all__ = [
    'Problem',
    'Variable',
    'Term',
    'LinearExpression',
    'Expression',
    'Constraint',
    'Sense',
    'ConstraintSense',
    'Template',
    'exp',
    'to_expression',
    'add_scaled',
    'add',
    'sub',
    'neg',
    'scale',
    'divide',
    'SolveOptions',
    'Solution',
    'ScipySolver',
    'NativeLibrary',
    'load_cached',
    '__version__',
    # Errors
    'KnorpelError',
    'DuplicateVariableError',
    'ParseError',
    'LexicalError',
    'UnexpectedEndOfInputError',
    'UnexpectedTokenError',
    'UnmatchedParenthesisError',
    'MissingComparatorError',
    'ChainedComparatorError',
    'TrailingTokensError',
    'LinearityError',
    'NonLinearMultiplicationError',
    'NonConstantDivisorError',
    'SolverError',
]
