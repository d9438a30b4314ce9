"""
Affine model and algebra for knorpelsolve

This module holds the data types a model is made of (variables, affine
expressions, constraints) and the combinators that build and merge them.
All combinators are pure: they return new expressions and never touch
their operands or the variables those operands reference.

Example
-------
>>> from knorpelsolve import Problem
>>> from knorpelsolve.modeling import add, scale, sub
>>>
>>> problem = Problem()
>>> a = problem.variable('a')
>>> b = problem.variable('b')
>>>
>>> # 2*a + 3 - b, built with the combinators ...
>>> e1 = sub(add(scale(2, a), 3), b)
>>> # ... or with Python operators
>>> e2 = 2*a + 3 - b
>>> e1 == e2
True
"""

import types
from enum import Enum
from typing import Dict, Iterator, List, Mapping, NamedTuple, Optional, Tuple, Union

import numpy as np

from .errors import NonConstantDivisorError, NonLinearMultiplicationError


NUMBER_TYPES = (int, float, np.number)


class Sense(Enum):
    """Optimization direction"""
    MINIMIZE = 'min'
    MAXIMIZE = 'max'


class ConstraintSense(Enum):
    """Constraint comparator"""
    LE = '<='  # Less than or equal
    GE = '>='  # Greater than or equal
    EQ = '=='  # Equal


def _ieee_divide(numerator, denominator) -> float:
    """Divide with IEEE-754 semantics (x/0 is inf or nan, never an exception)"""
    with np.errstate(divide='ignore', invalid='ignore'):
        return float(np.float64(numerator) / denominator)


class _AffineOperators:
    """Python operators shared by Variable and Expression"""

    # numpy scalars must defer to the reflected operators below
    __array_ufunc__ = None

    def __add__(self, other):
        if not isinstance(other, NUMBER_TYPES + (Variable, Expression)):
            return NotImplemented
        return add(self, other)

    def __radd__(self, other):
        if not isinstance(other, NUMBER_TYPES):
            return NotImplemented
        return add(other, self)

    def __sub__(self, other):
        if not isinstance(other, NUMBER_TYPES + (Variable, Expression)):
            return NotImplemented
        return sub(self, other)

    def __rsub__(self, other):
        if not isinstance(other, NUMBER_TYPES):
            return NotImplemented
        return sub(other, self)

    def __mul__(self, other):
        if isinstance(other, NUMBER_TYPES):
            return scale(other, self)
        if isinstance(other, (Variable, Expression)):
            raise NonLinearMultiplicationError(
                "Can only multiply expression by scalar (no quadratic terms)"
            )
        return NotImplemented

    def __rmul__(self, other):
        if isinstance(other, NUMBER_TYPES):
            return scale(other, self)
        return NotImplemented

    def __truediv__(self, other):
        if isinstance(other, NUMBER_TYPES):
            return divide(self, other)
        if isinstance(other, (Variable, Expression)):
            raise NonConstantDivisorError("Can only divide expression by scalar")
        return NotImplemented

    def __rtruediv__(self, other):
        if isinstance(other, NUMBER_TYPES):
            raise NonConstantDivisorError("Can only divide by scalar")
        return NotImplemented

    def __le__(self, other):
        if not isinstance(other, NUMBER_TYPES + (Variable, Expression)):
            return NotImplemented
        return Constraint.from_comparison(self, ConstraintSense.LE, other)

    def __ge__(self, other):
        if not isinstance(other, NUMBER_TYPES + (Variable, Expression)):
            return NotImplemented
        return Constraint.from_comparison(self, ConstraintSense.GE, other)

    def __neg__(self):
        return neg(self)

    def __pos__(self):
        return to_expression(self)


class Variable(_AffineOperators):
    """
    Represents a decision variable in the optimization model.

    Variables are created through :meth:`knorpelsolve.Problem.variable` and
    are shared by reference between every expression that mentions them.
    The bound and domain setters change the variable in place and return it,
    so they can be chained.

    Parameters
    ----------
    name : str
        Name of the variable, unique within its problem
    min : float, optional
        Lower bound (default: unbounded)
    max : float, optional
        Upper bound (default: unbounded)
    integer : bool, optional
        Whether the variable must take an integer value (default: False)
    initial : float, optional
        Starting value hint for warm starts

    Examples
    --------
    >>> x = Variable('x', min=0, max=10)
    >>> y = Variable('y').bounds(0, 1).make_integer()
    >>> expr = 3*x + 5  # Create affine expression
    """

    def __init__(self, name: str, min: Optional[float] = None,
                 max: Optional[float] = None, integer: bool = False,
                 initial: Optional[float] = None):
        self.name = name
        self.min = min
        self.max = max
        self.integer = integer
        self.initial = initial
        self._value = None  # Will be set after solving

    @property
    def value(self) -> Optional[float]:
        """Get the value of this variable after solving"""
        return self._value

    @value.setter
    def value(self, val: Optional[float]):
        """Set the value of this variable (used internally after solving)"""
        self._value = val

    def bounds(self, lower: Optional[float], upper: Optional[float]) -> 'Variable':
        """Set both bounds, ``None`` meaning unbounded on that side"""
        self.min = lower
        self.max = upper
        return self

    def make_integer(self) -> 'Variable':
        """Restrict the variable to integer values"""
        self.integer = True
        return self

    def make_binary(self) -> 'Variable':
        """Restrict the variable to the values 0 and 1"""
        return self.bounds(0, 1).make_integer()

    def __repr__(self):
        return f"Variable({self.name})"


class Term(NamedTuple):
    """A single ``factor * variable`` entry of a linear expression"""
    factor: float
    variable: Variable


class LinearExpression:
    """
    Linear part of an affine expression: a sum of ``factor * variable``.

    Internally stores one :class:`Term` per variable name, in insertion
    order. The mapping is read-only once the expression exists; the
    combinators build a new mapping for every result.

    Parameters
    ----------
    coeff : dict, optional
        Dictionary mapping variable names to terms. The expression takes
        ownership of the dictionary.
    """

    def __init__(self, coeff: Optional[Dict[str, Term]] = None):
        self._coeff = coeff if coeff is not None else {}

    @property
    def coeff(self) -> Mapping[str, Term]:
        """Read-only view of the name -> term mapping"""
        return types.MappingProxyType(self._coeff)

    def get_factor(self, name: str) -> float:
        """Get the factor for a variable, 0 if it does not appear"""
        term = self._coeff.get(name)
        return term.factor if term is not None else 0.0

    def __len__(self) -> int:
        return len(self._coeff)

    def __iter__(self) -> Iterator[Term]:
        return iter(self._coeff.values())

    def __contains__(self, name) -> bool:
        return name in self._coeff

    def __eq__(self, other):
        # a missing entry and a zero factor are the same
        if not isinstance(other, LinearExpression):
            return NotImplemented
        names = set(self._coeff) | set(other._coeff)
        return all(self.get_factor(name) == other.get_factor(name) for name in names)

    __hash__ = None

    def __repr__(self):
        return f"LinearExpression({_format_terms(self._coeff.values(), 0.0)})"


class Expression(_AffineOperators):
    """
    Represents an affine expression: ``constant + sum(factor * variable)``.

    Expressions are values. Every combinator returns a new one, so an
    expression can be reused freely after it has been built.

    Parameters
    ----------
    linear : LinearExpression, optional
        Linear part
    constant : float, optional
        Constant offset

    Examples
    --------
    >>> x = Variable('x')
    >>> y = Variable('y')
    >>> expr = 3*x + 2*y - 5
    >>> expr.terms()
    [('x', 3.0), ('y', 2.0)]
    >>> expr.constant
    -5.0
    """

    def __init__(self, linear: Optional[LinearExpression] = None,
                 constant: float = 0.0):
        self._linear = linear if linear is not None else LinearExpression()
        self._constant = constant

    @property
    def linear(self) -> LinearExpression:
        """Linear part of the expression"""
        return self._linear

    @property
    def constant(self) -> float:
        """Constant offset"""
        return self._constant

    def terms(self) -> List[Tuple[str, float]]:
        """``(name, factor)`` pairs in stable insertion order"""
        return [(term.variable.name, term.factor) for term in self._linear]

    def variables(self) -> List[Variable]:
        """Variables referenced by this expression"""
        return [term.variable for term in self._linear]

    def get_coefficient(self, name: str) -> float:
        """Get the factor for a variable, 0 if it does not appear"""
        return self._linear.get_factor(name)

    def is_constant(self) -> bool:
        """Whether the expression has no linear part"""
        return len(self._linear) == 0

    def evaluate(self, values: Mapping[str, float]) -> float:
        """
        Compute the value of the expression.

        Parameters
        ----------
        values : mapping
            Value of every variable in the expression, keyed by name

        Returns
        -------
        float
            ``constant + sum(factor * values[name])``
        """
        total = self._constant
        for term in self._linear:
            total += term.factor * values[term.variable.name]
        return total

    def __eq__(self, other):
        if not isinstance(other, Expression):
            return NotImplemented
        return self._constant == other._constant and self._linear == other._linear

    __hash__ = None

    def __repr__(self):
        return f"Expression({_format_terms(self._linear, self._constant)})"


class Constraint:
    """
    Represents a linear constraint in normalized form.

    If ``is_equality`` the constraint means ``expression == 0``, otherwise
    ``expression <= 0``. Use :meth:`from_comparison` to build one from two
    sides and a comparator.

    Parameters
    ----------
    expression : Expression
        Normalized expression
    is_equality : bool
        Whether the constraint is an equality

    Examples
    --------
    >>> a = Variable('a')
    >>> b = Variable('b')
    >>> c = Constraint.from_comparison(a, '>=', b)  # b - a <= 0
    >>> c.expression == b - a
    True
    """

    def __init__(self, expression: Expression, is_equality: bool):
        self.expression = expression
        self.is_equality = is_equality

    @classmethod
    def from_comparison(cls, left, sense: Union[str, ConstraintSense],
                        right) -> 'Constraint':
        """
        Normalize ``left <op> right`` so that the right-hand side is zero.

        Parameters
        ----------
        left : float, Variable or Expression
            Left-hand side
        sense : str or ConstraintSense
            One of '<=', '==', '>='
        right : float, Variable or Expression
            Right-hand side

        Returns
        -------
        Constraint
            ``right - left <= 0`` for '>=', ``left - right`` otherwise
        """
        if not isinstance(sense, ConstraintSense):
            try:
                sense = ConstraintSense(sense)
            except ValueError:
                raise ValueError(
                    f"Unknown comparator {sense!r}, expected one of '<=', '==', '>='"
                ) from None
        if sense == ConstraintSense.GE:
            expression = sub(right, left)
        else:
            expression = sub(left, right)
        return cls(expression, sense == ConstraintSense.EQ)

    def __repr__(self):
        sense_str = '==' if self.is_equality else '<='
        return f"Constraint({_format_terms(self.expression.linear, self.expression.constant)} {sense_str} 0)"


def _format_terms(terms, constant) -> str:
    parts = []
    for term in terms:
        name = term.variable.name
        if term.factor == 1:
            parts.append(name)
        elif term.factor == -1:
            parts.append(f"-{name}")
        else:
            parts.append(f"{term.factor}*{name}")
    if constant != 0 or not parts:
        parts.append(f"{constant}")

    result = parts[0]
    for part in parts[1:]:
        if part.startswith('-'):
            result += f" - {part[1:]}"
        else:
            result += f" + {part}"
    return result


Operand = Union[float, int, np.number, Variable, Expression]


def to_expression(value: Operand) -> Expression:
    """
    Convert a number, a Variable or an Expression to an Expression.

    Numbers become constant expressions and variables become ``1 * var``.
    An Expression is returned as is, not copied.

    Raises
    ------
    TypeError
        If ``value`` is none of the above
    """
    if isinstance(value, Expression):
        return value
    if isinstance(value, Variable):
        return Expression(LinearExpression({value.name: Term(1.0, value)}), 0.0)
    if isinstance(value, NUMBER_TYPES):
        return Expression(LinearExpression(), value)
    raise TypeError(
        f"Expected a number, Variable or Expression, got {type(value).__name__}"
    )


def add_scaled(base: Operand, coefficient: float, other: Operand) -> Expression:
    """
    Compute ``base + coefficient * other``.

    This is the combinator every other one is built on. The result gets a
    fresh term mapping holding the same Variable objects as the operands.

    Parameters
    ----------
    base : float, Variable or Expression
        Left operand
    coefficient : float
        Scale applied to ``other``
    other : float, Variable or Expression
        Right operand

    Returns
    -------
    Expression
        New expression; neither operand is modified
    """
    if not isinstance(coefficient, NUMBER_TYPES):
        raise TypeError(
            f"Coefficient must be a number, got {type(coefficient).__name__}"
        )
    base = to_expression(base)
    other = to_expression(other)

    coeff = dict(base.linear.coeff)
    for name, term in other.linear.coeff.items():
        existing = coeff.get(name)
        factor = existing.factor if existing is not None else 0.0
        variable = existing.variable if existing is not None else term.variable
        coeff[name] = Term(factor + coefficient * term.factor, variable)
    constant = base.constant + coefficient * other.constant
    return Expression(LinearExpression(coeff), constant)


def add(left: Operand, right: Operand) -> Expression:
    """left + right"""
    return add_scaled(left, 1, right)


def sub(left: Operand, right: Operand) -> Expression:
    """left - right"""
    return add_scaled(left, -1, right)


def neg(expression: Operand) -> Expression:
    """-expression"""
    return add_scaled(0, -1, expression)


def scale(factor: float, expression: Operand) -> Expression:
    """factor * expression"""
    return add_scaled(0, factor, expression)


def divide(expression: Operand, divisor: float) -> Expression:
    """expression / divisor; a zero divisor yields infinite or nan factors"""
    if not isinstance(divisor, NUMBER_TYPES):
        raise NonConstantDivisorError()
    return add_scaled(0, _ieee_divide(1.0, divisor), expression)
