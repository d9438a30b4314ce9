"""
Problem builder for knorpelsolve

A :class:`Problem` owns a namespace of variables and a list of constraints.
Constraints and objectives are given either as sources in the expression
language or as values built with the algebra in :mod:`knorpelsolve.modeling`.

Example
-------
>>> from knorpelsolve import Problem
>>>
>>> p = Problem()
>>> a = p.variable("a", max=1)
>>> b = p.variable("b", min=2, max=4)
>>> p.constraint("{} + 2 <= {}", a, b)
>>> p.constraint("1 + {} >= 4 - {}", a, b)
>>> solution = p.maximize("10 * ({} - {} / 5) - {}", a, b, b)
>>> print(solution.status, solution.values)
"""
import logging
from typing import Any, Dict, List, Optional, Union

from .errors import DuplicateVariableError
from .evaluator import evaluate_constraint, evaluate_expression
from .modeling import Constraint, Expression, Sense, Variable, to_expression
from .options import SolveOptions
from .solution import Solution
from .solver import ScipySolver
from .template import Template, is_source

logger = logging.getLogger(__name__)


def _terms(expression: Expression) -> List[Dict[str, Any]]:
    return [{'name': name, 'factor': float(factor)} for name, factor in expression.terms()]


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)


class Problem:
    """
    Main class for building MILP models.

    This class allows you to:
    - Add named decision variables with bounds and integrality
    - Add linear constraints
    - Serialize the model for a backend
    - Minimize or maximize a linear objective

    Parameters
    ----------
    backend : object, optional
        Anything with a ``solve(message, options)`` method returning
        ``{"status": ..., "values": [...]}``. Defaults to
        :class:`knorpelsolve.ScipySolver`.
    name : str, optional
        Name of the problem

    Examples
    --------
    >>> p = Problem()
    >>> # unbounded, continuous
    >>> a = p.variable("a")
    >>> # unbounded, integer
    >>> b = p.variable("b", integer=True)
    >>> c = p.variable("c").make_integer()
    >>> # bounded
    >>> d = p.variable("d", min=0)
    >>> f = p.variable("f").bounds(-5, 5)
    >>> # binary
    >>> h = p.variable("h").make_binary()
    """

    def __init__(self, backend=None, name: Optional[str] = None):
        self.name = name or "MILP"
        self._backend = backend
        self._variables: Dict[str, Variable] = {}
        self.constraints: List[Constraint] = []

    @property
    def variables(self) -> List[Variable]:
        """Variables in registration order"""
        return list(self._variables.values())

    def get_variable(self, name: str) -> Variable:
        """Look up a registered variable by name"""
        return self._variables[name]

    def variable(self, name: str, min: Optional[float] = None,
                 max: Optional[float] = None, integer: bool = False,
                 initial: Optional[float] = None) -> Variable:
        """
        Add a decision variable to the problem.

        Parameters
        ----------
        name : str
            Name of the variable, unique within this problem
        min : float, optional
            Lower bound (default: unbounded)
        max : float, optional
            Upper bound (default: unbounded)
        integer : bool, optional
            Whether the variable must be an integer (default: False)
        initial : float, optional
            Starting value hint for warm starts

        Returns
        -------
        Variable
            The created variable object

        Raises
        ------
        DuplicateVariableError
            If a variable with this name already exists
        """
        if name in self._variables:
            raise DuplicateVariableError(name)
        var = Variable(name, min=min, max=max, integer=integer, initial=initial)
        self._variables[name] = var
        logger.debug(f"Added variable {name} (min={min}, max={max}, integer={integer})")
        return var

    def constraint(self, source, *operands) -> Constraint:
        """
        Add a constraint to the problem.

        Accepts a source in the expression language with exactly one
        comparator, an explicit ``(left, operator, right)`` triple, or a
        Constraint built with ``<=`` / ``>=``.

        Parameters
        ----------
        source : str, Template, Constraint, number, Variable or Expression
            Format string with ``{}`` placeholders, a template, a built
            constraint, or the left side of a triple
        *operands
            Operands for the format string, or ``operator, right`` for a
            triple

        Returns
        -------
        Constraint
            The added constraint, normalized so that the right side is zero

        Raises
        ------
        ValueError
            If the constraint uses a variable that was not created by this
            problem

        Examples
        --------
        >>> a = p.variable("a")
        >>> b = p.variable("b")
        >>> p.constraint("{} + 4 >= ({} - 1) / 2.0", a, b)
        >>> p.constraint(add(a, 4), ">=", exp("({} - 1) / 2.0", b))
        >>> p.constraint(a + 2*b <= 10)
        """
        if isinstance(source, Constraint) and not operands:
            constraint = source
        else:
            if not is_source(source) and len(operands) == 2 and isinstance(operands[0], str):
                left, sense, right = source, operands[0], operands[1]
            else:
                left, sense, right = evaluate_constraint(Template.coerce(source, operands))
            constraint = Constraint.from_comparison(left, sense, right)

        self._check_variables(constraint.expression)
        self.constraints.append(constraint)
        logger.debug(f"Added constraint {constraint!r}")
        return constraint

    def objective(self, source, *operands) -> Expression:
        """Lift an objective given as a source or a value to an Expression"""
        if is_source(source):
            return evaluate_expression(Template.coerce(source, operands))
        if operands:
            raise TypeError("Objective operands can only be passed with a format string")
        return to_expression(source)

    def _check_variables(self, expression: Expression):
        """Raise ValueError if the expression uses a variable of another problem"""
        for variable in expression.variables():
            if self._variables.get(variable.name) is not variable:
                raise ValueError(f"Variable '{variable.name}' is not part of this problem")

    def to_message(self, direction: Union[str, Sense], objective,
                   options: Optional[SolveOptions] = None) -> Dict[str, Any]:
        """
        Serialize the problem for a backend.

        Parameters
        ----------
        direction : str or Sense
            'min' or 'max'
        objective : number, Variable or Expression
            Objective to optimize
        options : SolveOptions, optional
            Options whose ``verbose`` flag is forwarded

        Returns
        -------
        dict
            Message with the keys ``direction``, ``variables``,
            ``objective``, ``objective_offset``, ``constraints``,
            ``constraint_offsets``, ``equalities``, ``equalities_offsets``
            and ``verbose``. Constraint ``i`` means
            ``sum(constraints[i]) + constraint_offsets[i] <= 0``, and likewise
            ``== 0`` for equalities.
        """
        direction = Sense(direction.value if isinstance(direction, Sense) else direction)
        objective = to_expression(objective)

        for expression in [objective] + [c.expression for c in self.constraints]:
            self._check_variables(expression)

        inequalities = [c for c in self.constraints if not c.is_equality]
        equalities = [c for c in self.constraints if c.is_equality]

        return {
            'direction': direction.value,
            'variables': [
                {
                    'name': var.name,
                    'min': _optional_float(var.min),
                    'max': _optional_float(var.max),
                    'initial': _optional_float(var.initial),
                    'integer': bool(var.integer),
                }
                for var in self._variables.values()
            ],
            'objective': _terms(objective),
            'objective_offset': float(objective.constant),
            'constraints': [_terms(c.expression) for c in inequalities],
            'constraint_offsets': [float(c.expression.constant) for c in inequalities],
            'equalities': [_terms(c.expression) for c in equalities],
            'equalities_offsets': [float(c.expression.constant) for c in equalities],
            'verbose': bool(options.verbose) if options is not None else False,
        }

    def minimize(self, objective, *operands,
                 options: Optional[SolveOptions] = None) -> Solution:
        """
        Solve the problem by finding a minimum of the objective.

        Parameters
        ----------
        objective : str, Template, number, Variable or Expression
            Objective as a source (with ``operands``) or as a value
        *operands
            Operands for a format string
        options : SolveOptions, optional
            Solver options

        Returns
        -------
        Solution
            Status and variable values

        Examples
        --------
        >>> solution = p.minimize("10 * ({} - {} / 5) - {}", a, b, b)
        >>> solution = p.minimize(a, options=SolveOptions(verbose=True))
        """
        return self._solve(Sense.MINIMIZE, self.objective(objective, *operands), options)

    def maximize(self, objective, *operands,
                 options: Optional[SolveOptions] = None) -> Solution:
        """
        Solve the problem by finding a maximum of the objective.

        See :meth:`minimize` for the parameters.
        """
        return self._solve(Sense.MAXIMIZE, self.objective(objective, *operands), options)

    def _solve(self, sense: Sense, objective: Expression,
               options: Optional[SolveOptions]) -> Solution:
        message = self.to_message(sense, objective, options)
        if self._backend is None:
            self._backend = ScipySolver()

        logger.info(f"Solving {self.name} ({sense.value}): {len(self._variables)} variables, "
                    f"{len(self.constraints)} constraints")
        answer = self._backend.solve(message, options)
        solution = Solution.from_message(answer, list(self._variables))

        # Store solution in variables
        if solution.is_optimal():
            for name, var in self._variables.items():
                var.value = solution.values[name]
            solution.objective = objective.evaluate(solution.values)
        logger.info(f"Solved {self.name}: {solution!r}")
        return solution

    def __repr__(self):
        return (f"Problem(name='{self.name}', "
                f"variables={len(self._variables)}, constraints={len(self.constraints)})")
