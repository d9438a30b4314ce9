"""
scipy backend for knorpelsolve

Consumes the problem message built by :meth:`knorpelsolve.Problem.to_message`
and hands it to ``scipy.optimize.milp`` (HiGHS). The message is turned into
the matrix form milp expects:

    minimize    c'*x
    subject to  A_ub*x <= -offsets_ub
                A_eq*x == -offsets_eq
                l <= x <= u,  x_i integer where requested
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy import sparse
from scipy.optimize import Bounds, LinearConstraint, milp

from .errors import SolverError
from .options import SolveOptions

logger = logging.getLogger(__name__)

# scipy.optimize.milp status codes
_STATUS = {
    0: 'optimal',
    2: 'infeasible',
    3: 'unbounded',
}


def _ensure_contiguous_float64(arr):
    """Ensure array is contiguous float64"""
    if not isinstance(arr, np.ndarray):
        arr = np.array(arr, dtype=np.float64)
    if arr.dtype != np.float64:
        arr = arr.astype(np.float64)
    return np.ascontiguousarray(arr)


def _column(index: Dict[str, int], name: str) -> int:
    try:
        return index[name]
    except KeyError:
        raise ValueError(f"Term refers to unknown variable '{name}'") from None


def _term_matrix(rows: Sequence[List[Dict[str, Any]]], index: Dict[str, int],
                 n: int) -> sparse.csr_matrix:
    """Build a sparse (len(rows) x n) matrix from term lists"""
    row_idx = []
    col_idx = []
    data = []
    for i, terms in enumerate(rows):
        for term in terms:
            row_idx.append(i)
            col_idx.append(_column(index, term['name']))
            data.append(term['factor'])
    return sparse.coo_matrix((data, (row_idx, col_idx)), shape=(len(rows), n)).tocsr()


def _infeasible_or_unbounded(result) -> bool:
    """HiGHS cannot always separate the two for integer models (milp status 4)"""
    message = str(result.message).lower()
    return result.status == 4 and 'infeasible' in message and 'unbounded' in message


class ScipySolver:
    """
    Backend that solves problem messages with ``scipy.optimize.milp``.

    Parameters
    ----------
    options : SolveOptions, optional
        Default options, used when :meth:`solve` receives none

    Examples
    --------
    >>> from knorpelsolve import Problem, ScipySolver, SolveOptions
    >>> problem = Problem(backend=ScipySolver(SolveOptions(time_limit=10)))
    """

    def __init__(self, options: Optional[SolveOptions] = None):
        self.options = options if options is not None else SolveOptions()

    def solve(self, message: Dict[str, Any],
              options: Optional[SolveOptions] = None) -> Dict[str, Any]:
        """
        Solve a problem message.

        Parameters
        ----------
        message : dict
            Problem message, see :meth:`knorpelsolve.Problem.to_message`
        options : SolveOptions, optional
            Options for this call. If None, uses the solver's default options.

        Returns
        -------
        dict
            ``{"status": ..., "values": [...]}``, values in variable order and
            empty unless the status is 'optimal'

        Raises
        ------
        SolverError
            If milp stops for any reason other than optimality, infeasibility
            or unboundedness
        """
        if options is None:
            options = self.options

        variables = message['variables']
        n = len(variables)
        if n == 0:
            logger.info("Model has no variables, nothing to solve")
            return {'status': 'optimal', 'values': []}
        index = {var['name']: i for i, var in enumerate(variables)}

        # Build objective vector c
        c = np.zeros(n)
        for term in message['objective']:
            c[_column(index, term['name'])] += term['factor']

        # milp only minimizes
        if message['direction'] == 'max':
            c = -c

        l = _ensure_contiguous_float64(
            [-np.inf if var['min'] is None else var['min'] for var in variables])
        u = _ensure_contiguous_float64(
            [np.inf if var['max'] is None else var['max'] for var in variables])
        integrality = np.array([1 if var['integer'] else 0 for var in variables])

        if any(var.get('initial') is not None for var in variables):
            logger.debug("scipy milp has no warm start, ignoring initial values")

        constraints = []
        if message['constraints']:
            A = _term_matrix(message['constraints'], index, n)
            AU = -_ensure_contiguous_float64(message['constraint_offsets'])
            constraints.append(LinearConstraint(A, -np.inf, AU))
        if message['equalities']:
            A = _term_matrix(message['equalities'], index, n)
            rhs = -_ensure_contiguous_float64(message['equalities_offsets'])
            constraints.append(LinearConstraint(A, rhs, rhs))

        milp_options = {'disp': bool(message.get('verbose') or options.verbose)}
        if options.time_limit is not None:
            milp_options['time_limit'] = options.time_limit
        if options.mip_rel_gap is not None:
            milp_options['mip_rel_gap'] = options.mip_rel_gap

        logger.info(f"Solving with scipy milp: {n} variables, "
                    f"{len(message['constraints'])} inequalities, "
                    f"{len(message['equalities'])} equalities")
        bounds = Bounds(l, u)
        result = milp(c, integrality=integrality, bounds=bounds,
                      constraints=constraints or None, options=milp_options)

        status = _STATUS.get(result.status)
        if status is None and _infeasible_or_unbounded(result):
            # with a zero objective the model is either feasible or infeasible
            logger.info("scipy milp reported infeasible or unbounded, checking feasibility")
            check = milp(np.zeros(n), integrality=integrality, bounds=bounds,
                         constraints=constraints or None, options=milp_options)
            if check.status == 0:
                status = 'unbounded'
            elif check.status == 2:
                status = 'infeasible'
            else:
                result = check
        if status is None:
            raise SolverError(f"scipy milp failed (status {result.status}): {result.message}")
        logger.info(f"scipy milp finished: {status}")

        values = result.x.tolist() if status == 'optimal' else []
        return {'status': status, 'values': values}


def solve(message: Dict[str, Any], options: Optional[SolveOptions] = None) -> Dict[str, Any]:
    """
    Convenience function to solve a problem message without creating a
    solver object.
    """
    return ScipySolver(options).solve(message)
