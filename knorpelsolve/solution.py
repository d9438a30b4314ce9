"""
Solution returned when a knorpelsolve problem is solved
"""
from typing import Any, Dict, List, Optional, Sequence

STATUSES = ('optimal', 'unbounded', 'infeasible')


class Solution:
    """
    Outcome of a solve.

    Attributes
    ----------
    status : str
        One of 'optimal', 'unbounded', 'infeasible'
    values : dict
        Value of every variable keyed by name, in registration order.
        Empty if no solution was found.
    objective : float or None
        Objective value including its constant offset, None without a
        solution

    Methods
    -------
    is_optimal()
        Check if solution is optimal
    to_dict()
        Convert solution to dictionary
    """

    def __init__(self, status: str, values: Optional[Dict[str, float]] = None,
                 objective: Optional[float] = None):
        if status not in STATUSES:
            raise ValueError(f"Unknown status {status!r}, expected one of {STATUSES}")
        self.status = status
        self.values: Dict[str, float] = values if values is not None else {}
        self.objective = objective

    def is_optimal(self) -> bool:
        """Check if solution is optimal"""
        return self.status == 'optimal'

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def __repr__(self):
        return (f"Solution(status='{self.status}', "
                f"objective={self.objective}, "
                f"n_vars={len(self.values)})")

    def to_dict(self) -> Dict[str, Any]:
        """Convert solution to dictionary"""
        return {
            'status': self.status,
            'values': dict(self.values),
            'objective': self.objective,
        }

    @classmethod
    def from_message(cls, message: Dict[str, Any], names: Sequence[str]) -> 'Solution':
        """
        Create Solution from a backend answer.

        Parameters
        ----------
        message : dict
            ``{"status": ..., "values": [...]}`` with one value per variable,
            in the order the variables were sent
        names : sequence of str
            Variable names in the order they were sent

        Returns
        -------
        Solution
            Solution with values keyed by name
        """
        values: List[float] = list(message.get('values') or [])
        # an optimal answer must carry a value for every variable
        if (values or message['status'] == 'optimal') and len(values) != len(names):
            raise ValueError(
                f"Backend returned {len(values)} values for {len(names)} variables"
            )
        return cls(message['status'], dict(zip(names, values)))
