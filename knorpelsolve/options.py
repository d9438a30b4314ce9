"""
Options for solving a knorpelsolve problem
"""


class SolveOptions:
    """
    Configuration passed to the backend together with a problem.

    Attributes
    ----------
    verbose : bool
        Whether the backend should log while solving (default: False)
    time_limit : float or None
        Maximum time in seconds, None for no limit (default: None)
    mip_rel_gap : float or None
        Relative optimality gap at which integer search stops, None for the
        backend default (default: None)

    Examples
    --------
    >>> options = SolveOptions()
    >>> options.verbose = True
    >>> options.time_limit = 60.0
    >>> solution = problem.maximize(a, options=options)
    """

    def __init__(self, verbose: bool = False, time_limit=None, mip_rel_gap=None):
        self.verbose = verbose
        self.time_limit = time_limit
        self.mip_rel_gap = mip_rel_gap

    def __repr__(self):
        return (f"SolveOptions(verbose={self.verbose}, "
                f"time_limit={self.time_limit}, "
                f"mip_rel_gap={self.mip_rel_gap})")

    @classmethod
    def from_dict(cls, d):
        """Create SolveOptions from dictionary, ignoring unknown keys"""
        options = cls()
        for key, value in d.items():
            if hasattr(options, key):
                setattr(options, key, value)
        return options

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'verbose': self.verbose,
            'time_limit': self.time_limit,
            'mip_rel_gap': self.mip_rel_gap,
        }
