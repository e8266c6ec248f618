"""
Master problem module - the restricted master LP of the p-median branch-and-price.

The master problem is a set covering over cluster columns:
- Coverage: every location is in at least one selected cluster (>= 1)
- Convexity: every median hosts at most one selected cluster (<= 1)
- Cardinality: at most p clusters are selected (<= p)

This module provides:
- MasterProblem: Abstract base class for custom LP backends
- HiGHSMasterProblem: Default implementation using HiGHS
- MasterSolution: Solution data structure
- MasterDuals: Dual values (or Farkas multipliers) handed to pricing
- SolutionStatus: Enum for solution status

Usage:
------
    >>> from opencpmp.master import HiGHSMasterProblem
    >>> master = HiGHSMasterProblem(instance)
    >>> solution = master.solve_lp()
    >>> if solution.is_infeasible:
    ...     solution = master.solve_farkas()
    >>> duals = solution.duals
"""

from opencpmp.master.solution import MasterDuals, MasterSolution, SolutionStatus
from opencpmp.master.base import MasterProblem

# Try to import HiGHS implementation
try:
    from opencpmp.master.highs import HiGHSMasterProblem, HIGHS_AVAILABLE
except ImportError:
    HIGHS_AVAILABLE = False
    HiGHSMasterProblem = None  # type: ignore


__all__ = [
    # Solution
    'MasterSolution',
    'MasterDuals',
    'SolutionStatus',

    # Base class
    'MasterProblem',

    # HiGHS implementation
    'HiGHSMasterProblem',
    'HIGHS_AVAILABLE',
]
