"""
Branching module - semiassignment branching and its restriction constraints.

This module provides:
- SemiassignBranching: chooses a location with fractional assignments and
  splits its medians into two forbidden sets
- BranchingResult: the decision (or "integral")
- compute_assignments: fractional assignment matrix of an LP solution
- SemiassignConstraint: per-child constraint with an explicit lifecycle
- ConstraintState, ConstraintStateError
"""

from opencpmp.branching.constraint import (
    ConstraintState,
    ConstraintStateError,
    SemiassignConstraint,
)
from opencpmp.branching.semiassign import (
    BranchingResult,
    SemiassignBranching,
    compute_assignments,
    sort_medians,
)

__all__ = [
    # Constraint
    'ConstraintState',
    'ConstraintStateError',
    'SemiassignConstraint',

    # Branching rule
    'BranchingResult',
    'SemiassignBranching',
    'compute_assignments',
    'sort_medians',
]
