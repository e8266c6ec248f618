"""
Semiassignment branching rule.

Branching is performed on the fractional assignment matrix

    assignments[i][j] = sum of the values of the columns with median j
                        whose members contain location i

rather than on column variables. For the chosen location l the medians
are split into two disjoint sets F_left and F_right; the left child
forbids assigning l to the medians in F_left, the right child forbids
F_right. Every integral solution of the parent survives in exactly one
child, and the fractional solution is cut off in both.

Location selection:
1. Maximize the number of medians with a fractional assignment
2. Break ties by the most balanced split of the fractional mass between
   even and odd median indices, i.e. minimize |halffrac - totfrac / 2|;
   a challenger must improve by more than the tolerance, otherwise the
   lowest index wins

Median split: medians ordered by non-increasing assignment value (ties by
index), medians already forbidden for l are skipped, the remaining ones
alternate left, right, left, ...
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from opencpmp.branching.constraint import SemiassignConstraint
from opencpmp.config import config as global_config
from opencpmp.core.restrictions import AssignmentRestrictions
from opencpmp.master.base import MasterProblem
from opencpmp.master.solution import MasterSolution


def compute_assignments(master: MasterProblem, solution: MasterSolution) -> np.ndarray:
    """
    Build the fractional assignment matrix of an LP solution.

    Args:
        master: The master problem the solution belongs to
        solution: LP solution with column values

    Returns:
        n x n array, rows are locations and columns are medians
    """
    n = master.instance.num_locations
    assignments = np.zeros((n, n))

    for column_id, value in solution.column_values.items():
        column = master.get_column(column_id)
        if column is None:
            raise ValueError(f"Solution references unknown column {column_id}")
        for location in column.members:
            assignments[location, column.median] += value

    return assignments


def sort_medians(values: np.ndarray) -> List[int]:
    """
    Median indices by non-increasing assignment value.

    Args:
        values: One row of the assignment matrix

    Returns:
        Median indices; equal values keep ascending index order
    """
    return sorted(range(len(values)), key=lambda j: (-values[j], j))


@dataclass
class BranchingResult:
    """
    Outcome of a branching decision.

    Attributes:
        location: The branched location (None if integral)
        left: Constraint of the left child
        right: Constraint of the right child
        num_fractional: Fractional medians of the chosen location
    """
    location: Optional[int] = None
    left: Optional[SemiassignConstraint] = None
    right: Optional[SemiassignConstraint] = None
    num_fractional: int = 0

    @property
    def integral(self) -> bool:
        """True when no location has a fractional assignment."""
        return self.location is None

    @property
    def children(self) -> List[SemiassignConstraint]:
        if self.integral:
            return []
        return [self.left, self.right]

    def __repr__(self) -> str:
        if self.integral:
            return "BranchingResult(integral)"
        return (
            f"BranchingResult(location={self.location}, "
            f"left={self.left.forbidden_medians}, right={self.right.forbidden_medians})"
        )


class SemiassignBranching:
    """
    Branching rule on fractional location-to-median assignments.

    Args:
        restrictions: Restriction state of the active path
        integrality_tolerance: Values within this distance of an integer
            count as integral (defaults to the global config)

    Example:
        >>> branching = SemiassignBranching(restrictions)
        >>> result = branching.branch(compute_assignments(master, solution))
        >>> if not result.integral:
        ...     left, right = result.children
    """

    def __init__(
        self,
        restrictions: AssignmentRestrictions,
        integrality_tolerance: Optional[float] = None,
    ):
        self._restrictions = restrictions
        if integrality_tolerance is None:
            integrality_tolerance = global_config.get_tolerance('integrality')
        self._tol = integrality_tolerance
        self._num_branchings = 0

    @property
    def num_branchings(self) -> int:
        """Number of branching decisions taken."""
        return self._num_branchings

    def fractional_statistics(
        self,
        assignments: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Per-location fractionality statistics.

        Args:
            assignments: Fractional assignment matrix

        Returns:
            (nfrac, totfrac, halffrac) arrays indexed by location
        """
        assignments = np.asarray(assignments, dtype=float)
        fractional = np.abs(assignments - np.round(assignments)) > self._tol
        values = np.where(fractional, assignments, 0.0)

        nfrac = fractional.sum(axis=1)
        totfrac = values.sum(axis=1)
        halffrac = values[:, ::2].sum(axis=1)
        return nfrac, totfrac, halffrac

    def choose_location(self, assignments: np.ndarray) -> Optional[int]:
        """
        Select the location to branch on.

        Args:
            assignments: Fractional assignment matrix

        Returns:
            The location, or None if every assignment is integral
        """
        nfrac, totfrac, halffrac = self.fractional_statistics(assignments)

        best = None
        best_nfrac = 0
        best_balance = 0.0
        for i in range(len(nfrac)):
            if nfrac[i] == 0:
                continue
            balance = abs(halffrac[i] - 0.5 * totfrac[i])
            if (best is None or nfrac[i] > best_nfrac
                    or (nfrac[i] == best_nfrac and balance < best_balance - self._tol)):
                best = i
                best_nfrac = int(nfrac[i])
                best_balance = balance

        return best

    def split_medians(
        self,
        location: int,
        assignments: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Split the candidate medians of a location into two forbidden sets.

        Args:
            location: The branched location
            assignments: Fractional assignment matrix

        Returns:
            (left_mask, right_mask), boolean masks over medians
        """
        n = self._restrictions.num_locations
        left = np.zeros(n, dtype=bool)
        right = np.zeros(n, dtype=bool)

        position = 0
        for median in sort_medians(np.asarray(assignments)[location]):
            if self._restrictions.is_assignment_forbidden(median, location):
                continue
            if position % 2 == 0:
                left[median] = True
            else:
                right[median] = True
            position += 1

        return left, right

    def branch(self, assignments: np.ndarray) -> BranchingResult:
        """
        Branch on a fractional assignment matrix.

        Args:
            assignments: Fractional assignment matrix of the node's LP

        Returns:
            BranchingResult; ``integral`` is set if nothing is fractional
        """
        location = self.choose_location(assignments)
        if location is None:
            return BranchingResult()

        nfrac, _, _ = self.fractional_statistics(assignments)
        left, right = self.split_medians(location, assignments)
        self._num_branchings += 1

        suffix = f"{location}_{self._num_branchings}"
        return BranchingResult(
            location=location,
            left=SemiassignConstraint(location, left, name=f"semiassign_left_{suffix}"),
            right=SemiassignConstraint(location, right, name=f"semiassign_right_{suffix}"),
            num_fractional=int(nfrac[location]),
        )

    def __repr__(self) -> str:
        return f"SemiassignBranching(tolerance={self._tol}, branchings={self._num_branchings})"
