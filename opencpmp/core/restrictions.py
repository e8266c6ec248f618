"""
Restriction module - assignments forbidden by the active branching decisions.

The restriction state is a boolean matrix R[median][location]. R[m][l] is
True when location l may not be served by median m on the currently active
path of the search tree.

It is read by the pricing subproblem (forbidden locations are not offered
as knapsack items) and by the branching rule (already forbidden medians
are not split again). It is mutated only by semiassignment constraints
when they are activated or deactivated, so it always mirrors the union of
branching decisions from the root to the active node.

Forbidding a pair that is already forbidden, or allowing a pair that was
never forbidden, is a no-op.
"""

from typing import Iterable, List, Union

import numpy as np


MedianMask = Union[np.ndarray, Iterable[bool], Iterable[int]]


class AssignmentRestrictions:
    """
    Forbidden (median, location) assignments of the current search path.

    The object is owned by the branch-and-price driver and handed to the
    pricing subproblem and to the branching constraints.

    Example:
        >>> restrictions = AssignmentRestrictions(3)
        >>> restrictions.forbid_assignments(location=1, forbidden=[True, False, True])
        >>> restrictions.is_assignment_forbidden(median=0, location=1)
        True
        >>> restrictions.allow_assignments(location=1, forbidden=[True, False, True])
        >>> restrictions.num_forbidden
        0
    """

    def __init__(self, num_locations: int):
        """
        Create a restriction state where every assignment is allowed.

        Args:
            num_locations: Number of locations of the instance
        """
        if num_locations < 0:
            raise ValueError("num_locations must be non-negative")
        self._n = num_locations
        self._forbidden = np.zeros((num_locations, num_locations), dtype=bool)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def num_locations(self) -> int:
        """Number of locations."""
        return self._n

    @property
    def num_forbidden(self) -> int:
        """Number of currently forbidden (median, location) pairs."""
        return int(self._forbidden.sum())

    # =========================================================================
    # Mutators
    # =========================================================================

    def forbid_assignments(self, location: int, forbidden: MedianMask) -> None:
        """
        Forbid assigning a location to every median set in the mask.

        Args:
            location: The location
            forbidden: Boolean mask over medians (length num_locations)
        """
        mask = self._to_mask(forbidden)
        self._check_location(location)
        self._forbidden[mask, location] = True

    def allow_assignments(self, location: int, forbidden: MedianMask) -> None:
        """
        Allow again the assignments of a location to the medians in the mask.

        Args:
            location: The location
            forbidden: Boolean mask over medians (length num_locations)
        """
        mask = self._to_mask(forbidden)
        self._check_location(location)
        self._forbidden[mask, location] = False

    def forbid_assignment(self, median: int, location: int) -> None:
        """Forbid a single (median, location) assignment."""
        self._check_location(median)
        self._check_location(location)
        self._forbidden[median, location] = True

    def allow_assignment(self, median: int, location: int) -> None:
        """Allow a single (median, location) assignment."""
        self._check_location(median)
        self._check_location(location)
        self._forbidden[median, location] = False

    # =========================================================================
    # Queries
    # =========================================================================

    def is_assignment_forbidden(self, median: int, location: int) -> bool:
        """
        Check whether a location may currently not be served by a median.

        Args:
            median: The median
            location: The location

        Returns:
            True if the assignment is forbidden
        """
        return bool(self._forbidden[median, location])

    def allowed_locations(self, median: int) -> List[int]:
        """Locations that may be assigned to the median, in ascending order."""
        return np.flatnonzero(~self._forbidden[median]).tolist()

    def forbidden_medians(self, location: int) -> List[int]:
        """Medians the location may currently not be assigned to."""
        return np.flatnonzero(self._forbidden[:, location]).tolist()

    def as_array(self) -> np.ndarray:
        """Copy of the restriction matrix (rows are medians)."""
        return self._forbidden.copy()

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _to_mask(self, forbidden: MedianMask) -> np.ndarray:
        if not isinstance(forbidden, np.ndarray):
            forbidden = list(forbidden)
        mask = np.asarray(forbidden, dtype=bool)
        if mask.shape != (self._n,):
            raise ValueError(
                f"median mask must have length {self._n}, got shape {mask.shape}"
            )
        return mask

    def _check_location(self, index: int) -> None:
        if not 0 <= index < self._n:
            raise IndexError(f"location index {index} out of range [0, {self._n})")

    def __repr__(self) -> str:
        return f"AssignmentRestrictions(locations={self._n}, forbidden={self.num_forbidden})"
