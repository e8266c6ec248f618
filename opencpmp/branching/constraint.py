"""
Semiassignment branching constraint.

Every child node created by the semiassignment branching rule carries one
SemiassignConstraint: "location l may not be served by any median in F".

Lifecycle:
---------
    PENDING --activate--> ACTIVE --deactivate--> INACTIVE --activate--> ACTIVE ...
    PENDING / INACTIVE --delete--> DELETED

- activate: sets the forbid bits in the restriction state and fixes to zero
  every attached column that violates the constraint
- propagate: while ACTIVE, fixes violating columns attached since the last scan
- deactivate: clears the forbid bits; fixed columns are released by the
  search driver, which owns the node-local bounds
- delete: terminal; any further operation raises ConstraintStateError

Only columns with index >= num_propagated are scanned, so a re-activation
looks at the columns attached while the constraint was inactive and
nothing else.
"""

from enum import Enum, auto
from typing import List, Optional, Sequence, Union

import numpy as np

from opencpmp.core.restrictions import AssignmentRestrictions
from opencpmp.master.base import MasterProblem


class ConstraintStateError(RuntimeError):
    """Raised on an illegal constraint lifecycle transition."""


class ConstraintState(Enum):
    """
    Lifecycle state of a semiassignment constraint.
    """
    PENDING = auto()   # Created by branching, never activated
    ACTIVE = auto()    # Its node is on the active search path
    INACTIVE = auto()  # Its node was left; may be revisited
    DELETED = auto()   # Discarded; terminal


class SemiassignConstraint:
    """
    Forbids assigning one location to a set of medians.

    Attributes:
        location: The branched location
        forbidden: Boolean mask over medians
        name: Display name (e.g. "semiassign_left_3")

    Example:
        >>> cons = SemiassignConstraint(location=2, forbidden=[True, False, False, True])
        >>> cons.activate(restrictions, master)
        []
        >>> cons.deactivate(restrictions)
    """

    def __init__(
        self,
        location: int,
        forbidden: Union[np.ndarray, Sequence[bool]],
        name: Optional[str] = None,
    ):
        self._location = int(location)
        self._forbidden = np.array(forbidden, dtype=bool)
        self._forbidden.setflags(write=False)
        if self._forbidden.ndim != 1:
            raise ValueError("forbidden must be a one-dimensional median mask")
        if not 0 <= self._location < self._forbidden.shape[0]:
            raise ValueError(f"location {location} out of range")

        self.name = name or f"semiassign_{self._location}"
        self._state = ConstraintState.PENDING
        self._num_propagated = 0

        # Statistics
        self._num_fixed = 0
        self._num_activations = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def location(self) -> int:
        return self._location

    @property
    def forbidden(self) -> np.ndarray:
        """Read-only median mask."""
        return self._forbidden

    @property
    def forbidden_medians(self) -> List[int]:
        """Indices of the forbidden medians."""
        return np.flatnonzero(self._forbidden).tolist()

    @property
    def state(self) -> ConstraintState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state == ConstraintState.ACTIVE

    @property
    def num_propagated(self) -> int:
        """Number of leading master columns already scanned."""
        return self._num_propagated

    @property
    def num_fixed(self) -> int:
        """Total number of columns fixed by this constraint."""
        return self._num_fixed

    def violated_by(self, median: int, members) -> bool:
        """Check whether a cluster assigns the location to a forbidden median."""
        return bool(self._forbidden[median]) and self._location in members

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def activate(
        self,
        restrictions: AssignmentRestrictions,
        master: MasterProblem,
    ) -> List[int]:
        """
        Make the constraint part of the active search path.

        Args:
            restrictions: Restriction state of the active path
            master: Master problem whose columns are fixed

        Returns:
            Ids of the columns fixed to zero by this activation

        Raises:
            ConstraintStateError: If the constraint is ACTIVE or DELETED
        """
        if self._state not in (ConstraintState.PENDING, ConstraintState.INACTIVE):
            raise ConstraintStateError(
                f"cannot activate {self.name} in state {self._state.name}"
            )

        restrictions.forbid_assignments(self._location, self._forbidden)
        self._state = ConstraintState.ACTIVE
        self._num_activations += 1

        return self._scan(master)

    def propagate(self, master: MasterProblem) -> List[int]:
        """
        Fix violating columns attached since the last scan.

        Args:
            master: Master problem whose columns are fixed

        Returns:
            Ids of the newly fixed columns

        Raises:
            ConstraintStateError: If the constraint is not ACTIVE
        """
        if self._state != ConstraintState.ACTIVE:
            raise ConstraintStateError(
                f"cannot propagate {self.name} in state {self._state.name}"
            )
        return self._scan(master)

    def needs_propagation(self, master: MasterProblem) -> bool:
        """Check whether columns were attached since the last scan."""
        return self._num_propagated < master.num_columns

    def deactivate(self, restrictions: AssignmentRestrictions) -> None:
        """
        Remove the constraint from the active search path.

        Args:
            restrictions: Restriction state of the active path

        Raises:
            ConstraintStateError: If the constraint is not ACTIVE
        """
        if self._state != ConstraintState.ACTIVE:
            raise ConstraintStateError(
                f"cannot deactivate {self.name} in state {self._state.name}"
            )
        restrictions.allow_assignments(self._location, self._forbidden)
        self._state = ConstraintState.INACTIVE

    def delete(self) -> None:
        """
        Discard the constraint.

        Raises:
            ConstraintStateError: If the constraint is ACTIVE or already DELETED
        """
        if self._state in (ConstraintState.ACTIVE, ConstraintState.DELETED):
            raise ConstraintStateError(
                f"cannot delete {self.name} in state {self._state.name}"
            )
        self._state = ConstraintState.DELETED

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _scan(self, master: MasterProblem) -> List[int]:
        fixed = []
        for column in master.column_pool.columns_since(self._num_propagated):
            if not self.violated_by(column.median, column.members):
                continue
            if master.is_fixed(column.column_id):
                continue
            master.fix_column(column.column_id)
            fixed.append(column.column_id)

        self._num_propagated = master.num_columns
        self._num_fixed += len(fixed)
        return fixed

    def summary(self) -> str:
        """Return the constraint as text, locations 1-based."""
        medians = " ".join(str(m + 1) for m in self.forbidden_medians)
        return (
            f"{self.name}:\n"
            f"  Location: {self._location + 1}\n"
            f"  Forbidden medians: {medians}"
        )

    def __repr__(self) -> str:
        return (
            f"SemiassignConstraint({self.name!r}, location={self._location}, "
            f"forbidden={self.forbidden_medians}, state={self._state.name})"
        )
