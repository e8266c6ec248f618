"""
Column module - represents a cluster column in the master problem.

In the branch-and-price formulation of the capacitated p-median problem,
a "column" is one candidate cluster: a median together with the set of
locations it serves. Its cost is the total distance from the members to
the median.

This module provides:
- Column: The cluster variable (median, members, cost)
- ColumnPool: Ordered storage of all columns created during a run

Column Lifecycle:
----------------
1. Created by the pricing subproblem (knapsack solution for one median)
2. Attached to the master problem (becomes a variable in all its rows)
3. May be fixed to zero by branching restrictions
4. Never removed; columns persist for the rest of the run
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional


@dataclass(frozen=True)
class Column:
    """
    Represents a cluster (median + members) in column generation.

    Immutability:
        Column is immutable (frozen dataclass) because clusters are used as
        dictionary keys to detect duplicates, and a cluster never changes
        after pricing has produced it.

    Attributes:
        median: Index of the median location
        members: Locations assigned to the median
        cost: Sum of distances from the members to the median
        column_id: Position of the column in the master (set on attachment)
        reduced_cost: Reduced cost (or negated Farkas value) at creation
        value: Value in a solution (set when reporting)
        attributes: Additional attributes (e.g., the pricing mode)

    Example:
        >>> column = Column(median=2, members=frozenset({0, 2}), cost=7.0)
        >>> column.contains(0)
        True
        >>> column.size
        2
    """
    median: int
    members: FrozenSet[int]
    cost: float

    column_id: Optional[int] = None

    reduced_cost: Optional[float] = None
    value: Optional[float] = None

    attributes: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        """Ensure members is a frozenset."""
        if not isinstance(self.members, frozenset):
            object.__setattr__(self, 'members', frozenset(self.members))
        if not isinstance(self.attributes, dict):
            object.__setattr__(self, 'attributes', dict(self.attributes))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def size(self) -> int:
        """Number of members in the cluster."""
        return len(self.members)

    @property
    def key(self) -> tuple:
        """Identity of the cluster: (median, members)."""
        return (self.median, self.members)

    @property
    def is_in_solution(self) -> bool:
        """Check if this column is part of the solution (value > 0)."""
        return self.value is not None and self.value > 1e-6

    # =========================================================================
    # Methods
    # =========================================================================

    def contains(self, location: int) -> bool:
        """
        Check if a location is a member of this cluster.

        Args:
            location: Location index

        Returns:
            True if the location is served by this cluster's median
        """
        return location in self.members

    def sorted_members(self) -> List[int]:
        """Members in ascending order."""
        return sorted(self.members)

    def get_attribute(self, key: str, default: Any = None) -> Any:
        """Get an attribute value."""
        return self.attributes.get(key, default)

    def with_id(self, column_id: int) -> 'Column':
        """
        Create a copy with column_id set.

        Args:
            column_id: The unique identifier

        Returns:
            New Column with column_id set
        """
        return Column(
            median=self.median,
            members=self.members,
            cost=self.cost,
            column_id=column_id,
            reduced_cost=self.reduced_cost,
            value=self.value,
            attributes=self.attributes,
        )

    def with_value(self, value: float) -> 'Column':
        """
        Create a copy with value set.

        Args:
            value: The solution value

        Returns:
            New Column with value set
        """
        return Column(
            median=self.median,
            members=self.members,
            cost=self.cost,
            column_id=self.column_id,
            reduced_cost=self.reduced_cost,
            value=value,
            attributes=self.attributes,
        )

    def __hash__(self) -> int:
        """Hash based on the cluster (median and members)."""
        return hash(self.key)

    def __eq__(self, other: object) -> bool:
        """Equality based on the cluster (median and members)."""
        if not isinstance(other, Column):
            return NotImplemented
        return self.key == other.key

    def __repr__(self) -> str:
        members = ",".join(str(i + 1) for i in self.sorted_members())
        value_str = f", value={self.value:.4f}" if self.value is not None else ""
        rc_str = f", rc={self.reduced_cost:.4f}" if self.reduced_cost is not None else ""
        return f"Column(median={self.median + 1}, members={{{members}}}, cost={self.cost:.2f}{value_str}{rc_str})"


# =============================================================================
# Column Pool
# =============================================================================


class ColumnPool:
    """
    Container for storing the columns of a run in creation order.

    Column ids are dense and equal to the position in the pool, which is
    what propagation relies on when it only scans columns added since its
    last visit.

    Example:
        >>> pool = ColumnPool()
        >>> col = pool.add(Column(median=0, members={0, 1}, cost=3.0))
        >>> col.column_id
        0
        >>> pool.contains_cluster(0, {0, 1})
        True
    """

    def __init__(self):
        """Create an empty column pool."""
        self._columns: List[Column] = []
        self._keys: Dict[tuple, int] = {}

    @property
    def size(self) -> int:
        """Number of columns in the pool."""
        return len(self._columns)

    def add(self, column: Column) -> Column:
        """
        Add a column to the pool and assign its id.

        Args:
            column: Column to add

        Returns:
            Column with ID assigned

        Raises:
            ValueError: If an identical cluster is already stored
        """
        if column.key in self._keys:
            raise ValueError(f"Duplicate cluster {column!r}")

        column = column.with_id(len(self._columns))
        self._columns.append(column)
        self._keys[column.key] = column.column_id
        return column

    def get(self, column_id: int) -> Optional[Column]:
        """
        Get a column by ID.

        Args:
            column_id: Column identifier

        Returns:
            The column, or None if not found
        """
        if 0 <= column_id < len(self._columns):
            return self._columns[column_id]
        return None

    def contains_cluster(self, median: int, members) -> bool:
        """Check whether the cluster (median, members) is already stored."""
        return (median, frozenset(members)) in self._keys

    def all_columns(self) -> List[Column]:
        """Get all columns in the pool."""
        return self._columns.copy()

    def columns_since(self, start: int) -> List[Column]:
        """Columns with id >= start, in creation order."""
        return self._columns[start:]

    def columns_containing(self, location: int) -> List[Column]:
        """
        Get columns whose cluster contains a specific location.

        Args:
            location: Location index

        Returns:
            List of columns serving the location
        """
        return [col for col in self._columns if col.contains(location)]

    def columns_with_median(self, median: int) -> List[Column]:
        """Get columns whose median is the given location."""
        return [col for col in self._columns if col.median == median]

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Column]:
        return iter(self._columns)

    def __repr__(self) -> str:
        return f"ColumnPool(size={self.size})"
