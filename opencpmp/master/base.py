"""
Master problem abstract base class.

The master problem of the capacitated p-median branch-and-price is:

    min  sum_k c_k * lambda_k
    s.t. sum_{k : i in S_k} lambda_k >= 1     for every location i   (coverage)
         sum_{k : m_k = j}  lambda_k <= 1     for every median j     (convexity)
         sum_k lambda_k              <= p                            (cardinality)
         lambda_k >= 0

where column k is a cluster with median m_k, members S_k and cost
c_k = sum_{i in S_k} d[i][m_k].

Row Layout:
----------
- rows 0 .. n-1:   coverage rows (one per location)
- rows n .. 2n-1:  convexity rows (one per potential median)
- row 2n:          cardinality row

All rows are created once, before any column exists. Columns are only ever
added (never detached), each with coefficient 1 in |members| coverage rows,
its median's convexity row and the cardinality row.

Customization Guide:
-------------------
To plug in another LP solver:

1. Subclass MasterProblem
2. Implement _build_model, _add_column_impl, _solve_lp_impl,
   _solve_farkas_impl and _set_column_upper_bound
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from opencpmp.core.column import Column, ColumnPool
from opencpmp.core.instance import CPMPInstance
from opencpmp.master.solution import MasterDuals, MasterSolution


class MasterProblem(ABC):
    """
    Abstract base class for master problem solvers.

    Lifecycle:
    ---------
    1. Create: master = HiGHSMasterProblem(instance)   (rows, no columns)
    2. Solve LP: solution = master.solve_lp()
    3. If infeasible: farkas = master.solve_farkas()
    4. Attach priced columns: master.add_column(column)
    5. Repeat 2-4 until pricing finds no improving column
    6. Branching fixes columns to zero: master.fix_column(column_id)

    Attributes:
        instance: The CPMPInstance defining rows and costs
    """

    def __init__(self, instance: CPMPInstance):
        """
        Initialize the master problem.

        Args:
            instance: The problem instance
        """
        self._instance = instance

        # Column tracking; column_id == position in the pool
        self._pool = ColumnPool()

        # Columns whose upper bound is currently zero
        self._fixed: set[int] = set()

        self._build_model()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> CPMPInstance:
        """The underlying instance."""
        return self._instance

    @property
    def num_columns(self) -> int:
        """Number of columns currently attached."""
        return self._pool.size

    @property
    def num_rows(self) -> int:
        """Number of master constraints (2n + 1)."""
        return 2 * self._instance.num_locations + 1

    @property
    def column_pool(self) -> ColumnPool:
        """All attached columns, in attachment order."""
        return self._pool

    @property
    def columns(self) -> List[Column]:
        """List of attached columns."""
        return self._pool.all_columns()

    # =========================================================================
    # Row Layout
    # =========================================================================

    def coverage_row(self, location: int) -> int:
        """Row index of a location's coverage constraint."""
        return location

    def convexity_row(self, median: int) -> int:
        """Row index of a median's convexity constraint."""
        return self._instance.num_locations + median

    @property
    def cardinality_row(self) -> int:
        """Row index of the cardinality constraint."""
        return 2 * self._instance.num_locations

    def column_rows(self, column: Column) -> List[int]:
        """
        Rows a column appears in (each with coefficient 1).

        Args:
            column: The cluster column

        Returns:
            Coverage rows of its members, its convexity row, the cardinality row
        """
        rows = [self.coverage_row(i) for i in column.sorted_members()]
        rows.append(self.convexity_row(column.median))
        rows.append(self.cardinality_row)
        return rows

    # =========================================================================
    # Abstract Methods (MUST be implemented by subclasses)
    # =========================================================================

    @abstractmethod
    def _build_model(self) -> None:
        """
        Build the solver model with all rows and no columns.

        Called once during initialization.
        """
        pass

    @abstractmethod
    def _add_column_impl(self, column: Column) -> int:
        """
        Add a column to the solver model.

        Args:
            column: The column to add (column_id already set)

        Returns:
            The index of the column in the solver model
        """
        pass

    @abstractmethod
    def _solve_lp_impl(self) -> MasterSolution:
        """
        Solve the LP relaxation over the attached columns.

        Returns:
            MasterSolution with status, objective, primals and duals
        """
        pass

    @abstractmethod
    def _solve_farkas_impl(self) -> MasterSolution:
        """
        Compute Farkas multipliers for an infeasible restricted master.

        Returns:
            MasterSolution whose duals have ``farkas=True`` and whose
            objective is the phase-one infeasibility
        """
        pass

    @abstractmethod
    def _set_column_upper_bound(self, column_id: int, upper: float) -> None:
        """
        Change a column's upper bound in the solver.

        Args:
            column_id: The column
            upper: New upper bound (0 to fix, infinity to release)
        """
        pass

    # =========================================================================
    # Public API - Column Management
    # =========================================================================

    def add_column(self, column: Column) -> Column:
        """
        Attach a column to its coverage, convexity and cardinality rows.

        Args:
            column: The cluster to attach

        Returns:
            The attached column, with column_id set

        Raises:
            ValueError: If the column references unknown locations or
                duplicates an attached cluster
        """
        n = self._instance.num_locations
        if not 0 <= column.median < n:
            raise ValueError(f"Column median {column.median} out of range")
        if any(not 0 <= i < n for i in column.members):
            raise ValueError(f"Column members out of range: {sorted(column.members)}")

        column = self._pool.add(column)
        solver_idx = self._add_column_impl(column)
        self._on_column_added(column, solver_idx)

        return column

    def add_columns(self, columns: Iterable[Column]) -> List[Column]:
        """
        Attach several columns.

        Args:
            columns: Columns to add

        Returns:
            The attached columns with ids
        """
        return [self.add_column(col) for col in columns]

    def get_column(self, column_id: int) -> Optional[Column]:
        """
        Get a column by its ID.

        Args:
            column_id: The column's identifier

        Returns:
            The column, or None if not found
        """
        return self._pool.get(column_id)

    def contains_cluster(self, median: int, members) -> bool:
        """Check whether an identical cluster is already attached."""
        return self._pool.contains_cluster(median, members)

    # =========================================================================
    # Public API - Branching Support
    # =========================================================================

    def fix_column(self, column_id: int) -> None:
        """
        Fix a column to zero.

        Args:
            column_id: The column to fix
        """
        self._check_column(column_id)
        self._set_column_upper_bound(column_id, 0.0)
        self._fixed.add(column_id)

    def unfix_column(self, column_id: int) -> None:
        """
        Release a column previously fixed to zero.

        Args:
            column_id: The column to release
        """
        self._check_column(column_id)
        self._set_column_upper_bound(column_id, float('inf'))
        self._fixed.discard(column_id)

    def is_fixed(self, column_id: int) -> bool:
        """Check whether the column's upper bound is currently zero."""
        return column_id in self._fixed

    def get_fixed_columns(self) -> List[int]:
        """Ids of all columns currently fixed to zero."""
        return sorted(self._fixed)

    # =========================================================================
    # Public API - Solving
    # =========================================================================

    def solve_lp(self) -> MasterSolution:
        """
        Solve the LP relaxation.

        Returns:
            MasterSolution with status, objective, primals and duals
        """
        self._before_solve_lp()
        solution = self._solve_lp_impl()
        return self._after_solve_lp(solution)

    def solve_farkas(self) -> MasterSolution:
        """
        Compute Farkas multipliers after an infeasible LP solve.

        Returns:
            MasterSolution with ``duals.farkas`` set
        """
        return self._solve_farkas_impl()

    # =========================================================================
    # Hooks (override for custom behavior)
    # =========================================================================

    def _on_column_added(self, column: Column, solver_index: int) -> None:
        """
        Hook called after a column is added.

        Args:
            column: The added column
            solver_index: Index in the solver model
        """
        pass

    def _before_solve_lp(self) -> None:
        """Hook called before solving the LP."""
        pass

    def _after_solve_lp(self, solution: MasterSolution) -> MasterSolution:
        """
        Hook called after solving the LP.

        Args:
            solution: The raw solution from the solver

        Returns:
            Possibly modified solution
        """
        return solution

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def compute_reduced_cost(self, column: Column, duals: MasterDuals) -> float:
        """
        Compute the reduced cost of a column.

        reduced_cost = c_k - (sum of coverage duals of members
                              + convexity dual of the median + cardinality dual)

        For Farkas multipliers the column cost does not enter.

        Args:
            column: The column
            duals: Dual values (or Farkas multipliers)

        Returns:
            Reduced cost
        """
        cost = 0.0 if duals.farkas else column.cost
        return cost - duals.column_dual_sum(column.median, column.members)

    def _check_column(self, column_id: int) -> None:
        if self._pool.get(column_id) is None:
            raise ValueError(f"Column {column_id} not found in master")

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            f"MasterProblem: {self._instance.name or 'cpmp'}",
            f"  Locations: {self._instance.num_locations}",
            f"  Clusters (p): {self._instance.num_clusters}",
            f"  Rows: {self.num_rows}",
            f"  Columns: {self.num_columns}",
        ]
        if self._fixed:
            lines.append(f"  Fixed columns: {len(self._fixed)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"columns={self.num_columns}, "
            f"rows={self.num_rows})"
        )
