"""
Master problem solution module.

This module defines the data structures for representing solutions
from the master problem solver: the LP status, the column values and
the dual values of the three constraint families (coverage, convexity,
cardinality) that the pricing subproblem needs.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

import numpy as np


class SolutionStatus(Enum):
    """
    Status of the master problem solution.
    """
    OPTIMAL = auto()           # Optimal solution found
    INFEASIBLE = auto()        # Problem is infeasible
    UNBOUNDED = auto()         # Problem is unbounded
    INF_OR_UNBOUNDED = auto()  # Infeasible or unbounded (solver couldn't determine)
    TIME_LIMIT = auto()        # Time limit reached
    ITERATION_LIMIT = auto()   # Iteration limit reached
    NOT_SOLVED = auto()        # Solve not called yet
    ERROR = auto()             # Solver error occurred


@dataclass
class MasterDuals:
    """
    Dual values of the master constraints.

    Sign convention (minimization, reduced cost = c - A^T y):
    - coverage duals (>= 1 rows) are non-negative
    - convexity and cardinality duals (<= rows) are non-positive

    When ``farkas`` is True the values are Farkas multipliers, i.e. the
    duals of the phase-one problem that proves the restricted master
    infeasible. A column improves them if the sum of its row multipliers
    is positive.

    Attributes:
        coverage: One dual per location (coverage row)
        convexity: One dual per potential median (convexity row)
        cardinality: Dual of the cardinality row
        farkas: True for Farkas multipliers, False for LP duals
    """
    coverage: np.ndarray
    convexity: np.ndarray
    cardinality: float = 0.0
    farkas: bool = False

    def __post_init__(self):
        self.coverage = np.asarray(self.coverage, dtype=float)
        self.convexity = np.asarray(self.convexity, dtype=float)
        self.cardinality = float(self.cardinality)

    @property
    def num_locations(self) -> int:
        """Number of coverage duals."""
        return int(self.coverage.shape[0])

    def column_dual_sum(self, median: int, members) -> float:
        """
        Sum of the duals of every row a cluster column appears in.

        Args:
            median: The column's median
            members: The column's members

        Returns:
            sum of coverage duals of members + convexity[median] + cardinality
        """
        coverage = sum(float(self.coverage[i]) for i in members)
        return coverage + float(self.convexity[median]) + self.cardinality

    @classmethod
    def zeros(cls, num_locations: int, farkas: bool = False) -> 'MasterDuals':
        """All-zero duals (used before the first LP solve)."""
        return cls(
            coverage=np.zeros(num_locations),
            convexity=np.zeros(num_locations),
            cardinality=0.0,
            farkas=farkas,
        )


@dataclass
class MasterSolution:
    """
    Result of solving the master problem.

    Attributes:
        status: Solution status (OPTIMAL, INFEASIBLE, etc.)
        objective_value: Objective value (phase-one infeasibility for Farkas solves)
        column_values: Mapping from column_id to its value in solution
        duals: Dual values (or Farkas multipliers) for pricing
        solve_time: Time spent solving in seconds
        iterations: Number of simplex iterations
        num_columns: Number of columns in the model when solved

    Example:
        >>> solution = master.solve_lp()
        >>> if solution.is_optimal:
        ...     print(f"Objective: {solution.objective_value}")
    """
    status: SolutionStatus = SolutionStatus.NOT_SOLVED

    objective_value: Optional[float] = None

    # Primal solution: column_id -> value (lambda)
    column_values: Dict[int, float] = field(default_factory=dict)

    duals: Optional[MasterDuals] = None

    # Solver statistics
    solve_time: float = 0.0
    iterations: int = 0
    num_columns: int = 0

    # =========================================================================
    # Convenience Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if solution is optimal."""
        return self.status == SolutionStatus.OPTIMAL

    @property
    def is_infeasible(self) -> bool:
        """Check if the restricted master is infeasible."""
        return self.status in (SolutionStatus.INFEASIBLE, SolutionStatus.INF_OR_UNBOUNDED)

    @property
    def has_solution(self) -> bool:
        """Check if a primal solution is available."""
        return self.is_optimal and self.objective_value is not None

    @property
    def is_integer(self) -> bool:
        """
        Check if the solution is integer.

        Returns True if all column values are (nearly) integer.
        """
        tol = 1e-6
        return all(abs(v - round(v)) <= tol for v in self.column_values.values())

    # =========================================================================
    # Methods
    # =========================================================================

    def get_value(self, column_id: int) -> float:
        """Value of a column (0.0 if it is not in the solution)."""
        return self.column_values.get(column_id, 0.0)

    def get_active_columns(self, tol: float = 1e-6) -> List[int]:
        """
        Get column IDs with positive value in solution.

        Args:
            tol: Tolerance for considering a value positive

        Returns:
            List of column IDs with value > tol
        """
        return [
            col_id for col_id, value in self.column_values.items()
            if value > tol
        ]

    def get_fractional_columns(self, tol: float = 1e-6) -> List[int]:
        """
        Get column IDs with fractional value in solution.

        Args:
            tol: Tolerance for integrality check

        Returns:
            List of column IDs with fractional values
        """
        return [
            col_id for col_id, value in self.column_values.items()
            if value > tol and abs(value - round(value)) > tol
        ]

    def summary(self) -> str:
        """
        Return a human-readable summary of the solution.

        Returns:
            Summary string
        """
        lines = [
            "MasterSolution:",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        if self.duals is not None and self.duals.farkas:
            lines.append("  Duals: Farkas multipliers")

        active = self.get_active_columns()
        lines.append(f"  Active columns: {len(active)} / {self.num_columns}")

        if not self.is_integer:
            lines.append(f"  Fractional columns: {len(self.get_fractional_columns())}")
        else:
            lines.append("  Solution is integer")

        lines.extend([
            f"  Solve time: {self.solve_time:.3f}s",
            f"  Iterations: {self.iterations}",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"MasterSolution({self.status.name}{obj_str})"
