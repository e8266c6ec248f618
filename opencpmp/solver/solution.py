"""
Branch-and-price solution module.

This module defines the data structures for representing the results
of a branch-and-price run.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from opencpmp.core.column import Column


class BPStatus(Enum):
    """
    Status of the branch-and-price algorithm.
    """
    OPTIMAL = auto()      # Tree exhausted, incumbent proven optimal
    INFEASIBLE = auto()   # Tree exhausted without an integral solution
    NODE_LIMIT = auto()   # Node limit reached
    TIME_LIMIT = auto()   # Time limit reached
    INTERRUPTED = auto()  # Stopped by request
    NOT_SOLVED = auto()   # Not yet solved
    ERROR = auto()        # LP engine or pricing failure


@dataclass
class BPSolution:
    """
    Result of the branch-and-price algorithm.

    Attributes:
        status: Solution status
        objective_value: Cost of the best integral solution (None if none found)
        lower_bound: Best proven lower bound
        root_lp_objective: LP bound of the root node
        columns: Clusters of the best integral solution (value set to 1)
        total_columns: Columns generated during the run
        nodes_explored: Nodes whose LP was solved
        max_depth: Deepest node processed
        pricing_rounds: Total pricing rounds
        total_time: Total solve time
        master_time: Time spent in LP solves
        pricing_time: Time spent in pricing
        error: Message of the failure for ERROR status

    Example:
        >>> solution = bp.solve()
        >>> if solution.is_optimal:
        ...     print(solution.cluster_summary())
    """
    # Status
    status: BPStatus = BPStatus.NOT_SOLVED

    # Objective values
    objective_value: Optional[float] = None
    lower_bound: Optional[float] = None
    root_lp_objective: Optional[float] = None

    # Solution clusters
    columns: List[Column] = field(default_factory=list)

    # Statistics
    total_columns: int = 0
    nodes_explored: int = 0
    max_depth: int = 0
    pricing_rounds: int = 0
    total_time: float = 0.0
    master_time: float = 0.0
    pricing_time: float = 0.0

    error: Optional[str] = None

    # Additional info
    metadata: Dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_optimal(self) -> bool:
        """Check if solution is proven optimal."""
        return self.status == BPStatus.OPTIMAL

    @property
    def is_feasible(self) -> bool:
        """Check if an integral solution was found."""
        return self.objective_value is not None and bool(self.columns)

    @property
    def gap(self) -> Optional[float]:
        """Relative gap between incumbent and lower bound."""
        if self.objective_value is None or self.lower_bound is None:
            return None
        if abs(self.objective_value) < 1e-10:
            return 0.0 if abs(self.lower_bound) < 1e-10 else float('inf')
        return max(0.0, (self.objective_value - self.lower_bound) / abs(self.objective_value))

    @property
    def num_clusters(self) -> int:
        return len(self.columns)

    # =========================================================================
    # Methods
    # =========================================================================

    def get_assignment(self) -> Dict[int, int]:
        """
        Median serving each location in the best solution.

        Returns:
            Dict mapping location -> median
        """
        assignment = {}
        for col in self.columns:
            for location in col.members:
                assignment[location] = col.median
        return assignment

    def get_medians(self) -> List[int]:
        """Medians opened in the best solution, ascending."""
        return sorted(col.median for col in self.columns)

    def cluster_summary(self) -> str:
        """
        Return the clusters of the best solution, locations 1-based.

        Returns:
            One line per cluster: median, members and cost
        """
        if not self.columns:
            return "no solution available"

        lines = []
        for col in sorted(self.columns, key=lambda c: c.median):
            members = " ".join(str(i + 1) for i in col.sorted_members())
            lines.append(f"median {col.median + 1:3d}: {members} (cost {col.cost:g})")
        if self.objective_value is not None:
            lines.append(f"total cost: {self.objective_value:g}")
        return "\n".join(lines)

    def summary(self) -> str:
        """
        Return a human-readable summary.

        Returns:
            Summary string
        """
        lines = [
            "Branch-and-Price Solution:",
            f"  Status: {self.status.name}",
        ]

        if self.objective_value is not None:
            lines.append(f"  Objective: {self.objective_value:.6f}")

        if self.lower_bound is not None:
            lines.append(f"  Lower bound: {self.lower_bound:.6f}")

        if self.root_lp_objective is not None:
            lines.append(f"  Root LP: {self.root_lp_objective:.6f}")

        gap = self.gap
        if gap is not None:
            lines.append(f"  Gap: {gap:.4%}")

        if self.error:
            lines.append(f"  Error: {self.error}")

        lines.extend([
            f"  Clusters: {self.num_clusters}",
            f"  Total columns: {self.total_columns}",
            f"  Nodes explored: {self.nodes_explored}",
            f"  Max depth: {self.max_depth}",
            f"  Pricing rounds: {self.pricing_rounds}",
            f"  Total time: {self.total_time:.3f}s",
            f"    Master time: {self.master_time:.3f}s",
            f"    Pricing time: {self.pricing_time:.3f}s",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        obj_str = f", obj={self.objective_value:.4f}" if self.objective_value is not None else ""
        return f"BPSolution({self.status.name}{obj_str}, nodes={self.nodes_explored})"
