"""
Pricing data structures.

The pricing subproblem of the capacitated p-median branch-and-price looks,
for every potential median m, for a cluster with positive score

    score(m, S) = sum_{l in S} profit_l + convexity[m] + cardinality

where profit_l = coverage[l] - distance[l][m] when pricing on LP duals
(the score is then the negated reduced cost) and profit_l = coverage[l]
when pricing on Farkas multipliers (the column cost does not enter).

This module defines the status, result and configuration types shared by
the pricing implementations.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

from opencpmp.config import config as global_config
from opencpmp.core.column import Column


class PricingError(RuntimeError):
    """Raised when the subproblem could not be solved for any median."""


class PricingMode(Enum):
    """
    Which multipliers the subproblem is priced on.
    """
    REDUCED_COST = auto()  # LP duals of an optimal restricted master
    FARKAS = auto()        # Farkas multipliers of an infeasible restricted master


class PricingStatus(Enum):
    """
    Status of a pricing round.
    """
    COLUMNS_FOUND = auto()  # At least one improving column was attached
    NO_COLUMNS = auto()     # No improving column exists
    STOPPED = auto()        # Interrupted by the stop callback


@dataclass
class PricingSolution:
    """
    Result of one pricing round.

    Attributes:
        status: Round status
        mode: Multipliers the round was priced on
        columns: Columns attached to the master during the round
        best_score: Highest score found (None if no median was solved)
        skipped_medians: Medians whose knapsack could not be solved
        duplicates: Improving clusters that were already attached
        solve_time: Time spent in seconds
        medians_solved: Number of knapsacks solved
    """
    status: PricingStatus = PricingStatus.NO_COLUMNS
    mode: PricingMode = PricingMode.REDUCED_COST
    columns: List[Column] = field(default_factory=list)
    best_score: Optional[float] = None
    skipped_medians: List[int] = field(default_factory=list)
    duplicates: int = 0
    solve_time: float = 0.0
    medians_solved: int = 0

    @property
    def num_columns(self) -> int:
        """Number of columns attached."""
        return len(self.columns)

    @property
    def has_columns(self) -> bool:
        """Check if the round attached any column."""
        return bool(self.columns)

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "PricingSolution:",
            f"  Status: {self.status.name}",
            f"  Mode: {self.mode.name}",
            f"  Columns found: {self.num_columns}",
        ]

        if self.best_score is not None:
            lines.append(f"  Best score: {self.best_score:.6f}")
        if self.skipped_medians:
            medians = ", ".join(str(m + 1) for m in self.skipped_medians)
            lines.append(f"  Skipped medians: {medians}")

        lines.extend([
            f"  Knapsacks solved: {self.medians_solved}",
            f"  Solve time: {self.solve_time:.3f}s",
        ])

        return "\n".join(lines)

    def __repr__(self) -> str:
        score_str = f", score={self.best_score:.4f}" if self.best_score is not None else ""
        return f"PricingSolution({self.status.name}, cols={self.num_columns}{score_str})"


@dataclass
class PricingConfig:
    """
    Configuration for the pricing subproblem.

    Attributes:
        reduced_cost_tolerance: A cluster is improving if its score exceeds this
        num_threads: Knapsacks solved in parallel (1 = sequential)
        max_columns: Maximum columns attached per round (0 = unlimited)
        verbose: Print per-round progress
    """
    reduced_cost_tolerance: Optional[float] = None
    num_threads: int = 1
    max_columns: int = 0
    verbose: bool = False

    def __post_init__(self):
        if self.reduced_cost_tolerance is None:
            self.reduced_cost_tolerance = global_config.get_tolerance('reduced_cost')
        if self.reduced_cost_tolerance < 0:
            raise ValueError("reduced_cost_tolerance must be non-negative")
        if self.num_threads < 1:
            raise ValueError("num_threads must be at least 1")
        if self.max_columns < 0:
            raise ValueError("max_columns must be non-negative")
