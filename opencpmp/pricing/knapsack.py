"""
Exact 0/1 knapsack oracles for the pricing subproblem.

Every pricing call solves, for one median,

    max  sum_i profit_i * y_i
    s.t. sum_i weight_i * y_i <= capacity
         y_i in {0, 1}

with integer weights and capacity and real profits.

Two oracles are provided:
- DynamicProgrammingKnapsack: integer dynamic programming over the
  capacity, one vectorized numpy pass per item
- HiGHSKnapsack: a small MIP solved with HiGHS

An oracle reports failure (``success=False``) instead of raising when it
cannot produce an optimal solution; the pricer then skips the median.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

import numpy as np


@dataclass
class KnapsackResult:
    """
    Result of a knapsack solve.

    Attributes:
        success: Whether an optimal solution was found
        items: Indices (into the weight/profit lists) of the chosen items
        value: Total profit of the chosen items
    """
    success: bool
    items: List[int] = field(default_factory=list)
    value: float = 0.0

    @classmethod
    def failure(cls) -> 'KnapsackResult':
        return cls(success=False)


class KnapsackSolver(ABC):
    """
    Abstract base class for exact 0/1 knapsack oracles.

    Subclasses implement _solve_impl. Trivial inputs (no items, or no item
    fitting) are answered by solve() without calling the oracle.
    """

    name: str = "knapsack"

    def solve(
        self,
        weights: Sequence[int],
        profits: Sequence[float],
        capacity: int,
    ) -> KnapsackResult:
        """
        Solve a 0/1 knapsack exactly.

        Args:
            weights: Non-negative integer item weights
            profits: Item profits
            capacity: Non-negative integer capacity

        Returns:
            KnapsackResult with the chosen item indices in ascending order

        Raises:
            ValueError: If weights and profits differ in length
        """
        if len(weights) != len(profits):
            raise ValueError(
                f"weights and profits must have equal length "
                f"({len(weights)} != {len(profits)})"
            )
        if capacity < 0:
            raise ValueError("capacity must be non-negative")

        # Items that cannot fit or cannot improve are never chosen
        candidates = [
            i for i in range(len(weights))
            if weights[i] <= capacity and profits[i] > 0
        ]
        if not candidates:
            return KnapsackResult(success=True)

        sub_weights = [int(weights[i]) for i in candidates]
        sub_profits = [float(profits[i]) for i in candidates]
        result = self._solve_impl(sub_weights, sub_profits, int(capacity))
        if not result.success:
            return result

        items = sorted(candidates[i] for i in result.items)
        value = sum(float(profits[i]) for i in items)
        return KnapsackResult(success=True, items=items, value=value)

    @abstractmethod
    def _solve_impl(
        self,
        weights: List[int],
        profits: List[float],
        capacity: int,
    ) -> KnapsackResult:
        """
        Solve a non-trivial instance (every item fits and has positive profit).

        Returns:
            KnapsackResult with indices into the given lists
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class DynamicProgrammingKnapsack(KnapsackSolver):
    """
    Integer dynamic programming over the capacity.

    best[c] is the highest profit with total weight <= c; each item updates
    the whole table in one numpy operation and records whether it was taken,
    which allows backtracking without storing patterns.

    Memory is O(items * capacity); instances whose capacity exceeds
    ``max_capacity`` are reported as failures.

    Args:
        max_capacity: Largest capacity the table is built for
    """

    name = "dp"

    def __init__(self, max_capacity: int = 10_000_000):
        self.max_capacity = max_capacity

    def _solve_impl(
        self,
        weights: List[int],
        profits: List[float],
        capacity: int,
    ) -> KnapsackResult:
        if capacity > self.max_capacity:
            return KnapsackResult.failure()

        num_items = len(weights)
        best = np.zeros(capacity + 1)
        take = np.zeros((num_items, capacity + 1), dtype=bool)

        for k in range(num_items):
            w = weights[k]
            candidate = np.full(capacity + 1, -np.inf)
            candidate[w:] = best[:capacity + 1 - w] + profits[k]
            take[k] = candidate > best
            best = np.where(take[k], candidate, best)

        # Backtrack from the full capacity
        items = []
        c = capacity
        for k in range(num_items - 1, -1, -1):
            if take[k, c]:
                items.append(k)
                c -= weights[k]

        return KnapsackResult(success=True, items=items, value=float(best[capacity]))

    def __repr__(self) -> str:
        return f"DynamicProgrammingKnapsack(max_capacity={self.max_capacity})"


class HiGHSKnapsack(KnapsackSolver):
    """
    Knapsack solved as a MIP with HiGHS.

    Useful when capacities are too large for the dynamic programming table.

    Args:
        time_limit: Time limit per knapsack in seconds (None = no limit)

    Raises:
        ImportError: If highspy is not installed
    """

    name = "highs"

    def __init__(self, time_limit: Optional[float] = None):
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )
        self.time_limit = time_limit

    def _solve_impl(
        self,
        weights: List[int],
        profits: List[float],
        capacity: int,
    ) -> KnapsackResult:
        num_items = len(weights)

        h = highspy.Highs()
        h.setOptionValue('output_flag', False)
        h.setOptionValue('log_to_console', False)
        h.setOptionValue('mip_rel_gap', 0.0)
        if self.time_limit is not None:
            h.setOptionValue('time_limit', self.time_limit)

        h.changeObjectiveSense(highspy.ObjSense.kMaximize)

        for k in range(num_items):
            h.addCol(profits[k], 0.0, 1.0, 0, [], [])
            h.changeColIntegrality(k, highspy.HighsVarType.kInteger)

        h.addRow(
            -highspy.kHighsInf,
            float(capacity),
            num_items,
            list(range(num_items)),
            [float(w) for w in weights],
        )

        h.run()
        if h.getModelStatus() != highspy.HighsModelStatus.kOptimal:
            return KnapsackResult.failure()

        col_value = h.getSolution().col_value
        items = [k for k in range(num_items) if col_value[k] > 0.5]
        value = sum(profits[k] for k in items)
        return KnapsackResult(success=True, items=items, value=value)

    def __repr__(self) -> str:
        return f"HiGHSKnapsack(time_limit={self.time_limit})"


def create_knapsack_solver(name: str) -> KnapsackSolver:
    """
    Create a knapsack oracle by name.

    Args:
        name: "dp" or "highs"

    Returns:
        A KnapsackSolver instance

    Raises:
        ValueError: If the name is unknown
    """
    if name == DynamicProgrammingKnapsack.name:
        return DynamicProgrammingKnapsack()
    if name == HiGHSKnapsack.name:
        return HiGHSKnapsack()
    raise ValueError(f"Unknown knapsack solver {name!r}; expected 'dp' or 'highs'")
