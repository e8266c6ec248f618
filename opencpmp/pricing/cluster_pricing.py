"""
Cluster pricing for the capacitated p-median branch-and-price.

For every potential median m (in ascending order) one exact 0/1 knapsack
is solved:

- items: the locations l whose assignment to m is currently allowed
- weight of l: demand[l]
- profit of l: coverage[l] - distance[l][m] (LP duals) or coverage[l]
  (Farkas multipliers)
- capacity: capacity[m]

Items with non-positive profit cannot raise the optimum and are not handed
to the oracle. The score of the optimal cluster is

    knapsack value + convexity[m] + cardinality

and the cluster is attached to the master if the score exceeds the
reduced-cost tolerance, the cluster is non-empty and it is not attached
already.

A median whose knapsack cannot be solved is skipped with a RuntimeWarning;
if no median at all can be solved, PricingError is raised.

Parallel execution:
- Set num_threads > 1 to solve the knapsacks in a ThreadPoolExecutor
- Results are merged in ascending median order before any column is
  attached, so the outcome does not depend on the thread count
"""

import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from opencpmp.core.column import Column
from opencpmp.core.restrictions import AssignmentRestrictions
from opencpmp.master.base import MasterProblem
from opencpmp.master.solution import MasterDuals
from opencpmp.pricing.base import (
    PricingConfig,
    PricingError,
    PricingMode,
    PricingSolution,
    PricingStatus,
)
from opencpmp.pricing.knapsack import DynamicProgrammingKnapsack, KnapsackSolver


StopCallback = Callable[[], bool]


@dataclass
class _MedianOutcome:
    """Knapsack outcome for one median."""
    median: int
    success: bool
    members: List[int] = field(default_factory=list)
    score: float = 0.0


class ClusterPricing:
    """
    Pricing subproblem producing cluster columns, one knapsack per median.

    The pricer reads the restriction state on every call, so columns
    generated at any depth of the search respect every active branching
    decision.

    Example:
        >>> pricing = ClusterPricing(master, restrictions)
        >>> result = pricing.price(solution.duals)
        >>> if result.status == PricingStatus.NO_COLUMNS:
        ...     print("LP optimal")

    Args:
        master: The master problem columns are attached to
        restrictions: Assignments forbidden on the active search path
        knapsack: Knapsack oracle (defaults to dynamic programming)
        config: Pricing configuration
    """

    def __init__(
        self,
        master: MasterProblem,
        restrictions: AssignmentRestrictions,
        knapsack: Optional[KnapsackSolver] = None,
        config: Optional[PricingConfig] = None,
    ):
        self._master = master
        self._instance = master.instance
        self._restrictions = restrictions
        self._knapsack = knapsack or DynamicProgrammingKnapsack()
        self._config = config or PricingConfig()

        if restrictions.num_locations != self._instance.num_locations:
            raise ValueError(
                "restrictions and instance disagree on the number of locations"
            )

        # Statistics
        self._num_rounds = 0
        self._num_columns_added = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> PricingConfig:
        return self._config

    @property
    def knapsack(self) -> KnapsackSolver:
        return self._knapsack

    @property
    def restrictions(self) -> AssignmentRestrictions:
        return self._restrictions

    @property
    def num_rounds(self) -> int:
        """Number of pricing rounds performed."""
        return self._num_rounds

    @property
    def num_columns_added(self) -> int:
        """Total number of columns attached by this pricer."""
        return self._num_columns_added

    # =========================================================================
    # Knapsack Construction
    # =========================================================================

    def candidate_locations(self, median: int) -> List[int]:
        """
        Locations that may currently be assigned to a median.

        Args:
            median: The median

        Returns:
            Allowed locations in ascending order
        """
        return self._restrictions.allowed_locations(median)

    def item_profit(self, location: int, median: int, duals: MasterDuals) -> float:
        """
        Knapsack profit of assigning a location to a median.

        Args:
            location: The location
            median: The median
            duals: LP duals or Farkas multipliers

        Returns:
            coverage[location] - distance (LP duals) or coverage[location] (Farkas)
        """
        profit = float(duals.coverage[location])
        if not duals.farkas:
            profit -= float(self._instance.distance(location, median))
        return profit

    def knapsack_input(
        self,
        median: int,
        duals: MasterDuals,
    ) -> Tuple[List[int], List[int], List[float]]:
        """
        Build the knapsack of a median.

        Args:
            median: The median
            duals: LP duals or Farkas multipliers

        Returns:
            (locations, weights, profits) of the items with positive profit
        """
        locations = []
        weights = []
        profits = []
        for location in self.candidate_locations(median):
            profit = self.item_profit(location, median, duals)
            if profit <= 0:
                continue
            locations.append(location)
            weights.append(int(self._instance.demands[location]))
            profits.append(profit)
        return locations, weights, profits

    # =========================================================================
    # Pricing
    # =========================================================================

    def price(
        self,
        duals: MasterDuals,
        stop: Optional[StopCallback] = None,
    ) -> PricingSolution:
        """
        Run one pricing round and attach the improving columns.

        Args:
            duals: LP duals (reduced-cost mode) or Farkas multipliers
                (``duals.farkas`` set)
            stop: Optional callback checked before each median is solved; returning True
                interrupts the round

        Returns:
            PricingSolution with the attached columns

        Raises:
            PricingError: If the knapsack of every median failed
        """
        start_time = time.time()
        mode = PricingMode.FARKAS if duals.farkas else PricingMode.REDUCED_COST

        if self._config.num_threads > 1:
            outcomes, stopped = self._solve_parallel(duals, stop)
        else:
            outcomes, stopped = self._solve_sequential(duals, stop)

        solution = self._merge(outcomes, mode)
        self._num_rounds += 1

        if solution.medians_solved == 0 and solution.skipped_medians and not stopped:
            raise PricingError(
                f"Pricing problem could not be solved for any of the "
                f"{len(solution.skipped_medians)} medians"
            )

        if stopped:
            solution.status = PricingStatus.STOPPED
        elif solution.columns:
            solution.status = PricingStatus.COLUMNS_FOUND
        else:
            solution.status = PricingStatus.NO_COLUMNS

        solution.solve_time = time.time() - start_time
        self._log(
            f"Pricing ({mode.name.lower()}): {solution.num_columns} columns, "
            f"best score {solution.best_score}, status {solution.status.name}"
        )
        return solution

    def _solve_median(self, median: int, duals: MasterDuals) -> _MedianOutcome:
        """Solve the knapsack of one median."""
        locations, weights, profits = self.knapsack_input(median, duals)
        offset = float(duals.convexity[median]) + duals.cardinality

        if not locations:
            return _MedianOutcome(median=median, success=True, score=offset)

        capacity = int(self._instance.capacities[median])
        result = self._knapsack.solve(weights, profits, capacity)
        if not result.success:
            return _MedianOutcome(median=median, success=False)

        members = [locations[k] for k in result.items]
        return _MedianOutcome(
            median=median,
            success=True,
            members=members,
            score=result.value + offset,
        )

    def _solve_sequential(
        self,
        duals: MasterDuals,
        stop: Optional[StopCallback],
    ) -> Tuple[List[_MedianOutcome], bool]:
        outcomes = []
        for median in self._instance.locations:
            if stop is not None and stop():
                return outcomes, True
            outcomes.append(self._solve_median(median, duals))
        return outcomes, False

    def _solve_median_unless_stopped(
        self,
        median: int,
        duals: MasterDuals,
        stop: Optional[StopCallback],
    ) -> Optional[_MedianOutcome]:
        if stop is not None and stop():
            return None
        return self._solve_median(median, duals)

    def _solve_parallel(
        self,
        duals: MasterDuals,
        stop: Optional[StopCallback],
    ) -> Tuple[List[_MedianOutcome], bool]:
        stopped = False
        outcomes = []

        with ThreadPoolExecutor(max_workers=self._config.num_threads) as executor:
            futures = [
                executor.submit(self._solve_median_unless_stopped, median, duals, stop)
                for median in self._instance.locations
            ]
            for future in futures:
                if stopped:
                    future.cancel()
                    continue
                outcome = future.result()
                if outcome is None:
                    stopped = True
                else:
                    outcomes.append(outcome)

        return outcomes, stopped

    def _merge(self, outcomes: List[_MedianOutcome], mode: PricingMode) -> PricingSolution:
        """Attach improving clusters in ascending median order."""
        solution = PricingSolution(mode=mode)
        tolerance = self._config.reduced_cost_tolerance

        for outcome in outcomes:
            if not outcome.success:
                solution.skipped_medians.append(outcome.median)
                warnings.warn(
                    f"Pricing problem for median {outcome.median + 1} could not be solved",
                    RuntimeWarning,
                )
                continue

            solution.medians_solved += 1
            if solution.best_score is None or outcome.score > solution.best_score:
                solution.best_score = outcome.score

            if outcome.score <= tolerance or not outcome.members:
                continue

            if (self._config.max_columns > 0
                    and len(solution.columns) >= self._config.max_columns):
                continue

            if self._master.contains_cluster(outcome.median, outcome.members):
                solution.duplicates += 1
                continue

            column = Column(
                median=outcome.median,
                members=frozenset(outcome.members),
                cost=float(self._instance.cluster_cost(outcome.median, outcome.members)),
                reduced_cost=-outcome.score,
                attributes={'mode': mode.name.lower()},
            )
            solution.columns.append(self._master.add_column(column))
            self._num_columns_added += 1

        return solution

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _log(self, message: str) -> None:
        """Print a log message if verbose mode is enabled."""
        if self._config.verbose:
            print(message)

    def summary(self) -> str:
        """Return a human-readable summary."""
        lines = [
            "ClusterPricing:",
            f"  Knapsack oracle: {self._knapsack!r}",
            f"  Threads: {self._config.num_threads}",
            f"  Rounds: {self._num_rounds}",
            f"  Columns added: {self._num_columns_added}",
        ]
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"ClusterPricing(locations={self._instance.num_locations}, "
            f"knapsack={self._knapsack.name!r})"
        )
