"""
Branch-and-price driver for the capacitated p-median problem.

The driver only sequences the core operations; it has no node selection
heuristics, no cutting planes and no primal heuristics.

Algorithm Overview:
------------------
1. Create the master rows (no columns), the restriction state, the
   pricing subproblem and the branching rule
2. Take the next node from a depth-first stack and make its path active:
   leave (deactivate) nodes that are not its ancestors, re-apply its
   node-local fixings and activate its semiassignment constraint
3. Column generation at the node:
   - solve the LP; if infeasible, compute Farkas multipliers
   - price; attach improving columns and repeat
   - no improving column on Farkas multipliers: the node is infeasible
   - no improving column on LP duals: the LP is optimal
4. Prune the node if its LP bound cannot beat the incumbent
5. Branch on the fractional assignment matrix; an integral matrix gives
   a candidate incumbent, otherwise two children are pushed (left on top)
6. Stop when the stack is empty or a limit is reached

Activation and deactivation happen in strict stack order, so the
restriction state always equals the branching decisions on the path from
the root to the active node.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from opencpmp.branching.constraint import ConstraintState
from opencpmp.branching.semiassign import SemiassignBranching, compute_assignments
from opencpmp.config import config as global_config
from opencpmp.core.column import Column
from opencpmp.core.instance import CPMPInstance
from opencpmp.core.restrictions import AssignmentRestrictions
from opencpmp.master import HIGHS_AVAILABLE, HiGHSMasterProblem, MasterProblem, MasterSolution
from opencpmp.pricing import (
    ClusterPricing,
    KnapsackSolver,
    PricingConfig,
    PricingError,
    PricingStatus,
    create_knapsack_solver,
)
from opencpmp.solver.node import BPNode, NodeStatus
from opencpmp.solver.solution import BPSolution, BPStatus


class LPEngineError(RuntimeError):
    """Raised when the LP engine ends with a status other than optimal or infeasible."""


@dataclass
class BPConfig:
    """
    Configuration for the branch-and-price algorithm.

    Attributes:
        max_nodes: Maximum number of nodes to process (0 = unlimited)
        max_time: Maximum solve time in seconds (0 = unlimited)
        max_cg_iterations: Maximum pricing rounds per node on LP duals
            (0 = unlimited)
        knapsack: Knapsack oracle ("dp" or "highs"; None = global default)
        num_threads: Threads for parallel pricing (None = global default)
        optimality_tolerance: Pruning tolerance (None = global default)
        integrality_tolerance: Branching tolerance (None = global default)
        reduced_cost_tolerance: Pricing tolerance (None = global default)
        verbose: Print progress information (None = global default)
    """
    max_nodes: int = 0
    max_time: float = 0.0
    max_cg_iterations: int = 0
    knapsack: Optional[str] = None
    num_threads: Optional[int] = None
    optimality_tolerance: Optional[float] = None
    integrality_tolerance: Optional[float] = None
    reduced_cost_tolerance: Optional[float] = None
    verbose: Optional[bool] = None

    def __post_init__(self):
        if self.knapsack is None:
            self.knapsack = global_config.default_knapsack
        if self.num_threads is None:
            self.num_threads = global_config.num_threads
        if self.optimality_tolerance is None:
            self.optimality_tolerance = global_config.get_tolerance('optimality')
        if self.integrality_tolerance is None:
            self.integrality_tolerance = global_config.get_tolerance('integrality')
        if self.reduced_cost_tolerance is None:
            self.reduced_cost_tolerance = global_config.get_tolerance('reduced_cost')
        if self.verbose is None:
            self.verbose = global_config.verbose

        if self.max_nodes < 0:
            raise ValueError("max_nodes must be non-negative")
        if self.max_time < 0:
            raise ValueError("max_time must be non-negative")
        if self.max_cg_iterations < 0:
            raise ValueError("max_cg_iterations must be non-negative")

    def pricing_config(self) -> PricingConfig:
        """Pricing configuration derived from this configuration."""
        return PricingConfig(
            reduced_cost_tolerance=self.reduced_cost_tolerance,
            num_threads=self.num_threads,
            verbose=False,
        )


# Outcome of column generation at a node
_CONVERGED = "converged"
_INFEASIBLE = "infeasible"
_ITERATION_LIMIT = "iteration_limit"
_STOPPED = "stopped"


class BranchAndPrice:
    """
    Depth-first branch-and-price for the capacitated p-median problem.

    Example:
        >>> from opencpmp.solver import BranchAndPrice, BPConfig
        >>> bp = BranchAndPrice(instance, BPConfig(verbose=True))
        >>> solution = bp.solve()
        >>> if solution.is_optimal:
        ...     print(solution.cluster_summary())

    Customization:
        A custom LP backend or knapsack oracle can be provided before solve():

        >>> bp = BranchAndPrice(instance)
        >>> bp.set_master(MyMaster(instance))
        >>> bp.set_knapsack(HiGHSKnapsack())
    """

    def __init__(
        self,
        instance: CPMPInstance,
        config: Optional[BPConfig] = None,
    ):
        """
        Initialize the branch-and-price driver.

        Args:
            instance: The instance to solve
            config: Configuration options (uses defaults if not provided)
        """
        self._instance = instance
        self._config = config or BPConfig()

        self._restrictions = AssignmentRestrictions(instance.num_locations)

        # Components (created lazily or can be set externally)
        self._master: Optional[MasterProblem] = None
        self._knapsack: Optional[KnapsackSolver] = None
        self._pricing: Optional[ClusterPricing] = None
        self._branching: Optional[SemiassignBranching] = None

        # Search state
        self._incumbent: Optional[List[Column]] = None
        self._incumbent_value: Optional[float] = None
        self._next_node_id = 0
        self._stop_requested = False
        self._start_time = 0.0
        self._stop_callback: Optional[Callable[[], bool]] = None

        self._solution: Optional[BPSolution] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def instance(self) -> CPMPInstance:
        return self._instance

    @property
    def config(self) -> BPConfig:
        return self._config

    @property
    def master(self) -> Optional[MasterProblem]:
        return self._master

    @property
    def pricing(self) -> Optional[ClusterPricing]:
        return self._pricing

    @property
    def restrictions(self) -> AssignmentRestrictions:
        """Restriction state of the active path."""
        return self._restrictions

    @property
    def solution(self) -> Optional[BPSolution]:
        """The solution (None if not yet solved)."""
        return self._solution

    # =========================================================================
    # Configuration
    # =========================================================================

    def set_master(self, master: MasterProblem) -> None:
        """
        Set a custom master problem (must not contain columns yet).

        Args:
            master: Custom MasterProblem implementation
        """
        if master.num_columns > 0:
            raise ValueError("master must not contain columns")
        self._master = master

    def set_knapsack(self, knapsack: KnapsackSolver) -> None:
        """
        Set a custom knapsack oracle.

        Args:
            knapsack: KnapsackSolver implementation
        """
        self._knapsack = knapsack

    def request_stop(self) -> None:
        """Ask a running solve to stop at the next check (between medians)."""
        self._stop_requested = True

    # =========================================================================
    # Main Algorithm
    # =========================================================================

    def solve(self, stop: Optional[Callable[[], bool]] = None) -> BPSolution:
        """
        Run branch-and-price.

        Args:
            stop: Optional callback; returning True interrupts the search

        Returns:
            BPSolution with results and statistics
        """
        self._start_time = time.time()
        self._stop_callback = stop
        self._initialize()

        solution = BPSolution()
        root = self._new_node(parent=None)
        stack: List[BPNode] = [root]
        path: List[BPNode] = []

        try:
            status = self._search(stack, path, solution)
        except (PricingError, LPEngineError) as exc:
            self._log(f"Solve failed: {exc}")
            solution.status = BPStatus.ERROR
            solution.error = str(exc)
        else:
            solution.status = status
            self._finalize(solution, stack)
        finally:
            while path:
                self._leave(path.pop())
            for node in stack:
                self._discard(node)

        solution.total_columns = self._master.num_columns
        solution.pricing_rounds = self._pricing.num_rounds
        solution.total_time = time.time() - self._start_time
        self._solution = solution

        self._log(solution.summary())
        return solution

    def _initialize(self) -> None:
        """Initialize master, pricing and branching if not already set."""
        if self._master is None:
            if not HIGHS_AVAILABLE:
                raise RuntimeError(
                    "HiGHS is not available. Install it with: pip install highspy\n"
                    "Or provide a custom MasterProblem implementation."
                )
            self._master = HiGHSMasterProblem(self._instance)

        if self._knapsack is None:
            self._knapsack = create_knapsack_solver(self._config.knapsack)

        self._pricing = ClusterPricing(
            self._master,
            self._restrictions,
            knapsack=self._knapsack,
            config=self._config.pricing_config(),
        )
        self._branching = SemiassignBranching(
            self._restrictions,
            integrality_tolerance=self._config.integrality_tolerance,
        )

    def _search(self, stack: List[BPNode], path: List[BPNode], solution: BPSolution) -> BPStatus:
        """Depth-first node loop; returns the final status."""
        while stack:
            limit = self._limit_status(solution)
            if limit is not None:
                return limit

            node = stack.pop()

            # Leave nodes that are not ancestors of the next node
            while path and path[-1] is not node.parent:
                self._leave(path.pop())

            if self._can_prune(node.estimate):
                node.status = NodeStatus.PRUNED
                self._discard(node)
                continue

            self._enter(node)
            path.append(node)

            outcome = self._process_node(node, path, solution)
            if outcome == _STOPPED:
                # Node stays open; its subtree was not explored
                path.pop()
                self._leave(node)
                node.status = NodeStatus.OPEN
                stack.append(node)
                return self._limit_status(solution) or BPStatus.INTERRUPTED

            if node.status == NodeStatus.BRANCHED:
                left, right = node.children
                stack.append(right)
                stack.append(left)

        if self._incumbent is None:
            return BPStatus.INFEASIBLE
        return BPStatus.OPTIMAL

    def _process_node(self, node: BPNode, path: List[BPNode], solution: BPSolution) -> str:
        """Solve the node LP by column generation, then prune, accept or branch."""
        solution.nodes_explored += 1
        solution.max_depth = max(solution.max_depth, node.depth)

        limited = True
        while True:
            outcome, lp = self._column_generation(path, solution, limited)

            if outcome == _STOPPED:
                return outcome

            if outcome == _INFEASIBLE:
                node.status = NodeStatus.INFEASIBLE
                self._log(f"{node!r}: infeasible")
                return outcome

            if outcome == _CONVERGED:
                node.lp_bound = lp.objective_value
                if node.is_root:
                    solution.root_lp_objective = lp.objective_value
                if self._can_prune(node.lp_bound):
                    node.status = NodeStatus.PRUNED
                    self._log(f"{node!r}: pruned by bound")
                    return outcome

            result = self._branching.branch(compute_assignments(self._master, lp))
            if not result.integral:
                break

            self._update_incumbent(lp)
            if outcome == _ITERATION_LIMIT:
                # An integral LP that is not yet optimal closes nothing
                self._log(f"{node!r}: integral before convergence, resuming pricing")
                limited = False
                continue

            node.status = NodeStatus.INTEGRAL
            self._log(f"{node!r}: integral, incumbent {self._incumbent_value}")
            return outcome

        node.status = NodeStatus.BRANCHED
        node.children = (
            self._new_node(node, result.left, 'l'),
            self._new_node(node, result.right, 'r'),
        )
        self._log(
            f"{node!r}: branch on location {result.location + 1} "
            f"({result.num_fractional} fractional medians)"
        )
        return outcome

    def _column_generation(self, path: List[BPNode], solution: BPSolution, limited: bool = True):
        """
        Column generation at the active node.

        Args:
            path: Nodes from the root to the active node
            solution: Statistics are accumulated here
            limited: Apply max_cg_iterations to this run

        Returns:
            (outcome, last LP solution)
        """
        rounds = 0
        while True:
            self._propagate(path)

            master_start = time.time()
            lp = self._master.solve_lp()

            if lp.is_optimal:
                duals = lp.duals
            elif lp.is_infeasible:
                farkas = self._master.solve_farkas()
                if not farkas.is_optimal:
                    raise LPEngineError(
                        f"Phase-one LP ended with status {farkas.status.name}"
                    )
                duals = farkas.duals
            else:
                raise LPEngineError(f"LP solve ended with status {lp.status.name}")
            solution.master_time += time.time() - master_start

            pricing_start = time.time()
            priced = self._pricing.price(duals, stop=self._should_stop)
            solution.pricing_time += time.time() - pricing_start

            if priced.status == PricingStatus.STOPPED:
                return _STOPPED, lp

            if priced.status == PricingStatus.NO_COLUMNS:
                if duals.farkas:
                    return _INFEASIBLE, lp
                return _CONVERGED, lp

            if lp.is_optimal:
                rounds += 1
                if limited and self._config.max_cg_iterations and rounds >= self._config.max_cg_iterations:
                    lp = self._master.solve_lp()
                    if not lp.is_optimal:
                        raise LPEngineError(f"LP solve ended with status {lp.status.name}")
                    return _ITERATION_LIMIT, lp

    # =========================================================================
    # Path Management
    # =========================================================================

    def _enter(self, node: BPNode) -> None:
        """Make a node the active end of the path."""
        for column_id in node.fixed_columns:
            self._master.fix_column(column_id)

        if node.constraint is not None:
            fixed = node.constraint.activate(self._restrictions, self._master)
            node.fixed_columns.extend(fixed)

    def _leave(self, node: BPNode) -> None:
        """Remove a node from the active path and release its fixings."""
        if node.constraint is not None and node.constraint.is_active:
            node.constraint.deactivate(self._restrictions)
        for column_id in node.fixed_columns:
            self._master.unfix_column(column_id)
        # Depth-first: a node is never revisited after its subtree is done
        if not node.is_open:
            self._discard(node)

    def _propagate(self, path: List[BPNode]) -> None:
        """Fix columns attached since the last scan that violate a path constraint."""
        for node in path:
            constraint = node.constraint
            if constraint is not None and constraint.needs_propagation(self._master):
                node.fixed_columns.extend(constraint.propagate(self._master))

    def _discard(self, node: BPNode) -> None:
        constraint = node.constraint
        if constraint is not None and constraint.state in (
            ConstraintState.PENDING, ConstraintState.INACTIVE
        ):
            constraint.delete()

    def _new_node(self, parent: Optional[BPNode], constraint=None, direction: str = '') -> BPNode:
        node_id = self._next_node_id
        self._next_node_id += 1
        if parent is None:
            return BPNode(node_id=node_id)
        return parent.create_child(node_id, constraint, direction)

    # =========================================================================
    # Bounds and Incumbent
    # =========================================================================

    def _can_prune(self, bound: Optional[float]) -> bool:
        """Check whether a lower bound cannot beat the incumbent (integer costs)."""
        if self._incumbent_value is None or bound is None or not math.isfinite(bound):
            return False
        return math.ceil(bound - self._config.optimality_tolerance) >= self._incumbent_value

    def _update_incumbent(self, lp: MasterSolution) -> None:
        columns = [
            self._master.get_column(column_id).with_value(1.0)
            for column_id, value in sorted(lp.column_values.items())
            if value > 0.5
        ]
        value = float(sum(col.cost for col in columns))
        if self._incumbent_value is None or value < self._incumbent_value:
            self._incumbent = columns
            self._incumbent_value = value

    def _finalize(self, solution: BPSolution, stack: List[BPNode]) -> None:
        if self._incumbent is not None:
            solution.columns = list(self._incumbent)
            solution.objective_value = self._incumbent_value

        if solution.status == BPStatus.OPTIMAL:
            solution.lower_bound = self._incumbent_value
        elif solution.status != BPStatus.INFEASIBLE:
            bounds = [node.estimate for node in stack]
            if self._incumbent_value is not None:
                bounds.append(self._incumbent_value)
            if bounds:
                lower = min(bounds)
                solution.lower_bound = lower if lower > float('-inf') else None

    # =========================================================================
    # Limits
    # =========================================================================

    def _limit_status(self, solution: BPSolution) -> Optional[BPStatus]:
        if self._stop_requested or (self._stop_callback is not None and self._stop_callback()):
            return BPStatus.INTERRUPTED
        if self._config.max_time > 0 and time.time() - self._start_time >= self._config.max_time:
            return BPStatus.TIME_LIMIT
        if self._config.max_nodes > 0 and solution.nodes_explored >= self._config.max_nodes:
            return BPStatus.NODE_LIMIT
        return None

    def _should_stop(self) -> bool:
        """Stop callback handed to pricing; checked between medians."""
        if self._stop_requested:
            return True
        if self._stop_callback is not None and self._stop_callback():
            return True
        return self._config.max_time > 0 and time.time() - self._start_time >= self._config.max_time

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _log(self, message: str) -> None:
        """Print a log message if verbose mode is enabled."""
        if self._config.verbose:
            print(message)

    def __repr__(self) -> str:
        return (
            f"BranchAndPrice(locations={self._instance.num_locations}, "
            f"clusters={self._instance.num_clusters})"
        )


def solve_cpmp(
    instance: CPMPInstance,
    max_time: float = 0.0,
    max_nodes: int = 0,
    knapsack: Optional[str] = None,
    verbose: bool = False,
) -> BPSolution:
    """
    Solve a capacitated p-median instance with branch-and-price.

    Args:
        instance: The problem instance
        max_time: Time limit in seconds (0 = unlimited)
        max_nodes: Node limit (0 = unlimited)
        knapsack: Knapsack oracle ("dp" or "highs"; None = global default)
        verbose: Print progress

    Returns:
        BPSolution with results
    """
    config = BPConfig(
        max_time=max_time,
        max_nodes=max_nodes,
        knapsack=knapsack,
        verbose=verbose,
    )
    return BranchAndPrice(instance, config).solve()
