"""
Integration tests for branch-and-price on capacitated p-median instances.

Run with: pytest tests/integration/test_cpmp.py -v
"""

import itertools
import warnings

import numpy as np
import pytest

from opencpmp.core.instance import CPMPInstance
from opencpmp.master import HIGHS_AVAILABLE
from opencpmp.parsers import CPMPParser
from opencpmp.pricing.knapsack import KnapsackResult, KnapsackSolver
from opencpmp.solver import BPConfig, BPStatus, BranchAndPrice, solve_cpmp

if HIGHS_AVAILABLE:
    from opencpmp.master import HiGHSMasterProblem
    from opencpmp.pricing import HiGHSKnapsack


pytestmark = pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")


# =============================================================================
# Helpers
# =============================================================================


def random_instance(seed, num_locations=7, num_clusters=3):
    """Small asymmetric instance with integer data."""
    rng = np.random.RandomState(seed)
    distances = rng.randint(1, 20, size=(num_locations, num_locations))
    np.fill_diagonal(distances, 0)
    demands = rng.randint(1, 6, size=num_locations)
    capacities = rng.randint(6, 12, size=num_locations)
    return CPMPInstance(
        distances=distances,
        demands=demands,
        capacities=capacities,
        num_clusters=num_clusters,
        name=f"random_{seed}",
    )


def brute_force_optimum(instance):
    """Enumerate every assignment to at most p medians; None if infeasible."""
    n = instance.num_locations
    best = None
    for size in range(1, instance.num_clusters + 1):
        for medians in itertools.combinations(range(n), size):
            for choice in itertools.product(medians, repeat=n):
                load = {m: 0 for m in medians}
                for location, median in enumerate(choice):
                    load[median] += int(instance.demands[location])
                if any(load[m] > instance.capacities[m] for m in medians):
                    continue
                cost = sum(instance.distance(i, m) for i, m in enumerate(choice))
                if best is None or cost < best:
                    best = cost
    return best


def check_solution(instance, solution):
    """Every location served once, capacities and p respected, cost consistent."""
    assignment = solution.get_assignment()
    assert sorted(assignment) == list(instance.locations)
    assert sum(column.size for column in solution.columns) == instance.num_locations
    assert solution.num_clusters <= instance.num_clusters
    assert len(set(solution.get_medians())) == solution.num_clusters

    total = 0.0
    for column in solution.columns:
        assert instance.is_feasible_cluster(column.median, column.members)
        assert column.cost == instance.cluster_cost(column.median, column.members)
        total += column.cost
    assert solution.objective_value == pytest.approx(total)


class AlwaysFailingKnapsack(KnapsackSolver):
    name = "failing"

    def _solve_impl(self, weights, profits, capacity):
        return KnapsackResult.failure()


# =============================================================================
# Small scenarios
# =============================================================================


class TestScenarios:
    """Hand-checked instances."""

    def test_single_location(self, single_location_instance):
        solution = BranchAndPrice(single_location_instance).solve()

        assert solution.is_optimal
        assert solution.objective_value == 0.0
        assert solution.nodes_explored == 1
        assert solution.max_depth == 0
        assert solution.get_assignment() == {0: 0}

    def test_two_pairs(self, two_pairs_instance):
        bp = BranchAndPrice(two_pairs_instance)
        solution = bp.solve()

        assert solution.is_optimal
        assert solution.objective_value == pytest.approx(2.0)
        assert solution.root_lp_objective == pytest.approx(2.0)
        assert solution.lower_bound == pytest.approx(2.0)
        assert solution.gap == 0.0
        check_solution(two_pairs_instance, solution)

        clusters = {column.members for column in solution.columns}
        assert clusters == {frozenset({0, 1}), frozenset({2, 3})}

    def test_oversized_demand_is_infeasible(self, oversized_demand_instance):
        bp = BranchAndPrice(oversized_demand_instance)
        solution = bp.solve()

        assert solution.status == BPStatus.INFEASIBLE
        assert solution.objective_value is None
        assert not solution.is_feasible
        assert solution.cluster_summary() == "no solution available"
        for column in bp.master.columns:
            assert 2 not in column.members

    def test_six_locations_from_file(self, data_path):
        instance = CPMPParser().parse(data_path / "p6_2.cpmp")
        solution = solve_cpmp(instance)

        assert solution.is_optimal
        assert solution.objective_value == pytest.approx(8.0)
        assert {column.members for column in solution.columns} == {
            frozenset({0, 1, 2}),
            frozenset({3, 4, 5}),
        }
        check_solution(instance, solution)

    def test_cluster_summary(self, two_pairs_instance):
        solution = solve_cpmp(two_pairs_instance)
        text = solution.cluster_summary()

        assert "total cost: 2" in text
        assert text.count("median") == 2


# =============================================================================
# Exactness on random instances
# =============================================================================


class TestAgainstEnumeration:
    """Branch-and-price must match complete enumeration."""

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_matches_brute_force(self, seed):
        instance = random_instance(seed)
        expected = brute_force_optimum(instance)

        bp = BranchAndPrice(instance)
        solution = bp.solve()

        if expected is None:
            assert solution.status == BPStatus.INFEASIBLE
        else:
            assert solution.is_optimal
            assert solution.objective_value == pytest.approx(expected)
            assert solution.root_lp_objective <= expected + 1e-6
            check_solution(instance, solution)

        # Every branching decision was undone
        assert bp.restrictions.num_forbidden == 0

    @pytest.mark.slow
    @pytest.mark.parametrize("seed", [11, 12])
    def test_eight_locations(self, seed):
        instance = random_instance(seed, num_locations=8, num_clusters=3)
        expected = brute_force_optimum(instance)

        solution = BranchAndPrice(instance).solve()

        if expected is None:
            assert solution.status == BPStatus.INFEASIBLE
        else:
            assert solution.objective_value == pytest.approx(expected)
            check_solution(instance, solution)


class TestIterationLimit:
    """Nodes cut short by max_cg_iterations must not lose the optimum."""

    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5, 17])
    def test_single_round_matches_brute_force(self, seed):
        instance = random_instance(seed)
        expected = brute_force_optimum(instance)

        bp = BranchAndPrice(instance, BPConfig(max_cg_iterations=1))
        solution = bp.solve()

        if expected is None:
            assert solution.status == BPStatus.INFEASIBLE
        else:
            assert solution.is_optimal
            assert solution.objective_value == pytest.approx(expected)
            assert solution.lower_bound == pytest.approx(expected)
            check_solution(instance, solution)
        assert bp.restrictions.num_forbidden == 0

    def test_six_locations_single_round(self, six_location_instance):
        """Children of a limited node carry no bound and are explored."""
        solution = BranchAndPrice(
            six_location_instance, BPConfig(max_cg_iterations=1)
        ).solve()

        assert solution.is_optimal
        assert solution.objective_value == pytest.approx(8.0)
        check_solution(six_location_instance, solution)


# =============================================================================
# Options and components
# =============================================================================


class TestSolverOptions:
    """Alternative oracles, threads, limits and failures."""

    def test_highs_knapsack(self, six_location_instance):
        solution = solve_cpmp(six_location_instance, knapsack="highs")
        assert solution.objective_value == pytest.approx(8.0)

    def test_set_knapsack(self, two_pairs_instance):
        bp = BranchAndPrice(two_pairs_instance)
        bp.set_knapsack(HiGHSKnapsack())
        assert bp.solve().objective_value == pytest.approx(2.0)

    def test_parallel_pricing(self):
        instance = random_instance(3)
        sequential = BranchAndPrice(instance, BPConfig(num_threads=1)).solve()
        parallel = BranchAndPrice(instance, BPConfig(num_threads=4)).solve()

        assert parallel.status == sequential.status
        assert parallel.objective_value == sequential.objective_value
        assert parallel.total_columns == sequential.total_columns

    def test_custom_master(self, two_pairs_instance):
        bp = BranchAndPrice(two_pairs_instance)
        bp.set_master(HiGHSMasterProblem(two_pairs_instance, time_limit=60.0))
        assert bp.solve().is_optimal

    def test_master_with_columns_rejected(self, two_pairs_instance):
        from opencpmp.core.column import Column

        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_column(Column(median=0, members={0, 1}, cost=1.0))
        with pytest.raises(ValueError):
            BranchAndPrice(two_pairs_instance).set_master(master)

    def test_stop_callback(self, six_location_instance):
        bp = BranchAndPrice(six_location_instance)
        solution = bp.solve(stop=lambda: True)

        assert solution.status == BPStatus.INTERRUPTED
        assert solution.objective_value is None
        assert solution.lower_bound is None
        assert bp.restrictions.num_forbidden == 0

    def test_request_stop(self, six_location_instance):
        bp = BranchAndPrice(six_location_instance)
        bp.request_stop()
        assert bp.solve().status == BPStatus.INTERRUPTED

    def test_node_limit(self):
        instance = random_instance(2)
        solution = BranchAndPrice(instance, BPConfig(max_nodes=1)).solve()

        assert solution.nodes_explored == 1
        assert solution.status in (BPStatus.OPTIMAL, BPStatus.INFEASIBLE, BPStatus.NODE_LIMIT)

    def test_pricing_failure_reported(self, two_pairs_instance):
        bp = BranchAndPrice(two_pairs_instance)
        bp.set_knapsack(AlwaysFailingKnapsack())

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            solution = bp.solve()

        assert solution.status == BPStatus.ERROR
        assert "could not be solved" in solution.error
        assert solution.columns == []
        assert bp.restrictions.num_forbidden == 0

    def test_verbose_output(self, two_pairs_instance, capsys):
        solve_cpmp(two_pairs_instance, verbose=True)
        out = capsys.readouterr().out
        assert "Status: OPTIMAL" in out

    def test_invalid_limits(self):
        with pytest.raises(ValueError):
            BPConfig(max_nodes=-1)
        with pytest.raises(ValueError):
            BPConfig(max_time=-1.0)
