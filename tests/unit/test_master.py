"""
Tests for the master problem.

Run with: pytest tests/unit/test_master.py -v
"""

import math

import pytest

from opencpmp.core.column import Column
from opencpmp.master import HIGHS_AVAILABLE
from opencpmp.master.solution import MasterDuals, MasterSolution, SolutionStatus

if HIGHS_AVAILABLE:
    from opencpmp.master import HiGHSMasterProblem


# =============================================================================
# Solution objects
# =============================================================================


class TestMasterSolution:
    """Tests for MasterSolution and MasterDuals."""

    def test_integrality(self):
        solution = MasterSolution(
            status=SolutionStatus.OPTIMAL,
            objective_value=2.0,
            column_values={0: 1.0, 3: 1.0},
        )
        assert solution.is_optimal
        assert solution.has_solution
        assert solution.is_integer
        assert solution.get_active_columns() == [0, 3]
        assert solution.get_value(5) == 0.0

    def test_fractional_columns(self):
        solution = MasterSolution(
            status=SolutionStatus.OPTIMAL,
            objective_value=1.5,
            column_values={0: 0.5, 1: 0.5, 2: 1.0},
        )
        assert not solution.is_integer
        assert solution.get_fractional_columns() == [0, 1]

    def test_infeasible_statuses(self):
        assert MasterSolution(status=SolutionStatus.INFEASIBLE).is_infeasible
        assert MasterSolution(status=SolutionStatus.INF_OR_UNBOUNDED).is_infeasible
        assert not MasterSolution(status=SolutionStatus.OPTIMAL).is_infeasible

    def test_column_dual_sum(self):
        duals = MasterDuals(
            coverage=[1.0, 2.0, 3.0],
            convexity=[-0.5, 0.0, -1.0],
            cardinality=-0.25,
        )
        assert duals.num_locations == 3
        assert duals.column_dual_sum(2, {0, 2}) == pytest.approx(2.75)

    def test_zero_duals(self):
        duals = MasterDuals.zeros(3, farkas=True)
        assert duals.farkas
        assert duals.coverage.tolist() == [0.0, 0.0, 0.0]


# =============================================================================
# Master problem bookkeeping
# =============================================================================


class TestMasterBookkeeping:
    """Row layout and column management, independent of the LP solver."""

    def test_row_layout(self, two_pairs_instance, make_master):
        master = make_master(two_pairs_instance)
        assert master.num_rows == 9
        assert master.coverage_row(3) == 3
        assert master.convexity_row(0) == 4
        assert master.cardinality_row == 8

        column = Column(median=2, members={3, 1}, cost=9.0)
        assert master.column_rows(column) == [1, 3, 6, 8]

    def test_add_column_assigns_ids(self, two_pairs_instance, make_master):
        master = make_master(two_pairs_instance)
        first = master.add_column(Column(median=0, members={0, 1}, cost=1.0))
        second = master.add_column(Column(median=2, members={2, 3}, cost=1.0))

        assert (first.column_id, second.column_id) == (0, 1)
        assert master.num_columns == 2
        assert master.get_column(1) == second
        assert master.contains_cluster(0, {1, 0})

    def test_invalid_columns_rejected(self, two_pairs_instance, make_master):
        master = make_master(two_pairs_instance)
        with pytest.raises(ValueError):
            master.add_column(Column(median=4, members={0}, cost=0.0))
        with pytest.raises(ValueError):
            master.add_column(Column(median=0, members={0, 7}, cost=0.0))

        master.add_column(Column(median=0, members={0}, cost=0.0))
        with pytest.raises(ValueError):
            master.add_column(Column(median=0, members={0}, cost=0.0))

    def test_fix_and_unfix(self, two_pairs_instance, make_master):
        master = make_master(two_pairs_instance)
        master.add_column(Column(median=0, members={0, 1}, cost=1.0))

        master.fix_column(0)
        assert master.is_fixed(0)
        assert master.get_fixed_columns() == [0]
        assert master.upper_bounds[0] == 0.0

        master.unfix_column(0)
        assert not master.is_fixed(0)
        assert master.upper_bounds[0] == math.inf

        with pytest.raises(ValueError):
            master.fix_column(5)

    def test_reduced_cost(self, two_pairs_instance, make_master):
        master = make_master(two_pairs_instance)
        column = Column(median=0, members={0, 1}, cost=1.0)
        duals = MasterDuals(coverage=[2.0, 2.0, 0.0, 0.0], convexity=[-1.0, 0, 0, 0], cardinality=-0.5)

        assert master.compute_reduced_cost(column, duals) == pytest.approx(-1.5)

        farkas = MasterDuals(coverage=[1.0, 1.0, 0.0, 0.0], convexity=[0.0] * 4, farkas=True)
        assert master.compute_reduced_cost(column, farkas) == pytest.approx(-2.0)


# =============================================================================
# HiGHS master problem
# =============================================================================


@pytest.mark.skipif(not HIGHS_AVAILABLE, reason="HiGHS not installed")
class TestHiGHSMasterProblem:
    """Tests for HiGHSMasterProblem."""

    def test_empty_master_is_infeasible(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        solution = master.solve_lp()
        assert solution.is_infeasible

    def test_optimal_pair_cover(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_columns([
            Column(median=0, members={0, 1}, cost=1.0),
            Column(median=2, members={2, 3}, cost=1.0),
            Column(median=1, members={1, 2}, cost=5.0),
        ])

        solution = master.solve_lp()

        assert solution.is_optimal
        assert solution.objective_value == pytest.approx(2.0)
        assert solution.get_value(0) == pytest.approx(1.0)
        assert solution.get_value(1) == pytest.approx(1.0)
        assert solution.is_integer

    def test_dual_signs_and_reduced_costs(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        columns = master.add_columns([
            Column(median=0, members={0, 1}, cost=1.0),
            Column(median=2, members={2, 3}, cost=1.0),
            Column(median=1, members={1, 2}, cost=5.0),
        ])

        solution = master.solve_lp()
        duals = solution.duals

        assert not duals.farkas
        assert (duals.coverage >= -1e-9).all()
        assert (duals.convexity <= 1e-9).all()
        assert duals.cardinality <= 1e-9
        for column in columns:
            assert master.compute_reduced_cost(column, duals) >= -1e-6
            if solution.get_value(column.column_id) > 1e-6:
                assert master.compute_reduced_cost(column, duals) == pytest.approx(0.0, abs=1e-6)

    def test_cardinality_row_binds(self, two_pairs_instance):
        """Singletons alone cannot cover four locations with p = 2."""
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_columns([Column(median=i, members={i}, cost=0.0) for i in range(4)])

        assert master.solve_lp().is_infeasible

    def test_farkas_multipliers(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        column = master.add_column(Column(median=0, members={0, 1}, cost=1.0))
        assert master.solve_lp().is_infeasible

        farkas = master.solve_farkas()

        assert farkas.is_optimal
        assert farkas.duals.farkas
        assert farkas.objective_value == pytest.approx(2.0)
        assert farkas.duals.coverage[2] > 0
        assert farkas.duals.coverage[3] > 0
        # Attached columns cannot reduce the infeasibility
        assert farkas.duals.column_dual_sum(column.median, column.members) <= 1e-6

    def test_costs_restored_after_farkas(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_column(Column(median=0, members={0, 1}, cost=1.0))
        master.solve_lp()
        master.solve_farkas()

        master.add_column(Column(median=2, members={2, 3}, cost=1.0))
        solution = master.solve_lp()

        assert solution.is_optimal
        assert solution.objective_value == pytest.approx(2.0)

    def test_fixed_column_excluded(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_columns([
            Column(median=0, members={0, 1}, cost=1.0),
            Column(median=1, members={0, 1}, cost=1.0),
            Column(median=2, members={2, 3}, cost=1.0),
        ])

        master.fix_column(0)
        solution = master.solve_lp()

        assert master.get_upper_bound(0) == 0.0
        assert solution.is_optimal
        assert solution.get_value(0) == 0.0
        assert solution.get_value(1) == pytest.approx(1.0)

        master.unfix_column(0)
        assert master.get_upper_bound(0) == math.inf

    def test_fixing_every_cover_makes_lp_infeasible(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_columns([
            Column(median=0, members={0, 1}, cost=1.0),
            Column(median=2, members={2, 3}, cost=1.0),
        ])
        master.fix_column(1)

        assert master.solve_lp().is_infeasible

    def test_model_stats(self, two_pairs_instance):
        master = HiGHSMasterProblem(two_pairs_instance)
        master.add_column(Column(median=0, members={0, 1}, cost=1.0))

        stats = master.get_model_stats()

        assert stats['num_columns'] == 1
        assert stats['num_artificial'] == 4
        assert stats['num_rows'] == 9
        assert stats['num_nonzeros'] == 4 + 4
