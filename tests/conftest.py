"""
Shared pytest fixtures for OpenCPMP tests.
"""

import pytest
from pathlib import Path

from opencpmp.core.column import Column
from opencpmp.core.instance import CPMPInstance
from opencpmp.master.base import MasterProblem
from opencpmp.master.solution import MasterSolution, SolutionStatus


def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")


@pytest.fixture
def data_path():
    """Path to test data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def single_location_instance():
    """One location, one cluster."""
    return CPMPInstance(
        distances=[[0]],
        demands=[3],
        capacities=[5],
        num_clusters=1,
        name="single",
    )


@pytest.fixture
def two_pairs_instance():
    """
    Four locations forming two close pairs {0,1} and {2,3}.

    Every median can serve exactly two locations, so the optimum opens one
    median per pair at total cost 2.
    """
    return CPMPInstance(
        distances=[
            [0, 1, 4, 5],
            [1, 0, 5, 4],
            [4, 5, 0, 1],
            [5, 4, 1, 0],
        ],
        demands=[1, 1, 1, 1],
        capacities=[2, 2, 2, 2],
        num_clusters=2,
        name="two_pairs",
    )


@pytest.fixture
def oversized_demand_instance():
    """Location 2 demands more than any median can serve."""
    return CPMPInstance(
        distances=[
            [0, 1, 2],
            [1, 0, 1],
            [2, 1, 0],
        ],
        demands=[1, 1, 10],
        capacities=[5, 5, 5],
        num_clusters=2,
        name="oversized",
    )


@pytest.fixture
def six_location_instance():
    """Six locations on a line, two clusters of capacity 5."""
    return CPMPInstance(
        distances=[
            [0, 2, 3, 7, 8, 9],
            [2, 0, 2, 6, 7, 8],
            [3, 2, 0, 4, 5, 6],
            [7, 6, 4, 0, 2, 3],
            [8, 7, 5, 2, 0, 2],
            [9, 8, 6, 3, 2, 0],
        ],
        demands=[2, 1, 2, 2, 1, 2],
        capacities=[5, 5, 5, 5, 5, 5],
        num_clusters=2,
        name="p6_2",
    )


# =============================================================================
# In-memory master problem
# =============================================================================


class RecordingMaster(MasterProblem):
    """
    Master problem without an LP solver.

    Keeps the column bookkeeping of MasterProblem and records upper-bound
    changes, which is all pricing and branching constraints need.
    """

    def _build_model(self) -> None:
        self.upper_bounds = {}

    def _add_column_impl(self, column: Column) -> int:
        self.upper_bounds[column.column_id] = float('inf')
        return column.column_id

    def _solve_lp_impl(self) -> MasterSolution:
        return MasterSolution(status=SolutionStatus.NOT_SOLVED)

    def _solve_farkas_impl(self) -> MasterSolution:
        return MasterSolution(status=SolutionStatus.NOT_SOLVED)

    def _set_column_upper_bound(self, column_id: int, upper: float) -> None:
        self.upper_bounds[column_id] = upper


@pytest.fixture
def make_master():
    """Factory for LP-free master problems."""
    def factory(instance):
        return RecordingMaster(instance)
    return factory
