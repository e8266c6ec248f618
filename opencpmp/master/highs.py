"""
HiGHS implementation of the master problem.

This module provides the restricted master LP of the capacitated p-median
branch-and-price, solved with HiGHS through the highspy bindings.

Farkas Pricing:
--------------
highspy does not expose a dual ray for infeasible LPs, so Farkas multipliers
are obtained from a phase-one problem. The model carries one artificial
column per coverage row (coefficient 1, upper bound 0 outside phase one).
To compute multipliers, the artificials are released with cost 1, every
cluster column gets cost 0, and the LP

    min  sum_i a_i
    s.t. coverage + a >= 1, convexity <= 1, cardinality <= p

is solved. Its optimum is positive exactly when the restricted master is
infeasible, and its row duals y satisfy y^T A_k <= 0 for every attached
column k. Any column with y^T A_k > 0 therefore reduces the infeasibility.
The original costs and bounds are restored afterwards.

Usage:
    >>> from opencpmp.master import HiGHSMasterProblem
    >>> master = HiGHSMasterProblem(instance)
    >>> solution = master.solve_lp()
    >>> if solution.is_infeasible:
    ...     farkas = master.solve_farkas()
"""

import time
from typing import Any, Dict, List, Optional

try:
    import highspy
    HIGHS_AVAILABLE = True
except ImportError:
    HIGHS_AVAILABLE = False

import numpy as np

from opencpmp.core.column import Column
from opencpmp.core.instance import CPMPInstance
from opencpmp.master.base import MasterProblem
from opencpmp.master.solution import MasterDuals, MasterSolution, SolutionStatus


# HiGHS status mapping
def _map_highs_status(status: Any) -> SolutionStatus:
    """Map HiGHS model status to our SolutionStatus."""
    if not HIGHS_AVAILABLE:
        return SolutionStatus.ERROR

    status_map = {
        highspy.HighsModelStatus.kNotset: SolutionStatus.NOT_SOLVED,
        highspy.HighsModelStatus.kLoadError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPresolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kSolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kPostsolveError: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kModelEmpty: SolutionStatus.ERROR,
        highspy.HighsModelStatus.kOptimal: SolutionStatus.OPTIMAL,
        highspy.HighsModelStatus.kInfeasible: SolutionStatus.INFEASIBLE,
        highspy.HighsModelStatus.kUnbounded: SolutionStatus.UNBOUNDED,
        highspy.HighsModelStatus.kUnboundedOrInfeasible: SolutionStatus.INF_OR_UNBOUNDED,
        highspy.HighsModelStatus.kTimeLimit: SolutionStatus.TIME_LIMIT,
        highspy.HighsModelStatus.kIterationLimit: SolutionStatus.ITERATION_LIMIT,
    }

    return status_map.get(status, SolutionStatus.ERROR)


class HiGHSMasterProblem(MasterProblem):
    """
    Restricted master LP solved with HiGHS.

    Solver column layout: the first n solver columns are the phase-one
    artificials, cluster column k sits at solver index n + k.

    Example:
        >>> master = HiGHSMasterProblem(instance)
        >>> master.add_column(Column(median=0, members={0, 1}, cost=4.0))
        >>> solution = master.solve_lp()
        >>> solution.duals.coverage
        array([...])

    Attributes:
        time_limit: Maximum solve time in seconds (None = no limit)
        verbosity: HiGHS output level (0 = silent)
    """

    def __init__(
        self,
        instance: CPMPInstance,
        time_limit: Optional[float] = None,
        verbosity: int = 0
    ):
        """
        Initialize the HiGHS master problem.

        Args:
            instance: The problem instance
            time_limit: Maximum solve time in seconds (None = no limit)
            verbosity: HiGHS output level (0 = silent)

        Raises:
            ImportError: If highspy is not installed
        """
        if not HIGHS_AVAILABLE:
            raise ImportError(
                "HiGHS is not available. Install it with: pip install highspy"
            )

        self._time_limit = time_limit
        self._verbosity = verbosity

        # HiGHS model (created in _build_model)
        self._highs: Optional[highspy.Highs] = None
        self._num_artificial = 0

        # Current upper bound of each cluster column (restored after phase one)
        self._upper_bounds: Dict[int, float] = {}

        super().__init__(instance)

    # =========================================================================
    # Abstract Method Implementations
    # =========================================================================

    def _build_model(self) -> None:
        """Build the HiGHS model: all rows, artificials, no cluster columns."""
        n = self._instance.num_locations
        p = self._instance.num_clusters

        self._highs = highspy.Highs()

        self._highs.setOptionValue('output_flag', self._verbosity > 0)
        self._highs.setOptionValue('log_to_console', self._verbosity > 0)
        # Small incremental LPs; keep the simplex basis between solves
        self._highs.setOptionValue('presolve', 'off')

        if self._time_limit is not None:
            self._highs.setOptionValue('time_limit', self._time_limit)

        self._highs.changeObjectiveSense(highspy.ObjSense.kMinimize)

        # Coverage rows: sum >= 1
        for _ in range(n):
            self._highs.addRow(1.0, highspy.kHighsInf, 0, [], [])

        # Convexity rows: at most one cluster per median
        for _ in range(n):
            self._highs.addRow(-highspy.kHighsInf, 1.0, 0, [], [])

        # Cardinality row: at most p clusters
        self._highs.addRow(-highspy.kHighsInf, float(p), 0, [], [])

        # Phase-one artificials, disabled (ub 0) outside solve_farkas
        for i in range(n):
            self._highs.addCol(0.0, 0.0, 0.0, 1, [self.coverage_row(i)], [1.0])
        self._num_artificial = n

    def _add_column_impl(self, column: Column) -> int:
        """Add a cluster column to the HiGHS model."""
        indices = self.column_rows(column)
        values = [1.0] * len(indices)

        # addCol(cost, lower, upper, num_nz, indices, values)
        self._highs.addCol(
            float(column.cost),
            0.0,
            highspy.kHighsInf,
            len(indices),
            indices,
            values
        )
        self._upper_bounds[column.column_id] = highspy.kHighsInf

        return self._highs.getNumCol() - 1

    def _solve_lp_impl(self) -> MasterSolution:
        """Solve the LP relaxation over the attached cluster columns."""
        start_time = time.time()

        self._highs.run()

        solve_time = time.time() - start_time
        status = _map_highs_status(self._highs.getModelStatus())

        solution = MasterSolution(
            status=status,
            solve_time=solve_time,
            iterations=self._highs.getInfo().simplex_iteration_count,
            num_columns=self.num_columns,
        )

        if status == SolutionStatus.OPTIMAL:
            info = self._highs.getInfo()
            solution.objective_value = info.objective_function_value

            sol = self._highs.getSolution()
            for col_id in range(self.num_columns):
                value = sol.col_value[self._solver_index(col_id)]
                if abs(value) > 1e-10:  # Only store non-zero
                    solution.column_values[col_id] = value

            solution.duals = self._extract_duals(sol.row_dual, farkas=False)

        return solution

    def _solve_farkas_impl(self) -> MasterSolution:
        """Solve the phase-one LP and return its row duals as Farkas multipliers."""
        start_time = time.time()

        self._enter_phase_one()
        try:
            self._highs.run()
            status = _map_highs_status(self._highs.getModelStatus())

            solution = MasterSolution(
                status=status,
                iterations=self._highs.getInfo().simplex_iteration_count,
                num_columns=self.num_columns,
            )

            if status == SolutionStatus.OPTIMAL:
                info = self._highs.getInfo()
                solution.objective_value = info.objective_function_value
                sol = self._highs.getSolution()
                solution.duals = self._extract_duals(sol.row_dual, farkas=True)
        finally:
            self._leave_phase_one()

        solution.solve_time = time.time() - start_time
        return solution

    def _set_column_upper_bound(self, column_id: int, upper: float) -> None:
        """Change a cluster column's upper bound."""
        if upper == float('inf'):
            upper = highspy.kHighsInf
        self._highs.changeColBounds(self._solver_index(column_id), 0.0, upper)
        self._upper_bounds[column_id] = upper

    # =========================================================================
    # HiGHS-specific Methods
    # =========================================================================

    def _solver_index(self, column_id: int) -> int:
        return self._num_artificial + column_id

    def _extract_duals(self, row_dual: List[float], farkas: bool) -> MasterDuals:
        n = self._instance.num_locations
        row_dual = np.asarray(row_dual, dtype=float)
        return MasterDuals(
            coverage=row_dual[:n].copy(),
            convexity=row_dual[n:2 * n].copy(),
            cardinality=float(row_dual[2 * n]),
            farkas=farkas,
        )

    def _enter_phase_one(self) -> None:
        for i in range(self._num_artificial):
            self._highs.changeColCost(i, 1.0)
            self._highs.changeColBounds(i, 0.0, highspy.kHighsInf)
        for col_id in range(self.num_columns):
            self._highs.changeColCost(self._solver_index(col_id), 0.0)

    def _leave_phase_one(self) -> None:
        for i in range(self._num_artificial):
            self._highs.changeColCost(i, 0.0)
            self._highs.changeColBounds(i, 0.0, 0.0)
        for column in self._pool:
            self._highs.changeColCost(
                self._solver_index(column.column_id), float(column.cost)
            )

    def get_upper_bound(self, column_id: int) -> float:
        """
        Current upper bound of a cluster column.

        Args:
            column_id: The column

        Returns:
            0.0 when fixed, infinity otherwise
        """
        self._check_column(column_id)
        upper = self._upper_bounds[column_id]
        return float('inf') if upper >= highspy.kHighsInf else upper

    def get_model_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the model.

        Returns:
            Dictionary with model statistics
        """
        return {
            'num_columns': self._highs.getNumCol() - self._num_artificial,
            'num_artificial': self._num_artificial,
            'num_rows': self._highs.getNumRow(),
            'num_nonzeros': self._highs.getNumNz(),
        }
