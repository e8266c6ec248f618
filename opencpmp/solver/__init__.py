"""
Solver module - branch-and-price search driver.

This module provides the depth-first branch-and-price loop that sequences
the master problem, the cluster pricing, the semiassignment branching rule
and the activation of branching constraints.

This module provides:
- BranchAndPrice: Main algorithm controller
- BPConfig: Configuration options
- BPSolution: Solution data structure
- BPStatus: Solution status enum
- BPNode, NodeStatus: Search tree nodes
- LPEngineError: Unexpected LP engine status

Usage:
------
    >>> from opencpmp.solver import BranchAndPrice, BPConfig
    >>> bp = BranchAndPrice(instance, BPConfig(max_time=60, verbose=True))
    >>> solution = bp.solve()
    >>> if solution.is_optimal:
    ...     print(f"Optimal value: {solution.objective_value}")
    ...     print(solution.cluster_summary())
"""

from opencpmp.solver.solution import BPSolution, BPStatus
from opencpmp.solver.node import BPNode, NodeStatus
from opencpmp.solver.branch_and_price import BPConfig, BranchAndPrice, LPEngineError, solve_cpmp

__all__ = [
    # Main classes
    'BranchAndPrice',
    'BPConfig',
    'solve_cpmp',

    # Solution
    'BPSolution',
    'BPStatus',

    # Tree
    'BPNode',
    'NodeStatus',

    # Errors
    'LPEngineError',
]
