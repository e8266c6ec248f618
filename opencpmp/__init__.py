"""
OpenCPMP: Branch-and-Price for the Capacitated p-Median Problem

Column generation over cluster columns (one 0/1 knapsack per median in
pricing) combined with semiassignment branching on fractional
location-to-median assignments.
"""

__version__ = "0.1.0"

# Configuration
from opencpmp.config import config, get_data_path, get_instance_path, set_data_path

# Core classes - these are the main user-facing API
from opencpmp.core.column import Column, ColumnPool
from opencpmp.core.instance import CPMPInstance
from opencpmp.core.restrictions import AssignmentRestrictions

# Master problem
from opencpmp.master import (
    HIGHS_AVAILABLE,
    HiGHSMasterProblem,
    MasterDuals,
    MasterProblem,
    MasterSolution,
    SolutionStatus,
)

# Pricing problem
from opencpmp.pricing import (
    ClusterPricing,
    DynamicProgrammingKnapsack,
    HiGHSKnapsack,
    KnapsackSolver,
    PricingConfig,
    PricingError,
    PricingSolution,
    PricingStatus,
)

# Branching
from opencpmp.branching import (
    ConstraintStateError,
    SemiassignBranching,
    SemiassignConstraint,
)

# Branch-and-price solver
from opencpmp.solver import (
    BPConfig,
    BPSolution,
    BPStatus,
    BranchAndPrice,
    solve_cpmp,
)

# Parsers
from opencpmp.parsers import CPMPParser

__all__ = [
    # Version
    "__version__",
    # Configuration
    "config",
    "get_data_path",
    "set_data_path",
    "get_instance_path",
    # Core classes
    "CPMPInstance",
    "Column",
    "ColumnPool",
    "AssignmentRestrictions",
    # Master problem
    "MasterProblem",
    "MasterSolution",
    "MasterDuals",
    "SolutionStatus",
    "HiGHSMasterProblem",
    "HIGHS_AVAILABLE",
    # Pricing problem
    "ClusterPricing",
    "PricingConfig",
    "PricingSolution",
    "PricingStatus",
    "PricingError",
    "KnapsackSolver",
    "DynamicProgrammingKnapsack",
    "HiGHSKnapsack",
    # Branching
    "SemiassignBranching",
    "SemiassignConstraint",
    "ConstraintStateError",
    # Branch-and-price solver
    "BranchAndPrice",
    "BPConfig",
    "BPSolution",
    "BPStatus",
    "solve_cpmp",
    # Parsers
    "CPMPParser",
]
