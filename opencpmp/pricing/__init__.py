"""
Pricing module - cluster generation for the p-median branch-and-price.

The pricing subproblem finds clusters (median + members) that improve the
restricted master. For each median it solves one exact 0/1 knapsack over
the locations that may be assigned to it.

This module provides:
- ClusterPricing: per-median knapsack pricing (LP duals or Farkas multipliers)
- KnapsackSolver: Abstract knapsack oracle
- DynamicProgrammingKnapsack: numpy dynamic programming oracle
- HiGHSKnapsack: MIP oracle using HiGHS
- PricingSolution, PricingStatus, PricingMode, PricingConfig
- PricingError: raised when no median could be priced

Usage:
------
    >>> from opencpmp.pricing import ClusterPricing
    >>> pricing = ClusterPricing(master, restrictions)
    >>> result = pricing.price(duals)
    >>> print(f"Found {result.num_columns} columns")
"""

from opencpmp.pricing.base import (
    PricingConfig,
    PricingError,
    PricingMode,
    PricingSolution,
    PricingStatus,
)
from opencpmp.pricing.knapsack import (
    DynamicProgrammingKnapsack,
    HiGHSKnapsack,
    KnapsackResult,
    KnapsackSolver,
    create_knapsack_solver,
)
from opencpmp.pricing.cluster_pricing import ClusterPricing

__all__ = [
    # Results and configuration
    'PricingConfig',
    'PricingError',
    'PricingMode',
    'PricingSolution',
    'PricingStatus',

    # Knapsack oracles
    'KnapsackSolver',
    'KnapsackResult',
    'DynamicProgrammingKnapsack',
    'HiGHSKnapsack',
    'create_knapsack_solver',

    # Pricing
    'ClusterPricing',
]
