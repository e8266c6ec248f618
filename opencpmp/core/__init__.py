"""
Core module - fundamental data structures of the p-median branch-and-price.

Components:
----------
- CPMPInstance: Immutable instance data (distances, demands, capacities, p)
- Column: A cluster variable (median + members)
- ColumnPool: Ordered storage of all columns of a run
- AssignmentRestrictions: (median, location) pairs forbidden by branching
"""

from opencpmp.core.column import Column, ColumnPool
from opencpmp.core.instance import CPMPInstance
from opencpmp.core.restrictions import AssignmentRestrictions

__all__ = [
    # Instance data
    "CPMPInstance",
    # Solution representation
    "Column",
    "ColumnPool",
    # Branching state
    "AssignmentRestrictions",
]
