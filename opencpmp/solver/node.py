"""
Search tree node of the branch-and-price.

A node owns the semiassignment constraint created for it by its parent's
branching decision (None at the root) and the node-local bound changes,
i.e. the master columns fixed to zero while the node is on the active
path. The driver re-applies these when it enters the node and releases
them when it leaves.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple

from opencpmp.branching.constraint import SemiassignConstraint


class NodeStatus(Enum):
    """
    Processing status of a node.
    """
    OPEN = auto()        # Created, LP not solved yet
    BRANCHED = auto()    # Split into two children
    INTEGRAL = auto()    # LP solution integral
    INFEASIBLE = auto()  # No feasible column combination
    PRUNED = auto()      # LP bound not better than the incumbent


@dataclass(eq=False)
class BPNode:
    """
    A node in the branch-and-price search tree.

    Attributes:
        node_id: Unique node ID (root = 0)
        parent: Parent node (None for root)
        depth: Depth in search tree (root = 0)
        path: Branch directions from the root ('l'/'r')
        constraint: Restriction added by the parent's branching decision
        estimate: Lower bound inherited from the parent
        lp_bound: LP relaxation value at this node
        fixed_columns: Columns fixed to zero while this node is active
        status: Processing status
        children: (left, right) once the node is branched
    """
    node_id: int
    parent: Optional['BPNode'] = None
    depth: int = 0
    path: str = ''
    constraint: Optional[SemiassignConstraint] = None
    estimate: float = float('-inf')
    lp_bound: Optional[float] = None
    fixed_columns: List[int] = field(default_factory=list)
    status: NodeStatus = NodeStatus.OPEN
    children: Tuple['BPNode', ...] = ()

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_open(self) -> bool:
        return self.status == NodeStatus.OPEN

    def ancestors(self) -> List['BPNode']:
        """Nodes from the root down to (excluding) this node."""
        nodes = []
        node = self.parent
        while node is not None:
            nodes.append(node)
            node = node.parent
        nodes.reverse()
        return nodes

    def create_child(
        self,
        node_id: int,
        constraint: SemiassignConstraint,
        direction: str,
    ) -> 'BPNode':
        """
        Create a child node carrying a branching constraint.

        Args:
            node_id: ID of the child
            constraint: The child's restriction
            direction: 'l' or 'r'

        Returns:
            The new child node
        """
        estimate = self.lp_bound if self.lp_bound is not None else self.estimate
        return BPNode(
            node_id=node_id,
            parent=self,
            depth=self.depth + 1,
            path=self.path + direction,
            constraint=constraint,
            estimate=estimate,
        )

    def __repr__(self) -> str:
        path_str = f"'{self.path}'" if self.path else "'root'"
        bound_str = f"{self.lp_bound:.2f}" if self.lp_bound is not None else "-"
        return (f"Node(id={self.node_id}, path={path_str}, depth={self.depth}, "
                f"status={self.status.name}, bound={bound_str})")
