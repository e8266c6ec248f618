"""
Instance module - the immutable data of a capacitated p-median problem.

A capacitated p-median (CPMP) instance consists of:
- n locations, each with a demand and a capacity
- the number p of clusters (medians) to open
- an n x n distance matrix; distance[i][j] is the cost of serving
  location i from median j

Every location must be assigned to exactly one of the p chosen medians and
the total demand assigned to a median must not exceed its capacity.

Design Notes:
------------
- Data is validated once, at construction time; everything downstream
  (master problem, pricing, branching) trusts the instance
- Arrays are stored as read-only numpy arrays so nothing can alter the
  instance during a run
- Locations are 0-based internally and displayed 1-based
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np


def _as_readonly(values, name: str, ndim: int) -> np.ndarray:
    try:
        array = np.array(values, dtype=np.int64)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must contain integers only") from exc

    if array.ndim != ndim:
        raise ValueError(f"{name} must be {ndim}-dimensional, got shape {array.shape}")
    if np.any(array < 0):
        raise ValueError(f"{name} must be non-negative")

    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class CPMPInstance:
    """
    A capacitated p-median problem instance.

    Attributes:
        distances: n x n matrix, distances[i][j] = cost of serving i from median j
        demands: Demand of each location
        capacities: Capacity of each location when used as a median
        num_clusters: Number p of medians to choose
        name: Optional instance name

    Example:
        >>> instance = CPMPInstance(
        ...     distances=[[0, 1], [1, 0]],
        ...     demands=[1, 1],
        ...     capacities=[2, 2],
        ...     num_clusters=1,
        ... )
        >>> instance.num_locations
        2
    """
    distances: np.ndarray
    demands: np.ndarray
    capacities: np.ndarray
    num_clusters: int
    name: Optional[str] = None

    def __post_init__(self):
        distances = _as_readonly(self.distances, "distances", 2)
        demands = _as_readonly(self.demands, "demands", 1)
        capacities = _as_readonly(self.capacities, "capacities", 1)

        n = demands.shape[0]
        if n == 0:
            raise ValueError("instance must contain at least one location")
        if distances.shape != (n, n):
            raise ValueError(
                f"distance matrix must be {n}x{n}, got {distances.shape[0]}x{distances.shape[1]}"
            )
        if capacities.shape[0] != n:
            raise ValueError(
                f"capacities has {capacities.shape[0]} entries, expected {n}"
            )
        if not 1 <= int(self.num_clusters) <= n:
            raise ValueError(
                f"num_clusters must be between 1 and {n}, got {self.num_clusters}"
            )

        object.__setattr__(self, 'distances', distances)
        object.__setattr__(self, 'demands', demands)
        object.__setattr__(self, 'capacities', capacities)
        object.__setattr__(self, 'num_clusters', int(self.num_clusters))

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def num_locations(self) -> int:
        """Number of locations n."""
        return int(self.demands.shape[0])

    @property
    def locations(self) -> range:
        """All location indices."""
        return range(self.num_locations)

    @property
    def total_demand(self) -> int:
        """Sum of all demands."""
        return int(self.demands.sum())

    # =========================================================================
    # Methods
    # =========================================================================

    def distance(self, location: int, median: int) -> int:
        """Distance from a location to a median."""
        return int(self.distances[location, median])

    def cluster_cost(self, median: int, members: Iterable[int]) -> int:
        """
        Service cost of a cluster: sum of distances from its members to the median.

        Args:
            median: The median location
            members: Locations assigned to the median

        Returns:
            Total distance
        """
        return int(sum(int(self.distances[i, median]) for i in members))

    def cluster_demand(self, members: Iterable[int]) -> int:
        """Total demand of a set of locations."""
        return int(sum(int(self.demands[i]) for i in members))

    def is_feasible_cluster(self, median: int, members: Iterable[int]) -> bool:
        """Check that the members' demand fits in the median's capacity."""
        return self.cluster_demand(members) <= int(self.capacities[median])

    def summary(self) -> str:
        """
        Return the raw problem data as text.

        Returns:
            Multi-line string with sizes, distance matrix, demands and capacities
        """
        def row(values: Sequence[int]) -> str:
            return "".join(f" {int(v):4d}" for v in values)

        lines: List[str] = [
            f"nlocations  : {self.num_locations:3d}",
            f"nclusters   : {self.num_clusters:3d}",
            "",
            "distances   :",
        ]
        for i in self.locations:
            lines.append("   " + row(self.distances[i]))
        lines.extend([
            "",
            "demands     :" + row(self.demands),
            "capacities  :" + row(self.capacities),
        ])
        return "\n".join(lines)

    def __repr__(self) -> str:
        name = f"{self.name!r}, " if self.name else ""
        return (
            f"CPMPInstance({name}locations={self.num_locations}, "
            f"clusters={self.num_clusters})"
        )
