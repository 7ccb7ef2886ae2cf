"""Cluster tree nodes carrying stability and constraint bookkeeping."""

from __future__ import annotations

import math
from typing import Iterable, List, Set

from ..errors import ClusterStateError
from .core_distances import UNSET_DISTANCE


def _inverse(level: float) -> float:
    if level == 0:
        return math.inf
    return 1.0 / level


class Cluster:
    """An HDBSCAN* cluster: birth level, death level, stability and constraint counts.

    ``parent`` is ``None`` only for the root. Creating a cluster marks its parent
    as having children; children themselves are not stored.
    """

    __slots__ = (
        "label",
        "parent",
        "birth_level",
        "death_level",
        "num_points",
        "stability",
        "propagated_stability",
        "num_constraints_satisfied",
        "propagated_num_constraints_satisfied",
        "propagated_lowest_child_death_level",
        "propagated_descendants",
        "has_children",
        "hierarchy_position",
        "virtual_child",
    )

    def __init__(
        self,
        label: int,
        parent: "Cluster | None",
        birth_level: float,
        num_points: int,
    ) -> None:
        self.label = label
        self.parent = parent
        self.birth_level = birth_level
        self.death_level = 0.0
        self.num_points = num_points
        self.stability = 0.0
        self.propagated_stability = 0.0
        self.num_constraints_satisfied = 0
        self.propagated_num_constraints_satisfied = 0
        self.propagated_lowest_child_death_level = UNSET_DISTANCE
        self.propagated_descendants: List[Cluster] = []
        self.has_children = False
        self.hierarchy_position = 0
        self.virtual_child: Set[int] | None = set()
        if parent is not None:
            parent.has_children = True

    def __repr__(self) -> str:
        parent_label = self.parent.label if self.parent is not None else None
        return (
            f"Cluster(label={self.label}, parent={parent_label}, birth_level={self.birth_level}, "
            f"death_level={self.death_level}, num_points={self.num_points}, stability={self.stability})"
        )

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def detach_points(self, count: int, level: float) -> None:
        """Remove ``count`` points at edge ``level``, updating stability and death."""

        self.num_points -= count
        self.stability += count * (_inverse(level) - _inverse(self.birth_level))

        if self.num_points == 0:
            self.death_level = level
        elif self.num_points < 0:
            raise ClusterStateError(f"Cluster {self.label} cannot have less than 0 points")

    def propagate(self) -> None:
        """Push this cluster (or its selected descendants) up to the parent.

        The cluster itself is selected when it is a leaf, when it satisfies more
        constraints than its descendants, or on a constraint tie when its own
        stability is at least the descendants' stability.
        """

        if self.propagated_lowest_child_death_level == UNSET_DISTANCE:
            self.propagated_lowest_child_death_level = self.death_level

        parent = self.parent
        if parent is None:
            return

        if self.propagated_lowest_child_death_level < parent.propagated_lowest_child_death_level:
            parent.propagated_lowest_child_death_level = self.propagated_lowest_child_death_level

        if not self.has_children:
            select_self = True
        elif self.num_constraints_satisfied > self.propagated_num_constraints_satisfied:
            select_self = True
        elif self.num_constraints_satisfied < self.propagated_num_constraints_satisfied:
            select_self = False
        else:
            select_self = self.stability >= self.propagated_stability

        if select_self:
            parent.propagated_num_constraints_satisfied += self.num_constraints_satisfied
            parent.propagated_stability += self.stability
            parent.propagated_descendants.append(self)
        else:
            parent.propagated_num_constraints_satisfied += self.propagated_num_constraints_satisfied
            parent.propagated_stability += self.propagated_stability
            parent.propagated_descendants.extend(self.propagated_descendants)

    def add_points_to_virtual_child(self, points: Iterable[int]) -> None:
        if self.virtual_child is None:
            self.virtual_child = set()
        self.virtual_child.update(points)

    def virtual_child_contains(self, point: int) -> bool:
        return self.virtual_child is not None and point in self.virtual_child

    def add_virtual_child_constraints_satisfied(self, count: int) -> None:
        self.propagated_num_constraints_satisfied += count

    def add_constraints_satisfied(self, count: int) -> None:
        self.num_constraints_satisfied += count

    def release_virtual_child(self) -> None:
        """Drop the noise points tracked for constraint attribution."""

        self.virtual_child = None


__all__ = ["Cluster"]
