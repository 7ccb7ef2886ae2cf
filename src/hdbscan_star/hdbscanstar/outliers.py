"""GLOSH-style outlier scores derived from the propagated cluster tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .cluster import Cluster


@dataclass(frozen=True, slots=True, order=True)
class OutlierScore:
    """Outlier score, core distance and index of one point.

    Instances order by score, then core distance, then index.
    """

    score: float
    core_distance: float
    index: int

    def to_record(self) -> dict[str, float | int]:
        return {
            "point": self.index,
            "outlier_score": self.score,
            "core_distance": self.core_distance,
        }


def calculate_outlier_scores(
    clusters: Sequence[Cluster | None],
    point_noise_levels: Sequence[float],
    point_last_clusters: Sequence[int],
    core_distances: Sequence[float],
) -> List[OutlierScore]:
    """Score every point as ``1 - eps_max / eps`` and sort ascending.

    ``eps`` is the level at which the point became noise and ``eps_max`` the
    lowest death level propagated to the cluster it last belonged to. Points
    that became noise at level ``0`` score ``0``.
    """

    scores: List[OutlierScore] = []
    for index in range(len(point_noise_levels)):
        last_cluster = clusters[int(point_last_clusters[index])]
        epsilon = float(point_noise_levels[index])
        score = 0.0
        if epsilon != 0 and last_cluster is not None:
            epsilon_max = last_cluster.propagated_lowest_child_death_level
            score = 1.0 - (epsilon_max / epsilon)
        scores.append(OutlierScore(score, float(core_distances[index]), index))

    scores.sort()
    return scores


__all__ = ["OutlierScore", "calculate_outlier_scores"]
