"""Flat partition extraction from the propagated cluster tree."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from .cluster import Cluster
from .hierarchy import ROOT_LABEL


def find_prominent_clusters(
    clusters: Sequence[Cluster | None],
    hierarchy: Sequence[np.ndarray],
    num_points: int,
) -> np.ndarray:
    """Return one label per point for the clusters selected by propagation.

    Each selected cluster is read from the hierarchy snapshot in which it first
    appears. Points outside every selected cluster keep label ``0`` (noise).
    """

    labels = np.zeros(num_points, dtype=np.int64)
    if len(clusters) <= ROOT_LABEL:
        return labels

    solution = clusters[ROOT_LABEL].propagated_descendants  # type: ignore[union-attr]

    positions: Dict[int, List[int]] = {}
    for cluster in solution:
        positions.setdefault(cluster.hierarchy_position, []).append(cluster.label)

    for position in sorted(positions):
        snapshot = np.asarray(hierarchy[position])
        mask = np.isin(snapshot, positions[position])
        labels[mask] = snapshot[mask]

    return labels


def selected_labels(clusters: Sequence[Cluster | None]) -> List[int]:
    """Labels of the clusters chosen for the flat partition, ascending."""

    if len(clusters) <= ROOT_LABEL:
        return []
    return sorted(cluster.label for cluster in clusters[ROOT_LABEL].propagated_descendants)  # type: ignore[union-attr]


__all__ = ["find_prominent_clusters", "selected_labels"]
