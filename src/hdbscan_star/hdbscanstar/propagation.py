"""Bottom-up propagation of stability and constraint satisfaction."""

from __future__ import annotations

import heapq
import logging
import math
from typing import List, Sequence, Set

from .cluster import Cluster


logger = logging.getLogger(__name__)


def propagate_tree(clusters: Sequence[Cluster | None]) -> bool:
    """Propagate stability, constraints and lowest death level up the tree.

    Leaves are examined first; the pending cluster with the highest label is
    always processed next, and each parent is queued once. Must run before
    :func:`find_prominent_clusters` and :func:`calculate_outlier_scores`.

    Returns ``True`` when any cluster ended up with infinite stability.
    """

    pending: List[int] = []
    queued: Set[int] = set()
    infinite_stability = False

    for cluster in clusters:
        if cluster is not None and not cluster.has_children:
            heapq.heappush(pending, -cluster.label)
            queued.add(cluster.label)

    while pending:
        current = clusters[-heapq.heappop(pending)]
        current.propagate()  # type: ignore[union-attr]

        if current.stability == math.inf:  # type: ignore[union-attr]
            infinite_stability = True

        parent = current.parent  # type: ignore[union-attr]
        if parent is not None and parent.label not in queued:
            heapq.heappush(pending, -parent.label)
            queued.add(parent.label)

    if infinite_stability:
        logger.debug("At least one cluster has infinite stability")
    return infinite_stability


__all__ = ["propagate_tree"]
