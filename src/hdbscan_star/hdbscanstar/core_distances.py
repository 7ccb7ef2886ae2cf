"""Core distance computation (distance to the k-th nearest neighbour)."""

from __future__ import annotations

import logging
import sys
from typing import Callable

import numpy as np


logger = logging.getLogger(__name__)

UNSET_DISTANCE = sys.float_info.max
"""Placeholder for distances that have not been observed yet."""


def calculate_core_distances(
    distance: Callable[[int, int], float],
    num_points: int,
    k: int,
) -> np.ndarray:
    """Return each point's distance to its ``k``-th nearest neighbour.

    The point itself counts as its first neighbour, so only ``k - 1`` other
    distances are tracked. ``k == 1`` therefore yields all zeros.
    """

    if k < 1:
        raise ValueError("k (min_points) must be at least 1")

    core_distances = np.zeros(num_points, dtype=float)
    if k == 1:
        return core_distances

    num_neighbors = k - 1
    for point in range(num_points):
        nearest = [UNSET_DISTANCE] * num_neighbors
        for neighbor in range(num_points):
            if neighbor == point:
                continue
            value = distance(point, neighbor)

            position = num_neighbors
            while position >= 1 and value < nearest[position - 1]:
                position -= 1
            if position < num_neighbors:
                nearest.insert(position, value)
                nearest.pop()

        core_distances[point] = nearest[-1]

    logger.debug(f"Computed core distances for {num_points} points with k={k}")
    return core_distances


__all__ = ["UNSET_DISTANCE", "calculate_core_distances"]
