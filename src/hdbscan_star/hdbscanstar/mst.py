"""Mutual reachability minimum spanning tree construction (Prim's algorithm)."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import numpy as np

from .core_distances import UNSET_DISTANCE
from .graph import UndirectedGraph


logger = logging.getLogger(__name__)


def mutual_reachability(distance: float, core_one: float, core_two: float) -> float:
    return max(distance, core_one, core_two)


def construct_mst(
    distance: Callable[[int, int], float],
    num_points: int,
    core_distances: Sequence[float],
    self_edges: bool = True,
) -> UndirectedGraph:
    """Build the MST of mutual reachability distances.

    The tree grows from the last point. Each iteration refreshes every
    unattached point's best distance using the most recently attached point and
    attaches the closest one; ties go to the highest index scanned. With
    ``self_edges`` every point also receives an edge to itself weighted by its
    core distance (so the result is not a true MST).
    """

    if num_points == 0:
        return UndirectedGraph(0, [], [], [])

    cores = [float(value) for value in core_distances]
    attached = np.zeros(num_points, dtype=bool)
    nearest_neighbors = [0] * (num_points - 1)
    nearest_distances = [UNSET_DISTANCE] * num_points

    current_point = num_points - 1
    attached[current_point] = True
    num_attached = 1

    while num_attached < num_points:
        nearest_point = -1
        nearest_distance = UNSET_DISTANCE

        for neighbor in range(num_points):
            if neighbor == current_point or attached[neighbor]:
                continue

            reachability = mutual_reachability(
                distance(current_point, neighbor),
                cores[current_point],
                cores[neighbor],
            )
            if reachability < nearest_distances[neighbor]:
                nearest_distances[neighbor] = reachability
                nearest_neighbors[neighbor] = current_point

            if nearest_distances[neighbor] <= nearest_distance:
                nearest_distance = nearest_distances[neighbor]
                nearest_point = neighbor

        attached[nearest_point] = True
        num_attached += 1
        current_point = nearest_point

    vertices_a = list(nearest_neighbors)
    vertices_b = list(range(num_points - 1))
    weights = nearest_distances[: num_points - 1]

    if self_edges:
        vertices_a.extend(range(num_points))
        vertices_b.extend(range(num_points))
        weights = weights + cores

    graph = UndirectedGraph(num_points, vertices_a, vertices_b, weights)
    logger.debug(
        f"Constructed MST over {num_points} points with {graph.num_edges} edges "
        f"(self edges: {self_edges})"
    )
    return graph


__all__ = ["construct_mst", "mutual_reachability"]
