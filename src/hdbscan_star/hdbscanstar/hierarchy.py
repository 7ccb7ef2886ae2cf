"""Cluster hierarchy construction by removing MST edges from heaviest to lightest."""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Sequence, Set

import numpy as np

from ..constraints import Constraint
from .cluster import Cluster
from .graph import UndirectedGraph


logger = logging.getLogger(__name__)

NOISE_LABEL = 0
ROOT_LABEL = 1


@dataclass(slots=True)
class HierarchyResult:
    """Cluster tree plus the per-level label snapshots and noise bookkeeping.

    Attributes
    ----------
    clusters:
        Arena indexed by label; ``clusters[0]`` is ``None`` (noise) and
        ``clusters[1]`` is the root.
    hierarchy:
        Label arrays recorded at every level where the clustering changed or
        was about to change. The final entry labels every point as noise.
    point_noise_levels:
        Edge weight at which each point became noise.
    point_last_clusters:
        Label of the cluster each point belonged to right before it became noise.
    """

    clusters: List[Cluster | None]
    hierarchy: List[np.ndarray]
    point_noise_levels: np.ndarray
    point_last_clusters: np.ndarray

    @property
    def num_clusters(self) -> int:
        return len(self.clusters) - 1


def compute_hierarchy_and_cluster_tree(
    mst: UndirectedGraph,
    min_cluster_size: int,
    constraints: Sequence[Constraint] | None = None,
) -> HierarchyResult:
    """Compute the cluster tree and hierarchy snapshots from a sorted MST.

    ``mst`` must already be sorted by edge weight in descending order (see
    :meth:`UndirectedGraph.sort_by_edge_weight_descending`); its adjacency lists
    are consumed. The MST may contain self edges.
    """

    num_points = mst.num_vertices
    point_noise_levels = np.zeros(num_points, dtype=float)
    point_last_clusters = np.zeros(num_points, dtype=np.int64)
    hierarchy: List[np.ndarray] = []

    current_labels = np.full(num_points, ROOT_LABEL, dtype=np.int64)
    previous_labels = current_labels.copy()

    clusters: List[Cluster | None] = [None, Cluster(ROOT_LABEL, None, math.nan, num_points)]
    _calculate_num_constraints_satisfied({ROOT_LABEL}, clusters, constraints, current_labels)

    next_label = ROOT_LABEL + 1
    next_level_significant = True
    edge_index = 0
    num_edges = mst.num_edges

    while edge_index < num_edges:
        edge_weight = mst.edge_weight(edge_index)
        new_clusters: List[Cluster] = []
        affected_labels: Set[int] = set()
        affected_vertices: Set[int] = set()

        # Remove every edge tied at this weight before examining any cluster.
        while edge_index < num_edges and mst.edge_weight(edge_index) == edge_weight:
            first_vertex, second_vertex, _ = mst.edge(edge_index)
            mst.remove_edge(first_vertex, second_vertex)
            edge_index += 1

            if current_labels[first_vertex] == NOISE_LABEL:
                continue
            affected_vertices.add(first_vertex)
            affected_vertices.add(second_vertex)
            affected_labels.add(int(current_labels[first_vertex]))

        if not affected_labels:
            continue

        for examined_label in sorted(affected_labels, reverse=True):
            examined_vertices = {vertex for vertex in affected_vertices if current_labels[vertex] == examined_label}
            affected_vertices -= examined_vertices
            parent = clusters[examined_label]
            next_label = _split_cluster(
                mst,
                parent,
                examined_vertices,
                min_cluster_size,
                edge_weight,
                next_label,
                current_labels,
                clusters,
                new_clusters,
                point_noise_levels,
                point_last_clusters,
                track_noise=constraints is not None,
            )

        if next_level_significant or new_clusters:
            hierarchy.append(previous_labels.copy())

        hierarchy_position = len(hierarchy)
        new_labels = set()
        for cluster in new_clusters:
            cluster.hierarchy_position = hierarchy_position
            new_labels.add(cluster.label)

        if new_labels:
            _calculate_num_constraints_satisfied(new_labels, clusters, constraints, current_labels)

        previous_labels[:] = current_labels
        next_level_significant = bool(new_clusters)

    hierarchy.append(np.zeros(num_points, dtype=np.int64))

    logger.debug(
        f"Built cluster tree with {len(clusters) - 1} clusters and {len(hierarchy)} hierarchy levels"
    )
    return HierarchyResult(
        clusters=clusters,
        hierarchy=hierarchy,
        point_noise_levels=point_noise_levels,
        point_last_clusters=point_last_clusters,
    )


def _split_cluster(
    mst: UndirectedGraph,
    parent: Cluster,
    examined_vertices: Set[int],
    min_cluster_size: int,
    edge_weight: float,
    next_label: int,
    current_labels: np.ndarray,
    clusters: List[Cluster | None],
    new_clusters: List[Cluster],
    point_noise_levels: np.ndarray,
    point_last_clusters: np.ndarray,
    *,
    track_noise: bool = False,
) -> int:
    """Explore the components around ``examined_vertices`` and split ``parent``.

    The first valid component (at least ``min_cluster_size`` points and at least
    one remaining edge) is only explored until it is known to be valid; it is
    finished later only if a second valid component shows up. Invalid components
    become noise. Returns the next free cluster label.
    """

    examined_label = parent.label
    first_child: Set[int] | None = None
    first_child_queue: Deque[int] | None = None
    num_child_clusters = 0

    candidates = sorted(examined_vertices)
    while examined_vertices:
        root_vertex = candidates.pop()
        if root_vertex not in examined_vertices:
            continue

        component = {root_vertex}
        queue: Deque[int] = deque([root_vertex])
        examined_vertices.discard(root_vertex)
        any_edges = False
        counted = False

        while queue:
            vertex = queue.popleft()
            for neighbor in mst.neighbors(vertex):
                any_edges = True
                if neighbor not in component:
                    component.add(neighbor)
                    queue.append(neighbor)
                    examined_vertices.discard(neighbor)

            if not counted and len(component) >= min_cluster_size and any_edges:
                counted = True
                num_child_clusters += 1
                if first_child is None:
                    first_child = component
                    first_child_queue = queue
                    break

        valid = len(component) >= min_cluster_size and any_edges
        if num_child_clusters >= 2 and valid:
            if max(first_child) in component:  # type: ignore[arg-type]
                # Re-explored the partially explored first child.
                num_child_clusters -= 1
            else:
                new_cluster = _create_new_cluster(component, current_labels, parent, next_label, edge_weight)
                clusters.append(new_cluster)
                new_clusters.append(new_cluster)  # type: ignore[arg-type]
                next_label += 1
        elif not valid:
            _create_new_cluster(component, current_labels, parent, 0, edge_weight, track_noise)
            for point in component:
                point_noise_levels[point] = edge_weight
                point_last_clusters[point] = examined_label

    if (
        num_child_clusters >= 2
        and first_child is not None
        and current_labels[min(first_child)] == examined_label
    ):
        while first_child_queue:  # type: ignore[union-attr]
            vertex = first_child_queue.popleft()
            for neighbor in mst.neighbors(vertex):
                if neighbor not in first_child:
                    first_child.add(neighbor)
                    first_child_queue.append(neighbor)
        new_cluster = _create_new_cluster(first_child, current_labels, parent, next_label, edge_weight)
        clusters.append(new_cluster)
        new_clusters.append(new_cluster)  # type: ignore[arg-type]
        next_label += 1

    return next_label


def _create_new_cluster(
    points: Set[int],
    cluster_labels: np.ndarray,
    parent: Cluster,
    cluster_label: int,
    edge_weight: float,
    track_noise: bool = False,
) -> Cluster | None:
    """Move ``points`` out of ``parent`` into a new cluster, or into noise for label 0."""

    cluster_labels[list(points)] = cluster_label
    parent.detach_points(len(points), edge_weight)

    if cluster_label != 0:
        return Cluster(cluster_label, parent, edge_weight, len(points))

    # Noise points are only tracked for cannot-link attribution.
    if track_noise:
        parent.add_points_to_virtual_child(points)
    return None


def _calculate_num_constraints_satisfied(
    new_cluster_labels: Set[int],
    clusters: List[Cluster | None],
    constraints: Sequence[Constraint] | None,
    cluster_labels: np.ndarray,
) -> None:
    """Credit the new clusters, and their parents' virtual children, with satisfied constraints."""

    if constraints is None:
        return

    parents: List[Cluster] = []
    for label in sorted(new_cluster_labels):
        parent = clusters[label].parent  # type: ignore[union-attr]
        if parent is not None and parent not in parents:
            parents.append(parent)

    for constraint in constraints:
        label_a = int(cluster_labels[constraint.point_a])
        label_b = int(cluster_labels[constraint.point_b])

        if constraint.is_must_link and label_a == label_b:
            if label_a in new_cluster_labels:
                clusters[label_a].add_constraints_satisfied(2)  # type: ignore[union-attr]
        elif constraint.is_cannot_link and (label_a != label_b or label_a == NOISE_LABEL):
            if label_a != NOISE_LABEL and label_a in new_cluster_labels:
                clusters[label_a].add_constraints_satisfied(1)  # type: ignore[union-attr]
            if label_b != NOISE_LABEL and label_b in new_cluster_labels:
                clusters[label_b].add_constraints_satisfied(1)  # type: ignore[union-attr]
            if label_a == NOISE_LABEL:
                _credit_virtual_child(parents, constraint.point_a)
            if label_b == NOISE_LABEL:
                _credit_virtual_child(parents, constraint.point_b)

    for parent in parents:
        parent.release_virtual_child()


def _credit_virtual_child(parents: Sequence[Cluster], point: int) -> None:
    for parent in parents:
        if parent.virtual_child_contains(point):
            parent.add_virtual_child_constraints_satisfied(1)
            return


__all__ = ["NOISE_LABEL", "ROOT_LABEL", "HierarchyResult", "compute_hierarchy_and_cluster_tree"]
