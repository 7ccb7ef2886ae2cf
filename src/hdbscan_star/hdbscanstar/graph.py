"""Weighted undirected graph used to hold the mutual reachability MST."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np


class UndirectedGraph:
    """An undirected graph with one weight per edge; vertices are 0-indexed.

    For an index ``i``, ``vertices_a[i]`` and ``vertices_b[i]`` share an edge of
    weight ``edge_weights[i]``. Adjacency lists are built once, in edge order,
    and are only ever shrunk by :meth:`remove_edge`.
    """

    def __init__(
        self,
        num_vertices: int,
        vertices_a: Sequence[int],
        vertices_b: Sequence[int],
        edge_weights: Sequence[float],
    ) -> None:
        if not (len(vertices_a) == len(vertices_b) == len(edge_weights)):
            raise ValueError("Edge arrays must have equal lengths")

        self.num_vertices = num_vertices
        self.vertices_a = np.asarray(vertices_a, dtype=np.int64)
        self.vertices_b = np.asarray(vertices_b, dtype=np.int64)
        self.edge_weights = np.asarray(edge_weights, dtype=float)
        self._edges: List[List[int]] = [[] for _ in range(num_vertices)]

        for vertex_one, vertex_two in zip(self.vertices_a.tolist(), self.vertices_b.tolist()):
            self._edges[vertex_one].append(vertex_two)
            if vertex_one != vertex_two:
                self._edges[vertex_two].append(vertex_one)

    @property
    def num_edges(self) -> int:
        return int(self.edge_weights.shape[0])

    def edge(self, index: int) -> Tuple[int, int, float]:
        return (
            int(self.vertices_a[index]),
            int(self.vertices_b[index]),
            float(self.edge_weights[index]),
        )

    def edge_weight(self, index: int) -> float:
        return float(self.edge_weights[index])

    def neighbors(self, vertex: int) -> List[int]:
        return self._edges[vertex]

    def remove_edge(self, vertex_one: int, vertex_two: int) -> None:
        """Drop the edge from both adjacency lists (once for self edges)."""

        self._edges[vertex_one].remove(vertex_two)
        if vertex_one != vertex_two:
            self._edges[vertex_two].remove(vertex_one)

    def total_weight(self) -> float:
        return float(self.edge_weights.sum())

    def count_self_edges(self) -> int:
        return int(np.count_nonzero(self.vertices_a == self.vertices_b))

    def sort_by_edge_weight_descending(self) -> None:
        """Reorder the edge arrays by weight, heaviest first (stable for ties)."""

        order = np.argsort(-self.edge_weights, kind="stable")
        self.vertices_a = self.vertices_a[order]
        self.vertices_b = self.vertices_b[order]
        self.edge_weights = self.edge_weights[order]


__all__ = ["UndirectedGraph"]
