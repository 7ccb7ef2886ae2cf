from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import pytest

from hdbscan_star.distance import (
    DistanceConfigurationError,
    DistanceProvider,
    SparseCosineSimilarity,
    resolve_worker_count,
)


POINTS = [[0.0, 0.0], [3.0, 4.0], [6.0, 8.0], [1.0, 1.0], [10.0, 0.0]]


def test_dense_provider_is_symmetric_with_zero_diagonal() -> None:
    provider = DistanceProvider.from_data(POINTS, "euclidean")

    assert provider.mode == "dense"
    assert provider.num_points == 5
    assert provider.distance(0, 1) == pytest.approx(5.0)
    for i in range(5):
        assert provider.distance(i, i) == 0.0
        for j in range(5):
            assert provider.distance(i, j) == provider.distance(j, i)
    assert provider(1, 2) == pytest.approx(5.0)


def test_uncached_provider_matches_dense_provider() -> None:
    dense = DistanceProvider.from_data(POINTS, "manhattan")
    lazy = DistanceProvider.from_data(POINTS, "manhattan", cache=False)

    assert lazy.mode == "none"
    assert lazy.stored_values == 0
    for i in range(5):
        for j in range(5):
            assert lazy.distance(i, j) == pytest.approx(dense.distance(i, j))


def test_parallel_precomputation_matches_sequential() -> None:
    rng = np.random.default_rng(7)
    data = rng.normal(size=(23, 3))

    sequential = DistanceProvider.from_data(data, "euclidean", max_workers=1)
    threaded = DistanceProvider.from_data(data, "euclidean", max_workers=4)

    assert threaded.workers == 4
    for i in range(23):
        for j in range(23):
            assert threaded.distance(i, j) == sequential.distance(i, j)


def test_sparse_provider_stores_only_uncommon_values() -> None:
    vectors = [{0: 1.0}, {0: 2.0}, {1: 1.0}]

    provider = DistanceProvider.from_data(vectors, "sparse-cosine")

    assert provider.mode == "sparse"
    assert provider.default_value == 1.0
    assert provider.stored_values == 1
    assert provider.distance(0, 1) == pytest.approx(0.0)
    assert provider.distance(1, 0) == pytest.approx(0.0)
    assert provider.distance(0, 2) == 1.0
    assert provider.distance(2, 2) == 0.0


def test_sparse_threaded_precomputation_merges_partials() -> None:
    vectors = [{index % 3: 1.0, 5: float(index)} for index in range(12)]

    sequential = DistanceProvider.from_data(vectors, "sparse-cosine", max_workers=1)
    threaded = DistanceProvider.from_data(vectors, "sparse-cosine", max_workers=3)

    assert threaded.stored_values == sequential.stored_values
    for i in range(12):
        for j in range(12):
            assert threaded.distance(i, j) == pytest.approx(sequential.distance(i, j))


def test_sparse_mode_requires_declared_common_value() -> None:
    with pytest.raises(DistanceConfigurationError):
        DistanceProvider.from_data(POINTS, "euclidean", sparse=True)

    with pytest.raises(DistanceConfigurationError):
        DistanceProvider.from_data(POINTS, "euclidean", cache=False, sparse=True)


def test_sparse_metric_can_be_cached_densely() -> None:
    provider = DistanceProvider.from_data([{0: 1.0}, {1: 1.0}], "sparse-cosine", sparse=False)

    assert provider.mode == "dense"
    assert provider.distance(0, 1) == 1.0


def test_from_function_with_declared_common_value() -> None:
    calls: list[tuple[int, int]] = []

    def pair_distance(i: int, j: int) -> float:
        calls.append((i, j))
        return 0.5 if (i + j) % 2 else 2.0

    provider = DistanceProvider.from_function(4, pair_distance, most_common=2.0)

    assert provider.mode == "sparse"
    assert sorted(calls) == [(0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)]
    assert provider.distance(3, 0) == 0.5
    assert provider.distance(0, 2) == 2.0


def test_from_matrix_wraps_precomputed_distances() -> None:
    matrix = np.array([[0.0, 1.0, 2.0], [1.0, 0.0, 3.0], [2.0, 3.0, 0.0]])

    provider = DistanceProvider.from_matrix(matrix)

    assert provider.num_points == 3
    assert provider.distance(1, 2) == 3.0
    assert provider.stored_values == 9

    with pytest.raises(DistanceConfigurationError):
        DistanceProvider.from_matrix(np.zeros((2, 3)))


def test_resolve_worker_count() -> None:
    assert resolve_worker_count(3) == 3
    assert resolve_worker_count(0) >= 1
    with pytest.raises(DistanceConfigurationError):
        resolve_worker_count(-1)


class _FreshMappings(Sequence):
    """Builds a new mapping on every access, like a lazily decoded corpus."""

    def __init__(self, rows):
        self._rows = rows

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index):
        return dict(self._rows[index])


def test_sparse_cosine_instance_is_reusable_across_datasets() -> None:
    metric = SparseCosineSimilarity()
    first = DistanceProvider.from_data([{0: 3.0, 1: 4.0}, {0: 3.0}, {2: 5.0}], metric, cache=False)
    assert first.distance(0, 1) == pytest.approx(0.4)

    rows = [{0: 1.0}, {0: 1.0}, {1: 1.0}, {1: 1.0}]
    for data in (rows, _FreshMappings(rows)):
        provider = DistanceProvider.from_data(data, metric, cache=False)
        assert [provider.distance(0, j) for j in range(4)] == pytest.approx([0.0, 0.0, 1.0, 1.0])
        assert provider.distance(2, 3) == pytest.approx(0.0)

        cached = DistanceProvider.from_data(data, metric)
        assert cached.mode == "sparse"
        assert cached.distance(0, 1) == pytest.approx(0.0)


def test_empty_precomputed_matrix_has_no_points() -> None:
    assert DistanceProvider.from_matrix([]).num_points == 0
    assert DistanceProvider.from_matrix(np.zeros((0, 0))).num_points == 0
