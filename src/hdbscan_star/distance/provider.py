"""Pairwise distance provisioning with optional dense/sparse caching."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Literal, Sequence

import numpy as np
from joblib import Parallel, cpu_count, delayed

from .metrics import DistanceConfigurationError, VectorMetric, get_metric, most_common_value


logger = logging.getLogger(__name__)

CacheMode = Literal["none", "dense", "sparse"]
PairDistance = Callable[[int, int], float]


def resolve_worker_count(max_workers: int) -> int:
    """Translate ``max_workers`` into a concrete pool size (``0`` = all cores)."""

    if max_workers < 0:
        raise DistanceConfigurationError("max_workers must be zero (all cores) or positive")
    if max_workers == 0:
        return max(1, cpu_count())
    return max_workers


class DistanceProvider:
    """Expose ``distance(i, j)`` for a fixed index space ``[0, num_points)``.

    Use one of the ``from_*`` constructors. Cached modes compute every
    ``(i, j)`` pair with ``i < j`` exactly once, optionally on a thread pool
    where each worker owns a disjoint set of rows of the upper triangle.
    """

    def __init__(
        self,
        num_points: int,
        pair_distance: PairDistance,
        *,
        mode: CacheMode = "dense",
        default_value: float | None = None,
        max_workers: int = 1,
    ) -> None:
        if num_points < 0:
            raise DistanceConfigurationError("num_points cannot be negative")
        if mode == "sparse" and default_value is None:
            raise DistanceConfigurationError(
                "Sparse distance caching requires a metric that declares a most common value"
            )
        if mode not in ("none", "dense", "sparse"):
            raise DistanceConfigurationError(f"Unsupported distance cache mode '{mode}'")

        self.num_points = num_points
        self.mode: CacheMode = mode
        self.default_value = default_value
        self.workers = resolve_worker_count(max_workers)
        self._pair_distance = pair_distance
        self._matrix: np.ndarray | None = None
        self._sparse: Dict[int, float] | None = None

        if mode == "dense":
            self._matrix = self._precompute_dense()
        elif mode == "sparse":
            self._sparse = self._precompute_sparse()

    @classmethod
    def from_data(
        cls,
        data: Sequence[object],
        metric: str | VectorMetric = "euclidean",
        *,
        cache: bool = True,
        sparse: bool | None = None,
        max_workers: int = 1,
    ) -> "DistanceProvider":
        """Build a provider over raw attribute vectors using a vector metric."""

        resolved = get_metric(metric)
        points = data

        def metric_distance(i: int, j: int) -> float:
            return float(resolved(points[i], points[j]))

        # Metrics with per-point state bind it by index rather than by object.
        indexed = getattr(resolved, "indexed", None)
        pair_distance = indexed(points) if indexed is not None else metric_distance

        return cls(
            len(points),
            pair_distance,
            mode=_select_mode(cache, sparse, resolved),
            default_value=most_common_value(resolved),
            max_workers=max_workers,
        )

    @classmethod
    def from_function(
        cls,
        num_points: int,
        pair_distance: PairDistance,
        *,
        cache: bool = True,
        sparse: bool | None = None,
        most_common: float | None = None,
        max_workers: int = 1,
    ) -> "DistanceProvider":
        """Build a provider over an index-based ``pair_distance(i, j)`` callable."""

        default_value = most_common if most_common is not None else most_common_value(pair_distance)
        capability = _DeclaredDefault(default_value)
        return cls(
            num_points,
            pair_distance,
            mode=_select_mode(cache, sparse, capability),
            default_value=default_value,
            max_workers=max_workers,
        )

    @classmethod
    def from_matrix(cls, matrix: object) -> "DistanceProvider":
        """Wrap a precomputed square distance matrix without recomputing it."""

        array = np.asarray(matrix, dtype=float)
        if array.size == 0:
            array = array.reshape(0, 0)
        if array.ndim != 2 or array.shape[0] != array.shape[1]:
            raise DistanceConfigurationError(
                f"Precomputed distances must form a square matrix; received shape {array.shape}"
            )
        provider = cls.__new__(cls)
        provider.num_points = int(array.shape[0])
        provider.mode = "dense"
        provider.default_value = None
        provider.workers = 1
        provider._pair_distance = lambda i, j: float(array[i, j])
        provider._matrix = array
        provider._sparse = None
        return provider

    def __call__(self, i: int, j: int) -> float:
        return self.distance(i, j)

    def distance(self, i: int, j: int) -> float:
        if self._matrix is not None:
            return float(self._matrix[i, j])
        if i == j:
            return 0.0
        if self._sparse is not None:
            if i > j:
                i, j = j, i
            return self._sparse.get(i * self.num_points + j, self.default_value)
        return float(self._pair_distance(i, j))

    @property
    def stored_values(self) -> int:
        """Number of cached distances held (``0`` when caching is disabled)."""

        if self._matrix is not None:
            return int(self._matrix.size)
        if self._sparse is not None:
            return len(self._sparse)
        return 0

    def _precompute_dense(self) -> np.ndarray:
        matrix = np.zeros((self.num_points, self.num_points), dtype=float)
        if self.workers == 1:
            _fill_dense_rows(self._pair_distance, matrix, self.num_points, 0, 1)
        else:
            Parallel(n_jobs=self.workers, prefer="threads")(
                delayed(_fill_dense_rows)(self._pair_distance, matrix, self.num_points, worker, self.workers)
                for worker in range(self.workers)
            )
        logger.debug(
            f"Precomputed dense distance matrix for {self.num_points} points using {self.workers} worker(s)"
        )
        return matrix

    def _precompute_sparse(self) -> Dict[int, float]:
        default_value = float(self.default_value)  # type: ignore[arg-type]
        if self.workers == 1:
            partials = [_sparse_rows(self._pair_distance, self.num_points, default_value, 0, 1)]
        else:
            partials = Parallel(n_jobs=self.workers, prefer="threads")(
                delayed(_sparse_rows)(self._pair_distance, self.num_points, default_value, worker, self.workers)
                for worker in range(self.workers)
            )

        merged: Dict[int, float] = {}
        for partial in partials:
            merged.update(partial)
        logger.debug(
            f"Precomputed sparse distances for {self.num_points} points: "
            f"{len(merged)} values differ from {default_value}"
        )
        return merged


class _DeclaredDefault:
    __slots__ = ("most_common_value",)

    def __init__(self, value: float | None) -> None:
        self.most_common_value = value


def _select_mode(cache: bool, sparse: bool | None, metric: object) -> CacheMode:
    declared = most_common_value(metric)
    if sparse and declared is None:
        raise DistanceConfigurationError(
            "Sparse distance caching requires a metric that declares a most common value"
        )
    if not cache:
        return "none"
    if sparse is None:
        return "sparse" if declared is not None else "dense"
    return "sparse" if sparse else "dense"


def _worker_rows(num_points: int, worker: int, workers: int) -> range:
    return range(worker, num_points, workers)


def _fill_dense_rows(
    pair_distance: PairDistance,
    matrix: np.ndarray,
    num_points: int,
    worker: int,
    workers: int,
) -> None:
    for i in _worker_rows(num_points, worker, workers):
        for j in range(i + 1, num_points):
            value = pair_distance(i, j)
            matrix[i, j] = value
            matrix[j, i] = value


def _sparse_rows(
    pair_distance: PairDistance,
    num_points: int,
    default_value: float,
    worker: int,
    workers: int,
) -> Dict[int, float]:
    local: Dict[int, float] = {}
    for i in _worker_rows(num_points, worker, workers):
        for j in range(i + 1, num_points):
            value = pair_distance(i, j)
            if value != default_value:
                local[i * num_points + j] = value
    return local


__all__ = ["CacheMode", "DistanceProvider", "PairDistance", "resolve_worker_count"]
