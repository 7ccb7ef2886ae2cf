"""Vector distance metrics consumed by :class:`DistanceProvider`."""

from __future__ import annotations

import math
from typing import Callable, Dict, Literal, Mapping, Sequence

import numpy as np

from ..errors import HdbscanConfigurationError


MetricName = Literal[
    "euclidean",
    "manhattan",
    "supremum",
    "cosine",
    "pearson",
    "sparse-cosine",
]

VectorMetric = Callable[[object, object], float]


class DistanceConfigurationError(HdbscanConfigurationError):
    """Raised when a distance source or metric is misconfigured."""


def _as_vector(values: object) -> np.ndarray:
    return np.asarray(values, dtype=float)


class EuclideanDistance:
    """``d = sqrt((x1-y1)^2 + (x2-y2)^2 + ... + (xn-yn)^2)``."""

    most_common_value = None

    def __call__(self, first: object, second: object) -> float:
        difference = _as_vector(first) - _as_vector(second)
        return float(math.sqrt(float(np.dot(difference, difference))))


class ManhattanDistance:
    """``d = |x1-y1| + |x2-y2| + ... + |xn-yn|``."""

    most_common_value = None

    def __call__(self, first: object, second: object) -> float:
        return float(np.abs(_as_vector(first) - _as_vector(second)).sum())


class SupremumDistance:
    """``d = max(|x1-y1|, |x2-y2|, ..., |xn-yn|)``."""

    most_common_value = None

    def __call__(self, first: object, second: object) -> float:
        difference = np.abs(_as_vector(first) - _as_vector(second))
        if difference.size == 0:
            return 0.0
        return float(difference.max())


class CosineSimilarity:
    """Cosine distance ``d = 1 - (X.Y) / (||X|| ||Y||)``, clamped at zero."""

    most_common_value = None

    def __call__(self, first: object, second: object) -> float:
        a = _as_vector(first)
        b = _as_vector(second)
        denominator = math.sqrt(float(np.dot(a, a)) * float(np.dot(b, b)))
        if denominator == 0.0:
            return 1.0
        return max(0.0, 1.0 - float(np.dot(a, b)) / denominator)


class PearsonCorrelation:
    """Correlation distance ``d = 1 - cov(X,Y) / (sd(X) sd(Y))``, clamped at zero."""

    most_common_value = None

    def __call__(self, first: object, second: object) -> float:
        a = _as_vector(first)
        b = _as_vector(second)
        centred_a = a - a.mean()
        centred_b = b - b.mean()
        covariance = float(np.dot(centred_a, centred_b))
        denominator = math.sqrt(float(np.dot(centred_a, centred_a)) * float(np.dot(centred_b, centred_b)))
        if denominator == 0.0:
            return 1.0
        return max(0.0, 1.0 - covariance / denominator)


class SparseCosineSimilarity:
    """Cosine distance over sparse ``{attribute_index: value}`` vectors.

    Two vectors with disjoint support are at distance ``1``, which is by far the
    most frequent value in sparse corpora, so the metric advertises it as
    ``most_common_value`` and the provider only stores deviations from it.
    """

    most_common_value = 1.0

    def __call__(self, first: Mapping[int, float], second: Mapping[int, float]) -> float:
        return self._distance(first, second, _squared_magnitude(first), _squared_magnitude(second))

    def indexed(self, points: Sequence[Mapping[int, float]]) -> Callable[[int, int], float]:
        """Return ``distance(i, j)`` over ``points`` with magnitudes computed once per index."""

        magnitudes = [_squared_magnitude(points[index]) for index in range(len(points))]

        def pair_distance(i: int, j: int) -> float:
            return self._distance(points[i], points[j], magnitudes[i], magnitudes[j])

        return pair_distance

    @staticmethod
    def _distance(
        first: Mapping[int, float],
        second: Mapping[int, float],
        magnitude_first: float,
        magnitude_second: float,
    ) -> float:
        if magnitude_first == 0.0 and magnitude_second == 0.0:
            return 1.0

        smaller, larger = (first, second) if len(first) < len(second) else (second, first)
        dot_product = 0.0
        for key, value in smaller.items():
            other = larger.get(key)
            if other is not None:
                dot_product += float(value) * float(other)

        denominator = math.sqrt(magnitude_first * magnitude_second)
        if denominator == 0.0:
            return 1.0
        return max(0.0, 1.0 - dot_product / denominator)


def _squared_magnitude(vector: Mapping[int, float]) -> float:
    return sum(float(value) * float(value) for value in vector.values())


_METRICS: Dict[str, Callable[[], VectorMetric]] = {
    "euclidean": EuclideanDistance,
    "manhattan": ManhattanDistance,
    "supremum": SupremumDistance,
    "cosine": CosineSimilarity,
    "pearson": PearsonCorrelation,
    "sparse-cosine": SparseCosineSimilarity,
}

METRIC_NAMES = tuple(_METRICS)


def get_metric(metric: str | VectorMetric) -> VectorMetric:
    """Resolve ``metric`` to a callable, instantiating named metrics."""

    if callable(metric):
        return metric
    factory = _METRICS.get(str(metric).lower())
    if factory is None:
        raise DistanceConfigurationError(
            f"Unsupported distance metric '{metric}'. Expected one of: {', '.join(METRIC_NAMES)}"
        )
    return factory()


def most_common_value(metric: object) -> float | None:
    """Return the metric's declared most common distance, if it has one."""

    value = getattr(metric, "most_common_value", None)
    if value is None:
        return None
    return float(value)


__all__ = [
    "METRIC_NAMES",
    "CosineSimilarity",
    "DistanceConfigurationError",
    "EuclideanDistance",
    "ManhattanDistance",
    "MetricName",
    "PearsonCorrelation",
    "SparseCosineSimilarity",
    "SupremumDistance",
    "VectorMetric",
    "get_metric",
    "most_common_value",
]
