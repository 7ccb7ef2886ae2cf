"""Distance metrics and cached pairwise distance providers."""

from .metrics import (
    METRIC_NAMES,
    CosineSimilarity,
    DistanceConfigurationError,
    EuclideanDistance,
    ManhattanDistance,
    PearsonCorrelation,
    SparseCosineSimilarity,
    SupremumDistance,
    VectorMetric,
    get_metric,
    most_common_value,
)
from .provider import DistanceProvider, resolve_worker_count

__all__ = [
    "METRIC_NAMES",
    "CosineSimilarity",
    "DistanceConfigurationError",
    "DistanceProvider",
    "EuclideanDistance",
    "ManhattanDistance",
    "PearsonCorrelation",
    "SparseCosineSimilarity",
    "SupremumDistance",
    "VectorMetric",
    "get_metric",
    "most_common_value",
    "resolve_worker_count",
]
