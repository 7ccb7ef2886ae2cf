"""Entry point wiring distance provisioning through outlier scoring."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence

import numpy as np
import pandas as pd

from .constraints import Constraint
from .distance import DistanceProvider, VectorMetric
from .errors import HdbscanConfigurationError
from .hdbscanstar import (
    NOISE_LABEL,
    OutlierScore,
    calculate_core_distances,
    calculate_outlier_scores,
    compute_hierarchy_and_cluster_tree,
    construct_mst,
    find_prominent_clusters,
    propagate_tree,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HdbscanParameters:
    """Configuration for a single HDBSCAN* run.

    Exactly one distance source must be given: raw ``data`` with a ``metric``,
    a precomputed ``distances`` matrix, or an index-based
    ``distance_function`` together with ``num_points``.
    """

    min_points: int
    min_cluster_size: int
    data: Sequence[Any] | None = None
    metric: str | VectorMetric = "euclidean"
    distances: Any = None
    distance_function: Callable[[int, int], float] | None = None
    num_points: int | None = None
    constraints: Sequence[Constraint] | None = None
    cache_distances: bool = True
    sparse: bool | None = None
    max_workers: int = 1
    self_edges: bool = True

    def validate(self) -> None:
        sources = [
            name
            for name, value in (
                ("data", self.data),
                ("distances", self.distances),
                ("distance_function", self.distance_function),
            )
            if value is not None
        ]
        if not sources:
            raise HdbscanConfigurationError(
                "Provide one of data, distances, or distance_function (with num_points)"
            )
        if len(sources) > 1:
            raise HdbscanConfigurationError(
                "Only one distance source may be supplied; received: " + ", ".join(sources)
            )
        if self.distance_function is not None and self.num_points is None:
            raise HdbscanConfigurationError("distance_function requires num_points")
        if self.min_points < 1:
            raise HdbscanConfigurationError("min_points must be at least 1")
        if self.min_cluster_size < 1:
            raise HdbscanConfigurationError("min_cluster_size must be at least 1")
        if self.max_workers < 0:
            raise HdbscanConfigurationError("max_workers must be zero (all cores) or positive")

        num_points = self._input_size()
        for constraint in self.constraints or ():
            constraint.validate(num_points)

    def _input_size(self) -> int:
        if self.distances is not None:
            return int(np.shape(self.distances)[0]) if np.ndim(self.distances) else 0
        if self.distance_function is not None:
            return int(self.num_points)  # type: ignore[arg-type]
        return len(self.data)  # type: ignore[arg-type]

    def build_distance_provider(self) -> DistanceProvider:
        """Validate the parameters and build the matching distance provider."""

        self.validate()
        if self.distances is not None:
            provider = DistanceProvider.from_matrix(self.distances)
        elif self.distance_function is not None:
            provider = DistanceProvider.from_function(
                int(self.num_points),  # type: ignore[arg-type]
                self.distance_function,
                cache=self.cache_distances,
                sparse=self.sparse,
                max_workers=self.max_workers,
            )
        else:
            provider = DistanceProvider.from_data(
                self.data,  # type: ignore[arg-type]
                self.metric,
                cache=self.cache_distances,
                sparse=self.sparse,
                max_workers=self.max_workers,
            )
        return provider


@dataclass(slots=True)
class HdbscanResult:
    """Flat partition, sorted outlier scores and diagnostics for one run."""

    labels: np.ndarray
    outlier_scores: List[OutlierScore]
    has_infinite_stability: bool
    core_distances: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))

    @property
    def num_points(self) -> int:
        return int(self.labels.shape[0])

    @property
    def cluster_labels(self) -> List[int]:
        """Distinct non-noise labels in ascending order."""

        return sorted(int(label) for label in np.unique(self.labels) if label != NOISE_LABEL)

    @property
    def metrics(self) -> Dict[str, float | int | bool]:
        noise_points = int(np.sum(self.labels == NOISE_LABEL))
        metrics: Dict[str, float | int | bool] = {
            "num_points": self.num_points,
            "num_clusters": len(self.cluster_labels),
            "noise_points": noise_points,
            "noise_ratio": 0.0,
            "has_infinite_stability": self.has_infinite_stability,
        }
        if self.num_points:
            metrics["noise_ratio"] = noise_points / self.num_points
        return metrics

    def groups(self, items: Sequence[Any] | None = None) -> Dict[int, List[Any]]:
        """Group point indices (or the matching ``items``) by label, noise included."""

        if items is not None and len(items) != self.num_points:
            raise ValueError(
                f"Expected {self.num_points} items to group, received {len(items)}"
            )
        grouped: Dict[int, List[Any]] = {}
        for index, label in enumerate(self.labels.tolist()):
            grouped.setdefault(int(label), []).append(index if items is None else items[index])
        return dict(sorted(grouped.items()))

    def outlier_score_for(self, index: int) -> OutlierScore:
        for score in self.outlier_scores:
            if score.index == index:
                return score
        raise KeyError(f"No outlier score recorded for point {index}")

    def to_frame(self) -> pd.DataFrame:
        """Return one row per point with its label, outlier score and core distance."""

        scores = np.zeros(self.num_points, dtype=float)
        for score in self.outlier_scores:
            scores[score.index] = score.score
        core = self.core_distances if self.core_distances.shape[0] == self.num_points else np.zeros(self.num_points)
        return pd.DataFrame(
            {
                "point": np.arange(self.num_points, dtype=np.int64),
                "label": self.labels.astype(np.int64),
                "outlier_score": scores,
                "core_distance": core,
            }
        )

    def outlier_frame(self) -> pd.DataFrame:
        """Return the sorted outlier scores as a dataframe."""

        if not self.outlier_scores:
            return pd.DataFrame(columns=["point", "outlier_score", "core_distance"])
        return pd.DataFrame.from_records([score.to_record() for score in self.outlier_scores])


def run_hdbscan(parameters: HdbscanParameters) -> HdbscanResult:
    """Run HDBSCAN* end to end for ``parameters``."""

    provider = parameters.build_distance_provider()
    num_points = provider.num_points

    if num_points == 0:
        return HdbscanResult(
            labels=np.zeros(0, dtype=np.int64),
            outlier_scores=[],
            has_infinite_stability=False,
            core_distances=np.zeros(0, dtype=float),
        )

    core_distances = calculate_core_distances(provider.distance, num_points, parameters.min_points)
    mst = construct_mst(provider.distance, num_points, core_distances, parameters.self_edges)
    mst.sort_by_edge_weight_descending()

    tree = compute_hierarchy_and_cluster_tree(
        mst,
        parameters.min_cluster_size,
        parameters.constraints,
    )
    infinite_stability = propagate_tree(tree.clusters)
    labels = find_prominent_clusters(tree.clusters, tree.hierarchy, num_points)
    scores = calculate_outlier_scores(
        tree.clusters,
        tree.point_noise_levels,
        tree.point_last_clusters,
        core_distances,
    )

    result = HdbscanResult(
        labels=labels,
        outlier_scores=scores,
        has_infinite_stability=infinite_stability,
        core_distances=core_distances,
    )
    metrics = result.metrics
    logger.info(
        f"HDBSCAN* clustered {num_points} points into {metrics['num_clusters']} clusters "
        f"({metrics['noise_points']} noise, distance cache: {provider.mode})"
    )
    return result


def hdbscan(
    data: Sequence[Any] | None = None,
    *,
    min_points: int,
    min_cluster_size: int,
    metric: str | VectorMetric = "euclidean",
    distances: Any = None,
    distance_function: Callable[[int, int], float] | None = None,
    num_points: int | None = None,
    constraints: Sequence[Constraint] | None = None,
    cache_distances: bool = True,
    sparse: bool | None = None,
    max_workers: int = 1,
) -> HdbscanResult:
    """Keyword shortcut around :func:`run_hdbscan`."""

    return run_hdbscan(
        HdbscanParameters(
            min_points=min_points,
            min_cluster_size=min_cluster_size,
            data=data,
            metric=metric,
            distances=distances,
            distance_function=distance_function,
            num_points=num_points,
            constraints=constraints,
            cache_distances=cache_distances,
            sparse=sparse,
            max_workers=max_workers,
        )
    )


__all__ = ["HdbscanParameters", "HdbscanResult", "hdbscan", "run_hdbscan"]
