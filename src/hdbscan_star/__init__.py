"""Hierarchical density-based clustering (HDBSCAN*) with optional constraints."""

from .constraints import CANNOT_LINK, MUST_LINK, Constraint, cannot_link, must_link
from .distance import DistanceConfigurationError, DistanceProvider, get_metric
from .errors import ClusterStateError, HdbscanConfigurationError
from .hdbscanstar import NOISE_LABEL, OutlierScore
from .runner import HdbscanParameters, HdbscanResult, hdbscan, run_hdbscan

__all__ = [
    "CANNOT_LINK",
    "MUST_LINK",
    "NOISE_LABEL",
    "ClusterStateError",
    "Constraint",
    "DistanceConfigurationError",
    "DistanceProvider",
    "HdbscanConfigurationError",
    "HdbscanParameters",
    "HdbscanResult",
    "OutlierScore",
    "cannot_link",
    "get_metric",
    "hdbscan",
    "must_link",
    "run_hdbscan",
]
