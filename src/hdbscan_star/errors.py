"""Exception types shared across the hdbscan-star pipeline."""

from __future__ import annotations


class HdbscanConfigurationError(ValueError):
    """Raised when clustering parameters cannot be satisfied."""


class ClusterStateError(RuntimeError):
    """Raised when a cluster's bookkeeping would become inconsistent."""


__all__ = ["ClusterStateError", "HdbscanConfigurationError"]
