"""Data loading utilities for HDBSCAN* inputs."""

from .loaders import MissingColumnsError, PointsDataset, load_constraints, load_points
from .schema import CONSTRAINTS_SCHEMA, POINTS_SCHEMA, SCHEMAS, DatasetSchema

__all__ = [
    "MissingColumnsError",
    "PointsDataset",
    "load_constraints",
    "load_points",
    "CONSTRAINTS_SCHEMA",
    "POINTS_SCHEMA",
    "DatasetSchema",
    "SCHEMAS",
]
