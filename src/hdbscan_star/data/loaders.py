"""Utilities for loading point datasets and clustering constraints."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pandas as pd

from ..constraints import Constraint
from .schema import CONSTRAINTS_SCHEMA, POINTS_SCHEMA, DatasetSchema

__all__ = [
    "MissingColumnsError",
    "PointsDataset",
    "load_constraints",
    "load_points",
]


class MissingColumnsError(ValueError):
    """Raised when a dataset is missing required columns."""

    def __init__(self, schema: DatasetSchema, missing: list[str]):
        message = (
            f"{schema.name.title()} data is missing required columns: {', '.join(missing)}. "
            f"Expected columns include: {', '.join(schema.required_columns)}."
        )
        super().__init__(message)
        self.schema = schema
        self.missing = missing


@dataclass(frozen=True)
class PointsDataset:
    """Attribute vectors ready for clustering plus the identifiers of each row."""

    ids: List[str]
    vectors: np.ndarray
    columns: List[str]

    def __len__(self) -> int:
        return int(self.vectors.shape[0])


def load_points(
    path: str | Path,
    *,
    columns: Sequence[str] | None = None,
    id_column: str | None = None,
) -> PointsDataset:
    """Load attribute vectors from CSV or JSON.

    Every numeric column other than ``id_column`` is used when ``columns`` is
    omitted. Rows are identified by ``id_column`` when given, otherwise by
    their zero-based position.
    """

    required = list(columns or ())
    if id_column is not None:
        required.append(id_column)
    schema = POINTS_SCHEMA.with_required(required)
    frame = _load_and_validate(path, schema)

    if columns is None:
        columns = [
            column
            for column in frame.columns
            if column != id_column and pd.api.types.is_numeric_dtype(frame[column])
        ]
        if not columns:
            raise ValueError(f"No numeric attribute columns found in {Path(path).name}")
    else:
        non_numeric = [column for column in columns if not pd.api.types.is_numeric_dtype(frame[column])]
        if non_numeric:
            raise ValueError(f"Attribute columns must be numeric: {', '.join(non_numeric)}")

    attributes = frame.loc[:, list(columns)]
    incomplete = attributes.isna().any(axis=1)
    if incomplete.any():
        rows = ", ".join(str(index) for index in attributes.index[incomplete][:5])
        raise ValueError(f"Point data contains missing attribute values (rows: {rows})")

    if id_column is not None:
        ids = [str(value) for value in frame[id_column].tolist()]
    else:
        ids = [str(index) for index in range(len(frame))]

    return PointsDataset(
        ids=ids,
        vectors=attributes.to_numpy(dtype=float),
        columns=[str(column) for column in columns],
    )


def load_constraints(path: str | Path) -> List[Constraint]:
    """Load must-link / cannot-link constraints with ``PointA``, ``PointB`` and ``Type`` columns."""

    frame = _load_and_validate(path, CONSTRAINTS_SCHEMA)
    required = list(CONSTRAINTS_SCHEMA.required_columns)
    if frame[required].isna().any(axis=None):
        raise ValueError("Constraint data contains missing values")

    return [
        Constraint(int(row.PointA), int(row.PointB), str(row.Type))
        for row in frame.loc[:, required].itertuples(index=False)
    ]


def _load_and_validate(path_like: str | Path, schema: DatasetSchema) -> pd.DataFrame:
    path = Path(path_like)
    frame = _read_structured_file(path, schema)
    missing = schema.missing_required(frame.columns)
    if missing:
        raise MissingColumnsError(schema, missing)
    return schema.coerce_dtypes(frame)


def _read_structured_file(path: Path, schema: DatasetSchema) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, dtype=schema.dtype_for_read())
    if suffix in {".json", ".jsonl"}:
        return _read_json(path)
    raise ValueError(f"Unsupported file type '{suffix}' for {schema.name} data")


def _read_json(path: Path) -> pd.DataFrame:
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return pd.DataFrame()
    if raw[0] == "{":
        return pd.read_json(path, lines=True)
    return pd.read_json(path)
