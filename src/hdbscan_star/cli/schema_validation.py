"""Validation of CLI output records against the bundled JSON schemas."""

from __future__ import annotations

import json
import math
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Sequence

import jsonschema
import numpy as np
import pandas as pd


SCHEMA_VERSION = "v1"
_SCHEMA_FILENAMES: Mapping[str, str] = {
    "labels": "labels.schema.json",
    "outliers": "outliers.schema.json",
}


class SchemaValidationError(RuntimeError):
    """Raised when an output record fails validation against a JSON schema."""

    def __init__(self, schema: str, index: int, message: str) -> None:
        super().__init__(f"{schema} record {index} failed validation: {message}")
        self.schema = schema
        self.index = index
        self.message = message


class SchemaValidator:
    """Validate label and outlier tables before they are written."""

    def __init__(self, *, schema_version: str = SCHEMA_VERSION) -> None:
        self.schema_version = schema_version

    def validate_frame(
        self,
        schema: str,
        frame: pd.DataFrame | None,
        *,
        string_fields: Sequence[str] = (),
    ) -> None:
        if frame is None or frame.empty:
            return
        self.validate_records(schema, _frame_records(frame, string_fields=string_fields))

    def validate_records(
        self,
        schema: str,
        records: Iterable[Mapping[str, object]],
    ) -> None:
        validator = _load_validator(schema, schema_version=self.schema_version)
        for index, record in enumerate(records):
            error = jsonschema.exceptions.best_match(validator.iter_errors(record))
            if error is None:
                continue
            message = error.message
            if error.path:
                message = f"{message} (path: {'.'.join(str(part) for part in error.path)})"
            raise SchemaValidationError(schema, index, message)


@lru_cache(maxsize=None)
def _load_validator(schema: str, *, schema_version: str) -> jsonschema.Validator:
    filename = _SCHEMA_FILENAMES.get(schema)
    if filename is None:
        raise ValueError(f"Unknown schema type '{schema}'")

    schema_path = _schema_directory(schema_version) / filename
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file '{schema_path}' was not found")

    with schema_path.open(encoding="utf-8") as handle:
        payload = json.load(handle)

    return jsonschema.Draft202012Validator(payload)


@lru_cache(maxsize=None)
def _schema_directory(schema_version: str) -> Path:
    current = Path(__file__).resolve()
    for parent in current.parents:
        candidate = parent / "schema" / schema_version
        if candidate.exists():
            return candidate
    raise FileNotFoundError(
        f"Could not locate schema directory for version '{schema_version}' starting from '{current}'"
    )


def _frame_records(
    frame: pd.DataFrame,
    *,
    string_fields: Sequence[str] = (),
) -> list[MutableMapping[str, object]]:
    string_fields = tuple(string_fields)
    records: list[MutableMapping[str, object]] = []
    for record in frame.to_dict(orient="records"):
        converted: MutableMapping[str, object] = {}
        for key, value in record.items():
            coerced = _plain_value(value)
            if key in string_fields and coerced is not None:
                coerced = str(coerced)
            if coerced is not None:
                converted[str(key)] = coerced
        records.append(converted)
    return records


def _plain_value(value: object) -> object:
    if isinstance(value, np.generic):
        value = value.item()
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NA:
        return None
    return value


__all__ = [
    "SCHEMA_VERSION",
    "SchemaValidationError",
    "SchemaValidator",
]
