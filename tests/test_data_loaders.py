from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from hdbscan_star.constraints import CANNOT_LINK, MUST_LINK
from hdbscan_star.data import MissingColumnsError, load_constraints, load_points


def test_load_points_csv_uses_numeric_columns(tmp_path: Path) -> None:
    points_path = tmp_path / "points.csv"
    pd.DataFrame(
        {
            "name": ["alpha", "beta", "gamma"],
            "x": [0.0, 1.5, 3.0],
            "y": [1, 2, 3],
        }
    ).to_csv(points_path, index=False)

    dataset = load_points(points_path, id_column="name")

    assert dataset.columns == ["x", "y"]
    assert dataset.ids == ["alpha", "beta", "gamma"]
    assert dataset.vectors.shape == (3, 2)
    assert dataset.vectors[1, 0] == pytest.approx(1.5)
    assert len(dataset) == 3


def test_load_points_json_records_with_explicit_columns(tmp_path: Path) -> None:
    points_path = tmp_path / "points.json"
    points_path.write_text(
        json.dumps(
            [
                {"x": 0.0, "y": 1.0, "z": 9.0},
                {"x": 2.0, "y": 3.0, "z": 9.0},
            ]
        ),
        encoding="utf-8",
    )

    dataset = load_points(points_path, columns=["y", "x"])

    assert dataset.columns == ["y", "x"]
    assert dataset.ids == ["0", "1"]
    assert dataset.vectors.tolist() == [[1.0, 0.0], [3.0, 2.0]]


def test_load_points_json_lines(tmp_path: Path) -> None:
    points_path = tmp_path / "points.jsonl"
    points_path.write_text('{"x": 1.0}\n{"x": 4.0}\n', encoding="utf-8")

    dataset = load_points(points_path)

    assert dataset.vectors.tolist() == [[1.0], [4.0]]


def test_load_points_missing_column(tmp_path: Path) -> None:
    points_path = tmp_path / "points.csv"
    pd.DataFrame({"x": [1.0]}).to_csv(points_path, index=False)

    with pytest.raises(MissingColumnsError) as exc:
        load_points(points_path, columns=["x", "y"])

    assert exc.value.missing == ["y"]
    assert "Points data is missing required columns: y" in str(exc.value)


def test_load_points_rejects_missing_and_non_numeric_values(tmp_path: Path) -> None:
    gaps = tmp_path / "gaps.csv"
    pd.DataFrame({"x": [1.0, None], "y": [2.0, 3.0]}).to_csv(gaps, index=False)
    labels = tmp_path / "labels.csv"
    pd.DataFrame({"x": ["a", "b"]}).to_csv(labels, index=False)

    with pytest.raises(ValueError, match="missing attribute values"):
        load_points(gaps)
    with pytest.raises(ValueError, match="must be numeric"):
        load_points(labels, columns=["x"])
    with pytest.raises(ValueError, match="No numeric attribute columns"):
        load_points(labels)


def test_load_points_unsupported_suffix(tmp_path: Path) -> None:
    path = tmp_path / "points.txt"
    path.write_text("x\n1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_points(path)


def test_load_constraints_csv(tmp_path: Path) -> None:
    path = tmp_path / "constraints.csv"
    pd.DataFrame(
        {
            "PointA": [0, 2],
            "PointB": [1, 3],
            "Type": ["MustLink", "cannot-link"],
        }
    ).to_csv(path, index=False)

    constraints = load_constraints(path)

    assert [(c.point_a, c.point_b, c.kind) for c in constraints] == [
        (0, 1, MUST_LINK),
        (2, 3, CANNOT_LINK),
    ]


def test_load_constraints_requires_columns_and_known_types(tmp_path: Path) -> None:
    missing = tmp_path / "missing.csv"
    pd.DataFrame({"PointA": [0], "PointB": [1]}).to_csv(missing, index=False)
    unknown = tmp_path / "unknown.csv"
    pd.DataFrame({"PointA": [0], "PointB": [1], "Type": ["maybe-link"]}).to_csv(unknown, index=False)

    with pytest.raises(MissingColumnsError):
        load_constraints(missing)
    with pytest.raises(ValueError, match="Unsupported constraint type"):
        load_constraints(unknown)
