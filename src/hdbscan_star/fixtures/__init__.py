"""Small bundled datasets for examples and integration tests.

Each scenario lives in its own sub-directory holding ``points.csv`` and,
optionally, ``constraints.csv``.
"""

from __future__ import annotations

from pathlib import Path

_FIXTURES_ROOT = Path(__file__).resolve().parent


def available_fixtures() -> list[str]:
    """Return the names of the bundled scenarios."""

    return sorted(
        entry.name
        for entry in _FIXTURES_ROOT.iterdir()
        if entry.is_dir() and any(entry.glob("*.csv"))
    )


def fixture_path(name: str, dataset: str = "points") -> Path:
    """Return the absolute path to a fixture dataset.

    Parameters
    ----------
    name:
        Name of the scenario (e.g., ``"three_blobs"``).
    dataset:
        Dataset within the scenario. The ``.csv`` suffix is optional.
    """

    normalised = dataset if dataset.endswith(".csv") else f"{dataset}.csv"
    path = _FIXTURES_ROOT / name / normalised
    if not path.exists():
        available = ", ".join(available_fixtures())
        raise FileNotFoundError(
            f"Dataset '{dataset}' not found for fixture '{name}'. Available fixtures: {available}"
        )
    return path


__all__ = ["available_fixtures", "fixture_path"]
