"""Command-line entry point for hdbscan-star."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Sequence

import pandas as pd

from hdbscan_star.cli.schema_validation import SchemaValidationError, SchemaValidator
from hdbscan_star.constraints import Constraint
from hdbscan_star.data import MissingColumnsError, PointsDataset, load_constraints, load_points
from hdbscan_star.diagnostics import cluster_sizes, summarize_outlier_scores
from hdbscan_star.distance import METRIC_NAMES
from hdbscan_star.errors import HdbscanConfigurationError
from hdbscan_star.runner import HdbscanParameters, HdbscanResult, run_hdbscan


logger = logging.getLogger("hdbscan_star.cli")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class HdbscanCliError(RuntimeError):
    """Raised when CLI arguments cannot be satisfied."""


_SCHEMA_VALIDATOR = SchemaValidator()


def _get_package_version() -> str:
    try:
        return metadata.version("hdbscan-star")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hdbscan-star",
        description="Hierarchical density-based clustering (HDBSCAN*) with optional constraints",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    version = _get_package_version()
    parser.add_argument(
        "--version",
        action="store_true",
        help=f"Show the installed hdbscan-star version ({version})",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging verbosity",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    cluster = subparsers.add_parser(
        "cluster",
        help="Cluster points and score outliers",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cluster.add_argument(
        "--input",
        required=True,
        help="Path to the points dataset (CSV or JSON)",
    )
    cluster.add_argument(
        "--output",
        required=True,
        help="Destination for per-point labels (CSV or JSON lines)",
    )
    cluster.add_argument(
        "--scores",
        help="Optional destination for the sorted outlier scores (CSV or JSON lines)",
    )
    cluster.add_argument(
        "--metrics",
        help="Optional path to persist run metrics and diagnostics (JSON)",
    )
    cluster.add_argument(
        "--columns",
        nargs="+",
        help="Attribute columns to cluster on; defaults to every numeric column",
    )
    cluster.add_argument(
        "--id-column",
        help="Column holding point identifiers, copied to the outputs",
    )
    cluster.add_argument(
        "--metric",
        choices=list(METRIC_NAMES),
        default="euclidean",
        help="Distance metric between attribute vectors",
    )
    cluster.add_argument(
        "--min-points",
        type=int,
        default=4,
        help="Neighbourhood size used for core distances (the point itself included)",
    )
    cluster.add_argument(
        "--min-cluster-size",
        type=int,
        default=4,
        help="Smallest number of points that may form a cluster",
    )
    cluster.add_argument(
        "--constraints",
        help="Optional must-link / cannot-link constraints (CSV or JSON)",
    )
    cluster.add_argument(
        "--no-cache",
        action="store_false",
        dest="cache_distances",
        help="Compute distances on demand instead of precomputing them",
    )
    cluster.add_argument(
        "--max-workers",
        type=int,
        default=1,
        help="Threads used to precompute distances (0 uses every core)",
    )
    cluster.set_defaults(handler=_handle_cluster, cache_distances=True)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if getattr(args, "version", False):
        print(f"hdbscan-star {_get_package_version()}")
        raise SystemExit(0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except HdbscanCliError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(f"Error: {exc}") from exc


def _handle_cluster(args: argparse.Namespace) -> None:
    dataset = _load_points(args.input, columns=args.columns, id_column=args.id_column)
    constraints: list[Constraint] | None = None
    if args.constraints:
        constraints = _load_constraints(args.constraints)

    parameters = HdbscanParameters(
        min_points=args.min_points,
        min_cluster_size=args.min_cluster_size,
        data=dataset.vectors,
        metric=args.metric,
        constraints=constraints,
        cache_distances=args.cache_distances,
        max_workers=args.max_workers,
    )

    try:
        result = run_hdbscan(parameters)
    except HdbscanConfigurationError as exc:
        raise HdbscanCliError(str(exc)) from exc

    labels = _with_ids(result.to_frame(), dataset, args.id_column)
    _validate_output("labels", labels)
    _write_table(labels, Path(args.output))

    if args.scores:
        scores = _with_ids(result.outlier_frame(), dataset, args.id_column)
        _validate_output("outliers", scores)
        _write_table(scores, Path(args.scores))

    if args.metrics:
        _write_json(_metrics_payload(result, args, dataset), Path(args.metrics))

    logger.info(f"Wrote {len(labels)} labelled points to {args.output}")


def _with_ids(frame: pd.DataFrame, dataset: PointsDataset, id_column: str | None) -> pd.DataFrame:
    if id_column is None or frame.empty:
        return frame
    frame = frame.copy()
    frame.insert(1, "id", [dataset.ids[int(point)] for point in frame["point"]])
    return frame


def _metrics_payload(
    result: HdbscanResult,
    args: argparse.Namespace,
    dataset: PointsDataset,
) -> dict[str, object]:
    summary = summarize_outlier_scores(result)
    return {
        **result.metrics,
        "metric": args.metric,
        "min_points": args.min_points,
        "min_cluster_size": args.min_cluster_size,
        "columns": dataset.columns,
        "cluster_sizes": {str(label): size for label, size in cluster_sizes(result).items()},
        "outlier_scores": {
            "count": summary["count"],
            "mean": _json_float(summary["mean"]),
            "variance": _json_float(summary["variance"]),
            "quantiles": {str(q): _json_float(value) for q, value in summary["quantiles"].items()},
        },
    }


def _json_float(value: float) -> float | None:
    if value != value:
        return None
    return value


def _validate_output(schema: str, frame: pd.DataFrame) -> None:
    try:
        _SCHEMA_VALIDATOR.validate_frame(schema, frame, string_fields=("id",))
    except SchemaValidationError as exc:
        raise HdbscanCliError(f"{schema.title()} output failed schema validation: {exc}") from exc


def _write_table(frame: pd.DataFrame, path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        if path.suffix.lower() in {".json", ".jsonl", ".ndjson"}:
            frame.to_json(path, orient="records", lines=True)
        else:
            frame.to_csv(path, index=False)
    except OSError as exc:  # pragma: no cover - unlikely in tests
        raise HdbscanCliError(f"Failed to write output to '{path}': {exc}")


def _write_json(data: dict[str, object], path: Path) -> None:
    path = path.expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    except OSError as exc:  # pragma: no cover - unlikely in tests
        raise HdbscanCliError(f"Failed to write JSON output to '{path}': {exc}")


def _load_points(location: str, *, columns: Sequence[str] | None, id_column: str | None) -> PointsDataset:
    try:
        return load_points(location, columns=columns, id_column=id_column)
    except FileNotFoundError as exc:
        raise HdbscanCliError(f"Points file '{location}' was not found") from exc
    except MissingColumnsError as exc:
        raise HdbscanCliError(str(exc)) from exc
    except ValueError as exc:
        raise HdbscanCliError(str(exc)) from exc


def _load_constraints(location: str) -> list[Constraint]:
    try:
        return load_constraints(location)
    except FileNotFoundError as exc:
        raise HdbscanCliError(f"Constraints file '{location}' was not found") from exc
    except ValueError as exc:
        raise HdbscanCliError(str(exc)) from exc


if __name__ == "__main__":  # pragma: no cover
    main()
