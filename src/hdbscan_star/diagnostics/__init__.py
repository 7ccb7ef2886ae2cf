"""Summaries computed over HDBSCAN* results."""

from __future__ import annotations

import math
from typing import Dict, Sequence, TypedDict

import pandas as pd

from ..hdbscanstar import NOISE_LABEL
from ..runner import HdbscanResult


class OutlierScoreSummary(TypedDict):
    """Summary statistics for the outlier scores of one run.

    Attributes
    ----------
    count:
        Number of scored points.
    mean:
        Arithmetic mean of the scores, or ``NaN`` when ``count == 0``.
    variance:
        Population variance (``ddof=0``), or ``NaN`` when ``count == 0``.
    quantiles:
        Mapping of requested quantile -> score. Keys are the raw float
        probabilities supplied to :func:`summarize_outlier_scores`.
    """

    count: int
    mean: float
    variance: float
    quantiles: Dict[float, float]


def summarize_outlier_scores(
    result: HdbscanResult,
    *,
    quantiles: Sequence[float] = (0.05, 0.5, 0.95),
) -> OutlierScoreSummary:
    """Summarize the distribution of outlier scores in ``result``.

    Parameters
    ----------
    result:
        Output of :func:`hdbscan_star.run_hdbscan`.
    quantiles:
        Iterable of quantile probabilities in the inclusive interval ``[0, 1]``.

    Returns
    -------
    OutlierScoreSummary
        Count, mean, variance and quantiles of the scores.
    """

    quantiles = tuple(sorted(dict.fromkeys(float(q) for q in quantiles)))
    for q in quantiles:
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"Quantile {q} is outside the inclusive [0, 1] range")

    series = pd.Series([score.score for score in result.outlier_scores], dtype="float64")
    count = int(series.count())
    if count == 0:
        return OutlierScoreSummary(
            count=0,
            mean=math.nan,
            variance=math.nan,
            quantiles={q: math.nan for q in quantiles},
        )

    return OutlierScoreSummary(
        count=count,
        mean=float(series.mean()),
        variance=float(series.var(ddof=0)),
        quantiles={q: float(series.quantile(q, interpolation="linear")) for q in quantiles},
    )


def cluster_sizes(result: HdbscanResult) -> Dict[int, int]:
    """Return ``{label: size}`` for every non-noise cluster, ordered by label."""

    counts = pd.Series(result.labels).value_counts().sort_index()
    return {int(label): int(size) for label, size in counts.items() if label != NOISE_LABEL}


__all__ = ["OutlierScoreSummary", "cluster_sizes", "summarize_outlier_scores"]
