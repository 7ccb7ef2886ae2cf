from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from hdbscan_star import (
    HdbscanConfigurationError,
    HdbscanParameters,
    cannot_link,
    hdbscan,
    must_link,
    run_hdbscan,
)
from hdbscan_star.distance import DistanceConfigurationError, PearsonCorrelation


BLOB_POINTS = [
    (0, 0), (0, 1), (1, 0), (2, 3),
    (100, 97), (98, 100), (98, 95), (97, 94),
    (-100, 97), (-98, 100), (-98, 95), (-97, 94), (-90, 93),
    (-500, 1000), (500, 1000),
]

CORRELATED_VECTORS = [
    [21.33] * 4 + [0.0] * 12,
    [19.99, 19.99, 19.99, 19.990000000000002] + [0.0] * 12,
    [1, 2, 3, 4, 5, 6, 6, 7, 7, 9, 3, 4, 3, 2, 2, 1],
    [1, 3, 3, 5, 5, 6, 6, 8, 8, 9, 3, 4, 3, 2, 1, 2],
    [9] * 16,
    [1, 2, 3, 0, 5, 6, 0, 0, 7, 9, 0, 0, 3, 0, 2, 0],
]


def _group_sets(result, items=None):
    return {label: frozenset(members) for label, members in result.groups(items).items()}


def test_three_separated_blobs_and_two_outliers() -> None:
    result = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3)

    groups = _group_sets(result, BLOB_POINTS)

    assert groups[0] == frozenset({(-500, 1000), (500, 1000)})
    clusters = {members for label, members in groups.items() if label != 0}
    assert clusters == {
        frozenset({(0, 0), (0, 1), (1, 0), (2, 3)}),
        frozenset({(100, 97), (98, 100), (98, 95), (97, 94)}),
        frozenset({(-100, 97), (-98, 100), (-98, 95), (-97, 94), (-90, 93)}),
    }
    assert result.metrics["num_clusters"] == 3
    assert result.metrics["noise_points"] == 2
    assert result.has_infinite_stability is False

    assert {score.index for score in result.outlier_scores[-2:]} == {13, 14}
    assert all(0.0 <= score.score <= 1.0 for score in result.outlier_scores)


def test_outlier_scores_are_sorted() -> None:
    result = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3)

    keys = [(score.score, score.core_distance, score.index) for score in result.outlier_scores]
    assert keys == sorted(keys)
    assert sorted(score.index for score in result.outlier_scores) == list(range(len(BLOB_POINTS)))


def test_pearson_dataset_scores_stay_in_unit_interval() -> None:
    result = hdbscan(CORRELATED_VECTORS, metric="pearson", min_points=2, min_cluster_size=2)

    assert len(result.outlier_scores) == len(CORRELATED_VECTORS)
    for score in result.outlier_scores:
        assert 0.0 <= score.score <= 1.0
    assert {score.index for score in result.outlier_scores[-2:]} == {4, 5}
    assert result.labels[0] == result.labels[1] != 0
    assert result.labels[2] == result.labels[3] != 0


def test_labels_are_noise_or_positive_and_runs_are_idempotent() -> None:
    first = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3)
    second = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3, cache_distances=False)
    third = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3, max_workers=3)

    assert (first.labels >= 0).all()
    np.testing.assert_array_equal(first.labels, second.labels)
    np.testing.assert_array_equal(first.labels, third.labels)
    assert first.outlier_scores == second.outlier_scores == third.outlier_scores


def test_precomputed_distances_match_raw_data() -> None:
    data = np.asarray(BLOB_POINTS, dtype=float)
    matrix = np.sqrt(((data[:, None, :] - data[None, :, :]) ** 2).sum(axis=-1))

    from_data = hdbscan(data, min_points=3, min_cluster_size=3)
    from_matrix = hdbscan(distances=matrix, min_points=3, min_cluster_size=3)
    from_function = hdbscan(
        distance_function=lambda i, j: float(matrix[i, j]),
        num_points=len(data),
        min_points=3,
        min_cluster_size=3,
    )

    np.testing.assert_array_equal(from_data.labels, from_matrix.labels)
    np.testing.assert_array_equal(from_data.labels, from_function.labels)


def test_empty_input_returns_empty_result() -> None:
    result = hdbscan([], min_points=3, min_cluster_size=3)

    assert result.labels.shape == (0,)
    assert result.outlier_scores == []
    assert result.groups() == {}
    assert result.metrics["noise_ratio"] == 0.0
    assert result.to_frame().empty
    assert list(result.outlier_frame().columns) == ["point", "outlier_score", "core_distance"]


def test_empty_precomputed_distances_return_empty_result() -> None:
    for distances in ([], np.zeros((0, 0))):
        result = hdbscan(distances=distances, min_points=3, min_cluster_size=3)

        assert result.labels.shape == (0,)
        assert result.outlier_scores == []


def test_min_cluster_size_larger_than_dataset_labels_everything_noise() -> None:
    result = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=50)

    assert (result.labels == 0).all()
    assert all(0.0 <= score.score <= 1.0 for score in result.outlier_scores)


def test_identical_points_do_not_fail() -> None:
    result = hdbscan([[1.0, 1.0]] * 5, min_points=2, min_cluster_size=2)

    assert (result.labels == 0).all()
    assert all(score.score == 0.0 for score in result.outlier_scores)


def test_constraints_are_validated_against_dataset_size() -> None:
    with pytest.raises(HdbscanConfigurationError):
        hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3, constraints=[must_link(0, 99)])


def test_constraints_steer_cluster_selection() -> None:
    values = [[0.0], [1.0], [2.0], [10.0], [11.0], [12.0], [40.0], [41.0], [42.0]]

    unconstrained = hdbscan(values, min_points=2, min_cluster_size=3)
    linked = hdbscan(values, min_points=2, min_cluster_size=3, constraints=[must_link(0, 3)])
    separated = hdbscan(values, min_points=2, min_cluster_size=3, constraints=[cannot_link(0, 3)])

    assert len(unconstrained.cluster_labels) == 3
    assert len(linked.cluster_labels) == 2
    assert linked.labels[0] == linked.labels[3]
    assert separated.labels[0] != separated.labels[3]


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"data": [[0.0]], "distances": [[0.0]]},
        {"distance_function": lambda i, j: 0.0},
        {"data": [[0.0]], "min_points": 0},
        {"data": [[0.0]], "min_cluster_size": 0},
    ],
)
def test_invalid_parameters_raise(kwargs) -> None:
    options = {"min_points": 3, "min_cluster_size": 3, **kwargs}
    parameters = HdbscanParameters(**options)

    with pytest.raises(HdbscanConfigurationError):
        run_hdbscan(parameters)


def test_sparse_caching_without_common_value_is_a_configuration_error() -> None:
    with pytest.raises(DistanceConfigurationError):
        hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3, sparse=True)


def test_custom_metric_objects_are_accepted() -> None:
    result = hdbscan(CORRELATED_VECTORS, metric=PearsonCorrelation(), min_points=2, min_cluster_size=2)

    assert result.num_points == len(CORRELATED_VECTORS)


def test_result_frames() -> None:
    result = hdbscan(BLOB_POINTS, min_points=3, min_cluster_size=3)

    frame = result.to_frame()
    assert list(frame.columns) == ["point", "label", "outlier_score", "core_distance"]
    assert frame["point"].tolist() == list(range(len(BLOB_POINTS)))
    assert frame.loc[13, "label"] == 0
    assert frame.loc[13, "outlier_score"] == pytest.approx(result.outlier_score_for(13).score)

    outliers = result.outlier_frame()
    assert isinstance(outliers, pd.DataFrame)
    assert outliers["point"].tolist()[-2:] in ([13, 14], [14, 13])

    with pytest.raises(ValueError):
        result.groups(["too", "short"])
