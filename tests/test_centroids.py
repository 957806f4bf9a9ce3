import numpy as np
import pytest

from gmmclust.centroids import CentroidVector


@pytest.fixture
def data():
    return np.array([[0.0, 0.0], [0.0, 1.0], [10.0, 10.0], [10.0, 11.0], [1.0, 0.5]])


@pytest.fixture
def centroids():
    return np.array([[0.0, 0.5], [10.0, 10.5]])


@pytest.fixture
def cv():
    return CentroidVector(2, 2)


def test_classify_groups_nearby_rows(cv, centroids, data):
    labels = cv.classify_dataset(centroids, data)
    assert labels[0] == labels[1] == labels[4]
    assert labels[2] == labels[3]
    assert labels[0] != labels[2]


def test_classify_accepts_flat_vector(cv, centroids, data):
    flat = centroids.reshape(-1)
    np.testing.assert_array_equal(
        cv.classify_dataset(flat, data), cv.classify_dataset(centroids, data)
    )


def test_ties_resolve_to_first_centroid(cv, data):
    same = np.array([[5.0, 5.0], [5.0, 5.0]])
    labels = cv.classify_dataset(same, data)
    assert list(labels) == [0, 0, 0, 0, 0]


def test_classify_with_distances_matches_squared_distance(cv, centroids, data):
    labels, dist = cv.classify_with_distances(centroids, data)
    for i, row in enumerate(data):
        all_d = [cv.squared_distance(k, centroids, row) for k in range(2)]
        assert dist[i] == pytest.approx(min(all_d))
        assert all_d[labels[i]] == pytest.approx(dist[i])


def test_find_objects_partitions_rows(cv, centroids, data):
    labels = cv.classify_dataset(centroids, data)
    parts = [cv.find_objects_in_cluster(centroids, data, k) for k in range(2)]
    np.testing.assert_array_equal(parts[0], np.flatnonzero(labels == 0))
    assert sorted(np.concatenate(parts).tolist()) == list(range(len(data)))


def test_mse_with_and_without_assignment_agree(cv, centroids, data):
    labels, dist = cv.classify_with_distances(centroids, data)
    mse = cv.compute_mse(centroids, data)
    assert mse == pytest.approx(cv.compute_mse(centroids, data, labels))
    assert mse == pytest.approx(dist.mean())


def test_mse_with_other_assignment_is_not_smaller(cv, centroids, data):
    swapped = 1 - cv.classify_dataset(centroids, data)
    assert cv.compute_mse(centroids, data, swapped) > cv.compute_mse(centroids, data)


def test_cluster_sse_sums_to_total(cv, centroids, data):
    sse = cv.compute_cluster_sse(centroids, data)
    assert sse.shape == (2,)
    assert sse.sum() == pytest.approx(cv.compute_mse(centroids, data) * len(data))


def test_compute_centers_are_member_means(cv, centroids, data):
    labels = cv.classify_dataset(centroids, data)
    centers = cv.compute_centers(data, labels)
    for k in range(2):
        np.testing.assert_allclose(centers[k], data[labels == k].mean(axis=0))


def test_compute_centers_empty_cluster_is_nan(cv, data):
    labels = np.zeros(len(data), dtype=int)
    centers = cv.compute_centers(data, labels)
    assert int(np.isnan(centers[1]).sum()) == 2
    np.testing.assert_allclose(centers[0], data.mean(axis=0))


def test_sort_descending_and_preserves_rows():
    cv = CentroidVector(4, 2)
    vec = np.array([[1.0, 2.0], [3.0, 0.0], [1.0, 5.0], [-2.0, 9.0]])
    result = cv.sort(vec)
    rows = [tuple(r) for r in result]
    assert all(a >= b for a, b in zip(rows, rows[1:]))
    assert sorted(rows) == sorted(tuple(r) for r in vec)


def test_partial_distance_full_when_unbounded(cv, centroids, data):
    for row in data:
        assert cv.partial_squared_distance(0, centroids, row, np.inf) == pytest.approx(
            cv.squared_distance(0, centroids, row)
        )


def test_partial_distance_stops_at_bound(cv, centroids, data):
    row = data[2]
    full = cv.squared_distance(0, centroids, row)
    partial = cv.partial_squared_distance(0, centroids, row, 1.0)
    assert 1.0 <= partial <= full


def test_centroid_squared_distance_symmetric(cv, centroids):
    d12 = cv.centroid_squared_distance(centroids, 0, 1)
    assert d12 == pytest.approx(cv.centroid_squared_distance(centroids, 1, 0))
    assert d12 == pytest.approx(cv.squared_distance(0, centroids, centroids[1]))


def test_centroid_norm_matches_distance_to_origin(cv, centroids):
    assert cv.squared_centroid_norm(centroids, 1) == pytest.approx(
        cv.squared_distance(1, centroids, [0.0, 0.0])
    )


def test_squared_row_norm(cv):
    assert cv.squared_row_norm([3.0, 4.0]) == pytest.approx(25.0)


def test_wrong_centroid_size_raises(cv, data):
    with pytest.raises(ValueError):
        cv.classify_dataset(np.zeros(5), data)


def test_wrong_data_columns_raises(cv, centroids):
    with pytest.raises(ValueError):
        cv.compute_mse(centroids, np.zeros((3, 3)))


def test_non_positive_sizes_rejected():
    with pytest.raises(ValueError):
        CentroidVector(0, 2)