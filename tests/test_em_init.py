import numpy as np
import pytest

from gmmclust.em_init import (
    FileEMInitializer,
    JainEMInitializer,
    KMeansEMInitializer,
    KMeansOrOrEMInitializer,
    create_em_initializer,
)
from gmmclust.mixture import GaussianMixture


def _blobs(seed=3):
    rng = np.random.default_rng(seed)
    a = rng.normal(0.0, 1.0, size=(20, 2))
    b = rng.normal(0.0, 1.0, size=(20, 2)) + 100.0
    return np.vstack([a, b])


def test_jain_weights_equal_and_sum_to_one():
    data = _blobs()
    mixture = GaussianMixture(3, 2)
    JainEMInitializer(data, 3, np.random.default_rng(1)).init(mixture)
    assert np.allclose(mixture.weights, 1.0 / 3.0)
    assert mixture.weights.sum() == pytest.approx(1.0)


def test_jain_means_are_distinct_data_rows():
    data = _blobs()
    mixture = GaussianMixture(4, 2)
    JainEMInitializer(data, 4, np.random.default_rng(2)).init(mixture)
    means = [tuple(mixture.mean(i)) for i in range(4)]
    assert len(set(means)) == 4
    rows = {tuple(r) for r in data}
    assert all(m in rows for m in means)


def test_jain_covariances_are_equal_spherical():
    data = _blobs()
    mixture = GaussianMixture(2, 2)
    JainEMInitializer(data, 2, np.random.default_rng(5)).init(mixture)
    c0 = mixture.covariance(0)
    assert c0[0, 1] == 0.0 and c0[1, 0] == 0.0
    assert c0[0, 0] == pytest.approx(c0[1, 1])
    assert c0[0, 0] > 0.0
    assert np.allclose(c0, mixture.covariance(1))


def test_jain_too_many_components():
    data = _blobs()[:3]
    with pytest.raises(ValueError):
        JainEMInitializer(data, 4, np.random.default_rng(0)).init(GaussianMixture(4, 2))


@pytest.mark.parametrize("cls", [KMeansEMInitializer, KMeansOrOrEMInitializer])
def test_kmeans_initializers_find_blobs(cls):
    data = _blobs()
    mixture = GaussianMixture(2, 2)
    cls(data, 2, np.random.default_rng(7)).init(mixture)
    assert mixture.weights.sum() == pytest.approx(1.0)
    assert sorted(mixture.weights) == pytest.approx([0.5, 0.5])
    means = sorted((tuple(mixture.mean(i)) for i in range(2)), key=lambda m: m[0])
    assert np.allclose(means[0], data[:20].mean(axis=0))
    assert np.allclose(means[1], data[20:].mean(axis=0))


def test_kmeans_covariance_matches_cluster_sample_covariance():
    data = _blobs()
    mixture = GaussianMixture(2, 2)
    KMeansEMInitializer(data, 2, np.random.default_rng(11)).init(mixture)
    low = 0 if mixture.mean(0)[0] < 50 else 1
    expected = np.cov(data[:20].T, ddof=1)
    assert np.allclose(mixture.covariance(low), expected)


def test_file_initializer_round_trip(tmp_path):
    source = GaussianMixture(2, 2)
    source.init(
        np.array([0.25, 0.75]),
        [np.eye(2), np.array([[2.0, 0.5], [0.5, 1.0]])],
        np.array([[1.0, 2.0], [3.0, 4.0]]),
    )
    path = tmp_path / "mix.bin"
    source.save(path)
    target = GaussianMixture(1, 2)
    FileEMInitializer(_blobs(), 2, path).init(target)
    assert target.ncomponents == 2
    assert np.allclose(target.weights, [0.25, 0.75])
    assert np.allclose(target.mean(1), [3.0, 4.0])
    assert np.allclose(target.covariance(1), [[2.0, 0.5], [0.5, 1.0]])


def test_file_initializer_missing_file(tmp_path):
    with pytest.raises(ValueError, match="Cannot open file"):
        FileEMInitializer(_blobs(), 2, tmp_path / "absent.bin")


def test_file_initializer_dimension_mismatch(tmp_path):
    source = GaussianMixture(1, 2)
    source.init(np.array([1.0]), [np.eye(2)], np.zeros((1, 2)))
    path = tmp_path / "mix.bin"
    source.save(path)
    with pytest.raises(ValueError):
        FileEMInitializer(_blobs(), 1, path).init(GaussianMixture(1, 3))


@pytest.mark.parametrize(
    "name, text",
    [
        (None, "Jain EM Initializer"),
        ("jain", "Jain EM Initializer"),
        ("kmeans", "K-means EM initializer"),
        ("kmeansoror", "K-means|| EM initializer"),
    ],
)
def test_create_by_name(name, text):
    init = create_em_initializer(name, _blobs(), 2, np.random.default_rng(0))
    assert init.info() == text


def test_create_other_name_is_file(tmp_path):
    source = GaussianMixture(1, 2)
    source.init(np.array([1.0]), [np.eye(2)], np.zeros((1, 2)))
    path = tmp_path / "m.bin"
    source.save(path)
    init = create_em_initializer(str(path), _blobs(), 1)
    assert isinstance(init, FileEMInitializer)
    assert init.info() == "File EM initializer"