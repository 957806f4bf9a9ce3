import io
import struct

import numpy as np
import pytest

from gmmclust.mixture import GaussianMixture
from gmmclust.normal import BhattDist

MEANS = np.array([[0.0, 0.0], [10.0, 10.0]])


@pytest.fixture
def mix():
    g = GaussianMixture(2, 2)
    g.init([0.3, 0.7], [np.eye(2), np.diag([2.0, 1.0])], MEANS)
    return g


def test_posteriors_sum_to_one(mix):
    p = mix.posteriors([5.0, 4.0])
    assert p.sum() == pytest.approx(1.0)
    assert np.all(p >= 0.0)


def test_evaluate_is_weighted_sum(mix):
    row = [1.0, 2.0]
    expected = sum(w * d.density(row) for d, w in zip(mix.densities, mix.weights))
    assert mix.evaluate(row) == pytest.approx(expected)


def test_classify(mix):
    assert mix.classify(MEANS[1]) == 1
    np.testing.assert_array_equal(mix.classify_data(MEANS[::-1]), [1, 0])


def test_normalize_weights():
    g = GaussianMixture(2, 1)
    g.init([2.0, 6.0], [np.eye(1), np.eye(1)], [[0.0], [1.0]])
    g.normalize_weights()
    assert g.weights.sum() == pytest.approx(1.0)
    assert g.weights[1] / g.weights[0] == pytest.approx(3.0)


def test_save_and_read_roundtrip(mix, tmp_path):
    path = tmp_path / "g.bin"
    mix.save(path)
    raw = path.read_bytes()
    assert struct.unpack_from("<ii", raw) == (2, 2)
    assert len(raw) == 8 + 2 * (4 + 2 + 1) * 8 + 8
    with open(path, "rb") as stream:
        back = GaussianMixture.read(stream)
    np.testing.assert_allclose(back.weights, mix.weights)
    for i in range(2):
        np.testing.assert_allclose(back.mean(i), mix.mean(i))
        np.testing.assert_allclose(back.covariance(i), mix.covariance(i))


def test_read_truncated_raises(mix):
    buf = io.BytesIO()
    mix.write(buf)
    with pytest.raises(ValueError):
        GaussianMixture.read(io.BytesIO(buf.getvalue()[:-12]))


def test_write_classes(mix, tmp_path):
    path = tmp_path / "c.cls"
    mix.write_classes(path, MEANS)
    raw = path.read_bytes()
    assert struct.unpack_from("<i", raw)[0] == MEANS.shape[0]
    np.testing.assert_array_equal(np.frombuffer(raw[4:], dtype="<i4"), [1, 2])


def test_split_and_merge(mix):
    mix.split_component(0, 0.1, [0.0, 0.0], np.eye(2), 0.2, [5.0, 5.0], np.eye(2))
    assert mix.ncomponents == 3
    np.testing.assert_allclose(mix.mean(2), [5.0, 5.0])
    mix.merge_components(0, 2, 0.3, [1.0, 1.0], np.eye(2))
    assert mix.ncomponents == 2
    np.testing.assert_allclose(mix.mean(0), [1.0, 1.0])
    with pytest.raises(ValueError):
        mix.merge_components(1, 1, 0.3, [1.0, 1.0], np.eye(2))


def test_copy_is_independent(mix):
    other = mix.copy()
    other.init_component(0, 0.9, np.eye(2), [7.0, 7.0])
    np.testing.assert_allclose(mix.mean(0), MEANS[0])
    assert mix.weights[0] == pytest.approx(0.3)


def test_init_size_mismatch(mix):
    with pytest.raises(ValueError):
        mix.init([1.0], [np.eye(2)], MEANS[:1])


def test_condition_number(mix):
    assert mix.largest_condition_number() == pytest.approx(2.0)
    g = GaussianMixture(1, 2)
    g.init([1.0], [np.eye(2)], [[0.0, 0.0]])
    assert g.largest_condition_number() == pytest.approx(1.0)


def test_component_bhatt_dist_self_is_zero(mix):
    assert mix.component_bhatt_dist(BhattDist(2), 1, mix, 1) == pytest.approx(0.0, abs=1e-12)