import random
import struct

import numpy as np
import pytest

from gmmclust.initializers import (
    FileInitializer,
    ForgyInitializer,
    KMeansInitializer,
    MinDistInitializer,
    RandomInitializer,
)


@pytest.fixture
def data():
    rng = np.random.default_rng(11)
    return np.vstack([rng.normal(0, 1, (20, 3)), rng.normal(20, 1, (20, 3))])


def _rows_in(result, data):
    rows = {tuple(r) for r in data}
    return all(tuple(r) in rows for r in result)


def test_forgy_picks_data_rows(data):
    result = ForgyInitializer(data, 4, random.Random(1)).init()
    assert result.shape == (4, 3)
    assert _rows_in(result, data)


def test_forgy_reproducible(data):
    a = ForgyInitializer(data, 3, random.Random(5)).init()
    b = ForgyInitializer(data, 3, random.Random(5)).init()
    np.testing.assert_array_equal(a, b)


def test_random_single_cluster_is_mean(data):
    result = RandomInitializer(data, 1, random.Random(2)).init()
    np.testing.assert_allclose(result[0], data.mean(axis=0))


def test_random_centroids_within_data_bounds(data):
    result = RandomInitializer(data, 3, random.Random(4)).init()
    assert result.shape == (3, 3)
    assert np.all(result >= data.min(axis=0) - 1e-12)
    assert np.all(result <= data.max(axis=0) + 1e-12)


def test_mindist_picks_distinct_data_rows(data):
    result = MinDistInitializer(data, 2, 30, random.Random(9)).init()
    assert _rows_in(result, data)
    assert not np.array_equal(result[0], result[1])


def test_mindist_second_centroid_far_from_first(data):
    result = MinDistInitializer(data, 2, 40, random.Random(3)).init()
    assert np.linalg.norm(result[0] - result[1]) > 10.0


def test_mindist_requires_trials(data):
    with pytest.raises(ValueError):
        MinDistInitializer(data, 2, 0)


def test_repair_centroid_sets_data_row(data):
    init = ForgyInitializer(data, 2, random.Random(8))
    centroids = np.full((2, 3), np.nan)
    init.repair_centroid(centroids, 1)
    assert tuple(centroids[1]) in {tuple(r) for r in data}
    assert int(np.isnan(centroids[0]).sum()) == 3


def _write(path, nrows, ncols, values):
    path.write_bytes(struct.pack("<ii", nrows, ncols) + np.asarray(values, "<f8").tobytes())


def test_file_initializer_round_trip(tmp_path, data):
    values = np.arange(6, dtype=float).reshape(2, 3) * 1.5
    path = tmp_path / "c.cnt"
    _write(path, 2, 3, values)
    init = FileInitializer(data, 2, path)
    first = init.init()
    np.testing.assert_array_equal(first, values)
    first[0, 0] = 99.0
    np.testing.assert_array_equal(init.init(), values)


def test_file_column_mismatch(tmp_path, data):
    path = tmp_path / "c.cnt"
    _write(path, 2, 4, np.zeros(8))
    with pytest.raises(ValueError):
        FileInitializer(data, 2, path)


def test_file_cluster_mismatch(tmp_path, data):
    path = tmp_path / "c.cnt"
    _write(path, 3, 3, np.zeros(9))
    with pytest.raises(ValueError):
        FileInitializer(data, 2, path)


def test_file_truncated(tmp_path, data):
    path = tmp_path / "c.cnt"
    _write(path, 2, 3, np.zeros(4))
    with pytest.raises(ValueError):
        FileInitializer(data, 2, path)


def test_file_missing(tmp_path, data):
    with pytest.raises(OSError):
        FileInitializer(data, 2, tmp_path / "missing.cnt")


def test_base_initializer_is_abstract(data):
    with pytest.raises(TypeError):
        KMeansInitializer(data, 2)