"""Strategies that choose starting centroids for K-means."""

from __future__ import annotations

import struct
from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np

from .centroids import CentroidVector

_HEADER = struct.Struct("<ii")


class KMeansInitializer(ABC):
    """Base class of centroid initializers; ``init`` returns a (nclusters, ncols) array."""

    def __init__(self, data, nclusters, rng=None):
        self.data = np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2:
            raise ValueError("data must be a 2-D array")
        self.nclusters = int(nclusters)
        self.ncols = self.data.shape[1]
        self.cv = CentroidVector(self.nclusters, self.ncols)
        self.rng = rng if rng is not None else np.random.default_rng()

    def _random_index(self):
        return int(self.rng.random() * self.data.shape[0])

    def repair_centroid(self, centroids, clnum):
        """Overwrite centroid ``clnum`` in place with a randomly chosen data row."""
        row = self.data[self._random_index()]
        if centroids.ndim == 1:
            centroids[clnum * self.ncols:(clnum + 1) * self.ncols] = row
        else:
            centroids[clnum] = row

    @abstractmethod
    def init(self):
        """Return a new array of initial centroids."""


class ForgyInitializer(KMeansInitializer):
    """Picks each centroid as a random data row (with replacement)."""

    def init(self):
        result = np.empty((self.nclusters, self.ncols), dtype=np.float64)
        for i in range(self.nclusters):
            result[i] = self.data[self._random_index()]
        return result


class RandomInitializer(KMeansInitializer):
    """Assigns rows to random partitions and uses the partition means."""

    def init(self):
        sums = np.zeros((self.nclusters, self.ncols), dtype=np.float64)
        counts = np.zeros(self.nclusters, dtype=np.int64)
        for row in self.data:
            part = int(self.rng.random() * self.nclusters)
            counts[part] += 1
            sums[part] += row
        with np.errstate(invalid="ignore", divide="ignore"):
            factors = 1.0 / counts.astype(np.float64)
            return sums * factors[:, None]


class MinDistInitializer(KMeansInitializer):
    """Starts near the data mean, then repeatedly adds the farthest of random candidates."""

    def __init__(self, data, nclusters, trials, rng=None):
        super().__init__(data, nclusters, rng)
        if trials < 1:
            raise ValueError("trials must be at least 1")
        self.trials = int(trials)

    def init(self):
        result = np.zeros((self.nclusters, self.ncols), dtype=np.float64)
        center = self.data.mean(axis=0)
        best = np.inf
        for _ in range(self.trials):
            row = self.data[self._random_index()]
            diff = center - row
            dist = float(diff @ diff)
            if dist < best:
                best = dist
                result[0] = row

        for i in range(1, self.nclusters):
            nums = [self._random_index() for _ in range(self.trials)]
            max_dist = 0.0
            max_j = 0
            for j, num in enumerate(nums):
                row = self.data[num]
                min_dist = min(self.cv.squared_distance(k, result, row) for k in range(i))
                if min_dist > max_dist:
                    max_dist = min_dist
                    max_j = j
            result[i] = self.data[nums[max_j]]
        return result


class FileInitializer(KMeansInitializer):
    """Loads centroids from a binary file: int32 count, int32 columns, float64 values."""

    def __init__(self, data, nclusters, path, rng=None):
        super().__init__(data, nclusters, rng)
        raw = Path(path).read_bytes()
        if len(raw) < _HEADER.size:
            raise ValueError("centroid file is too short")
        nrows, ncols = _HEADER.unpack_from(raw)
        if ncols != self.ncols:
            raise ValueError("Number of columns in dataset and centroid file do not match")
        if nrows != self.nclusters:
            raise ValueError("Number of clusters in centroid file and requested value do not match")
        count = self.nclusters * self.ncols
        body = raw[_HEADER.size:]
        if len(body) < count * 8:
            raise ValueError("read from centroid file failed")
        values = np.frombuffer(body, dtype="<f8", count=count)
        self.centroids = values.astype(np.float64).reshape(self.nclusters, self.ncols)

    def init(self):
        return self.centroids.copy()