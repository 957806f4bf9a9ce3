"""Partial sums gathered during the EM M-step and combined across row blocks."""

from __future__ import annotations

import numpy as np


class Step1ReducerData:
    """Posterior sums and posterior-weighted row sums for every component."""

    def __init__(self, k, ncols):
        if k <= 0 or ncols <= 0:
            raise ValueError("k and ncols must be positive")
        self.posterior_sum = np.zeros(int(k), dtype=np.float64)
        self.mean_sums = np.zeros((int(k), int(ncols)), dtype=np.float64)

    def clear(self):
        """Set every sum to zero."""
        self.posterior_sum.fill(0.0)
        self.mean_sums.fill(0.0)

    def __iadd__(self, other):
        if other.mean_sums.shape != self.mean_sums.shape:
            raise ValueError("reducer data shapes do not match")
        self.posterior_sum += other.posterior_sum
        self.mean_sums += other.mean_sums
        return self

    def pack_size(self):
        """Number of values produced by ``pack``."""
        k, ncols = self.mean_sums.shape
        return k * (ncols + 1)

    def pack(self):
        """Return the posterior sums followed by the row-major weighted row sums."""
        return np.concatenate([self.posterior_sum, self.mean_sums.ravel()])

    def unpack(self, buff):
        """Load the sums from a buffer in the order written by ``pack``."""
        values = np.asarray(buff, dtype=np.float64).reshape(-1)
        if values.size < self.pack_size():
            raise ValueError("buffer is too short")
        k, ncols = self.mean_sums.shape
        self.posterior_sum[:] = values[:k]
        self.mean_sums[:] = values[k:k + k * ncols].reshape(k, ncols)


class Step2ReducerData:
    """Posterior-weighted scatter matrices for every component."""

    def __init__(self, k, ncols):
        if k <= 0 or ncols <= 0:
            raise ValueError("k and ncols must be positive")
        self.cov_sums = [np.zeros((int(ncols), int(ncols)), dtype=np.float64) for _ in range(int(k))]

    @property
    def _ncols(self):
        return self.cov_sums[0].shape[0]

    def clear(self):
        """Set every matrix to zero."""
        for cov in self.cov_sums:
            cov.fill(0.0)

    def __iadd__(self, other):
        if len(other.cov_sums) != len(self.cov_sums) or other._ncols != self._ncols:
            raise ValueError("reducer data shapes do not match")
        for mine, theirs in zip(self.cov_sums, other.cov_sums):
            mine += theirs
        return self

    def pack_size(self):
        """Number of values produced by ``pack``: the upper triangles of all matrices."""
        n = self._ncols
        return len(self.cov_sums) * n * (n + 1) // 2

    def pack(self):
        """Return the upper triangle of each matrix, row by row."""
        upper = np.triu_indices(self._ncols)
        return np.concatenate([cov[upper] for cov in self.cov_sums])

    def unpack(self, buff):
        """Load the upper triangles from a buffer written by ``pack``; lower parts are kept."""
        values = np.asarray(buff, dtype=np.float64).reshape(-1)
        if values.size < self.pack_size():
            raise ValueError("buffer is too short")
        upper = np.triu_indices(self._ncols)
        step = upper[0].size
        for i, cov in enumerate(self.cov_sums):
            cov[upper] = values[i * step:(i + 1) * step]