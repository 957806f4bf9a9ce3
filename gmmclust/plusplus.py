"""K-means++ seeding with optional per-row weights."""

from __future__ import annotations

import numpy as np

from .initializers import KMeansInitializer


class PlusPlusInitializer(KMeansInitializer):
    """Chooses centroids with probability proportional to weighted squared distance."""

    def __init__(self, data, nclusters, rng=None):
        super().__init__(data, nclusters, rng)
        self.weights = np.ones(self.data.shape[0], dtype=np.float64)

    def set_weights(self, weights):
        """Set the weight of every data row used when sampling later centroids."""
        values = np.asarray(weights, dtype=np.float64).reshape(-1)
        if values.size != self.data.shape[0]:
            raise ValueError("number of weights does not match the number of rows")
        self.weights = values.copy()

    def init(self):
        nrows = self.data.shape[0]
        if nrows == 0:
            raise ValueError("data set is empty")
        result = np.zeros((self.nclusters, self.ncols), dtype=np.float64)
        result[0] = self.data[self._random_index()]
        closest = np.full(nrows, np.inf)

        for i in range(1, self.nclusters):
            diff = self.data - result[i - 1]
            closest = np.minimum(closest, np.einsum("ij,ij->i", diff, diff))
            cumulative = np.cumsum(closest * self.weights)
            total = cumulative[-1]
            r = self.rng.random()
            # With no positive mass nothing can be chosen and the centroid is left as is.
            if total > 0.0 and np.isfinite(total):
                j = int(np.searchsorted(cumulative / total, r, side="left"))
                if j < nrows:
                    result[i] = self.data[j]
        return result