"""Scalable K-means|| seeding followed by weighted K-means++ on the sampled centres."""

from __future__ import annotations

import logging

import numpy as np

from .initializers import KMeansInitializer
from .plusplus import PlusPlusInitializer

logger = logging.getLogger(__name__)


class KMeansOrOrInitializer(KMeansInitializer):
    """Oversamples candidate centres over several rounds, then reduces them with K-means++."""

    def __init__(self, data, nclusters, oversample, rng=None):
        super().__init__(data, nclusters, rng)
        self.oversample = float(oversample)
        self.rounds = 10 if self.oversample <= 0.1 else 5
        nrows = self.data.shape[0]
        self.closest_distances = np.full(nrows, np.inf)
        self.closest_centroids = np.full(nrows, -1, dtype=np.int64)
        self.centers = np.empty((0, self.ncols), dtype=np.float64)
        self.weights = np.empty(0, dtype=np.float64)

    def _reset(self):
        self.closest_distances.fill(np.inf)
        self.closest_centroids.fill(-1)
        self.centers = np.empty((0, self.ncols), dtype=np.float64)

    def _insert_centers(self, new_centers):
        new = np.asarray(new_centers, dtype=np.float64).reshape(-1, self.ncols)
        if new.shape[0] == 0:
            return
        diff = self.data[:, None, :] - new[None, :, :]
        dist = np.einsum("ijk,ijk->ij", diff, diff)
        best = np.argmin(dist, axis=1)
        best_dist = dist[np.arange(dist.shape[0]), best]
        better = best_dist < self.closest_distances
        self.closest_distances[better] = best_dist[better]
        self.closest_centroids[better] = self.centers.shape[0] + best[better]
        self.centers = np.vstack([self.centers, new])

    def _cost(self):
        return float(self.closest_distances.sum())

    def _scan_dataset(self, cost):
        with np.errstate(invalid="ignore", divide="ignore"):
            prob = self.oversample * self.nclusters * self.closest_distances / cost
        mask = self.rng.random(self.data.shape[0]) < prob
        return self.data[mask]

    def init(self):
        nrows = self.data.shape[0]
        if nrows == 0:
            raise ValueError("data set is empty")
        self._reset()
        first = int(self.rng.random() * nrows)
        self._insert_centers(self.data[first:first + 1])
        cost = self._cost()
        logger.debug("Initial cost is %g", cost)

        for round_no in range(self.rounds):
            self._insert_centers(self._scan_dataset(cost))
            cost = self._cost()
            logger.debug("After round %d %d centers cost is %g", round_no, self.centers.shape[0], cost)

        self.weights = np.bincount(
            self.closest_centroids, minlength=self.centers.shape[0]
        ).astype(np.float64)

        final = PlusPlusInitializer(self.centers, self.nclusters, self.rng)
        final.set_weights(self.weights)
        return final.init()