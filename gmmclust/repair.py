"""Strategies for replacing a centroid that lost all its members."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import numpy as np

logger = logging.getLogger(__name__)


def _store_row(centroids, pos, row, nclusters):
    if centroids.ndim == 1:
        ncols = centroids.size // nclusters
        centroids[pos * ncols:(pos + 1) * ncols] = row
    else:
        centroids[pos] = row


class CentroidRepair(ABC):
    """Base class of empty-centroid repair strategies."""

    def __init__(self, nclusters):
        self.nclusters = nclusters

    @abstractmethod
    def repair(self, centroids, pos):
        """Overwrite centroid ``pos`` in place; return the index of the row used."""


class CentroidRandomRepair(CentroidRepair):
    """Replaces an empty centroid with a randomly chosen data row."""

    def __init__(self, data, nclusters, rng=None):
        super().__init__(nclusters)
        self.data = np.asarray(data, dtype=np.float64)
        self.rng = rng if rng is not None else np.random.default_rng()

    def repair(self, centroids, pos):
        source = int(self.rng.random() * self.data.shape[0])
        _store_row(centroids, pos, self.data[source], self.nclusters)
        logger.info("Empty centroid %d repaired by row %d", pos, source)
        return source


class CentroidDeterministicRepair(CentroidRepair):
    """Replaces empty centroids with data rows taken in order, wrapping around."""

    def __init__(self, data, nclusters):
        super().__init__(nclusters)
        self.data = np.asarray(data, dtype=np.float64)
        self.next = 0

    def repair(self, centroids, pos):
        source = self.next
        _store_row(centroids, pos, self.data[source], self.nclusters)
        logger.info("Empty centroid %d repaired by row %d", pos, source)
        self.next += 1
        if self.next == self.data.shape[0]:
            self.next = 0
        return source