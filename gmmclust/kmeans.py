"""Lloyd's K-means algorithm with empty-centroid repair and stochastic relaxation."""

from __future__ import annotations

import logging
import sys
import time
from abc import ABC, abstractmethod

import numpy as np

from .centroids import CentroidVector
from .repair import CentroidRandomRepair

logger = logging.getLogger(__name__)


class KMeansAlgorithm(ABC):
    """Base of K-means variants; centroids are float64 arrays updated in place."""

    def __init__(self, data, nclusters, repair=None, rng=None):
        self.data = np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2 or self.data.shape[0] == 0:
            raise ValueError("data must be a non-empty 2-D array")
        self.nclusters = int(nclusters)
        self.ncols = self.data.shape[1]
        self.cv = CentroidVector(self.nclusters, self.ncols)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.repair = repair if repair is not None else CentroidRandomRepair(
            self.data, self.nclusters, self.rng
        )
        self.iter_count = 0
        self.last_distance_count = 0
        self.report_writer = None
        self.verbosity = 0
        self._std = self.data.std(axis=0)

    def _view(self, centroids):
        if not isinstance(centroids, np.ndarray) or centroids.dtype != np.float64:
            raise TypeError("centroids must be a float64 numpy array")
        if centroids.size != self.nclusters * self.ncols:
            raise ValueError(
                f"centroid vector has {centroids.size} values, expected {self.nclusters * self.ncols}"
            )
        mat = centroids.reshape(self.nclusters, self.ncols)
        if not np.shares_memory(mat, centroids):
            raise ValueError("centroids must be a contiguous array")
        return mat

    def init_data_structures(self, centroids):
        """Prepare auxiliary state for the given starting centroids."""

    @abstractmethod
    def compute_mse_and_correct(self, centroids):
        """Run one iteration; return the MSE of the centroids before they were moved."""

    def _report(self, centroids, i):
        if self.verbosity > 4 and self.report_writer is not None:
            self.report_writer.iteration_report(centroids, i)

    def run_kmeans(self, centroids, verbosity=0, min_rel=-1.0, max_iter=0):
        """Iterate until the MSE stops falling, the relative gain drops below
        ``min_rel`` (if positive) or ``max_iter`` is reached (if positive).

        ``max_iter`` of zero only prepares the data structures and returns 0.0.
        """
        self._view(centroids)
        self.verbosity = verbosity
        best_fit = sys.float_info.max
        ratio_sum = 0.0
        start = time.monotonic()
        self.init_data_structures(centroids)
        if verbosity > 0:
            logger.info("InitDataStructures took %g seconds", time.monotonic() - start)
        self._report(centroids, 0)
        if max_iter == 0:
            return 0.0
        i = 1
        while True:
            fit = self.compute_mse_and_correct(centroids)
            iter_time = time.monotonic() - start
            ratio = self.last_distance_count / (self.nclusters * self.data.shape[0]) * 100.0
            ratio_sum += ratio
            rel = (best_fit - fit) / best_fit
            if fit < best_fit:
                best_fit = fit
                if verbosity > 3:
                    logger.info(
                        "i: %d fit: %g rel: %g, dcr: %g, itime: %g seconds",
                        i, best_fit, rel, ratio, iter_time,
                    )
                self._report(centroids, i)
            else:
                break
            if min_rel > 0.0 and min_rel > rel:
                break
            if max_iter > 0 and i == max_iter - 1:
                break
            i += 1
        self.iter_count += i
        if verbosity > 0:
            logger.info("Avg distance calculations ratio: %g", ratio_sum / self.iter_count)
        return best_fit

    def run_kmeans_with_sr(self, centroids, verbose, max_time):
        """K-means with random perturbation that fades out over ``max_time`` CPU seconds."""
        self._view(centroids)
        start = time.process_time()
        self.init_data_structures(centroids)
        i = 0
        while True:
            fit = self.compute_mse_and_correct(centroids)
            rtime = time.process_time() - start
            if rtime >= max_time:
                break
            if verbose:
                logger.info("i: %d fit: %5.6f time: %5.3f", i, fit, rtime)
            self.perturb(centroids, rtime, max_time)
            i += 1
        return fit

    def perturb(self, centroids, rtime, max_time):
        """Add uniform noise scaled by column spread and the remaining time fraction."""
        mat = self._view(centroids)
        scale = (1.0 - rtime / max_time) ** 4.0
        noise = self.rng.random((self.nclusters, self.ncols)) - 0.5
        mat += noise * self._std[None, :] * np.sqrt(scale)

    def reset_iter_count(self):
        self.iter_count = 0


class NaiveKMA(KMeansAlgorithm):
    """Straightforward K-means computing every row-to-centroid distance."""

    def __init__(self, data, nclusters, repair=None, rng=None):
        super().__init__(data, nclusters, repair, rng)
        self.assignment = np.zeros(self.data.shape[0], dtype=np.int64)

    def init_data_structures(self, centroids):
        self.assignment = np.zeros(self.data.shape[0], dtype=np.int64)

    def _assign_and_move(self, centroids):
        mat = self._view(centroids)
        labels, mins = self.cv.classify_with_distances(mat, self.data)
        counts = np.bincount(labels, minlength=self.nclusters)
        sums = np.zeros((self.nclusters, self.ncols), dtype=np.float64)
        np.add.at(sums, labels, self.data)
        for i, count in enumerate(counts):
            if count > 0:
                mat[i] = sums[i] * (1.0 / count)
            else:
                self.repair.repair(mat, i)
        self.last_distance_count = self.data.shape[0] * self.nclusters
        return labels, mins

    def compute_mse_and_correct(self, centroids):
        _, mins = self._assign_and_move(centroids)
        return float(mins.sum() / self.data.shape[0])

    def correct_without_mse(self, centroids):
        """Run one iteration; return True if any row changed its cluster."""
        labels, _ = self._assign_and_move(centroids)
        changed = bool(np.any(labels != self.assignment))
        self.assignment = labels
        return changed

    def run_kmeans_without_mse(self, centroids, verbosity=0, max_iter=0):
        """Iterate until no row changes cluster or ``max_iter`` (if positive) is reached."""
        self._view(centroids)
        ratio_sum = 0.0
        start = time.monotonic()
        self.init_data_structures(centroids)
        if verbosity > 0:
            logger.info("InitDataStructures took %g seconds", time.monotonic() - start)
        i = 0
        while True:
            cont = self.correct_without_mse(centroids)
            iter_time = time.monotonic() - start
            ratio = self.last_distance_count / (self.data.shape[0] * self.nclusters) * 100.0
            ratio_sum += ratio
            if verbosity > 3:
                logger.info("i: %d, dcr: %g, itime: %g seconds", i, ratio, iter_time)
            if i > 0 and not cont:
                break
            if max_iter > 0 and i == max_iter - 1:
                break
            i += 1
        self.iter_count += i + 1
        if verbosity > 0:
            logger.info("Avg distance calculation ratio: %g", ratio_sum / self.iter_count)