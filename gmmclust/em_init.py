"""Ways of choosing the starting Gaussian mixture for EM."""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod

import numpy as np

from .centroids import CentroidVector
from .initializers import ForgyInitializer
from .kmeans import NaiveKMA
from .kmeans_oror import KMeansOrOrInitializer
from .mixture import GaussianMixture
from .repair import CentroidRandomRepair

logger = logging.getLogger(__name__)


class EMInitializer(ABC):
    """Base class of mixture initializers working on a fixed data set."""

    description = "EM initializer"

    def __init__(self, data, ncomponents, rng=None):
        self.data = np.asarray(data, dtype=np.float64)
        if self.data.ndim != 2 or self.data.shape[0] == 0:
            raise ValueError("data must be a non-empty 2-D array")
        if ncomponents <= 0:
            raise ValueError("number of components must be positive")
        self.ncomponents = int(ncomponents)
        self.ncols = self.data.shape[1]
        self.rng = rng if rng is not None else np.random.default_rng()

    @abstractmethod
    def init(self, mixture):
        """Set the parameters of ``mixture`` in place."""

    def info(self):
        """Log and return a one-line description of the initializer."""
        logger.info("%s", self.description)
        return self.description


class JainEMInitializer(EMInitializer):
    """Equal weights, means at random distinct rows and spherical covariances.

    Every covariance is the identity scaled by a tenth of the average
    per-column variance of the data.
    """

    description = "Jain EM Initializer"

    def init(self, mixture):
        nrows = self.data.shape[0]
        if self.ncomponents > nrows:
            raise ValueError("more components than data rows")
        weight = 1.0 / self.ncomponents
        variance = float(self.data.var(axis=0).sum()) / self.ncols / 10.0
        chosen = []
        for _ in range(self.ncomponents):
            idx = int(self.rng.random() * nrows)
            while idx in chosen:
                idx = int(self.rng.random() * nrows)
            chosen.append(idx)
        weights = np.full(self.ncomponents, weight)
        means = self.data[chosen].copy()
        covs = [np.eye(self.ncols) * variance for _ in range(self.ncomponents)]
        mixture.init(weights, covs, means)


class KMeansEMInitializer(EMInitializer):
    """Runs a short K-means and turns its clusters into mixture components."""

    description = "K-means EM initializer"

    def __init__(self, data, ncomponents, rng=None):
        super().__init__(data, ncomponents, rng)
        self.cv = CentroidVector(self.ncomponents, self.ncols)
        self.repair = CentroidRandomRepair(self.data, self.ncomponents, self.rng)
        self.km_alg = NaiveKMA(self.data, self.ncomponents, self.repair, self.rng)
        self.km_init = ForgyInitializer(self.data, self.ncomponents, self.rng)

    def init(self, mixture):
        start = np.asarray(self.km_init.init(), dtype=np.float64)
        centroids = np.array(start.reshape(self.ncomponents, self.ncols), dtype=np.float64)
        self.km_alg.run_kmeans(centroids, 0, 1e-4, 30)
        labels = self.cv.classify_dataset(centroids, self.data)
        nrows = self.data.shape[0]
        counts = np.bincount(labels, minlength=self.ncomponents).astype(np.float64)

        covs = []
        for i in range(self.ncomponents):
            diff = self.data[labels == i] - centroids[i]
            scatter = diff.T @ diff
            with np.errstate(divide="ignore", invalid="ignore"):
                covs.append(scatter * (1.0 / (counts[i] - 1.0)))
        weights = counts / nrows
        mixture.init(weights, covs, centroids.copy())


class KMeansOrOrEMInitializer(KMeansEMInitializer):
    """Like ``KMeansEMInitializer`` but seeds K-means with K-means||."""

    description = "K-means|| EM initializer"

    def __init__(self, data, ncomponents, rng=None):
        super().__init__(data, ncomponents, rng)
        self.km_init = KMeansOrOrInitializer(self.data, self.ncomponents, 1.4, self.rng)


class FileEMInitializer(EMInitializer):
    """Loads the mixture from a file written by ``GaussianMixture.save``."""

    description = "File EM initializer"

    def __init__(self, data, ncomponents, path, rng=None):
        super().__init__(data, ncomponents, rng)
        try:
            with open(path, "rb") as stream:
                self._content = stream.read()
        except OSError:
            raise ValueError("Cannot open file with Gaussian mixture") from None

    def init(self, mixture):
        loaded = GaussianMixture.read(io.BytesIO(self._content))
        if loaded.ncols != mixture.ncols:
            raise ValueError("mixture file dimension does not match the data")
        mixture.densities = loaded.densities
        mixture.weights = loaded.weights


def create_em_initializer(name, data, ncomponents, rng=None):
    """Pick an initializer by name: ``None``/``"jain"``, ``"kmeans"``,
    ``"kmeansoror"``, or otherwise a path to a mixture file."""
    if name is None or name == "jain":
        return JainEMInitializer(data, ncomponents, rng)
    if name == "kmeans":
        return KMeansEMInitializer(data, ncomponents, rng)
    if name == "kmeansoror":
        return KMeansOrOrEMInitializer(data, ncomponents, rng)
    return FileEMInitializer(data, ncomponents, name, rng)