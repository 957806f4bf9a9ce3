"""Gaussian mixture models: evaluation, classification and binary storage."""

from __future__ import annotations

import copy
import struct
import sys

import numpy as np

from .normal import NormalDensity

_HEADER = struct.Struct("<ii")
_DOUBLE = struct.Struct("<d")


def _read_exact(stream, size):
    raw = stream.read(size)
    if len(raw) != size:
        raise ValueError("mixture file is truncated")
    return raw


class GaussianMixture:
    """A weighted set of multivariate normal components of one dimension."""

    def __init__(self, ncomponents, ncols):
        if ncomponents <= 0 or ncols <= 0:
            raise ValueError("ncomponents and ncols must be positive")
        self.ncols = int(ncols)
        self.densities = [NormalDensity(self.ncols) for _ in range(int(ncomponents))]
        self.weights = np.zeros(int(ncomponents), dtype=np.float64)

    @property
    def ncomponents(self):
        return len(self.densities)

    def covariance(self, component):
        return self.densities[component].covariance

    def mean(self, component):
        return self.densities[component].mean

    def init(self, weights, covs, means):
        """Set all weights, covariances and means at once."""
        w = np.asarray(weights, dtype=np.float64).reshape(-1)
        m = np.asarray(means, dtype=np.float64)
        n = self.ncomponents
        if w.size != n or len(covs) != n or m.shape != (n, self.ncols):
            raise ValueError("parameter sizes do not match the number of components")
        self.weights = w.copy()
        for density, cov, mean in zip(self.densities, covs, m):
            density.init(cov, mean)

    def init_component(self, component, weight, cov, mean):
        self.weights[component] = weight
        self.densities[component].init(cov, mean)

    def split_component(self, idx, w1, m1, c1, w2, m2, c2):
        """Replace component ``idx`` with (w1, m1, c1) and append (w2, m2, c2)."""
        self.densities.append(NormalDensity(self.ncols))
        self.weights = np.append(self.weights, 0.0)
        self.init_component(idx, w1, c1, m1)
        self.init_component(self.ncomponents - 1, w2, c2, m2)

    def merge_components(self, idx1, idx2, w, m, c):
        """Replace component ``idx1`` with (w, m, c) and remove component ``idx2``."""
        if idx1 == idx2:
            raise ValueError("cannot merge a component with itself")
        if self.ncomponents <= 1:
            raise ValueError("a single component cannot be merged")
        self.init_component(idx1, w, c, m)
        del self.densities[idx2]
        self.weights = np.delete(self.weights, idx2)

    def _weighted(self, row):
        return np.array([d.density(row) * w for d, w in zip(self.densities, self.weights)])

    def evaluate(self, row):
        """Mixture density at ``row``."""
        return float(self._weighted(row).sum())

    def posteriors(self, row):
        """Posterior probability of every component given ``row``."""
        values = self._weighted(row)
        return values * (1.0 / values.sum())

    def normalize_weights(self):
        self.weights = self.weights * (1.0 / self.weights.sum())

    def component_bhatt_dist(self, dist, comp, other, other_comp):
        return dist.compute_dist(self.densities[comp], other.densities[other_comp])

    def classify(self, row):
        """Index of the component with the largest weighted density (first on ties)."""
        values = self._weighted(row)
        best = 0
        for j in range(1, values.size):
            if values[j] > values[best]:
                best = j
        return best

    def classify_data(self, data):
        rows = np.asarray(data, dtype=np.float64)
        return np.array([self.classify(row) for row in rows], dtype=np.int64)

    def write_classes(self, path, data):
        """Write the int32 row count followed by 1-based int32 class labels."""
        labels = self.classify_data(data) + 1
        with open(path, "wb") as stream:
            stream.write(struct.pack("<I", labels.size & 0xFFFFFFFF))
            stream.write(labels.astype("<i4").tobytes())

    def largest_condition_number(self):
        return max([1.0] + [d.condition_number() for d in self.densities])

    def dump(self):
        """Print the components and return the printed text."""
        lines = [f"Number of components: {self.ncomponents}"]
        for i, (density, weight) in enumerate(zip(self.densities, self.weights)):
            lines.append(f"Component {i}: ")
            lines.append(f"Mixing probability: {weight:g}")
            lines.append(f"Mean vector: {np.array2string(density.mean)}")
            lines.append("Covariance matrix")
            lines.append(np.array2string(density.covariance))
        lines.append(f"Condition number of the solution: {self.largest_condition_number():g}")
        text = "\n".join(lines) + "\n"
        sys.stdout.write(text)
        return text

    def write(self, stream):
        """Write the binary form: int32 count and dimension, then per component
        the covariance, mean and weight as float64, then a float64 zero."""
        stream.write(_HEADER.pack(self.ncomponents, self.ncols))
        for density, weight in zip(self.densities, self.weights):
            stream.write(density.covariance.astype("<f8").tobytes())
            stream.write(density.mean.astype("<f8").tobytes())
            stream.write(_DOUBLE.pack(float(weight)))
        stream.write(_DOUBLE.pack(0.0))

    def save(self, path):
        with open(path, "wb") as stream:
            self.write(stream)

    @classmethod
    def read(cls, stream):
        """Read a mixture in the form produced by ``write``."""
        ncomponents, ncols = _HEADER.unpack(_read_exact(stream, _HEADER.size))
        mixture = cls(ncomponents, ncols)
        for i in range(ncomponents):
            cov = np.frombuffer(_read_exact(stream, ncols * ncols * 8), dtype="<f8")
            mean = np.frombuffer(_read_exact(stream, ncols * 8), dtype="<f8")
            (weight,) = _DOUBLE.unpack(_read_exact(stream, 8))
            mixture.init_component(i, weight, cov.reshape(ncols, ncols), mean)
        _read_exact(stream, 8)
        return mixture

    def copy(self):
        """Return an independent copy of the mixture."""
        result = GaussianMixture(self.ncomponents, self.ncols)
        result.densities = [copy.deepcopy(d) for d in self.densities]
        result.weights = self.weights.copy()
        return result