"""Multivariate normal densities and the Bhattacharyya distance between them."""

from __future__ import annotations

import math

import numpy as np


class EMError(RuntimeError):
    """Raised when the EM computation cannot proceed numerically."""


class NormalDensity:
    """A multivariate normal density kept in Cholesky-factored form."""

    def __init__(self, dim):
        if dim <= 0:
            raise ValueError("dimension must be positive")
        self.dim = int(dim)
        self._cov = np.zeros((self.dim, self.dim))
        self._chol_inv = np.zeros((self.dim, self.dim))
        self._mean = np.zeros(self.dim)
        self.determinant = 0.0
        self.log_determinant = 0.0
        self.coeff = 0.0
        self.log_coeff = 0.0

    @property
    def mean(self):
        return self._mean.copy()

    @property
    def covariance(self):
        return self._cov.copy()

    @property
    def inverted_chol_cov(self):
        """Upper-triangular transpose of the inverse Cholesky factor."""
        return self._chol_inv.copy()

    def init(self, cov, mean):
        """Set the parameters; only the lower triangle of ``cov`` is used."""
        c = np.asarray(cov, dtype=np.float64)
        m = np.asarray(mean, dtype=np.float64).reshape(-1)
        if c.shape != (self.dim, self.dim) or m.size != self.dim:
            raise ValueError(f"expected a {self.dim}x{self.dim} covariance and {self.dim} means")
        sym = np.tril(c) + np.tril(c, -1).T
        try:
            lower = np.linalg.cholesky(sym)
        except np.linalg.LinAlgError:
            raise EMError("Cholesky decomposition failed") from None
        diag = np.diag(lower)
        if not np.all(np.isfinite(lower)) or np.any(diag <= 0.0):
            raise EMError("Cholesky decomposition failed")
        log_det = 2.0 * float(np.log(diag).sum())
        self._cov = sym
        self._mean = m.copy()
        self.log_determinant = log_det
        self.determinant = math.exp(log_det)
        self.log_coeff = -0.5 * self.dim * math.log(2.0 * math.pi) - 0.5 * log_det
        self.coeff = math.exp(self.log_coeff)
        self._chol_inv = np.linalg.solve(lower, np.eye(self.dim)).T

    def _dot(self, row):
        x = np.asarray(row, dtype=np.float64).reshape(-1)
        if x.size != self.dim:
            raise ValueError(f"row must have {self.dim} values")
        w = self._chol_inv.T @ (x - self._mean)
        return 0.5 * float(w @ w)

    def condition_number(self):
        """Ratio of the largest to the smallest eigenvalue of the covariance."""
        ev = np.linalg.eigvalsh(self._cov)
        return abs(float(ev[-1] / ev[0]))

    def trace(self):
        """Sum of the diagonal of the covariance."""
        return float(np.diag(self._cov).sum())

    def mahalanobis_dist(self, row):
        """Squared Mahalanobis distance of ``row`` from the mean."""
        return 2.0 * self._dot(row)

    def density(self, row):
        return self.coeff * math.exp(-self._dot(row))

    def log_density(self, row):
        return self.log_coeff - self._dot(row)


class BhattDist:
    """Bhattacharyya distance between two normal densities of one dimension."""

    def __init__(self, dim):
        self._dens = NormalDensity(dim)

    def compute_dist(self, dens1, dens2):
        total = 0.5 * (dens1.covariance + dens2.covariance)
        self._dens.init(total, dens1.mean)
        d1 = 0.125 * self._dens.mahalanobis_dist(dens2.mean)
        d2 = 0.5 * (self._dens.log_determinant
                    - 0.5 * (dens1.log_determinant + dens2.log_determinant))
        return max(0.0, d1 + d2)