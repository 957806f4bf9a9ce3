"""Common driver of the EM algorithm for Gaussian mixtures."""

from __future__ import annotations

import logging
import sys
import time
from abc import ABC, abstractmethod

import numpy as np

from .normal import EMError, NormalDensity

logger = logging.getLogger(__name__)


class EMAlgorithm(ABC):
    """Iterates E and M steps until the relative log-likelihood gain falls below ``eps``.

    Subclasses compute posteriors in ``_precompute_density_matrix`` / ``_e_step``,
    report the log-likelihood in ``_compute_log_like`` and update
    ``probs``, ``means`` and ``covs`` in ``_m_step``.
    """

    name = "EMAlgorithm"

    def __init__(self, ncols, nrows, ncl):
        if ncols <= 0 or ncl <= 0 or nrows < 0:
            raise ValueError("ncols and ncl must be positive, nrows non-negative")
        self.ncols = int(ncols)
        self.nrows = int(nrows)
        self.k = int(ncl)
        self.iter_counter = 0
        self.total_row_count = self.nrows
        self.max_sweeps = 1000000
        self.eps = 1e-5
        self.abort_thr = 100000.0
        self.reg_coef = 0.0
        self.posteriors = np.zeros((self.nrows, self.k), dtype=np.float64)
        self.dataset = np.zeros((self.nrows, self.ncols), dtype=np.float64)
        self.covs = [np.zeros((self.ncols, self.ncols)) for _ in range(self.k)]
        self.means = np.zeros((self.k, self.ncols), dtype=np.float64)
        self.probs = np.zeros(self.k, dtype=np.float64)
        self.densities = [NormalDensity(self.ncols) for _ in range(self.k)]

    def set_parameters(self, max_sweeps, eps, abort_thr, reg_coef=0.0):
        self.max_sweeps = int(max_sweeps)
        self.eps = float(eps)
        self.abort_thr = float(abort_thr)
        self.reg_coef = float(reg_coef)

    def clear_iter_counter(self):
        self.iter_counter = 0

    def _precompute_density_matrix(self):
        """Hook run before the log-likelihood is read in every sweep."""

    @abstractmethod
    def _e_step(self):
        """Compute posteriors."""

    @abstractmethod
    def _compute_log_like(self):
        """Return the log-likelihood of the current parameters."""

    @abstractmethod
    def _m_step(self):
        """Update ``probs``, ``means`` and ``covs`` from the posteriors."""

    def _copy_dataset(self, data):
        arr = np.asarray(data, dtype=np.float64)
        if arr.shape != self.dataset.shape:
            raise ValueError(f"data must have shape {self.dataset.shape}")
        self.dataset[:] = arr

    def _decode_mixture(self, mixture):
        if mixture.ncomponents != self.k or mixture.ncols != self.ncols:
            raise ValueError("mixture does not match the number of components or columns")
        for i in range(self.k):
            self.probs[i] = mixture.weights[i]
            self.means[i] = mixture.mean(i)
            self.covs[i] = mixture.covariance(i)

    def _regularize_covariances(self):
        eye = np.eye(self.ncols)
        for j, cov in enumerate(self.covs):
            diag_sum = float(np.diag(cov).sum())
            self.covs[j] = cov * (1.0 - self.reg_coef) + self.reg_coef * diag_sum / self.ncols * eye

    def _init_densities(self):
        errors = 0
        for density, cov, mean in zip(self.densities, self.covs, self.means):
            try:
                density.init(cov, mean)
            except EMError:
                errors += 1
        if errors > 0:
            raise EMError("NormalDensity::Init failed inside a parallel region")

    def _largest_condition_number(self):
        return max([0.0] + [d.condition_number() for d in self.densities])

    def _min_trace(self):
        return min(d.trace() for d in self.densities)

    def _check_condition(self):
        max_cond = self._largest_condition_number()
        if max_cond > self.abort_thr:
            raise EMError("Condition number of a covariance matrix is too high")
        return max_cond

    def train(self, data, mixture, verbosity=0, svd=True):
        """Copy ``data`` in, then train ``mixture`` in place; return the last log-likelihood."""
        self._copy_dataset(data)
        self.total_row_count = self.dataset.shape[0]
        return self.train_no_copy(mixture, verbosity, svd)

    def train_no_copy(self, mixture, verbosity=0, svd=True):
        """Train ``mixture`` in place on the data already held; return the last log-likelihood."""
        stamp = time.monotonic()
        self._decode_mixture(mixture)
        prev = -sys.float_info.max
        log_like = prev
        max_cond = 0.0
        self._regularize_covariances()
        self._init_densities()
        if svd:
            max_cond = self._check_condition()
        self.iter_counter = 1
        while self.iter_counter <= self.max_sweeps:
            self._precompute_density_matrix()
            log_like = float(self._compute_log_like())
            self._e_step()
            self._m_step()
            self._regularize_covariances()
            self._init_densities()
            if svd:
                max_cond = self._check_condition()
            with np.errstate(all="ignore"):
                e = float(np.abs(np.float64(log_like - prev) / np.float64(log_like)))
            if log_like < prev:
                e = 0.0
            if verbosity > 1:
                now = time.monotonic()
                elapsed_ms = 1000.0 * (now - stamp)
                stamp = now
                if svd:
                    logger.info(
                        "iter: %d LogL: %10.6f e: %g Cond: %g Trace: %g Time[ms]: %g",
                        self.iter_counter, log_like, e, max_cond, self._min_trace(), elapsed_ms,
                    )
                else:
                    logger.info(
                        "iter: %d LogL: %10.6f e: %g Time[ms]: %g",
                        self.iter_counter, log_like, e, elapsed_ms,
                    )
            prev = log_like
            self.iter_counter += 1
            if e < self.eps:
                break
        mixture.init(self.probs.copy(), [c.copy() for c in self.covs], self.means.copy())
        return log_like

    def retrieve_classes(self):
        """Index of the most probable component for every row (first one on ties)."""
        return np.argmax(self.posteriors, axis=1).astype(np.int64)

    def posterior_correlation(self):
        """Return the K x K matrix of posterior cross products summed over rows."""
        return self.posteriors.T @ self.posteriors