"""EM that caches the posterior matrix and processes rows in blocks."""

from __future__ import annotations

import numpy as np

from .blocks import BlockManager
from .em import EMAlgorithm
from .reducers import Step1ReducerData, Step2ReducerData


def _reduce_naive(parts):
    total = parts[0]
    for part in parts[1:]:
        total += part
    return total


def _reduce_log2(parts):
    parts = list(parts)
    while len(parts) > 1:
        merged = []
        for i in range(0, len(parts), 2):
            head = parts[i]
            if i + 1 < len(parts):
                head += parts[i + 1]
            merged.append(head)
        parts = merged
    return parts[0]


_REDUCERS = {"naive": _reduce_naive, "log2": _reduce_log2}


class CachedEM(EMAlgorithm):
    """Computes all posteriors once per sweep, then the means and covariances from them."""

    name = "CachedEM"

    def __init__(self, ncols, nrows, ncl, reducer_name=None, dens_blocks=1, mstep_blocks=1):
        super().__init__(ncols, nrows, ncl)
        key = "naive" if reducer_name is None else reducer_name
        if key not in _REDUCERS:
            raise ValueError("Unknown OpenMP reducer name")
        self._reduce = _REDUCERS[key]
        self.dens_blocks = BlockManager(self.nrows, dens_blocks)
        self.mstep_blocks = BlockManager(self.nrows, mstep_blocks)
        self.log_like = 0.0

    def _precompute_density_matrix(self):
        with np.errstate(divide="ignore"):
            log_probs = np.log(self.probs)
        total = 0.0
        for start, count in self.dens_blocks.blocks():
            if count == 0:
                continue
            rows = self.dataset[start:start + count]
            log_weight_dens = np.empty((count, self.k))
            for j, density in enumerate(self.densities):
                w = (rows - density.mean) @ density.inverted_chol_cov
                log_weight_dens[:, j] = (
                    density.log_coeff - 0.5 * np.einsum("ij,ij->i", w, w) + log_probs[j]
                )
            peak = log_weight_dens.max(axis=1, keepdims=True)
            log_sum_exp = np.log(np.exp(log_weight_dens - peak).sum(axis=1)) + peak[:, 0]
            total += float(log_sum_exp.sum())
            self.posteriors[start:start + count] = np.exp(log_weight_dens - log_sum_exp[:, None])
        self.log_like = total

    def _e_step(self):
        pass

    def _compute_log_like(self):
        return self.log_like

    def compute_means_post_sum(self):
        """Set ``probs`` to the posterior sums and ``means`` to the weighted row means."""
        parts = []
        for start, count in self.mstep_blocks.blocks():
            part = Step1ReducerData(self.k, self.ncols)
            post = self.posteriors[start:start + count]
            part.posterior_sum += post.sum(axis=0)
            part.mean_sums += post.T @ self.dataset[start:start + count]
            parts.append(part)
        total = self._reduce(parts)
        self.probs = total.posterior_sum.copy()
        self.means = total.mean_sums / self.probs[:, None]

    def compute_covariances(self):
        """Set ``covs`` to the posterior-weighted scatter matrices divided by ``probs``."""
        parts = []
        for start, count in self.mstep_blocks.blocks():
            part = Step2ReducerData(self.k, self.ncols)
            rows = self.dataset[start:start + count]
            for j in range(self.k):
                diff = rows - self.means[j]
                weighted = diff * self.posteriors[start:start + count, j][:, None]
                part.cov_sums[j] += weighted.T @ diff
            parts.append(part)
        total = self._reduce(parts)
        self.covs = [
            (1.0 / self.probs[j]) * 0.5 * (cov + cov.T) for j, cov in enumerate(total.cov_sums)
        ]

    def _m_step(self):
        self.compute_means_post_sum()
        self.compute_covariances()
        self.probs = self.probs / float(self.total_row_count)