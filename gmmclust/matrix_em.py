"""EM for Gaussian mixtures computed with whole-block matrix operations."""

from __future__ import annotations

import logging

import numpy as np

from .blocks import BlockManager, parse_em_block_params
from .cached_em import CachedEM
from .em import EMAlgorithm
from .reducers import Step1ReducerData, Step2ReducerData

logger = logging.getLogger(__name__)


def _sum_naive(parts):
    total = parts[0]
    for part in parts[1:]:
        total += part
    return total


def _sum_log2(parts):
    while len(parts) > 1:
        merged = []
        for i in range(0, len(parts), 2):
            head = parts[i]
            if i + 1 < len(parts):
                head += parts[i + 1]
            merged.append(head)
        parts = merged
    return parts[0]


_REDUCERS = {"naive": _sum_naive, "log2": _sum_log2}


def _even_ranges(nrows, nblocks):
    """Split ``nrows`` rows into ``nblocks`` ranges whose sizes differ by at most one."""
    if nblocks <= 0:
        raise ValueError("number of blocks must be positive")
    base, extra = divmod(nrows, nblocks)
    start = 0
    for k in range(nblocks):
        count = base + (1 if k < extra else 0)
        yield start, count
        start += count


class MatrixEMBase(EMAlgorithm):
    """Shared density and M-step computations; subclasses choose the row blocks."""

    name = "MatrixEMBase"

    def __init__(self, ncols, nrows, ncl, reducer_name=None, dens_blocks=1, mstep_blocks=1):
        super().__init__(ncols, nrows, ncl)
        key = "naive" if reducer_name is None else reducer_name
        if key not in _REDUCERS:
            raise ValueError("Unknown OpenMP reducer name")
        if dens_blocks <= 0 or mstep_blocks <= 0:
            raise ValueError("number of blocks must be positive")
        self._reduce = _REDUCERS[key]
        self.posterior_sum = np.zeros(self.k, dtype=np.float64)
        self.log_like = 0.0

    def _dens_ranges(self):
        raise NotImplementedError

    def _mstep_ranges(self):
        raise NotImplementedError

    def _log_coeffs(self):
        log_coeff = -0.5 * self.ncols * np.log(2.0 * np.pi)
        with np.errstate(divide="ignore"):
            log_probs = np.log(self.probs)
        dets = np.array([d.log_determinant for d in self.densities])
        return log_probs + log_coeff - 0.5 * dets

    def _precompute_density_matrix(self):
        coeffs = self._log_coeffs()
        total = 0.0
        for start, count in self._dens_ranges():
            if count == 0:
                continue
            rows = self.dataset[start:start + count]
            local = np.empty((count, self.k))
            for j, density in enumerate(self.densities):
                temp = (rows - self.means[j]) @ density.inverted_chol_cov
                local[:, j] = -0.5 * np.einsum("ij,ij->i", temp, temp) + coeffs[j]
            peak = local.max(axis=1)
            log_sum_exp = np.log(np.exp(local - peak[:, None]).sum(axis=1)) + peak
            total += float(log_sum_exp.sum())
            self.posteriors[start:start + count] = np.exp(local - log_sum_exp[:, None])
        self.log_like = total

    def _e_step(self):
        pass

    def _compute_log_like(self):
        return self.log_like

    def _collect(self, parts, factory):
        if not parts:
            parts.append(factory())
        return self._reduce(parts)

    def _m_step(self):
        ranges = [(s, c) for s, c in self._mstep_ranges() if c > 0]

        step1 = []
        for start, count in ranges:
            part = Step1ReducerData(self.k, self.ncols)
            post = self.posteriors[start:start + count]
            part.posterior_sum += post.sum(axis=0)
            part.mean_sums += post.T @ self.dataset[start:start + count]
            step1.append(part)
        total1 = self._collect(step1, lambda: Step1ReducerData(self.k, self.ncols))
        self.posterior_sum = total1.posterior_sum.copy()
        self.means = total1.mean_sums / self.posterior_sum[:, None]

        inv_sqrt = 1.0 / np.sqrt(self.posterior_sum)
        step2 = []
        for start, count in ranges:
            part = Step2ReducerData(self.k, self.ncols)
            rows = self.dataset[start:start + count]
            for j in range(self.k):
                scale = np.sqrt(self.posteriors[start:start + count, j]) * inv_sqrt[j]
                temp = (rows - self.means[j]) * scale[:, None]
                part.cov_sums[j] += np.triu(temp.T @ temp)
            step2.append(part)
        total2 = self._collect(step2, lambda: Step2ReducerData(self.k, self.ncols))
        self.covs = []
        for cov in total2.cov_sums:
            upper = np.triu(cov)
            self.covs.append(upper + np.triu(upper, 1).T)
        self.probs = self.posterior_sum / float(self.total_row_count)


class MatrixEM(MatrixEMBase):
    """Matrix EM whose row blocks are contiguous slices of the whole data set."""

    name = "MatrixEM"

    def __init__(self, ncols, nrows, ncl, reducer_name=None, dens_blocks=1, mstep_blocks=1):
        super().__init__(ncols, nrows, ncl, reducer_name, dens_blocks, mstep_blocks)
        self.dens_blocks = BlockManager(self.nrows, dens_blocks)
        self.mstep_blocks = BlockManager(self.nrows, mstep_blocks)

    def _dens_ranges(self):
        return self.dens_blocks.blocks()

    def _mstep_ranges(self):
        return self.mstep_blocks.blocks()


class SimpleMatrixEM(MatrixEMBase):
    """Matrix EM whose row blocks are an even split of the data set."""

    name = "SimpleMatrixEM"

    def __init__(self, ncols, nrows, ncl, reducer_name=None, dens_blocks=1, mstep_blocks=1):
        super().__init__(ncols, nrows, ncl, reducer_name, dens_blocks, mstep_blocks)
        self.dens_block_count = int(dens_blocks)
        self.mstep_block_count = int(mstep_blocks)

    def _dens_ranges(self):
        return _even_ranges(self.nrows, self.dens_block_count)

    def _mstep_ranges(self):
        return _even_ranges(self.nrows, self.mstep_block_count)


def create_em_algorithm(name, reducer_name, ncols, nrows, ncl, block_params=None):
    """Create the EM variant called ``name`` (``None`` means ``"matrixem"``)."""
    if name not in (None, "matrixem", "simplematrixem", "cachedem"):
        raise ValueError("Unknown EM algorithm")
    dens, mstep = parse_em_block_params(block_params, nrows, ncols, ncl)
    logger.info("Blocks in density computation: %d, in Covariance computation: %d", dens, mstep)
    if name is None or name == "matrixem":
        return MatrixEM(ncols, nrows, ncl, reducer_name, dens, mstep)
    if name == "simplematrixem":
        return SimpleMatrixEM(ncols, nrows, ncl, reducer_name, dens, mstep)
    return CachedEM(ncols, nrows, ncl, reducer_name, dens, mstep)