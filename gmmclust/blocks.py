"""Splitting data rows into blocks for cache-friendly EM passes."""

from __future__ import annotations

import re

_FLOAT = r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?"
_AUTOMAX = re.compile(r"automax:\s*(" + _FLOAT + ")")
_PAIR = re.compile(r"\s*([+-]?\d+):\s*([+-]?\d+)")


def compute_em_block_counts(nrows, ncols, k, l3):
    """Estimate block counts so one block fits in ``l3`` megabytes of cache.

    Returns (density blocks, M-step blocks), both at least 1.
    """
    cache = l3 * 1024 * 1024
    blocks = int(nrows * (16.0 * ncols + 16.0 * k) / cache * 1.2)
    blocks = max(blocks, 1)
    return blocks, blocks


def parse_em_block_params(block_params, nrows, ncols, k):
    """Parse ``None``, ``"automax:<L3 MB>"`` or ``"<dens>:<mstep>"`` into block counts."""
    if block_params is None:
        return 1, 1
    match = _AUTOMAX.match(block_params)
    if match:
        return compute_em_block_counts(nrows, ncols, k, float(match.group(1)))
    match = _PAIR.match(block_params)
    if not match:
        raise ValueError("Bad value of MStepLoopParam")
    return int(match.group(1)), int(match.group(2))


class BlockManager:
    """Divides ``nrows`` rows into ``nblocks`` equal blocks; the last takes the remainder."""

    def __init__(self, nrows, nblocks):
        if nblocks <= 0:
            raise ValueError("number of blocks must be positive")
        if nrows < 0:
            raise ValueError("number of rows must not be negative")
        self.nrows = int(nrows)
        self.nblocks = int(nblocks)
        self.block_size, self.block_remainder = divmod(self.nrows, self.nblocks)

    def get_block(self, k):
        """Return (start row, row count) of block ``k``."""
        if not 0 <= k < self.nblocks:
            raise IndexError("block index out of range")
        count = self.block_size
        if k == self.nblocks - 1:
            count += self.block_remainder
        return k * self.block_size, count

    def blocks(self):
        """Yield (start row, row count) for every block in order."""
        for k in range(self.nblocks):
            yield self.get_block(k)

    def max_block_size(self):
        return self.block_size + self.block_remainder