"""Minimal-subset samplers.

UniformSubsetSampler draws uniformly without replacement (RANSAC, LMedS,
MSAC). ProgressiveSubsetSampler implements the PROSAC growth schedule over
samples ranked by descending quality (PROSAC, PROMedS).
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from .errors import ConfigurationError, NotEnoughSamplesError
from .util import SeedLike, as_rng

__all__ = ["UniformSubsetSampler", "ProgressiveSubsetSampler", "quality_order"]


def quality_order(quality_scores: np.ndarray) -> np.ndarray:
    """Sample indices sorted by descending quality (ties keep input order)."""
    q = np.asarray(quality_scores, dtype=float)
    return np.argsort(-q, kind="stable")


class UniformSubsetSampler:
    """Uniform draws of `subset_size` distinct indices out of `num_samples`."""

    def __init__(self, num_samples: int, subset_size: int, rng: SeedLike = None):
        if subset_size < 1:
            raise ConfigurationError(f"subset_size must be >= 1, got {subset_size!r}.")
        if num_samples < subset_size:
            raise NotEnoughSamplesError(
                f"Need at least {subset_size} samples, got {num_samples}."
            )
        self.num_samples = int(num_samples)
        self.subset_size = int(subset_size)
        self.rng = as_rng(rng)

    def next_subset(self) -> np.ndarray:
        return self.rng.choice(self.num_samples, size=self.subset_size, replace=False)

    def subset_in_range(self, lo: int, hi: int, *, pick_last: bool = False) -> np.ndarray:
        """Draw from positions [lo, hi); with pick_last, hi - 1 is always included."""
        if lo < 0 or hi <= lo:
            raise ConfigurationError(f"Invalid subset range [{lo}, {hi}).")
        if hi > self.num_samples:
            raise NotEnoughSamplesError(
                f"Range end {hi} exceeds the {self.num_samples} available samples."
            )
        m = self.subset_size
        if hi - lo < m:
            raise NotEnoughSamplesError(
                f"Range [{lo}, {hi}) holds fewer than {m} samples."
            )
        if not pick_last:
            return lo + self.rng.choice(hi - lo, size=m, replace=False)

        out = np.empty((m,), dtype=np.intp)
        out[0] = hi - 1
        if m > 1:
            out[1:] = lo + self.rng.choice(hi - 1 - lo, size=m - 1, replace=False)
        return out


class ProgressiveSubsetSampler:
    """PROSAC sampling schedule.

    The hypothesis generation set U_n holds the top n samples by quality and
    starts at n = subset_size. With T_N the initial iteration budget,

        T_n = T_N * prod_{i<m} (n - i) / (N - i)
        T_{n+1} = T_n * (n + 1) / (n + 1 - m)
        T'_{n+1} = T'_n + ceil(T_{n+1} - T_n)

    n grows by one whenever t > T'_n (and n < n*). While t <= T'_n the subset
    is sample n plus m - 1 random picks from the top n - 1; afterwards it is a
    uniform draw from U_n.
    """

    def __init__(
        self,
        quality_scores: np.ndarray,
        subset_size: int,
        rng: SeedLike = None,
        *,
        initial_budget: int,
        order: Optional[np.ndarray] = None,
    ):
        self.order = quality_order(quality_scores) if order is None else np.asarray(order)
        self._uniform = UniformSubsetSampler(len(self.order), subset_size, rng)

        n_total = self.num_samples
        m = self.subset_size
        self.pool_size = m
        self.pool_limit = n_total
        self.iteration = 0
        self._tn_prime = 1
        tn = float(initial_budget)
        for i in range(m):
            tn *= (self.pool_size - i) / (n_total - i)
        self._tn = tn

    @property
    def num_samples(self) -> int:
        return self._uniform.num_samples

    @property
    def subset_size(self) -> int:
        return self._uniform.subset_size

    @property
    def rng(self) -> np.random.Generator:
        return self._uniform.rng

    def limit_pool(self, n_star: int) -> None:
        """Stop growing U_n beyond the termination length n*."""
        self.pool_limit = max(self.subset_size, min(int(n_star), self.num_samples))

    def next_subset(self) -> np.ndarray:
        self.iteration += 1
        t = self.iteration
        m = self.subset_size

        if t > self._tn_prime and self.pool_size < self.pool_limit:
            n = self.pool_size
            tn_next = self._tn * (n + 1) / (n + 1 - m)
            self.pool_size = n + 1
            self._tn_prime += int(math.ceil(tn_next - self._tn))
            self._tn = tn_next

        if t > self._tn_prime:
            local = self._uniform.subset_in_range(0, self.pool_size)
        else:
            local = self._uniform.subset_in_range(0, self.pool_size, pick_last=True)
        return self.order[local]
