"""Adaptive iteration budget and the PROSAC stopping rules.

The progressive rules follow Chum & Matas, "Matching with PROSAC -
Progressive Sample Consensus" (CVPR 2005):

- non-randomness: the inlier count I_n within the top n samples must exceed
  imin(n), the count a random model would reach with probability < 1 - P
  (binomial with parameter beta, normal approximation, chi-squared P=0.90);
- maximality: k_n* draws from the top n* samples must have been made so that
  an all-inlier subset was missed with probability < eta0.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.stats import chi2

__all__ = [
    "CHI_SQUARED",
    "required_iterations",
    "min_inliers_for_non_randomness",
    "IterationBudget",
    "ProgressiveTermination",
]

# chi-squared quantile, 1 dof, P = 0.90 (2.706)
CHI_SQUARED = float(chi2.ppf(0.90, df=1))

_TINY = np.finfo(float).tiny


def required_iterations(
    inlier_ratio: float,
    subset_size: int,
    confidence: float,
    max_iterations: Optional[int] = None,
) -> int:
    """Number of draws needed to pick one all-inlier subset with `confidence`.

    N = ceil(log(1 - p) / log(1 - w**s)), clipped to max_iterations. A
    perfect consensus (w == 1) needs one iteration; when w**s underflows the
    count saturates at max_iterations.
    """
    cap = sys.maxsize if max_iterations is None else int(max_iterations)
    w = float(inlier_ratio)
    if math.isnan(w) or w <= 0.0:
        return cap

    prob_all_inliers = w ** int(subset_size)
    if prob_all_inliers >= 1.0:
        return min(1, cap)
    if prob_all_inliers < _TINY or confidence >= 1.0:
        return cap

    log_some_outliers = math.log1p(-prob_all_inliers)
    if abs(log_some_outliers) < _TINY:
        return cap

    n = math.ceil(abs(math.log1p(-float(confidence)) / log_some_outliers))
    return int(min(max(n, 1), cap))


def min_inliers_for_non_randomness(subset_size: int, sample_size: int, beta: float) -> int:
    """imin(n): smallest inlier count not explained by a random model."""
    mu = sample_size * beta
    sigma = math.sqrt(sample_size * beta * (1.0 - beta))
    return int(math.ceil(subset_size + mu + sigma * math.sqrt(CHI_SQUARED)))


@dataclass
class IterationBudget:
    """Remaining-iteration bookkeeping; the budget only ever shrinks."""

    max_iterations: int
    subset_size: int
    confidence: float
    budget: int = 0

    def __post_init__(self) -> None:
        if self.budget <= 0:
            self.budget = int(self.max_iterations)

    def update(self, num_inliers: int, num_samples: int) -> int:
        """Shrink the budget from the best inlier ratio so far."""
        if num_samples <= 0:
            return self.budget
        n = required_iterations(
            num_inliers / num_samples,
            self.subset_size,
            self.confidence,
            self.max_iterations,
        )
        if n < self.budget:
            self.budget = n
        return self.budget

    def exhausted(self, iteration: int) -> bool:
        return iteration >= min(self.budget, self.max_iterations)

    def remaining(self, iteration: int) -> int:
        return max(0, min(self.budget, self.max_iterations) - iteration)


class ProgressiveTermination:
    """Termination length n*, non-randomness and maximality for PROSAC/PROMedS.

    `order` holds sample indices by descending quality. observe() is fed the
    inlier mask of every candidate; only candidates beating the best inlier
    count so far update n*.
    """

    def __init__(
        self,
        order: np.ndarray,
        *,
        subset_size: int,
        confidence: float,
        max_iterations: int,
        max_outliers_proportion: float,
        eta0: float,
        beta: float,
    ):
        self.order = np.asarray(order, dtype=np.intp)
        self.num_samples = int(self.order.shape[0])
        self.subset_size = int(subset_size)
        self.max_iterations = int(max_iterations)
        self.eta0 = float(eta0)
        self.beta = float(beta)

        # T_N
        self.initial_budget = min(
            required_iterations(
                1.0 - max_outliers_proportion, subset_size, confidence, max_iterations
            ),
            self.max_iterations,
        )
        # tolerance keeps e.g. 0.2 * 100 at 20 despite rounding
        self.min_inliers = int(math.floor((1.0 - max_outliers_proportion) * self.num_samples + 1e-9))

        self.n_star = self.num_samples
        self.inliers_n_star = 0
        self.k_n_star = self.initial_budget
        self.inliers_best = 0

    def observe(self, inliers: np.ndarray, num_inliers: int) -> bool:
        """Update n* from a candidate's inlier mask. Returns True if it was used."""
        if num_inliers <= self.inliers_best:
            return False
        self.inliers_best = int(num_inliers)

        # I_n for every prefix of the quality ordering
        prefix_counts = np.cumsum(np.asarray(inliers, dtype=bool)[self.order])
        m = self.subset_size

        n_best = self.num_samples
        i_best = int(num_inliers)
        eps_best = i_best / n_best
        for n in range(self.num_samples, m, -1):
            i_n = int(prefix_counts[n - 1])
            # cheap ratio test first, then significance of the improvement
            if i_n * n_best > i_best * n and i_n > eps_best * n + math.sqrt(
                n * eps_best * (1.0 - eps_best) * CHI_SQUARED
            ):
                if i_n < min_inliers_for_non_randomness(m, n, self.beta):
                    break
                n_best = n
                i_best = i_n
                eps_best = i_best / n_best

        if i_best * self.n_star > self.inliers_n_star * n_best:
            self.n_star = n_best
            self.inliers_n_star = i_best
            self.k_n_star = required_iterations(
                i_best / n_best, m, 1.0 - self.eta0, self.max_iterations
            )
        return True

    def satisfied(self, iteration: int) -> bool:
        """Both the non-randomness and maximality conditions hold."""
        return self.inliers_best >= self.min_inliers and iteration >= self.k_n_star

    def exhausted(self, iteration: int) -> bool:
        return iteration >= self.initial_budget
