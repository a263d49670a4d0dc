"""Consensus scoring policies, one per variant.

Every scorer maps an absolute residual vector to a Score whose fitness is
"higher is better" across all variants.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np

from .config import EngineConfig, Variant

__all__ = [
    "Score",
    "STD_CONSTANT",
    "robust_std",
    "score_ransac",
    "score_msac",
    "score_lmeds",
    "score_promeds",
    "get_scorer",
]

# consistency constant of the median absolute residual for Normal errors
STD_CONSTANT = 1.4826


@dataclass(frozen=True)
class Score:
    """Verdict for one candidate."""

    fitness: float
    inliers: np.ndarray  # bool mask, one per sample
    num_inliers: int
    residuals: np.ndarray
    # median-based variants only
    median: Optional[float] = None
    std: Optional[float] = None
    threshold: Optional[float] = None


Scorer = Callable[[np.ndarray, EngineConfig, int], Score]


def robust_std(median_residual: float, num_samples: int, subset_size: int) -> float:
    """Rousseeuw's LMedS scale estimate 1.4826 (1 + 5 / (n - p)) med|r|."""
    dof = max(num_samples - subset_size, 1)
    return STD_CONSTANT * (1.0 + 5.0 / dof) * float(median_residual)


def _threshold_score(residuals: np.ndarray, threshold: float) -> tuple[np.ndarray, int]:
    inliers = residuals < threshold
    return inliers, int(np.count_nonzero(inliers))


def score_ransac(residuals: np.ndarray, config: EngineConfig, subset_size: int) -> Score:
    """Fitness is the raw inlier count (PROSAC uses the same rule)."""
    inliers, count = _threshold_score(residuals, float(config.threshold))
    return Score(
        fitness=float(count),
        inliers=inliers,
        num_inliers=count,
        residuals=residuals,
        threshold=config.threshold,
    )


def score_msac(residuals: np.ndarray, config: EngineConfig, subset_size: int) -> Score:
    """Truncated quadratic: inliers contribute threshold**2 - r**2, outliers 0."""
    t = float(config.threshold)
    inliers, count = _threshold_score(residuals, t)
    r_in = residuals[inliers]
    fitness = float(np.sum(t * t - r_in * r_in))
    return Score(
        fitness=fitness,
        inliers=inliers,
        num_inliers=count,
        residuals=residuals,
        threshold=t,
    )


def _median_score(residuals: np.ndarray, config: EngineConfig, subset_size: int):
    med = float(np.median(residuals))
    std = robust_std(med, residuals.shape[0], subset_size)
    estimated = float(config.inlier_factor) * std
    inliers = residuals <= estimated
    return med, std, estimated, inliers


def score_lmeds(residuals: np.ndarray, config: EngineConfig, subset_size: int) -> Score:
    """Least median of residuals; inliers fall within inlier_factor robust std."""
    med, std, estimated, inliers = _median_score(residuals, config, subset_size)
    return Score(
        fitness=-med,
        inliers=inliers,
        num_inliers=int(np.count_nonzero(inliers)),
        residuals=residuals,
        median=med,
        std=std,
        threshold=estimated,
    )


def score_promeds(residuals: np.ndarray, config: EngineConfig, subset_size: int) -> Score:
    """LMedS fitness; with an inlier threshold the stricter inlier mask wins."""
    med, std, estimated, inliers = _median_score(residuals, config, subset_size)
    count = int(np.count_nonzero(inliers))
    if config.uses_inlier_threshold:
        fixed = residuals <= float(config.threshold)
        fixed_count = int(np.count_nonzero(fixed))
        if fixed_count <= count:
            inliers, count = fixed, fixed_count
    return Score(
        fitness=-med,
        inliers=inliers,
        num_inliers=count,
        residuals=residuals,
        median=med,
        std=std,
        threshold=estimated,
    )


_SCORERS: Dict[Variant, Scorer] = {
    Variant.RANSAC: score_ransac,
    Variant.MSAC: score_msac,
    Variant.LMEDS: score_lmeds,
    Variant.PROSAC: score_ransac,
    Variant.PROMEDS: score_promeds,
}


def get_scorer(variant: Any) -> Scorer:
    """Return the scoring policy for a variant."""
    return _SCORERS[Variant.parse(variant)]
