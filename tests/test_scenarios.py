"""End-to-end behaviour on synthetic lines with gross outliers."""

import numpy as np
import pytest

from robust_fitting.models import slope_intercept, straight_line_estimator


def _contaminated_line(seed, n=100, outlier_fraction=0.4, sigma=0.01, ranked=False):
    """y = 2x + 1 with a fraction of uniformly scattered outliers.

    With ranked=True, quality scores rank every inlier above every outlier.
    """
    rng = np.random.default_rng(seed)
    x = rng.uniform(0.0, 10.0, n)
    y = 2.0 * x + 1.0 + rng.normal(0.0, sigma, n)
    bad = rng.choice(n, size=int(outlier_fraction * n), replace=False)
    y[bad] = rng.uniform(-20.0, 40.0, bad.shape[0])
    is_inlier = np.ones(n, dtype=bool)
    is_inlier[bad] = False

    q = rng.uniform(0.0, 1.0, n)
    if ranked:
        q[is_inlier] += 1.0
    return x, y, q, is_inlier


@pytest.mark.parametrize("variant", ["ransac", "msac"])
def test_recovers_line_with_40_percent_outliers(variant):
    recovered = 0
    for seed in range(100):
        x, y, _, _ = _contaminated_line(seed)
        est = straight_line_estimator(
            x, y, variant=variant, threshold=0.1, refine_result=True, seed=seed
        )
        m, b = slope_intercept(est.estimate())
        if abs(m - 2.0) < 0.05 and abs(b - 1.0) < 0.1:
            recovered += 1
    assert recovered >= 95


@pytest.mark.parametrize("variant", ["ransac", "msac", "lmeds"])
def test_inlier_mask_matches_ground_truth(variant):
    x, y, _, is_inlier = _contaminated_line(7, outlier_fraction=0.3)
    est = straight_line_estimator(x, y, variant=variant, threshold=0.1, seed=7)
    result = est.estimate_result()
    mask = result.inliers.mask
    # scattered outliers occasionally land within the threshold band
    assert np.count_nonzero(mask & ~is_inlier) <= 2
    assert result.inliers.num_inliers >= 0.6 * is_inlier.sum()


def test_lmeds_reports_robust_scale():
    x, y, _, _ = _contaminated_line(3, outlier_fraction=0.3, sigma=0.05)
    result = straight_line_estimator(x, y, variant="lmeds", seed=3).estimate_result()
    assert result.inliers.median_residual is not None
    assert 0.0 < result.inliers.std < 0.2
    assert result.inliers.estimated_threshold == pytest.approx(2.5 * result.inliers.std)


def test_prosac_needs_fewer_iterations_than_ransac():
    prosac_total = 0
    ransac_total = 0
    for seed in range(10):
        x, y, q, _ = _contaminated_line(seed, outlier_fraction=0.6, ranked=True)
        prosac = straight_line_estimator(
            x, y, variant="prosac", quality_scores=q, threshold=0.1, refine_result=True, seed=seed
        ).estimate_result()
        ransac = straight_line_estimator(
            x, y, variant="ransac", threshold=0.1, seed=seed
        ).estimate_result()
        prosac_total += prosac.iterations
        ransac_total += ransac.iterations

        m, _ = slope_intercept(prosac.model)
        assert m == pytest.approx(2.0, abs=0.05)
        assert prosac.stats["termination_length"] <= 100

    assert prosac_total < ransac_total


def test_promeds_recovers_line_with_ranked_samples():
    x, y, q, is_inlier = _contaminated_line(11, outlier_fraction=0.5, ranked=True)
    est = straight_line_estimator(
        x, y, variant="promeds", quality_scores=q, threshold=0.1, refine_result=True, seed=11
    )
    result = est.estimate_result()
    m, b = slope_intercept(result.model)
    assert m == pytest.approx(2.0, abs=0.01)
    assert b == pytest.approx(1.0, abs=0.05)
    assert np.count_nonzero(result.inliers.mask & ~is_inlier) <= 2
