import numpy as np
import pytest

from robust_fitting import ConfigurationError, Variant
from robust_fitting.models import (
    Polynomial,
    PolynomialFitter,
    PolynomialRefiner,
    polynomial_estimator,
    polynomial_residuals,
    slope_intercept,
    straight_line_estimator,
)


def test_polynomial_evaluation_and_derivative():
    p = Polynomial([1.0, -2.0, 3.0])
    assert p.degree == 2
    np.testing.assert_allclose(p(np.array([0.0, 1.0, 2.0])), [1.0, 2.0, 9.0])
    np.testing.assert_allclose(p.derivative().coeffs, [-2.0, 6.0])
    assert p.stderr is None


def test_fitter_interpolates_exactly():
    fitter = PolynomialFitter(2)
    x = np.array([-1.0, 0.5, 2.0])
    y = 0.5 - x + 2.0 * x**2
    (p,) = fitter(np.column_stack((x, y)))
    np.testing.assert_allclose(p.coeffs, [0.5, -1.0, 2.0], atol=1e-12)


def test_fitter_rejects_repeated_abscissae():
    fitter = PolynomialFitter(1)
    assert fitter(np.array([[1.0, 2.0], [1.0, 3.0]])) == []


def test_fitter_requires_minimal_subset():
    with pytest.raises(ValueError):
        PolynomialFitter(1)(np.zeros((3, 2)))
    with pytest.raises(ConfigurationError):
        PolynomialFitter(0)


def test_algebraic_and_geometric_residuals():
    line = Polynomial([0.0, 1.0])
    samples = np.array([[0.0, 1.0], [2.0, 2.0], [1.0, -1.0]])
    np.testing.assert_allclose(polynomial_residuals(line, samples), [1.0, 0.0, 2.0])
    np.testing.assert_allclose(
        polynomial_residuals(line, samples, geometric=True),
        np.array([1.0, 0.0, 2.0]) / np.sqrt(2.0),
    )


def test_residuals_reject_bad_shape():
    with pytest.raises(ValueError, match="shape"):
        polynomial_residuals(Polynomial([0.0, 1.0]), np.zeros(4))


def test_refiner_least_squares_with_covariance():
    rng = np.random.default_rng(0)
    x = np.linspace(0.0, 5.0, 200)
    y = 1.0 + 0.5 * x - 0.2 * x**2 + rng.normal(0.0, 0.05, x.shape)
    p = PolynomialRefiner(2)(np.column_stack((x, y)))
    assert p is not None
    np.testing.assert_allclose(p.coeffs, [1.0, 0.5, -0.2], atol=0.05)
    assert p.cov.shape == (3, 3)
    assert np.all(p.stderr > 0.0)


def test_refiner_reproduces_noiseless_model():
    x = np.linspace(-2.0, 2.0, 9)
    samples = np.column_stack((x, 3.0 - x))
    (exact,) = PolynomialFitter(1)(samples[[0, -1]])
    refined = PolynomialRefiner(1)(samples)
    np.testing.assert_allclose(refined.coeffs, exact.coeffs, atol=1e-12)


def test_refiner_gives_up_on_too_few_points():
    assert PolynomialRefiner(2)(np.array([[0.0, 1.0], [1.0, 2.0]])) is None
    assert PolynomialRefiner(1)(np.array([[1.0, 1.0], [1.0, 2.0], [1.0, 3.0]])) is None


def test_polynomial_estimator_builds_engine():
    x = np.linspace(0.0, 1.0, 10)
    est = polynomial_estimator(3, x, x**3, variant="lmeds")
    assert est.variant is Variant.LMEDS
    assert est.min_samples == 4
    assert est.samples.shape == (10, 2)
    assert est.config.stop_threshold == est.config.threshold == 1e-6


def test_polynomial_estimator_validates_inputs():
    with pytest.raises(ConfigurationError):
        polynomial_estimator(0, [0.0, 1.0], [0.0, 1.0])
    with pytest.raises(ConfigurationError, match="same length"):
        polynomial_estimator(1, [0.0, 1.0, 2.0], [0.0, 1.0])


@pytest.mark.parametrize("variant", list(Variant))
def test_every_variant_recovers_clean_parabola(variant):
    x = np.linspace(-3.0, 3.0, 40)
    y = 2.0 - x + 0.5 * x**2
    q = np.linspace(1.0, 0.0, 40) if variant.progressive else None
    est = polynomial_estimator(2, x, y, variant=variant, quality_scores=q, threshold=1e-6, seed=0)
    result = est.estimate_result()
    np.testing.assert_allclose(result.model.coeffs, [2.0, -1.0, 0.5], atol=1e-6)
    assert result.iterations == 1


def test_straight_line_estimator_and_slope_intercept():
    rng = np.random.default_rng(5)
    x = np.linspace(0.0, 10.0, 80)
    y = -1.5 * x + 4.0 + rng.normal(0.0, 0.02, x.shape)
    y[::5] += 30.0
    est = straight_line_estimator(x, y, variant="msac", threshold=0.1, refine_result=True, seed=1)
    m, b = slope_intercept(est.estimate())
    assert m == pytest.approx(-1.5, abs=0.01)
    assert b == pytest.approx(4.0, abs=0.05)


def test_slope_intercept_requires_line():
    with pytest.raises(ValueError):
        slope_intercept(Polynomial([1.0, 2.0, 3.0]))


def test_clean_line_with_tight_threshold_stops_after_first_iteration():
    x = np.linspace(0.0, 10.0, 100)
    est = straight_line_estimator(x, 2.0 * x + 1.0, variant="ransac", threshold=1e-6, seed=0)
    result = est.estimate_result()
    assert result.iterations == 1
    assert result.inliers.num_inliers == 100


def test_refinement_on_noiseless_line_reproduces_candidate():
    x = np.linspace(0.0, 10.0, 100)
    est = straight_line_estimator(
        x, 2.0 * x + 1.0, variant="ransac", threshold=1e-6, refine_result=True, seed=0
    )
    result = est.estimate_result()
    assert result.refined
    assert result.inliers.num_inliers == 100
    np.testing.assert_allclose(result.model.coeffs, result.candidate.coeffs, atol=1e-9)
    np.testing.assert_allclose(result.model.coeffs, [1.0, 2.0], atol=1e-9)
