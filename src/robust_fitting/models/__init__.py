from .line import slope_intercept, straight_line_estimator
from .polynomial import (
    DEFAULT_POLYNOMIAL_THRESHOLD,
    Polynomial,
    PolynomialFitter,
    PolynomialRefiner,
    polynomial_estimator,
    polynomial_residuals,
)

__all__ = [
    "DEFAULT_POLYNOMIAL_THRESHOLD",
    "Polynomial",
    "PolynomialFitter",
    "PolynomialRefiner",
    "polynomial_estimator",
    "polynomial_residuals",
    "slope_intercept",
    "straight_line_estimator",
]
