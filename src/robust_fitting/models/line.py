from __future__ import annotations

from typing import Any, Tuple

from ..engine import RobustEstimator
from .polynomial import Polynomial, polynomial_estimator


def straight_line_estimator(x: Any, y: Any, **kwargs: Any) -> RobustEstimator:
    """Robust straight line y = m*x + b; kwargs as for polynomial_estimator."""
    return polynomial_estimator(1, x, y, **kwargs)


def slope_intercept(line: Polynomial) -> Tuple[float, float]:
    """Return (m, b) of a degree-1 Polynomial."""
    if line.degree != 1:
        raise ValueError(f"Expected a straight line, got degree {line.degree}.")
    b, m = line.coeffs
    return float(m), float(b)
