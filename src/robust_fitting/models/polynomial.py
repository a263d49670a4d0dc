from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Union

import numpy as np
from numpy.polynomial import polynomial as P
from scipy import linalg

from ..config import DEFAULT_VARIANT, Variant
from ..engine import RobustEstimator, create
from ..errors import ConfigurationError
from ..util import SeedLike

__all__ = [
    "DEFAULT_POLYNOMIAL_THRESHOLD",
    "Polynomial",
    "PolynomialFitter",
    "PolynomialRefiner",
    "polynomial_residuals",
    "polynomial_estimator",
]

DEFAULT_POLYNOMIAL_THRESHOLD = 1e-6


def _as_points(samples: Any) -> np.ndarray:
    """(n, 2) float array of (x, y) rows."""
    pts = np.asarray(samples, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Polynomial samples must have shape (n, 2), got {pts.shape}.")
    return pts


@dataclass(frozen=True, eq=False)
class Polynomial:
    """p(x) = c0 + c1 x + ... + cd x**d (ascending coefficients)."""

    coeffs: np.ndarray
    # covariance of coeffs, set by PolynomialRefiner when it can be estimated
    cov: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        c = np.asarray(self.coeffs, dtype=float).reshape((-1,))
        if c.size == 0:
            raise ValueError("Polynomial needs at least one coefficient.")
        object.__setattr__(self, "coeffs", c)

    @property
    def degree(self) -> int:
        return int(self.coeffs.shape[0] - 1)

    @property
    def stderr(self) -> Optional[np.ndarray]:
        if self.cov is None:
            return None
        return np.sqrt(np.clip(np.diag(self.cov), 0.0, None))

    def __call__(self, x: Any) -> Any:
        return P.polyval(x, self.coeffs)

    def derivative(self) -> "Polynomial":
        return Polynomial(P.polyder(self.coeffs))

    def __repr__(self) -> str:
        return f"Polynomial(coeffs={np.array2string(self.coeffs, precision=6)})"


class PolynomialFitter:
    """Exact interpolation through degree + 1 points."""

    def __init__(self, degree: int):
        if int(degree) < 1:
            raise ConfigurationError(f"degree must be >= 1, got {degree!r}.")
        self.degree = int(degree)

    @property
    def subset_size(self) -> int:
        return self.degree + 1

    def __call__(self, subset: Any) -> List[Polynomial]:
        pts = _as_points(subset)
        if pts.shape[0] != self.subset_size:
            raise ValueError(
                f"Expected {self.subset_size} points for degree {self.degree}, got {pts.shape[0]}."
            )
        x, y = pts[:, 0], pts[:, 1]
        # repeated abscissae make the Vandermonde system singular
        if np.unique(x).shape[0] < x.shape[0]:
            return []
        vander = np.vander(x, self.subset_size, increasing=True)
        try:
            coeffs = np.linalg.solve(vander, y)
        except np.linalg.LinAlgError:
            return []
        if not np.all(np.isfinite(coeffs)):
            return []
        return [Polynomial(coeffs)]


def polynomial_residuals(poly: Polynomial, samples: Any, *, geometric: bool = False) -> np.ndarray:
    """|p(x) - y| per sample, or the distance to the tangent line at x."""
    pts = _as_points(samples)
    x, y = pts[:, 0], pts[:, 1]
    r = np.abs(poly(x) - y)
    if geometric:
        slope = poly.derivative()(x)
        r = r / np.sqrt(1.0 + slope * slope)
    return r


class PolynomialRefiner:
    """Ordinary least-squares polynomial over all inliers.

    Returns None when the inliers cannot determine the coefficients (too few
    points or rank deficient). The covariance follows curve_fit's unscaled
    convention: s**2 (V^T V)^-1 with s**2 the residual variance.
    """

    def __init__(self, degree: int):
        if int(degree) < 1:
            raise ConfigurationError(f"degree must be >= 1, got {degree!r}.")
        self.degree = int(degree)

    def __call__(self, inliers: Any) -> Optional[Polynomial]:
        pts = _as_points(inliers)
        n_coeffs = self.degree + 1
        if pts.shape[0] < n_coeffs:
            return None
        x, y = pts[:, 0], pts[:, 1]
        vander = np.vander(x, n_coeffs, increasing=True)
        coeffs, _, rank, _ = linalg.lstsq(vander, y)
        if rank < n_coeffs or not np.all(np.isfinite(coeffs)):
            return None

        cov = None
        dof = pts.shape[0] - n_coeffs
        if dof > 0:
            resid = vander @ coeffs - y
            s2 = float(resid @ resid) / dof
            cov = s2 * linalg.pinvh(vander.T @ vander)
        return Polynomial(coeffs, cov=cov)


def polynomial_estimator(
    degree: int,
    x: Any,
    y: Any,
    *,
    variant: Union[Variant, str] = DEFAULT_VARIANT,
    quality_scores: Any = None,
    threshold: float = DEFAULT_POLYNOMIAL_THRESHOLD,
    geometric: bool = False,
    refine_result: bool = False,
    seed: SeedLike = None,
    **options: Any,
) -> RobustEstimator:
    """Robust polynomial fit of y(x) of the given degree.

    Samples are stored as an (n, 2) array of (x, y) rows. Median-based
    variants stop as soon as the estimated threshold reaches `threshold`
    unless `stop_threshold` is given.

    Example
    -------
    >>> est = polynomial_estimator(1, x, y, variant="ransac", threshold=0.1, seed=0)
    >>> line = est.estimate()
    """
    if int(degree) < 1:
        raise ConfigurationError(f"degree must be >= 1, got {degree!r}.")
    x_arr = np.asarray(x, dtype=float).reshape((-1,))
    y_arr = np.asarray(y, dtype=float).reshape((-1,))
    if x_arr.shape != y_arr.shape:
        raise ConfigurationError(
            f"x and y must have the same length, got {x_arr.shape[0]} and {y_arr.shape[0]}."
        )

    v = Variant.parse(variant)
    if v.median_based:
        options.setdefault("stop_threshold", threshold)

    return create(
        v,
        fitter=PolynomialFitter(degree),
        evaluator=polynomial_residuals,
        subset_size=int(degree) + 1,
        samples=np.column_stack((x_arr, y_arr)),
        quality_scores=quality_scores,
        threshold=threshold,
        use_geometric_distance=geometric,
        refine_result=refine_result,
        refiner=PolynomialRefiner(degree),
        seed=seed,
        **options,
    )
