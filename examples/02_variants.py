import numpy as np

from robust_fitting import Variant
from robust_fitting.models import polynomial_estimator

rng = np.random.default_rng(1)
x = np.linspace(-2, 2, 80)
y = 0.5 - x + 0.75 * x**2 + rng.normal(0, 0.02, size=x.size)
bad = rng.choice(x.size, size=24, replace=False)
y[bad] += rng.uniform(-5, 5, size=bad.size)

# quality: inverse residual of a crude least-squares fit, higher = better
crude = np.polynomial.polynomial.Polynomial.fit(x, y, 2)
quality = 1.0 / (1e-3 + np.abs(crude(x) - y))

for variant in Variant:
    est = polynomial_estimator(
        2,
        x,
        y,
        variant=variant,
        quality_scores=quality if variant.progressive else None,
        threshold=0.08,
        refine_result=True,
        seed=0,
    )
    res = est.estimate_result()
    print(
        f"{variant.value:>8}: coeffs={np.round(res.model.coeffs, 3)}"
        f" inliers={res.inliers.num_inliers:3d} iterations={res.iterations}"
    )
