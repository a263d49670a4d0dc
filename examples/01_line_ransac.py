import numpy as np

from robust_fitting.models import slope_intercept, straight_line_estimator

rng = np.random.default_rng(0)
x = np.linspace(0, 10, 100)
y = 2.0 * x - 1.0 + rng.normal(0, 0.05, size=x.size)

# replace 40% of the points with gross outliers
bad = rng.choice(x.size, size=40, replace=False)
y[bad] = rng.uniform(-20, 30, size=bad.size)

est = straight_line_estimator(x, y, variant="ransac", threshold=0.2, refine_result=True, seed=0)
res = est.estimate_result()

m, b = slope_intercept(res.model)
print(f"m={m:.4f} ± {res.model.stderr[1]:.4f}, b={b:.4f} ± {res.model.stderr[0]:.4f}")
print(f"{res.inliers.num_inliers} inliers after {res.iterations} iterations")
