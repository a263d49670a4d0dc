import numpy as np
import matplotlib.pyplot as plt

from robust_fitting.models import polynomial_estimator
from robust_fitting.plotting import plot_consensus

rng = np.random.default_rng(2)
x = np.sort(rng.uniform(0, 6, 150))
y = np.sin(1.0) + 0.8 * x - 0.15 * x**2 + rng.normal(0, 0.03, x.size)
bad = rng.choice(x.size, size=45, replace=False)
y[bad] = rng.uniform(-2, 3, bad.size)

est = polynomial_estimator(2, x, y, variant="lmeds", refine_result=True, seed=0)
res = est.estimate_result()
print(res.model, f"robust std={res.inliers.std:.4f}")

fig, ax = plot_consensus(res, x, y, show_threshold=True)
ax.set_xlabel("x")
ax.set_ylabel("y")
ax.legend()
plt.show()
