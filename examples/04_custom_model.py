"""Robust circle fit with caller-supplied fitter and residual evaluator."""

import numpy as np

from robust_fitting import create


def circle_through(subset):
    (x1, y1), (x2, y2), (x3, y3) = np.asarray(subset, dtype=float)
    a = np.array([[x2 - x1, y2 - y1], [x3 - x1, y3 - y1]])
    b = 0.5 * np.array([x2**2 - x1**2 + y2**2 - y1**2, x3**2 - x1**2 + y3**2 - y1**2])
    try:
        cx, cy = np.linalg.solve(a, b)
    except np.linalg.LinAlgError:
        # collinear points
        return []
    return [(cx, cy, float(np.hypot(x1 - cx, y1 - cy)))]


def distance_to_circle(circle, samples, *, geometric=False):
    cx, cy, r = circle
    pts = np.asarray(samples, dtype=float)
    return np.abs(np.hypot(pts[:, 0] - cx, pts[:, 1] - cy) - r)


class Progress:
    def on_estimate_progress_change(self, estimator, progress):
        print(f"  progress {progress:.0%}")


rng = np.random.default_rng(4)
theta = rng.uniform(0, 2 * np.pi, 120)
pts = np.column_stack((3.0 + 2.0 * np.cos(theta), -1.0 + 2.0 * np.sin(theta)))
pts += rng.normal(0, 0.01, pts.shape)
pts[:50] = rng.uniform(-2, 8, (50, 2))

est = create(
    "msac",
    fitter=circle_through,
    evaluator=distance_to_circle,
    subset_size=3,
    samples=pts,
    threshold=0.05,
    listener=Progress(),
    seed=4,
)
res = est.estimate_result()
cx, cy, r = res.model
print(f"center=({cx:.3f}, {cy:.3f}) radius={r:.3f} inliers={res.inliers.num_inliers}")
