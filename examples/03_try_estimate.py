import numpy as np

from robust_fitting import OutcomeKind, create

# A fitter that never produces a model: estimation fails without raising.
est = create(
    "ransac",
    fitter=lambda subset: [],
    evaluator=lambda model, samples, geometric: np.zeros(len(samples)),
    subset_size=2,
    samples=np.zeros((10, 2)),
    threshold=1.0,
    max_iterations=20,
)
outcome = est.try_estimate()
assert outcome.kind is OutcomeKind.ESTIMATION_FAILURE
print(outcome.kind.value, "-", outcome.error)

# Missing quality scores for PROSAC: a NOT_READY outcome.
est = create(
    "prosac",
    fitter=lambda subset: [],
    evaluator=lambda model, samples, geometric: np.zeros(len(samples)),
    subset_size=2,
    samples=np.zeros((10, 2)),
    threshold=1.0,
)
print(est.try_estimate().kind.value)
