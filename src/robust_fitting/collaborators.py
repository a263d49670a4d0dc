"""Contracts for the caller-supplied pieces the engine plugs together."""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence

import numpy as np

__all__ = [
    "ModelFitter",
    "ResidualEvaluator",
    "Refiner",
    "ProgressListener",
    "per_sample",
    "notify",
]


class ModelFitter(Protocol):
    """Minimal-subset fitter.

    Receives the samples of one subset and returns zero or more candidate
    models. An empty result marks a degenerate subset. Must not keep a
    reference to the subset.
    """

    def __call__(self, subset: Any) -> Sequence[Any]: ...


class ResidualEvaluator(Protocol):
    """Vectorized residual: one non-negative error per sample for a model."""

    def __call__(self, model: Any, samples: Any, *, geometric: bool) -> np.ndarray: ...


class Refiner(Protocol):
    """Non-robust fit over every inlier of the winning hypothesis."""

    def __call__(self, inliers: Any) -> Optional[Any]: ...


class ProgressListener(Protocol):
    """Estimation events. Every method is optional.

    Callbacks run synchronously on the estimating thread and must not call
    back into the estimator (that raises LockedError).
    """

    def on_estimate_start(self, estimator: Any) -> None: ...

    def on_estimate_next_iteration(self, estimator: Any, iteration: int) -> None: ...

    def on_estimate_progress_change(self, estimator: Any, progress: float) -> None: ...

    def on_estimate_end(self, estimator: Any) -> None: ...


def per_sample(func: Callable[[Any, Any], float]) -> ResidualEvaluator:
    """Adapt a scalar ``func(model, sample) -> float`` to a ResidualEvaluator.

    The geometric flag is dropped; use a vectorized evaluator if it matters.
    """

    def evaluator(model: Any, samples: Any, *, geometric: bool = False) -> np.ndarray:
        return np.fromiter(
            (func(model, s) for s in samples), dtype=float, count=len(samples)
        )

    evaluator.__name__ = getattr(func, "__name__", "per_sample")
    return evaluator


def notify(listener: Optional[Any], event: str, *args: Any) -> None:
    """Call listener.<event>(*args) if the listener defines it."""
    if listener is None:
        return
    fn = getattr(listener, event, None)
    if fn is not None:
        fn(*args)
