from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from .config import Variant
from .errors import (
    ConfigurationError,
    LockedError,
    NotReadyError,
    RobustEstimationError,
)

__all__ = ["InliersData", "EstimationResult", "OutcomeKind", "Outcome"]


@dataclass(frozen=True)
class InliersData:
    """Consensus of the winning hypothesis."""

    mask: np.ndarray  # bool, one per sample
    residuals: np.ndarray
    num_inliers: int
    # median-based variants: best median residual, robust std, derived threshold
    median_residual: Optional[float] = None
    std: Optional[float] = None
    estimated_threshold: Optional[float] = None

    @property
    def indices(self) -> np.ndarray:
        return np.flatnonzero(self.mask)

    @property
    def inlier_ratio(self) -> float:
        n = int(self.mask.shape[0])
        return self.num_inliers / n if n else 0.0


@dataclass(frozen=True)
class EstimationResult:
    """Outcome of one successful estimate() call."""

    model: Any
    inliers: InliersData
    variant: Variant
    iterations: int
    best_iteration: int
    refined: bool = False
    # unrefined winner when refinement replaced it
    candidate: Any = None
    stats: Dict[str, Any] = field(default_factory=dict)

    @property
    def fitness(self) -> Optional[float]:
        return self.stats.get("fitness")


class OutcomeKind(str, enum.Enum):
    SUCCESS = "success"
    ESTIMATION_FAILURE = "estimation_failure"
    CONFIGURATION_ERROR = "configuration_error"
    NOT_READY = "not_ready"
    LOCKED = "locked"


_ERROR_KINDS = (
    (LockedError, OutcomeKind.LOCKED),
    (NotReadyError, OutcomeKind.NOT_READY),
    (ConfigurationError, OutcomeKind.CONFIGURATION_ERROR),
    (RobustEstimationError, OutcomeKind.ESTIMATION_FAILURE),
)


@dataclass(frozen=True)
class Outcome:
    """Success/failure value returned by try_estimate().

    Branch on `kind` instead of catching: ESTIMATION_FAILURE means the data
    had no consensus (relax threshold/confidence), the other failure kinds
    are programming errors.
    """

    kind: OutcomeKind
    result: Optional[EstimationResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def model(self) -> Any:
        return None if self.result is None else self.result.model

    def unwrap(self) -> EstimationResult:
        """Return the result or re-raise the captured error."""
        if self.result is not None:
            return self.result
        assert self.error is not None
        raise self.error

    @staticmethod
    def success(result: EstimationResult) -> "Outcome":
        return Outcome(kind=OutcomeKind.SUCCESS, result=result)

    @staticmethod
    def failure(error: Exception) -> "Outcome":
        for cls, kind in _ERROR_KINDS:
            if isinstance(error, cls):
                return Outcome(kind=kind, error=error)
        raise TypeError(f"Unsupported error type for Outcome: {type(error).__name__}")
