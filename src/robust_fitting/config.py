from __future__ import annotations

import enum
import math
from dataclasses import dataclass, replace
from typing import Any, Optional, Union

from .errors import ConfigurationError

__all__ = [
    "Variant",
    "EngineConfig",
    "DEFAULT_VARIANT",
    "DEFAULT_CONFIDENCE",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_PROGRESS_DELTA",
    "DEFAULT_MAX_OUTLIERS_PROPORTION",
    "DEFAULT_ETA0",
    "DEFAULT_BETA",
    "DEFAULT_INLIER_FACTOR",
    "DEFAULT_STOP_THRESHOLD",
]


DEFAULT_CONFIDENCE = 0.99
DEFAULT_MAX_ITERATIONS = 5000
DEFAULT_PROGRESS_DELTA = 0.05

# PROSAC / PROMedS (Chum & Matas 2005)
DEFAULT_MAX_OUTLIERS_PROPORTION = 0.8
DEFAULT_ETA0 = 0.05
DEFAULT_BETA = 0.01

# LMedS / PROMedS: inliers are residuals within inlier_factor robust std
DEFAULT_INLIER_FACTOR = 2.5
DEFAULT_STOP_THRESHOLD = 0.0


class Variant(str, enum.Enum):
    """Robust estimation method: selects the sampler and scorer policies."""

    RANSAC = "ransac"
    LMEDS = "lmeds"
    MSAC = "msac"
    PROSAC = "prosac"
    PROMEDS = "promeds"

    @classmethod
    def parse(cls, value: Union["Variant", str]) -> "Variant":
        if isinstance(value, Variant):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise ConfigurationError(
                f"Unknown variant {value!r}. Available: {tuple(v.value for v in cls)}"
            ) from e

    @property
    def progressive(self) -> bool:
        """Whether samples are drawn by descending quality score."""
        return self in (Variant.PROSAC, Variant.PROMEDS)

    @property
    def median_based(self) -> bool:
        return self in (Variant.LMEDS, Variant.PROMEDS)

    @property
    def requires_threshold(self) -> bool:
        return self in (Variant.RANSAC, Variant.MSAC, Variant.PROSAC)


DEFAULT_VARIANT = Variant.PROSAC


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}.") from e


def _check_unit_interval(name: str, value: float, *, open_: bool = False) -> None:
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value!r}.")
    if open_:
        if not (0.0 < value < 1.0):
            raise ConfigurationError(f"{name} must lie in (0, 1), got {value!r}.")
    elif not (0.0 <= value <= 1.0):
        raise ConfigurationError(f"{name} must lie in [0, 1], got {value!r}.")


@dataclass(frozen=True)
class EngineConfig:
    """Immutable, validated snapshot of the estimator settings.

    threshold is mandatory for RANSAC, MSAC and PROSAC. PROMedS uses it as an
    additional inlier bound only when given (and use_inlier_threshold is set);
    LMedS ignores it. use_geometric_distance is never read by the engine
    itself: it is forwarded to the residual evaluator.
    """

    variant: Variant = DEFAULT_VARIANT
    confidence: float = DEFAULT_CONFIDENCE
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    threshold: Optional[float] = None
    progress_delta: float = DEFAULT_PROGRESS_DELTA
    refine_result: bool = False
    use_geometric_distance: bool = False
    max_outliers_proportion: float = DEFAULT_MAX_OUTLIERS_PROPORTION
    eta0: float = DEFAULT_ETA0
    beta: float = DEFAULT_BETA
    inlier_factor: float = DEFAULT_INLIER_FACTOR
    stop_threshold: float = DEFAULT_STOP_THRESHOLD
    use_inlier_threshold: bool = True
    stop_threshold_enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "variant", Variant.parse(self.variant))

        _check_unit_interval("confidence", _as_float("confidence", self.confidence), open_=True)
        _check_unit_interval("progress_delta", _as_float("progress_delta", self.progress_delta))
        _check_unit_interval(
            "max_outliers_proportion",
            _as_float("max_outliers_proportion", self.max_outliers_proportion),
        )
        _check_unit_interval("eta0", _as_float("eta0", self.eta0))
        _check_unit_interval("beta", _as_float("beta", self.beta))

        max_iterations = _as_float("max_iterations", self.max_iterations)
        if isinstance(self.max_iterations, bool) or not max_iterations.is_integer():
            raise ConfigurationError(
                f"max_iterations must be an integer, got {self.max_iterations!r}."
            )
        if max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be >= 1, got {self.max_iterations!r}."
            )
        object.__setattr__(self, "max_iterations", int(max_iterations))

        if self.threshold is not None:
            t = _as_float("threshold", self.threshold)
            if not (math.isfinite(t) and t > 0.0):
                raise ConfigurationError(f"threshold must be > 0, got {self.threshold!r}.")
            object.__setattr__(self, "threshold", t)
        elif self.variant.requires_threshold:
            raise ConfigurationError(
                f"Variant {self.variant.value!r} requires an inlier threshold > 0."
            )

        if not _as_float("inlier_factor", self.inlier_factor) > 0.0:
            raise ConfigurationError(
                f"inlier_factor must be > 0, got {self.inlier_factor!r}."
            )
        if not _as_float("stop_threshold", self.stop_threshold) >= 0.0:
            raise ConfigurationError(
                f"stop_threshold must be >= 0, got {self.stop_threshold!r}."
            )

    @property
    def uses_inlier_threshold(self) -> bool:
        """True when PROMedS combines its median rule with the fixed threshold."""
        return (
            self.variant is Variant.PROMEDS
            and self.use_inlier_threshold
            and self.threshold is not None
        )

    def replace(self, **changes: Any) -> "EngineConfig":
        """Return a validated copy with fields replaced."""
        return replace(self, **changes)
