"""Exception taxonomy for robust estimation.

Callers can tell a programming error (``ConfigurationError``, ``LockedError``,
``NotReadyError``) apart from data that simply has no consensus
(``RobustEstimationError``) and relax the threshold/confidence accordingly.
"""

from __future__ import annotations

__all__ = [
    "RobustFittingError",
    "ConfigurationError",
    "NotReadyError",
    "LockedError",
    "RobustEstimationError",
    "NotEnoughSamplesError",
]


class RobustFittingError(Exception):
    """Base class for every error raised by robust_fitting."""


class ConfigurationError(RobustFittingError, ValueError):
    """Invalid argument at construction or setter time."""


class NotReadyError(RobustFittingError):
    """estimate() called before samples (or quality scores) are available."""


class LockedError(RobustFittingError):
    """Mutation or re-entrant estimate() while an estimation is in flight."""

    def __init__(self, message: str = "Estimator is locked while estimate() is running."):
        super().__init__(message)


class RobustEstimationError(RobustFittingError):
    """No valid candidate model was found."""


class NotEnoughSamplesError(RobustEstimationError):
    """Fewer distinct samples than the minimal subset size."""
