"""robust_fitting public API."""
from .collaborators import ModelFitter, ProgressListener, Refiner, ResidualEvaluator, per_sample
from .config import EngineConfig, Variant
from .engine import EngineState, EngineStatus, RobustEstimator, create
from .errors import (
    ConfigurationError,
    LockedError,
    NotEnoughSamplesError,
    NotReadyError,
    RobustEstimationError,
    RobustFittingError,
)
from .result import EstimationResult, InliersData, Outcome, OutcomeKind
from . import models

__all__ = [
    "ModelFitter",
    "ResidualEvaluator",
    "Refiner",
    "ProgressListener",
    "per_sample",
    "EngineConfig",
    "Variant",
    "EngineState",
    "EngineStatus",
    "RobustEstimator",
    "create",
    "RobustFittingError",
    "ConfigurationError",
    "NotReadyError",
    "LockedError",
    "RobustEstimationError",
    "NotEnoughSamplesError",
    "EstimationResult",
    "InliersData",
    "Outcome",
    "OutcomeKind",
    "models",
]
