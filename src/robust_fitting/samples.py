from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from .errors import ConfigurationError
from .util import select, take


def as_quality_scores(quality_scores: Any, num_samples: Optional[int] = None) -> np.ndarray:
    """Validate quality scores: finite 1D floats, one per sample."""
    q = np.asarray(quality_scores, dtype=float)
    if q.ndim != 1:
        raise ConfigurationError("quality_scores must be a 1D sequence of floats.")
    if not np.all(np.isfinite(q)):
        raise ConfigurationError("quality_scores must be finite.")
    if num_samples is not None and q.shape[0] != num_samples:
        raise ConfigurationError(
            f"quality_scores has {q.shape[0]} entries but there are {num_samples} samples."
        )
    return q


@dataclass(frozen=True)
class SampleSet:
    """Ordered observations plus optional per-sample quality scores.

    The engine reads but never copies or mutates the caller's samples; any
    indexable container works (numpy arrays keep their type when gathered).
    """

    samples: Any
    quality_scores: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        if self.quality_scores is not None:
            object.__setattr__(
                self,
                "quality_scores",
                as_quality_scores(self.quality_scores, len(self.samples)),
            )

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def has_quality_scores(self) -> bool:
        return self.quality_scores is not None

    def take(self, indices: Sequence[int]) -> Any:
        return take(self.samples, indices)

    def select(self, mask: np.ndarray) -> Any:
        return select(self.samples, mask)
