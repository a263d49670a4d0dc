from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import numpy as np

SeedLike = Union[None, int, np.random.Generator]


def as_rng(seed: SeedLike) -> np.random.Generator:
    """Return a Generator; ints and None go through np.random.default_rng."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def take(samples: Any, indices: Sequence[int]) -> Any:
    """Gather samples at indices.

    ndarrays use fancy indexing so the result is still an ndarray; any other
    sequence is gathered into a list.
    """
    idx = np.asarray(indices, dtype=np.intp)
    if isinstance(samples, np.ndarray):
        return samples[idx]
    return [samples[int(i)] for i in idx]


def select(samples: Any, mask: np.ndarray) -> Any:
    """Gather samples where mask is True."""
    return take(samples, np.flatnonzero(np.asarray(mask, dtype=bool)))


def as_residual_vector(values: Any, n: int) -> np.ndarray:
    """Validate evaluator output: absolute float vector of length n."""
    r = np.abs(np.asarray(values, dtype=float)).reshape((-1,))
    if r.shape != (n,):
        raise ValueError(
            f"Residual evaluator returned {r.shape[0]} values for {n} samples."
        )
    return r


def sample_count(samples: Optional[Any]) -> int:
    return 0 if samples is None else len(samples)
