"""Robust estimation engine shared by RANSAC, LMedS, MSAC, PROSAC and PROMedS.

The engine only orchestrates: it samples minimal subsets, asks the fitter
for candidate models, asks the evaluator for residuals, scores them with the
variant's policy and keeps the best hypothesis until the adaptive budget (or
the progressive stopping rule) says enough draws have been made.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from warnings import warn

import numpy as np

from .budget import IterationBudget, ProgressiveTermination
from .collaborators import ModelFitter, ProgressListener, Refiner, ResidualEvaluator, notify
from .config import (
    DEFAULT_CONFIDENCE,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_VARIANT,
    EngineConfig,
    Variant,
)
from .errors import (
    ConfigurationError,
    LockedError,
    NotReadyError,
    RobustEstimationError,
    RobustFittingError,
)
from .result import EstimationResult, InliersData, Outcome
from .sampling import ProgressiveSubsetSampler, UniformSubsetSampler, quality_order
from .samples import SampleSet, as_quality_scores
from .scoring import Score, get_scorer
from .util import SeedLike, as_residual_vector, as_rng, sample_count

__all__ = ["EngineStatus", "EngineState", "RobustEstimator", "create"]

logger = logging.getLogger(__name__)


class EngineStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class EngineState:
    """Per-call bookkeeping, alive only while estimate() runs."""

    locked: bool = True
    iteration: int = 0
    remaining: int = 0


@dataclass
class _Hypothesis:
    model: Any
    score: Score
    iteration: int


def _config_field(name: str, doc: str) -> property:
    def fget(self: "RobustEstimator") -> Any:
        return getattr(self._config, name)

    def fset(self: "RobustEstimator", value: Any) -> None:
        self._check_unlocked()
        self.config = self._config.replace(**{name: value})

    return property(fget, fset, doc=doc)


class RobustEstimator:
    """Robust model estimator; the variant picks sampling and scoring policies.

    Parameters
    ----------
    fitter : callable
        ``fitter(subset_samples) -> sequence of models``; an empty sequence
        marks a degenerate subset.
    evaluator : callable
        ``evaluator(model, samples, *, geometric) -> residuals`` with one
        non-negative value per sample.
    subset_size : int
        Minimal number of samples needed to instantiate a model.
    config : EngineConfig, optional
        Full settings. When omitted, `options` are passed to EngineConfig.
    samples, quality_scores : optional
        Observations and (PROSAC/PROMedS) per-sample quality, higher = better.
    listener : optional
        Object with any of the ProgressListener methods.
    refiner : callable, optional
        ``refiner(inlier_samples) -> model`` used when refine_result is set.
    seed : int | numpy.random.Generator | None
        An int gives bit-identical results on every estimate() call.
    """

    def __init__(
        self,
        fitter: ModelFitter,
        evaluator: ResidualEvaluator,
        *,
        subset_size: int,
        config: Optional[EngineConfig] = None,
        samples: Any = None,
        quality_scores: Any = None,
        listener: Optional[ProgressListener] = None,
        refiner: Optional[Refiner] = None,
        seed: SeedLike = None,
        **options: Any,
    ):
        if not callable(fitter):
            raise ConfigurationError("fitter must be callable.")
        if not callable(evaluator):
            raise ConfigurationError("evaluator must be callable.")
        if config is not None and options:
            raise ConfigurationError(
                f"Pass either config=... or keyword options, not both: {sorted(options)}"
            )

        self._locked = False
        self._state: Optional[EngineState] = None
        self._status = EngineStatus.IDLE
        self._last_result: Optional[EstimationResult] = None

        self._fitter = fitter
        self._evaluator = evaluator
        self._config = config if config is not None else EngineConfig(**options)
        self._subset_size = self._check_subset_size(subset_size)
        self._samples: Any = None
        self._quality_scores: Optional[np.ndarray] = None
        self._listener = listener
        self._refiner = refiner
        self._seed = seed

        if samples is not None:
            self.samples = samples
        if quality_scores is not None:
            self.quality_scores = quality_scores

    # ---- lock / status ----
    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def state(self) -> Optional[EngineState]:
        """Live iteration state while estimate() runs, else None."""
        return self._state

    @property
    def last_result(self) -> Optional[EstimationResult]:
        return self._last_result

    def _check_unlocked(self) -> None:
        if self._locked:
            raise LockedError()

    # ---- configuration ----
    @staticmethod
    def _check_subset_size(subset_size: Any) -> int:
        try:
            valid = not isinstance(subset_size, bool) and int(subset_size) == subset_size
        except (TypeError, ValueError):
            valid = False
        if not valid or subset_size < 1:
            raise ConfigurationError(f"subset_size must be an integer >= 1, got {subset_size!r}.")
        return int(subset_size)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @config.setter
    def config(self, config: EngineConfig) -> None:
        self._check_unlocked()
        if not isinstance(config, EngineConfig):
            raise ConfigurationError("config must be an EngineConfig.")
        self._config = config

    @property
    def variant(self) -> Variant:
        return self._config.variant

    confidence = _config_field("confidence", "Target probability of drawing one all-inlier subset.")
    max_iterations = _config_field("max_iterations", "Hard cap on the number of iterations.")
    threshold = _config_field("threshold", "Residual bound separating inliers from outliers.")
    progress_delta = _config_field("progress_delta", "Minimum progress change between notifications.")
    refine_result = _config_field("refine_result", "Refit the winner on all of its inliers.")
    use_geometric_distance = _config_field(
        "use_geometric_distance", "Forwarded to the residual evaluator as `geometric`."
    )

    @property
    def subset_size(self) -> int:
        return self._subset_size

    @subset_size.setter
    def subset_size(self, subset_size: int) -> None:
        self._check_unlocked()
        self._subset_size = self._check_subset_size(subset_size)

    @property
    def min_samples(self) -> int:
        """Minimum number of samples needed to estimate a model."""
        return self._subset_size

    @property
    def samples(self) -> Any:
        return self._samples

    @samples.setter
    def samples(self, samples: Any) -> None:
        self._check_unlocked()
        if samples is not None and not hasattr(samples, "__len__"):
            raise ConfigurationError("samples must be a sized, indexable container.")
        if samples is not None and self._quality_scores is not None:
            as_quality_scores(self._quality_scores, len(samples))
        self._samples = samples

    @property
    def quality_scores(self) -> Optional[np.ndarray]:
        return self._quality_scores

    @quality_scores.setter
    def quality_scores(self, quality_scores: Any) -> None:
        self._check_unlocked()
        if quality_scores is None:
            self._quality_scores = None
            return
        n = None if self._samples is None else len(self._samples)
        q = as_quality_scores(quality_scores, n)
        if not self.variant.progressive:
            warn(
                f"quality_scores are ignored by variant {self.variant.value!r}.",
                UserWarning,
                stacklevel=2,
            )
        self._quality_scores = q

    def set_data(self, samples: Any, quality_scores: Any = None) -> None:
        """Replace samples and quality scores together."""
        self._check_unlocked()
        self._quality_scores = None
        self.samples = samples
        self.quality_scores = quality_scores

    @property
    def listener(self) -> Optional[ProgressListener]:
        return self._listener

    @listener.setter
    def listener(self, listener: Optional[ProgressListener]) -> None:
        self._check_unlocked()
        self._listener = listener

    @property
    def refiner(self) -> Optional[Refiner]:
        return self._refiner

    @refiner.setter
    def refiner(self, refiner: Optional[Refiner]) -> None:
        self._check_unlocked()
        if refiner is not None and not callable(refiner):
            raise ConfigurationError("refiner must be callable.")
        self._refiner = refiner

    @property
    def seed(self) -> SeedLike:
        return self._seed

    @seed.setter
    def seed(self, seed: SeedLike) -> None:
        self._check_unlocked()
        self._seed = seed

    # ---- readiness ----
    def _not_ready_reason(self) -> Optional[str]:
        n = sample_count(self._samples)
        if self._samples is None:
            return "no samples have been provided"
        if n < self._subset_size:
            return f"{n} samples provided but at least {self._subset_size} are required"
        if self.variant.progressive:
            if self._quality_scores is None:
                return f"variant {self.variant.value!r} requires quality_scores"
            if self._quality_scores.shape[0] != n:
                return (
                    f"quality_scores has {self._quality_scores.shape[0]} entries "
                    f"but there are {n} samples"
                )
        if self._config.refine_result and self._refiner is None:
            return "refine_result is enabled but no refiner was provided"
        return None

    def is_ready(self) -> bool:
        return self._not_ready_reason() is None

    # ---- estimation ----
    def estimate(self) -> Any:
        """Run the estimation and return the best (optionally refined) model."""
        return self._estimate().model

    def try_estimate(self) -> Outcome:
        """Like estimate_result(), but library errors come back as an Outcome.

        Exceptions raised by the fitter, evaluator, refiner or listener still
        propagate.
        """
        try:
            return Outcome.success(self._estimate())
        except RobustFittingError as e:
            return Outcome.failure(e)

    def estimate_result(self) -> EstimationResult:
        """Run the estimation and return the full EstimationResult."""
        return self._estimate()

    def _estimate(self) -> EstimationResult:
        # public entry points call this directly: refinement warnings use stacklevel=5
        self._check_unlocked()
        reason = self._not_ready_reason()
        if reason is not None:
            raise NotReadyError(f"Estimator is not ready: {reason}.")

        cfg = self._config
        data = SampleSet(
            self._samples,
            self._quality_scores if cfg.variant.progressive else None,
        )
        rng = as_rng(self._seed)

        self._locked = True
        self._status = EngineStatus.RUNNING
        self._state = EngineState(locked=True, remaining=cfg.max_iterations)
        try:
            result = self._run(cfg, data, rng)
        except Exception:
            self._status = EngineStatus.FAILED
            raise
        finally:
            self._locked = False
            self._state = None

        self._status = EngineStatus.SUCCEEDED
        self._last_result = result
        return result

    def _run(self, cfg: EngineConfig, data: SampleSet, rng: np.random.Generator) -> EstimationResult:
        n = len(data)
        m = self._subset_size
        variant = cfg.variant
        scorer = get_scorer(variant)
        budget = IterationBudget(cfg.max_iterations, m, cfg.confidence)

        termination: Optional[ProgressiveTermination] = None
        sampler: Union[UniformSubsetSampler, ProgressiveSubsetSampler]
        if variant.progressive:
            order = quality_order(data.quality_scores)
            termination = ProgressiveTermination(
                order,
                subset_size=m,
                confidence=cfg.confidence,
                max_iterations=cfg.max_iterations,
                max_outliers_proportion=cfg.max_outliers_proportion,
                eta0=cfg.eta0,
                beta=cfg.beta,
            )
            budget.budget = termination.initial_budget
            sampler = ProgressiveSubsetSampler(
                data.quality_scores,
                m,
                rng,
                initial_budget=termination.initial_budget,
                order=order,
            )
        else:
            sampler = UniformSubsetSampler(n, m, rng)

        logger.debug(
            "Starting %s estimation: %d samples, subset size %d, max %d iterations",
            variant.value, n, m, cfg.max_iterations,
        )
        notify(self._listener, "on_estimate_start", self)

        best: Optional[_Hypothesis] = None
        geometric = bool(cfg.use_geometric_distance)
        previous_progress = 0.0
        iteration = 0
        while True:
            iteration += 1
            subset = sampler.next_subset()
            candidates = self._fitter(data.take(subset))
            if candidates is None:
                candidates = ()

            improved = False
            for model in candidates:
                residuals = as_residual_vector(
                    self._evaluator(model, data.samples, geometric=geometric), n
                )
                score = scorer(residuals, cfg, m)

                if termination is not None and termination.observe(score.inliers, score.num_inliers):
                    sampler.limit_pool(termination.n_star)  # type: ignore[union-attr]

                # strict comparison: ties keep the earlier hypothesis
                if best is None or score.fitness > best.score.fitness:
                    best = _Hypothesis(model=model, score=score, iteration=iteration)
                    improved = True
                    budget.update(score.num_inliers, n)
                    logger.debug(
                        "Iteration %d: new best fitness %.6g with %d inliers, budget %d",
                        iteration, score.fitness, score.num_inliers, budget.budget,
                    )

            state = self._state
            if state is not None:
                state.iteration = iteration
                state.remaining = budget.remaining(iteration)

            notify(self._listener, "on_estimate_next_iteration", self, iteration)
            progress = self._progress(iteration, budget, termination)
            if progress - previous_progress > cfg.progress_delta:
                previous_progress = progress
                notify(self._listener, "on_estimate_progress_change", self, progress)

            if not self._should_continue(cfg, iteration, improved, best, budget, termination):
                break

        if best is None:
            logger.debug("No consensus after %d iterations", iteration)
            raise RobustEstimationError(
                f"No valid model found after {iteration} iterations "
                f"({variant.value}, {n} samples)."
            )

        score = best.score
        inliers = InliersData(
            mask=score.inliers,
            residuals=score.residuals,
            num_inliers=score.num_inliers,
            median_residual=score.median,
            std=score.std,
            estimated_threshold=score.threshold if variant.median_based else None,
        )

        model = best.model
        refined = False
        if cfg.refine_result:
            model, refined = self._refine(data, best)

        stats: Dict[str, Any] = {
            "fitness": score.fitness,
            "threshold": score.threshold,
            "budget": budget.budget,
        }
        if termination is not None:
            stats.update(
                termination_length=termination.n_star,
                inliers_termination_length=termination.inliers_n_star,
                maximality_iterations=termination.k_n_star,
                pool_size=getattr(sampler, "pool_size", None),
            )

        logger.debug(
            "%s finished after %d iterations: %d/%d inliers (best at %d)",
            variant.value, iteration, score.num_inliers, n, best.iteration,
        )
        result = EstimationResult(
            model=model,
            inliers=inliers,
            variant=variant,
            iterations=iteration,
            best_iteration=best.iteration,
            refined=refined,
            candidate=best.model if refined else None,
            stats=stats,
        )
        notify(self._listener, "on_estimate_end", self)
        return result

    @staticmethod
    def _progress(
        iteration: int,
        budget: IterationBudget,
        termination: Optional[ProgressiveTermination],
    ) -> float:
        total = termination.k_n_star if termination is not None else budget.budget
        if total <= 0:
            return 1.0
        return min(iteration / total, 1.0)

    @staticmethod
    def _should_continue(
        cfg: EngineConfig,
        iteration: int,
        improved: bool,
        best: Optional[_Hypothesis],
        budget: IterationBudget,
        termination: Optional[ProgressiveTermination],
    ) -> bool:
        if iteration >= cfg.max_iterations:
            return False

        variant = cfg.variant
        if variant is Variant.LMEDS:
            if best is not None and best.score.threshold <= cfg.stop_threshold:
                return False
            return improved or not budget.exhausted(iteration)

        if variant.progressive:
            assert termination is not None
            if (
                variant is Variant.PROMEDS
                and cfg.uses_inlier_threshold
                and cfg.stop_threshold_enabled
                and best is not None
                and best.score.threshold <= cfg.threshold
            ):
                return False
            if variant is Variant.PROMEDS and improved:
                return True
            return not (
                termination.satisfied(iteration)
                or termination.exhausted(iteration)
                or budget.exhausted(iteration)
            )

        return not budget.exhausted(iteration)

    def _refine(self, data: SampleSet, best: _Hypothesis) -> tuple[Any, bool]:
        assert self._refiner is not None
        if best.score.num_inliers < self._subset_size:
            warn(
                f"Only {best.score.num_inliers} inliers, fewer than the "
                f"{self._subset_size} needed to refine; returning the unrefined model.",
                RuntimeWarning,
                stacklevel=5,
            )
            return best.model, False

        refined = self._refiner(data.select(best.score.inliers))
        if refined is None:
            warn(
                "Refiner returned no model; returning the unrefined model.",
                RuntimeWarning,
                stacklevel=5,
            )
            return best.model, False
        return refined, True


def create(
    variant: Union[Variant, str] = DEFAULT_VARIANT,
    *,
    fitter: ModelFitter,
    evaluator: ResidualEvaluator,
    subset_size: int,
    samples: Any = None,
    quality_scores: Any = None,
    listener: Optional[ProgressListener] = None,
    confidence: float = DEFAULT_CONFIDENCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    threshold: Optional[float] = None,
    use_geometric_distance: bool = False,
    refine_result: bool = False,
    refiner: Optional[Refiner] = None,
    seed: SeedLike = None,
    **options: Any,
) -> RobustEstimator:
    """Build a RobustEstimator for one of the five variants.

    Extra keyword `options` (progress_delta, max_outliers_proportion, eta0,
    beta, inlier_factor, stop_threshold, use_inlier_threshold,
    stop_threshold_enabled) go to EngineConfig.
    """
    config = EngineConfig(
        variant=Variant.parse(variant),
        confidence=confidence,
        max_iterations=max_iterations,
        threshold=threshold,
        use_geometric_distance=use_geometric_distance,
        refine_result=refine_result,
        **options,
    )
    return RobustEstimator(
        fitter,
        evaluator,
        subset_size=subset_size,
        config=config,
        samples=samples,
        quality_scores=quality_scores,
        listener=listener,
        refiner=refiner,
        seed=seed,
    )
