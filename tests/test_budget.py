import math

import numpy as np
import pytest

from robust_fitting.budget import (
    CHI_SQUARED,
    IterationBudget,
    ProgressiveTermination,
    min_inliers_for_non_randomness,
    required_iterations,
)


def test_chi_squared_quantile():
    assert CHI_SQUARED == pytest.approx(2.7055, abs=1e-4)


def test_required_iterations_standard_formula():
    expected = math.ceil(math.log(0.01) / math.log(1.0 - 0.5**2))
    assert required_iterations(0.5, 2, 0.99) == expected == 17


def test_required_iterations_perfect_consensus_needs_one():
    assert required_iterations(1.0, 4, 0.99, 5000) == 1


def test_required_iterations_saturates():
    assert required_iterations(0.0, 2, 0.99, 5000) == 5000
    assert required_iterations(float("nan"), 2, 0.99, 5000) == 5000
    # w**s underflows
    assert required_iterations(1e-200, 3, 0.99, 1000) == 1000


def test_required_iterations_is_clipped_to_max():
    assert required_iterations(0.1, 4, 0.99, 100) == 100


def test_required_iterations_monotone_in_inlier_ratio():
    values = [required_iterations(w, 3, 0.99, 10**6) for w in np.linspace(0.1, 1.0, 10)]
    assert values == sorted(values, reverse=True)


def test_min_inliers_for_non_randomness():
    # ceil(2 + 1 + sqrt(0.99) * sqrt(2.7055))
    assert min_inliers_for_non_randomness(2, 100, 0.01) == 5


def test_iteration_budget_only_shrinks():
    budget = IterationBudget(max_iterations=5000, subset_size=2, confidence=0.99)
    assert budget.budget == 5000
    assert budget.update(50, 100) == 17
    assert budget.update(10, 100) == 17
    assert budget.update(100, 100) == 1
    assert budget.exhausted(1)


def test_iteration_budget_remaining():
    budget = IterationBudget(max_iterations=10, subset_size=2, confidence=0.99)
    assert budget.remaining(3) == 7
    assert not budget.exhausted(9)
    assert budget.exhausted(10)


def _termination(n=100, m=2):
    return ProgressiveTermination(
        np.arange(n),
        subset_size=m,
        confidence=0.99,
        max_iterations=5000,
        max_outliers_proportion=0.8,
        eta0=0.05,
        beta=0.01,
    )


def test_progressive_termination_initial_state():
    term = _termination()
    assert term.initial_budget == required_iterations(0.2, 2, 0.99, 5000)
    assert term.min_inliers == 20
    assert term.n_star == 100
    assert term.k_n_star == term.initial_budget
    assert not term.satisfied(1)


def test_progressive_termination_finds_clean_prefix():
    term = _termination()
    mask = np.zeros(100, dtype=bool)
    mask[:40] = True

    assert term.observe(mask, 40)
    assert term.n_star == 40
    assert term.inliers_n_star == 40
    assert term.k_n_star == 1
    assert term.satisfied(1)


def test_progressive_termination_ignores_non_improving_candidates():
    term = _termination()
    mask = np.zeros(100, dtype=bool)
    mask[:40] = True
    assert term.observe(mask, 40)
    assert not term.observe(mask, 40)
    assert term.inliers_best == 40


def test_progressive_termination_requires_enough_inliers():
    term = _termination()
    mask = np.zeros(100, dtype=bool)
    mask[:10] = True
    term.observe(mask, 10)
    # 10 inliers < (1 - 0.8) * 100
    assert not term.satisfied(10_000)
    assert term.exhausted(term.initial_budget)


@pytest.mark.parametrize("n, expected", [(100, 20), (10, 2), (1000, 200), (7, 1)])
def test_min_inliers_tolerates_rounding(n, expected):
    assert _termination(n=n).min_inliers == expected
