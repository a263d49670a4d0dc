import numpy as np
import pytest

matplotlib = pytest.importorskip("matplotlib")
matplotlib.use("Agg")

from robust_fitting.models import straight_line_estimator  # noqa: E402
from robust_fitting.plotting import plot_consensus  # noqa: E402


def _result(refine):
    rng = np.random.default_rng(0)
    x = np.linspace(0.0, 1.0, 30)
    y = 3.0 * x - 1.0 + rng.normal(0.0, 0.01, x.shape)
    y[::6] += 2.0
    est = straight_line_estimator(x, y, variant="ransac", threshold=0.05, refine_result=refine, seed=0)
    return x, y, est.estimate_result()


def test_plot_consensus_draws_layers():
    import matplotlib.pyplot as plt

    x, y, result = _result(refine=True)
    fig, ax = plot_consensus(result, x, y, show_threshold=True)
    labels = [line.get_label() for line in ax.get_lines()]
    assert labels[0].startswith("inliers")
    assert labels[1].startswith("outliers")
    assert "ransac fit" in labels
    assert "unrefined" in labels
    assert len(ax.collections) == 1
    plt.close(fig)


def test_plot_consensus_uses_given_axes():
    import matplotlib.pyplot as plt

    x, y, result = _result(refine=False)
    fig, ax = plt.subplots()
    fig2, ax2 = plot_consensus(result, x, y, ax=ax)
    assert fig2 is fig and ax2 is ax
    assert len(ax.get_lines()) == 3
    plt.close(fig)


def test_plot_consensus_rejects_mismatched_data():
    x, y, result = _result(refine=False)
    with pytest.raises(ValueError):
        plot_consensus(result, x[:-1], y[:-1])
