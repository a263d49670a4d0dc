from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

import numpy as np


def plot_consensus(
    result: Any,
    x: Any,
    y: Any,
    *,
    ax: Optional[Any] = None,
    xg: Optional[np.ndarray] = None,
    show_candidate: bool = True,
    show_threshold: bool = False,
    inlier_kwargs: Optional[Mapping[str, Any]] = None,
    outlier_kwargs: Optional[Mapping[str, Any]] = None,
    line_kwargs: Optional[Mapping[str, Any]] = None,
    band_kwargs: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, Any]:
    """Plot inliers, outliers and the estimated curve on a Matplotlib Axes.

    Parameters
    ----------
    result : EstimationResult
        Output of RobustEstimator.estimate_result(); result.model must be
        callable on an x grid (e.g. a Polynomial).
    x, y : array-like
        1D data the estimator was run on, in sample order.
    ax : matplotlib.axes.Axes, optional
        If None, a new figure/axes is created.
    xg : ndarray, optional
        Grid for the model line. Defaults to 400 points over the x range.
    show_candidate : bool
        Also draw the unrefined winner when refinement replaced it.
    show_threshold : bool
        Shade model(x) +/- the inlier threshold used for the final consensus.
    inlier_kwargs, outlier_kwargs, line_kwargs, band_kwargs : dict, optional
        Styling kwargs for the two scatter layers, plot and fill_between.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    inlier_kwargs = dict(inlier_kwargs or {})
    outlier_kwargs = dict(outlier_kwargs or {})
    line_kwargs = dict(line_kwargs or {})
    band_kwargs = dict(band_kwargs or {})

    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.ndim != 1 or y_arr.ndim != 1:
        raise ValueError("plot_consensus requires 1D x and y arrays.")
    if x_arr.shape != y_arr.shape:
        raise ValueError("plot_consensus requires x and y to have the same shape.")
    mask = np.asarray(result.inliers.mask, dtype=bool)
    if mask.shape != x_arr.shape:
        raise ValueError("plot_consensus: inlier mask does not match the data length.")

    inlier_kwargs.setdefault("marker", "o")
    inlier_kwargs.setdefault("linestyle", "none")
    inlier_kwargs.setdefault("label", f"inliers ({int(mask.sum())})")
    outlier_kwargs.setdefault("marker", "x")
    outlier_kwargs.setdefault("linestyle", "none")
    outlier_kwargs.setdefault("color", "0.5")
    outlier_kwargs.setdefault("label", f"outliers ({int((~mask).sum())})")
    ax.plot(x_arr[mask], y_arr[mask], **inlier_kwargs)
    ax.plot(x_arr[~mask], y_arr[~mask], **outlier_kwargs)

    if xg is None:
        xg = np.linspace(float(np.min(x_arr)), float(np.max(x_arr)), 400)
    yfit = np.asarray(result.model(xg), dtype=float)

    threshold = result.stats.get("threshold")
    if show_threshold and threshold is not None:
        band_kwargs.setdefault("alpha", 0.2)
        ax.fill_between(xg, yfit - threshold, yfit + threshold, **band_kwargs)

    line_kwargs.setdefault("label", f"{result.variant.value} fit")
    ax.plot(xg, yfit, **line_kwargs)

    if show_candidate and result.refined and result.candidate is not None:
        ax.plot(
            xg,
            np.asarray(result.candidate(xg), dtype=float),
            linestyle="--",
            label="unrefined",
        )

    return fig, ax
