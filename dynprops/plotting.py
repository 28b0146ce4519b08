"""
Built-in plotting utilities for correlation results.

Provides simple one-line plotting functions for correlation curves.

Example:
    >>> from dynprops import CrossCorrelationFunction, Selection, plotting
    >>> result = CrossCorrelationFunction(traj, "velocity", Selection.all()).run()
    >>> plotting.correlation(result)
    >>> plotting.save("vcorr.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from .correlation.result import CorrelationResult

# Try to import matplotlib, but don't fail if not available
try:
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False
    plt = None

_AXES = "xyz"


def _check_matplotlib():
    """Check if matplotlib is available."""
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install it with: pip install matplotlib"
        )


def correlation(
    result: CorrelationResult,
    show: bool = True,
    figsize: tuple[float, float] = (8, 5),
) -> None:
    """
    Plot a correlation curve against time.

    Scalar results are drawn directly; vector and tensor results are drawn
    by their trace (or sum for non-square shapes). Lags without data are
    left out.

    Args:
        result: CorrelationResult to plot.
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.

    Example:
        >>> plotting.correlation(result)
    """
    _check_matplotlib()

    mask = result.has_data()
    values = result.values
    shape = result.result_shape
    if len(shape) == 2 and shape[0] == shape[1]:
        curve = np.trace(values, axis1=1, axis2=2)
        label = "trace"
    elif shape:
        curve = values.reshape(len(values), -1).sum(axis=1)
        label = "sum"
    else:
        curve = values
        label = "C(t)"

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(result.times[mask], curve[mask], "b-", lw=1.5, label=label)
    ax.axhline(y=0.0, color="k", linestyle="--", alpha=0.3)
    ax.set_xlabel("Time")
    ax.set_ylabel("C(t)")
    ax.set_title(result.title)
    ax.legend()
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if show:
        plt.show()


def tensor_components(
    result: CorrelationResult,
    show: bool = True,
    figsize: tuple[float, float] = (12, 10),
) -> None:
    """
    Plot each component of a 3x3 correlation tensor in its own panel.

    Args:
        result: CorrelationResult with result shape (3, 3).
        show: Whether to display the plot immediately.
        figsize: Figure size (width, height) in inches.

    Raises:
        ValueError: If the result is not a 3x3 tensor.
    """
    _check_matplotlib()

    if result.result_shape != (3, 3):
        raise ValueError(f"Expected a (3, 3) result, got {result.result_shape}")

    mask = result.has_data()
    times = result.times[mask]

    fig, axes = plt.subplots(3, 3, figsize=figsize, sharex=True)
    for i in range(3):
        for j in range(3):
            ax = axes[i, j]
            ax.plot(times, result.values[mask, i, j], "b-", lw=1)
            ax.axhline(y=0.0, color="k", linestyle="--", alpha=0.3)
            ax.set_title(f"C[{_AXES[i]}{_AXES[j]}]")
            ax.grid(True, alpha=0.3)
            if i == 2:
                ax.set_xlabel("Time")

    fig.suptitle(result.title)
    plt.tight_layout()
    if show:
        plt.show()


def save(filename: str | Path, dpi: int = 150) -> None:
    """
    Save the current figure to a file.

    Args:
        filename: Output filename (e.g., "plot.png", "plot.pdf").
        dpi: Resolution in dots per inch.

    Example:
        >>> plotting.correlation(result, show=False)
        >>> plotting.save("corr.png")
    """
    _check_matplotlib()
    plt.savefig(filename, dpi=dpi, bbox_inches="tight")
    print(f"Saved plot to {filename}")


def show() -> None:
    """
    Display all pending plots.

    Use this after creating plots with show=False.
    """
    _check_matplotlib()
    plt.show()
