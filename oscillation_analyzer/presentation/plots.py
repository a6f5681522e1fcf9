"""Figure builders for the two pipeline aggregates.

Read-only with respect to the analysis: values are drawn exactly as stored in
the BlockedSpectrum / WeightedAccumulation, no rescaling or smoothing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from oscillation_analyzer.models.results import BlockedSpectrum, WeightedAccumulation


# ── Layout ───────────────────────────────────────────────────────────
SPECTRUM_GRID = (2, 5)             # rows x cols of baseline panels
SPECTRUM_FIGSIZE = (30.0, 12.0)    # 3000 x 1200 px at dpi=100
BASELINE_FIGSIZE = (9.0, 6.0)      # 900 x 600 px at dpi=100

LINE_COLOR = "black"
HIST_COLOR = "tab:blue"
MARKER_COLOR = "tab:red"
FILL_COLOR = "lightcyan"


def plot_blocked_spectrum(
    spectrum: BlockedSpectrum,
    *,
    grid: Tuple[int, int] = SPECTRUM_GRID,
    figsize: Tuple[float, float] = SPECTRUM_FIGSIZE,
    title: str = "Null Oscillation Prediction",
):
    """One step-histogram panel per baseline block.

    Returns
    -------
    matplotlib Figure
    """
    nrows, ncols = grid
    if nrows * ncols < spectrum.n_blocks:
        raise ValueError(f"grid {grid} has fewer panels than {spectrum.n_blocks} blocks")

    fig, axes = plt.subplots(nrows, ncols, figsize=figsize, squeeze=False)
    fig.suptitle(title, fontsize=18, fontweight="bold")
    edges = spectrum.bin_edges

    for k, ax in enumerate(axes.flat):
        if k >= spectrum.n_blocks:
            ax.set_visible(False)
            continue
        ax.stairs(spectrum.values[k], edges, color=LINE_COLOR, linewidth=3)
        ax.set_title(f"Histogram {k + 1}", fontweight="bold")
        ax.set_xlabel("Energy (MeV)", fontweight="bold", fontsize=14)
        ax.set_ylabel("Counts", fontweight="bold", fontsize=14)
        ax.set_xlim(edges[0], edges[-1])
        ax.set_xticks(edges[:: max(1, len(edges) // 8)])
        ax.tick_params(labelsize=12)

    fig.tight_layout()
    return fig


def plot_weighted_histogram(
    acc: WeightedAccumulation,
    *,
    figsize: Tuple[float, float] = BASELINE_FIGSIZE,
    title: str = "IBD Counts vs Baseline",
    show_errors: bool = True,
):
    """Weighted histogram as filled steps plus markers with sqrt(sumw2) error bars.

    Returns
    -------
    matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize)
    edges = acc.bin_edges
    ax.stairs(acc.contents, edges, color=HIST_COLOR, linewidth=3, fill=False)
    ax.stairs(acc.contents, edges, color=FILL_COLOR, alpha=0.3, fill=True)

    nz = acc.contents != 0
    if np.any(nz):
        yerr: Optional[np.ndarray] = acc.errors[nz] if show_errors else None
        ax.errorbar(
            acc.bin_centers[nz],
            acc.contents[nz],
            yerr=yerr,
            fmt="o",
            markersize=6,
            color=MARKER_COLOR,
            ecolor=HIST_COLOR,
        )

    ax.set_title(title)
    ax.set_xlabel("Baseline (m)", fontsize=13)
    ax.set_ylabel("IBD Counts", fontsize=13)
    ax.set_xlim(acc.range_min, acc.range_max)
    ax.grid(True)
    for side in ax.spines.values():
        side.set_linewidth(2)
    fig.tight_layout()
    return fig


def savefig(fig, output_dir, name):
    """Save *fig* as a PNG and close it.

    Parameters
    ----------
    fig : matplotlib Figure
    output_dir : str or Path
        Directory to write the PNG into (created if needed).
    name : str
        Filename stem (without extension).

    Returns
    -------
    Path
        Path of the saved image.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{name}.png"
    fig.savefig(str(path), dpi=100, facecolor="white")
    plt.close(fig)
    return path
