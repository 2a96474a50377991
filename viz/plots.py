from __future__ import annotations

"""
Visualization utilities.

Read-only plotting functions that consume the results CSV written by the
runner and produce static PNGs under `output/plots/`. The y-ranges follow
Fig. 4-1 of Forrester (1971) so runs can be compared against the book.

Usage:
    from viz.plots import generate_all_plots_from_csv
    generate_all_plots_from_csv(Path('output/World2_Results.csv'))
"""

from pathlib import Path
from typing import Optional

import pandas as pd
import matplotlib.pyplot as plt

from world2.io_paths import OUTPUT_DIR
from world2.naming import label


# variable -> (y max, file name); matches the panels of Forrester Fig. 4-1
FIGURE_PANELS = {
    "P": (8e9, "population.png"),
    "POLR": (40.0, "pollution_ratio.png"),
    "CI": (20e9, "capital_investment.png"),
    "QL": (2.0, "quality_of_life.png"),
    "NR": (1000e9, "natural_resources.png"),
}


def _ensure_plots_dir(plots_dir: Optional[Path] = None) -> Path:
    """Ensure the plots directory (default `output/plots/`) exists and return it."""
    plots_dir = Path(plots_dir) if plots_dir is not None else OUTPUT_DIR / "plots"
    plots_dir.mkdir(parents=True, exist_ok=True)
    return plots_dir


def _read_results_csv(csv_path: Path | str) -> pd.DataFrame:
    """Load the results CSV with 'Year' as the index."""
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Results CSV not found: {csv_path}")
    df = pd.read_csv(csv_path)
    if df.columns.empty or df.columns[0] != "Year":
        raise ValueError("Unexpected CSV format: first column must be 'Year'")
    return df.set_index("Year")


def _save_fig(fig: plt.Figure, plots_dir: Path, filename: str) -> Path:
    out_path = plots_dir / filename
    fig.savefig(out_path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    return out_path


def plot_variable(df: pd.DataFrame, name: str, ymax: float, filename: str, plots_dir: Path) -> Path:
    """Plot one variable against the year axis with a fixed y-range."""
    if name not in df.columns:
        raise ValueError(f"Missing '{name}' column in CSV")
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(df.index.values, df[name].values, label=label(name))
    ax.set_title(label(name))
    ax.set_xlabel("Year")
    ax.set_ylabel(name)
    ax.set_ylim(0, ymax)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best", fontsize=8)
    return _save_fig(fig, plots_dir, filename)


def plot_overview(df: pd.DataFrame, plots_dir: Path) -> Path:
    """All Fig. 4-1 variables on one chart, each scaled to its own panel maximum."""
    fig, ax = plt.subplots(figsize=(10, 5))
    for name, (ymax, _) in FIGURE_PANELS.items():
        ax.plot(df.index.values, df[name].values / ymax, label=f"{label(name)} (/ {ymax:g})")
    ax.set_title("World2 overview (scaled)")
    ax.set_xlabel("Year")
    ax.set_ylim(0, 1.0)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="best", fontsize=8)
    return _save_fig(fig, plots_dir, "overview.png")


def generate_all_plots_from_csv(csv_path: Path | str, plots_dir: Optional[Path] = None) -> list[Path]:
    """Load the results CSV and generate every plot.

    Returns a list of output file paths for created images.
    """
    df = _read_results_csv(csv_path)
    out_dir = _ensure_plots_dir(plots_dir)
    outputs: list[Path] = []
    for name, (ymax, filename) in FIGURE_PANELS.items():
        outputs.append(plot_variable(df, name, ymax, filename, out_dir))
    outputs.append(plot_overview(df, out_dir))
    return outputs
