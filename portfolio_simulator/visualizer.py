"""Matplotlib-based charts for simulated and historical portfolio growth."""

from __future__ import annotations

from pathlib import Path

import matplotlib
matplotlib.use("Agg")  # non-interactive backend for CI / headless
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker

from portfolio_simulator.monte_carlo import SimulationBatch, SimulationSummary
from portfolio_simulator.portfolio import Portfolio


# ------------------------------------------------------------------
# Style defaults
# ------------------------------------------------------------------

COLORS = {
    "primary": "#1a73e8",
    "secondary": "#34a853",
    "danger": "#ea4335",
    "warning": "#fbbc05",
    "neutral": "#5f6368",
    "bg": "#fafafa",
}

SUMMARY_COLORS = {
    "max": COLORS["secondary"],
    "median": COLORS["primary"],
    "min": COLORS["danger"],
}


def _apply_style(ax: plt.Axes) -> None:
    ax.set_facecolor(COLORS["bg"])
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.tick_params(labelsize=9)


def _growth_axis(ax: plt.Axes) -> None:
    ax.set_xlabel("Month")
    ax.set_ylabel("Growth of $1")
    ax.yaxis.set_major_formatter(mticker.FuncFormatter(lambda x, _: f"${x:,.2f}"))


def _save(fig: plt.Figure, output: str | Path | None) -> None:
    fig.tight_layout()
    if output:
        fig.savefig(str(output), dpi=150, bbox_inches="tight")


# ------------------------------------------------------------------
# Individual charts
# ------------------------------------------------------------------


def plot_simulation_paths(
    batch: SimulationBatch,
    output: str | Path | None = None,
) -> plt.Figure:
    """Every simulated path, one line per simulation id."""
    fig, ax = plt.subplots(figsize=(10, 5))
    _apply_style(ax)

    alpha = 0.6 if batch.n_simulations <= 100 else 0.1
    for sim_id in batch.ids:
        ax.plot(batch.paths.index, batch.paths[sim_id], alpha=alpha, linewidth=0.8)

    ax.axhline(batch.init_value, linestyle="--", color=COLORS["neutral"], linewidth=1)
    ax.set_title(
        f"Monte Carlo Simulation: {batch.n_simulations} Paths",
        fontsize=13, fontweight="bold",
    )
    _growth_axis(ax)
    _save(fig, output)
    return fig


def plot_summary_paths(
    batch: SimulationBatch,
    summary: SimulationSummary,
    output: str | Path | None = None,
) -> plt.Figure:
    """The max, median and min terminal paths side by side."""
    table = batch.select(summary)
    fig, ax = plt.subplots(figsize=(10, 5))
    _apply_style(ax)

    for label in table.columns:
        sim_id = summary.ids[label]
        ax.plot(
            table.index, table[label],
            color=SUMMARY_COLORS[label], linewidth=2,
            label=f"{label.title()} (sim {sim_id}): ${table[label].iloc[-1]:,.2f}",
        )

    ax.set_title("Max / Median / Min Simulated Paths", fontsize=13, fontweight="bold")
    _growth_axis(ax)
    ax.legend(fontsize=9)
    _save(fig, output)
    return fig


def plot_historical_growth(
    portfolio: Portfolio,
    output: str | Path | None = None,
) -> plt.Figure:
    """Growth of $1 over the portfolio's history."""
    growth = portfolio.growth_of_one()
    fig, ax = plt.subplots(figsize=(10, 4))
    _apply_style(ax)

    ax.plot(growth.index, growth.values, color=COLORS["primary"], linewidth=1.5)
    ax.axhline(1.0, linestyle="--", color=COLORS["neutral"], linewidth=1)

    ax.set_title(f"{portfolio.name}: Historical Growth of $1", fontsize=13, fontweight="bold")
    ax.set_xlabel("Date")
    ax.set_ylabel("Growth of $1")
    _save(fig, output)
    return fig


def plot_terminal_distribution(
    batch: SimulationBatch,
    output: str | Path | None = None,
) -> plt.Figure:
    """Histogram of terminal values across all simulations."""
    fig, ax = plt.subplots(figsize=(9, 5))
    _apply_style(ax)

    ax.hist(
        batch.terminal_values.values,
        bins=min(50, max(10, batch.n_simulations // 2)),
        color=COLORS["primary"],
        alpha=0.7,
        edgecolor="white",
        linewidth=0.3,
    )
    ax.axvline(
        batch.init_value, color=COLORS["danger"], linewidth=2, linestyle="--",
        label="Initial Value",
    )
    ax.legend(fontsize=9)

    ax.set_title(f"Value After {batch.horizon} Months", fontsize=13, fontweight="bold")
    ax.set_xlabel("Terminal Growth of $1")
    ax.set_ylabel("Frequency")
    _save(fig, output)
    return fig


# ------------------------------------------------------------------
# Full dashboard
# ------------------------------------------------------------------


def generate_dashboard(
    portfolio: Portfolio,
    batch: SimulationBatch,
    summary: SimulationSummary,
    output_dir: str | Path = "output",
) -> list[Path]:
    """Generate all charts and save to output_dir. Returns list of file paths."""
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths_saved: list[Path] = []

    charts = [
        ("simulation_paths.png", lambda: plot_simulation_paths(batch, output=out / "simulation_paths.png")),
        ("summary_paths.png", lambda: plot_summary_paths(batch, summary, output=out / "summary_paths.png")),
        ("historical_growth.png", lambda: plot_historical_growth(portfolio, output=out / "historical_growth.png")),
        ("terminal_distribution.png", lambda: plot_terminal_distribution(batch, output=out / "terminal_distribution.png")),
    ]

    for name, fn in charts:
        fn()
        plt.close("all")
        paths_saved.append(out / name)

    return paths_saved
