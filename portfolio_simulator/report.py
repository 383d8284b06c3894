"""Chart-ready tables and JSON / CSV / HTML report export."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from portfolio_simulator import __version__
from portfolio_simulator.monte_carlo import SimulationBatch, SimulationSummary
from portfolio_simulator.portfolio import Portfolio
from portfolio_simulator.risk_metrics import RiskReport


def chart_table(batch: SimulationBatch, summary: SimulationSummary | None = None) -> pd.DataFrame:
    """
    Long-form table for line charts: one row per (month, simulation).

    With a summary, only the max / median / min paths are kept and labelled.
    """
    if summary is None:
        wide = batch.paths
    else:
        wide = batch.select(summary)
    long = wide.reset_index().melt(id_vars="month", var_name="simulation", value_name="growth")
    return long.sort_values(["simulation", "month"], kind="stable").reset_index(drop=True)


def build_report_data(
    portfolio: Portfolio,
    risk_report: RiskReport,
    batch: SimulationBatch,
    summary: SimulationSummary,
) -> dict:
    """Assemble all analysis data into a single dictionary."""
    params = batch.params
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "portfolio": portfolio.summary(),
        "risk_metrics": risk_report.to_dict(),
        "monte_carlo": {
            "n_simulations": batch.n_simulations,
            "horizon_months": batch.horizon,
            "initial_value": batch.init_value,
            "mean_return": round(params.mean, 6) if params else None,
            "stdev_return": round(params.stdev, 6) if params else None,
            "probability_of_loss": round(batch.prob_loss, 4),
            "percentiles": {
                f"p{int(k)}": round(v, 4) for k, v in batch.percentiles().items()
            },
            "summary": summary.to_dict(),
        },
    }


def export_json(
    data: dict,
    output: str | Path = "output/simulation_report.json",
) -> Path:
    """Write the report data to a JSON file."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path


def export_csv(
    batch: SimulationBatch,
    output: str | Path = "output/simulations.csv",
) -> Path:
    """Write the wide month x simulation table to CSV."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    batch.paths.to_csv(path)
    return path


def export_html(
    data: dict,
    chart_dir: str | Path = "output",
    output: str | Path = "output/simulation_report.html",
) -> Path:
    """Generate a self-contained HTML simulation report."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    chart_dir = Path(chart_dir)

    portfolio = data["portfolio"]
    metrics = data["risk_metrics"]
    mc = data["monte_carlo"]

    def _pct(val: float) -> str:
        return f"{val * 100:.2f}%"

    def _growth(val: float) -> str:
        return f"{val:,.4f}"

    def _metric_row(label: str, value: str) -> str:
        return f"<tr><td>{label}</td><td><strong>{value}</strong></td></tr>"

    holdings_rows = ""
    for ticker, weight in portfolio["weights"].items():
        holdings_rows += f"<tr><td>{ticker}</td><td>{weight * 100:.1f}%</td></tr>\n"

    metrics_rows = "\n".join([
        _metric_row("Value at Risk (95%, monthly)", _pct(metrics["VaR_95"])),
        _metric_row("Conditional VaR (95%, monthly)", _pct(metrics["CVaR_95"])),
        _metric_row("Sharpe Ratio", f"{metrics['Sharpe_Ratio']:.4f}"),
        _metric_row("Sortino Ratio", f"{metrics['Sortino_Ratio']:.4f}"),
        _metric_row("Max Drawdown", _pct(metrics["Max_Drawdown"])),
        _metric_row("Annualized Volatility", _pct(metrics["Annualized_Volatility"])),
        _metric_row("Annualized Return", _pct(metrics["Annualized_Return"])),
        _metric_row("Calmar Ratio", f"{metrics['Calmar_Ratio']:.4f}"),
    ])

    summary_rows = "\n".join(
        f"<tr><td>{label.title()}</td><td>{entry['simulation']}</td>"
        f"<td><strong>{_growth(entry['value'])}</strong></td></tr>"
        for label, entry in mc["summary"].items()
    )

    mc_rows = "\n".join([
        _metric_row("Simulations", f"{mc['n_simulations']:,}"),
        _metric_row("Horizon", f"{mc['horizon_months']} months"),
        _metric_row("Initial Value", _growth(mc["initial_value"])),
        _metric_row("Probability of Loss", _pct(mc["probability_of_loss"])),
    ])

    charts_html = ""
    chart_files = [
        ("simulation_paths.png", "Monte Carlo Simulation Paths"),
        ("summary_paths.png", "Max / Median / Min Paths"),
        ("historical_growth.png", "Historical Growth of $1"),
        ("terminal_distribution.png", "Terminal Value Distribution"),
    ]
    for fname, title in chart_files:
        if (chart_dir / fname).exists():
            charts_html += f"""
            <div class="chart">
                <h3>{title}</h3>
                <img src="{fname}" alt="{title}">
            </div>
            """

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{portfolio['name']} - Monte Carlo Report</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #f5f5f5; color: #333; line-height: 1.6;
        }}
        .container {{ max-width: 1100px; margin: 0 auto; padding: 2rem; }}
        h1 {{ font-size: 1.8rem; margin-bottom: 0.5rem; color: #1a73e8; }}
        h2 {{ font-size: 1.3rem; margin: 2rem 0 1rem; color: #202124; border-bottom: 2px solid #1a73e8; padding-bottom: 0.3rem; }}
        .meta {{ color: #5f6368; font-size: 0.9rem; margin-bottom: 2rem; }}
        table {{ width: 100%; border-collapse: collapse; background: white; border-radius: 8px; overflow: hidden; box-shadow: 0 1px 3px rgba(0,0,0,0.08); margin-bottom: 1.5rem; }}
        th, td {{ text-align: left; padding: 0.75rem 1rem; border-bottom: 1px solid #e8eaed; }}
        th {{ background: #f8f9fa; font-size: 0.85rem; color: #5f6368; text-transform: uppercase; letter-spacing: 0.5px; }}
        .chart {{ background: white; border-radius: 8px; padding: 1rem; margin-bottom: 1.5rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
        .chart img {{ max-width: 100%; height: auto; }}
        .chart h3 {{ margin-bottom: 0.5rem; font-size: 1rem; }}
        .footer {{ margin-top: 3rem; padding-top: 1rem; border-top: 1px solid #e8eaed; color: #5f6368; font-size: 0.8rem; text-align: center; }}
    </style>
</head>
<body>
<div class="container">
    <h1>{portfolio['name']}</h1>
    <p class="meta">Generated: {data['generated_at']} &middot; History {portfolio['start']} to {portfolio['end']} ({portfolio['periods']} months)</p>

    <h2>Holdings</h2>
    <table>
        <thead><tr><th>Ticker</th><th>Weight</th></tr></thead>
        <tbody>{holdings_rows}</tbody>
    </table>

    <h2>Risk Metrics</h2>
    <table>
        <thead><tr><th>Metric</th><th>Value</th></tr></thead>
        <tbody>{metrics_rows}</tbody>
    </table>

    <h2>Monte Carlo Simulation</h2>
    <table>
        <thead><tr><th>Parameter</th><th>Value</th></tr></thead>
        <tbody>{mc_rows}</tbody>
    </table>
    <table>
        <thead><tr><th>Path</th><th>Simulation</th><th>Terminal Growth</th></tr></thead>
        <tbody>{summary_rows}</tbody>
    </table>

    <h2>Charts</h2>
    {charts_html}

    <div class="footer">
        Portfolio Growth Simulator v{__version__} &mdash; For educational and analytical purposes only. Not financial advice.
    </div>
</div>
</body>
</html>
"""
    path.write_text(html)
    return path
