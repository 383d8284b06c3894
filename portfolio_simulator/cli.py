"""Command-line interface for the Portfolio Growth Simulator."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from portfolio_simulator.config import PortfolioConfig, load_config
from portfolio_simulator.data_loader import fetch_prices, load_prices
from portfolio_simulator.exceptions import DataFetchError, InvalidParameterError, SimulatorError
from portfolio_simulator.monte_carlo import MonteCarloEngine, summarize
from portfolio_simulator.portfolio import Portfolio
from portfolio_simulator.report import build_report_data, export_csv, export_html, export_json
from portfolio_simulator.returns import build_return_series
from portfolio_simulator.risk_metrics import RiskCalculator
from portfolio_simulator.visualizer import generate_dashboard


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-sim",
        description="Monte Carlo simulation of portfolio growth.",
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="YAML portfolio definition (name, allocations, start, ...)",
    )
    parser.add_argument(
        "--tickers", "-t",
        type=str,
        default=None,
        help="Allocations as TICKER:PERCENT pairs, e.g. SPY:60,AGG:40",
    )
    parser.add_argument(
        "--name",
        type=str,
        default=None,
        help="Portfolio name shown in reports",
    )
    parser.add_argument(
        "--prices",
        type=str,
        default=None,
        help="Read prices from this CSV instead of downloading them",
    )
    parser.add_argument(
        "--start",
        type=str,
        default=None,
        help="First date of price history (default: 2010-01-01)",
    )
    parser.add_argument(
        "--months", "-m",
        type=int,
        default=None,
        help="Months to simulate (default: 120)",
    )
    parser.add_argument(
        "--simulations", "-n",
        type=int,
        default=None,
        help="Number of simulated paths (default: 51)",
    )
    parser.add_argument(
        "--init-value",
        type=float,
        default=None,
        help="Starting value of every path (default: 1.0)",
    )
    parser.add_argument(
        "--risk-free-rate",
        type=float,
        default=None,
        help="Annual risk-free rate in percent (default: 0)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Simulate paths on a thread pool of this size",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="output",
        help="Output directory for reports and charts (default: output/)",
    )
    parser.add_argument(
        "--no-charts",
        action="store_true",
        help="Skip chart generation",
    )
    parser.add_argument(
        "--json-only",
        action="store_true",
        help="Output JSON report only (no CSV, HTML or charts)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def parse_allocations(text: str) -> dict[str, float]:
    """Parse ``SPY:60,AGG:40`` into ``{"SPY": 60.0, "AGG": 40.0}``."""
    allocations: dict[str, float] = {}
    for pair in text.split(","):
        pair = pair.strip()
        if not pair:
            continue
        ticker, sep, pct = pair.partition(":")
        if not sep:
            raise InvalidParameterError(
                f"Bad allocation {pair!r}, expected TICKER:PERCENT"
            )
        try:
            allocations[ticker.strip().upper()] = float(pct)
        except ValueError as exc:
            raise InvalidParameterError(f"Bad percentage in {pair!r}") from exc
    return allocations


def resolve_config(args: argparse.Namespace) -> PortfolioConfig:
    """Merge the YAML config (if any) with command-line overrides."""
    overrides = {
        "name": args.name,
        "risk_free_rate": args.risk_free_rate,
        "start": args.start,
        "months": args.months,
        "simulations": args.simulations,
        "init_value": args.init_value,
        "seed": args.seed,
    }
    if args.tickers:
        overrides["allocations"] = parse_allocations(args.tickers)

    if args.config:
        return load_config(args.config).with_overrides(**overrides)
    if "allocations" not in overrides:
        raise InvalidParameterError("Provide --config or --tickers")
    return PortfolioConfig(
        name=args.name or "Portfolio",
        **{k: v for k, v in overrides.items() if v is not None and k != "name"},
    )


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def run(args: argparse.Namespace) -> None:
    """Execute the full simulation pipeline."""
    config = resolve_config(args)

    console.print(Panel.fit(
        f"[bold blue]{config.name}[/bold blue]\n"
        "Monte Carlo simulation of portfolio growth",
        border_style="blue",
    ))

    # ------------------------------------------------------------------ Load data
    console.print("\n[bold]Loading prices...[/bold]")
    if args.prices:
        prices = load_prices(args.prices)
        prices = prices[prices.index >= config.start_date]
    else:
        prices = fetch_prices(config.tickers, start=config.start)

    missing = [t for t in config.tickers if t not in prices.columns]
    if missing:
        raise DataFetchError(f"Price data missing tickers: {missing}")

    returns = build_return_series(prices[config.tickers])
    portfolio = Portfolio(config.weights, returns, name=config.name)
    engine = MonteCarloEngine(
        portfolio,
        n_simulations=config.simulations,
        horizon=config.months,
        init_value=config.init_value,
        seed=config.seed,
        max_workers=args.workers,
    )
    engine.estimate()
    summary_info = portfolio.summary()
    console.print(
        f"  History: {summary_info['start']} to {summary_info['end']} "
        f"({summary_info['periods']} months)"
    )

    # -------------------------------------------------------------- Portfolio table
    weights_table = Table(title="Portfolio Allocation")
    weights_table.add_column("Ticker", style="cyan")
    weights_table.add_column("Weight", justify="right")
    for ticker, w in zip(portfolio.tickers, portfolio.weights):
        weights_table.add_row(ticker, f"{w * 100:.1f}%")
    console.print(weights_table)

    # ----------------------------------------------------------- Risk calculations
    console.print("\n[bold]Computing risk metrics...[/bold]")
    calc = RiskCalculator(portfolio, risk_free_rate=config.annual_risk_free)
    risk_report = calc.compute_all()

    metrics_table = Table(title="Risk Metrics")
    metrics_table.add_column("Metric", style="cyan")
    metrics_table.add_column("Value", justify="right")
    for label, value in risk_report.to_dict().items():
        display_label = label.replace("_", " ")
        if "Ratio" in label:
            formatted = f"{value:.4f}"
        else:
            formatted = f"{value * 100:.2f}%"
        metrics_table.add_row(display_label, formatted)
    console.print(metrics_table)

    # ---------------------------------------------------------- Monte Carlo
    console.print(
        f"\n[bold]Running Monte Carlo simulation "
        f"({config.simulations:,} paths, {config.months} months)...[/bold]"
    )
    batch = engine.run()
    summary = summarize(batch)

    mc_table = Table(title="Monte Carlo Results")
    mc_table.add_column("Path", style="cyan")
    mc_table.add_column("Simulation", justify="right")
    mc_table.add_column("Terminal Value", justify="right")
    for label, entry in summary.to_dict().items():
        mc_table.add_row(label.title(), str(entry["simulation"]), f"${entry['value']:,.4f}")
    console.print(mc_table)
    console.print(
        f"  Monthly mean {batch.params.mean * 100:.3f}%, "
        f"stdev {batch.params.stdev * 100:.3f}%, "
        f"probability of loss {batch.prob_loss * 100:.1f}%"
    )

    # ----------------------------------------------------------- Export reports
    output_dir = Path(args.output_dir)
    report_data = build_report_data(portfolio, risk_report, batch, summary)

    json_path = export_json(report_data, output_dir / "simulation_report.json")
    console.print(f"\n[green]JSON report saved:[/green] {json_path}")

    if not args.json_only:
        csv_path = export_csv(batch, output_dir / "simulations.csv")
        console.print(f"[green]Simulation table saved:[/green] {csv_path}")

        if not args.no_charts:
            console.print("[bold]Generating charts...[/bold]")
            chart_paths = generate_dashboard(portfolio, batch, summary, output_dir)
            for p in chart_paths:
                console.print(f"  [green]Saved:[/green] {p}")

        html_path = export_html(report_data, output_dir, output_dir / "simulation_report.html")
        console.print(f"[green]HTML report saved:[/green] {html_path}")

    console.print("\n[bold green]Simulation complete.[/bold green]")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        run(args)
    except (SimulatorError, FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Error ({type(exc).__name__}):[/red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
