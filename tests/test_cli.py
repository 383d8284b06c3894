"""End-to-end tests for the command-line pipeline."""

import json

import numpy as np
import pandas as pd
import pytest

from portfolio_simulator.cli import build_parser, main, parse_allocations, resolve_config
from portfolio_simulator.exceptions import InvalidParameterError


def _write_prices(path, n_months: int = 60) -> None:
    rng = np.random.default_rng(42)
    dates = pd.date_range("2015-01-31", periods=n_months, freq="ME")
    pd.DataFrame({
        "date": dates.strftime("%Y-%m-%d"),
        "AAA": 100.0 * np.exp(np.cumsum(rng.normal(0.008, 0.045, n_months))),
        "BBB": 50.0 * np.exp(np.cumsum(rng.normal(0.002, 0.012, n_months))),
    }).to_csv(path, index=False)


def test_parse_allocations():
    assert parse_allocations("spy:60, agg:40") == {"SPY": 60.0, "AGG": 40.0}


def test_parse_allocations_rejects_bad_pair():
    with pytest.raises(InvalidParameterError):
        parse_allocations("SPY60")


def test_resolve_config_requires_tickers_or_config():
    args = build_parser().parse_args([])
    with pytest.raises(InvalidParameterError):
        resolve_config(args)


def test_resolve_config_overrides_yaml(tmp_path):
    path = tmp_path / "p.yaml"
    path.write_text("name: Base\nallocations:\n  SPY: 100\nmonths: 60\n")
    args = build_parser().parse_args(["--config", str(path), "--months", "12", "--seed", "5"])
    config = resolve_config(args)
    assert config.name == "Base"
    assert config.months == 12
    assert config.seed == 5


def test_full_run_from_csv(tmp_path):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)
    out = tmp_path / "out"

    main([
        "--tickers", "AAA:60,BBB:40",
        "--name", "Test Mix",
        "--prices", str(prices),
        "--start", "2015-01-01",
        "--months", "24",
        "--simulations", "11",
        "--seed", "7",
        "--output-dir", str(out),
        "--no-charts",
    ])

    report = json.loads((out / "simulation_report.json").read_text())
    assert report["portfolio"]["name"] == "Test Mix"
    assert report["portfolio"]["periods"] == 59
    assert report["monte_carlo"]["n_simulations"] == 11
    assert report["monte_carlo"]["horizon_months"] == 24
    assert (out / "simulations.csv").exists()
    assert (out / "simulation_report.html").exists()


def test_full_run_with_charts(tmp_path):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)
    out = tmp_path / "out"

    main([
        "--tickers", "AAA:100",
        "--prices", str(prices),
        "--months", "12",
        "--simulations", "5",
        "--seed", "1",
        "--output-dir", str(out),
    ])

    for name in ("simulation_paths.png", "summary_paths.png",
                 "historical_growth.png", "terminal_distribution.png"):
        assert (out / name).exists()


def test_bad_weights_exit_before_output(tmp_path):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)
    out = tmp_path / "out"

    with pytest.raises(SystemExit) as exc:
        main([
            "--tickers", "AAA:60,BBB:30",
            "--prices", str(prices),
            "--output-dir", str(out),
        ])
    assert exc.value.code == 1
    assert not out.exists()


def test_unknown_ticker_in_csv_exits(tmp_path):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)

    with pytest.raises(SystemExit) as exc:
        main(["--tickers", "ZZZ:100", "--prices", str(prices), "--output-dir", str(tmp_path / "o")])
    assert exc.value.code == 1


def test_nan_allocation_exits(tmp_path):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)
    out = tmp_path / "out"

    with pytest.raises(SystemExit) as exc:
        main(["--tickers", "AAA:nan", "--prices", str(prices), "--output-dir", str(out)])
    assert exc.value.code == 1
    assert not out.exists()


def test_bad_start_date_exits(tmp_path, capsys):
    prices = tmp_path / "prices.csv"
    _write_prices(prices)
    out = tmp_path / "out"

    with pytest.raises(SystemExit) as exc:
        main([
            "--tickers", "AAA:100",
            "--prices", str(prices),
            "--start", "not-a-date",
            "--json-only",
            "--output-dir", str(out),
        ])
    assert exc.value.code == 1
    assert "InvalidParameterError" in capsys.readouterr().out
    assert not out.exists()


def test_single_month_history_fails_before_risk_metrics(tmp_path, capsys):
    prices = tmp_path / "prices.csv"
    _write_prices(prices, n_months=2)
    out = tmp_path / "out"

    with pytest.raises(SystemExit) as exc:
        main(["--tickers", "AAA:100", "--prices", str(prices), "--output-dir", str(out)])
    assert exc.value.code == 1

    printed = capsys.readouterr().out
    assert "InsufficientDataError" in printed
    assert "Risk Metrics" not in printed
    assert not out.exists()
