"""Tests for price loading and the Yahoo Finance fetcher."""

import numpy as np
import pandas as pd
import pytest

from portfolio_simulator import data_loader
from portfolio_simulator.data_loader import fetch_prices, load_prices
from portfolio_simulator.exceptions import DataFetchError


def _yahoo_frame(tickers: list[str], n_days: int = 60) -> pd.DataFrame:
    rng = np.random.default_rng(42)
    dates = pd.bdate_range("2024-01-02", periods=n_days, name="Date")
    columns = pd.MultiIndex.from_product([["Close", "Volume"], tickers], names=["Price", "Ticker"])
    data = np.column_stack(
        [100.0 + np.cumsum(rng.normal(0, 1, n_days)) for _ in tickers]
        + [rng.integers(1_000, 5_000, n_days) for _ in tickers]
    )
    return pd.DataFrame(data, index=dates, columns=columns)


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(data_loader.time, "sleep", delays.append)
    return delays


def test_fetch_prices_extracts_close(monkeypatch):
    frame = _yahoo_frame(["SPY", "AGG"])
    monkeypatch.setattr(data_loader.yf, "download", lambda *a, **k: frame)

    prices = fetch_prices(["SPY", "AGG"], start="2024-01-01")
    assert list(prices.columns) == ["SPY", "AGG"]
    assert len(prices) == 60
    assert prices.index.name == "date"
    pd.testing.assert_series_equal(
        prices["SPY"], frame[("Close", "SPY")], check_names=False, check_freq=False,
    )


def test_fetch_prices_flat_single_ticker(monkeypatch):
    dates = pd.bdate_range("2024-01-02", periods=10)
    flat = pd.DataFrame({"Open": 1.0, "Close": np.arange(1.0, 11.0)}, index=dates)
    monkeypatch.setattr(data_loader.yf, "download", lambda *a, **k: flat)

    prices = fetch_prices(["SPY"], start="2024-01-01")
    assert list(prices.columns) == ["SPY"]
    assert prices["SPY"].iloc[-1] == 10.0


def test_fetch_prices_retries_then_succeeds(monkeypatch, no_sleep):
    frame = _yahoo_frame(["SPY"])
    calls = []

    def flaky(*args, **kwargs):
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("timed out")
        return frame

    monkeypatch.setattr(data_loader.yf, "download", flaky)
    prices = fetch_prices(["SPY"], start="2024-01-01", retries=3, backoff=0.5)

    assert len(calls) == 3
    assert no_sleep == [0.5, 1.0]
    assert len(prices) == 60


def test_fetch_prices_gives_up_after_retries(monkeypatch, no_sleep):
    def broken(*args, **kwargs):
        raise ConnectionError("network down")

    monkeypatch.setattr(data_loader.yf, "download", broken)
    with pytest.raises(DataFetchError, match="network down"):
        fetch_prices(["SPY"], start="2024-01-01", retries=2)
    assert len(no_sleep) == 1


def test_fetch_prices_empty_response_fails_without_retry(monkeypatch, no_sleep):
    calls = []

    def empty(*args, **kwargs):
        calls.append(1)
        return pd.DataFrame()

    monkeypatch.setattr(data_loader.yf, "download", empty)
    with pytest.raises(DataFetchError, match="No price data"):
        fetch_prices(["DELISTED"], start="2024-01-01", retries=3)
    assert len(calls) == 1
    assert no_sleep == []


def test_fetch_prices_missing_ticker_raises(monkeypatch):
    frame = _yahoo_frame(["SPY", "DEAD"])
    frame[("Close", "DEAD")] = np.nan
    monkeypatch.setattr(data_loader.yf, "download", lambda *a, **k: frame)

    with pytest.raises(DataFetchError, match="DEAD"):
        fetch_prices(["SPY", "DEAD"], start="2024-01-01")


def test_fetch_prices_requires_tickers():
    with pytest.raises(DataFetchError):
        fetch_prices([], start="2024-01-01")


def test_load_prices_csv(tmp_path):
    path = tmp_path / "prices.csv"
    pd.DataFrame({
        "date": ["2024-02-29", "2024-01-31", "2024-03-29"],
        "SPY": [101.0, 100.0, 102.0],
    }).to_csv(path, index=False)

    prices = load_prices(path)
    assert isinstance(prices.index, pd.DatetimeIndex)
    assert list(prices["SPY"]) == [100.0, 101.0, 102.0]


def test_load_prices_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_prices(tmp_path / "nope.csv")


def test_load_prices_requires_date_column(tmp_path):
    path = tmp_path / "prices.csv"
    pd.DataFrame({"SPY": [1.0, 2.0]}).to_csv(path, index=False)
    with pytest.raises(ValueError, match="date"):
        load_prices(path)
