"""Load historical prices from Yahoo Finance or CSV files."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import pandas as pd
import yfinance as yf

from portfolio_simulator.exceptions import DataFetchError

logger = logging.getLogger(__name__)


def fetch_prices(
    tickers: list[str],
    start: str,
    end: str | None = None,
    retries: int = 3,
    backoff: float = 1.0,
) -> pd.DataFrame:
    """
    Download daily auto-adjusted closing prices from Yahoo Finance.

    Args:
        tickers: Symbols to download.
        start: First date (``YYYY-MM-DD``).
        end: Last date, defaults to today.
        retries: Download attempts before giving up.
        backoff: Seconds to wait after the first failure; doubled each retry.

    Returns:
        DataFrame indexed by date with one close-price column per ticker.

    Raises:
        DataFetchError: if every attempt fails, or any ticker comes back
            without data (missing or delisted symbol).
    """
    if not tickers:
        raise DataFetchError("No tickers requested")

    raw = None
    last_exc: Exception | None = None
    for attempt in range(1, retries + 1):
        logger.info("Downloading %s from Yahoo Finance (attempt %d/%d)", tickers, attempt, retries)
        try:
            raw = yf.download(
                tickers,
                start=start,
                end=end,
                auto_adjust=True,
                progress=False,
                interval="1d",
            )
        except Exception as exc:
            last_exc = exc
            raw = None
        else:
            if raw.empty:
                raise DataFetchError(f"No price data for tickers: {tickers}")
            break
        if attempt < retries:
            delay = backoff * 2 ** (attempt - 1)
            logger.warning("Download failed, retrying in %.1fs", delay)
            time.sleep(delay)
    else:
        raise DataFetchError(f"Failed to download prices for {tickers}: {last_exc}") from last_exc

    closes = _extract_close(raw, tickers)
    missing = [t for t in tickers if t not in closes.columns or closes[t].isna().all()]
    if missing:
        raise DataFetchError(f"No price data for tickers: {missing}")

    closes = closes[tickers].sort_index()
    closes.index = pd.DatetimeIndex(closes.index)
    if closes.index.tz is not None:
        closes.index = closes.index.tz_localize(None)
    closes.index.name = "date"
    logger.info("Fetched %d rows for %s", len(closes), tickers)
    return closes


def _extract_close(data: pd.DataFrame, tickers: list[str]) -> pd.DataFrame:
    """Pull the Close block out of a yfinance frame, flat or multi-indexed."""
    if isinstance(data.columns, pd.MultiIndex):
        for field in ("Close", "Adj Close"):
            if field in data.columns.get_level_values(0):
                return data[field].copy()
            if field in data.columns.get_level_values(1):
                return data.xs(field, level=1, axis=1).copy()
    else:
        for field in ("Close", "Adj Close"):
            if field in data.columns:
                return data[[field]].rename(columns={field: tickers[0]})
    raise DataFetchError(f"Could not find Close prices in columns {list(data.columns)}")


def load_prices(path: str | Path) -> pd.DataFrame:
    """
    Load a historical prices CSV with a 'date' column and one column per
    ticker into a date-indexed DataFrame.
    """
    df = _read_csv(path)
    if "date" not in df.columns:
        raise ValueError("Prices CSV must contain a 'date' column")
    df["date"] = pd.to_datetime(df["date"])
    df = df.sort_values("date").set_index("date")
    if df.empty:
        raise DataFetchError(f"Prices CSV has no rows: {path}")
    return df


def _read_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV, raising a clear error if the file is missing."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return pd.read_csv(path)
