"""Convert raw price history into periodic logarithmic returns."""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from portfolio_simulator.exceptions import DataFetchError

logger = logging.getLogger(__name__)

FILL_POLICIES = ("drop", "ffill")


def monthly_log_returns(
    prices: pd.Series,
    period: str = "ME",
    fill: str = "drop",
) -> pd.Series:
    """
    Resample a price series to period ends and take log differences.

    Args:
        prices: Prices indexed by date, at any granularity finer than or
            equal to ``period``.
        period: pandas offset alias for the resampling period (month end).
        fill: What to do with periods that have no observation: ``"drop"``
            removes them, ``"ffill"`` carries the last price forward.

    Returns:
        Series of ``ln(p_t) - ln(p_{t-1})`` indexed by period end. The first
        period has no prior price and is dropped.
    """
    if fill not in FILL_POLICIES:
        raise ValueError(f"Unknown fill policy {fill!r}, expected one of {FILL_POLICIES}")

    name = prices.name
    series = prices.dropna()
    if series.empty:
        raise DataFetchError(f"No price history for {name!r}")

    series = series.copy()
    series.index = pd.DatetimeIndex(series.index)
    series = series.sort_index()
    if (series <= 0).any():
        raise DataFetchError(f"Non-positive prices in history for {name!r}")

    resampled = series.resample(period).last()
    resampled = resampled.ffill() if fill == "ffill" else resampled.dropna()
    if len(resampled) < 2:
        raise DataFetchError(
            f"Need at least 2 periods of prices for {name!r}, got {len(resampled)}"
        )

    log_returns = np.log(resampled).diff().iloc[1:]
    logger.debug("%s: %d periodic log returns", name, len(log_returns))
    return log_returns.rename(name)


def build_return_series(
    prices: pd.DataFrame,
    period: str = "ME",
    fill: str = "drop",
) -> dict[str, pd.Series]:
    """Per-ticker log returns for a frame with one price column per ticker."""
    if prices.empty or len(prices.columns) == 0:
        raise DataFetchError("Price frame is empty")
    return {
        str(ticker): monthly_log_returns(prices[ticker].rename(str(ticker)), period, fill)
        for ticker in prices.columns
    }
