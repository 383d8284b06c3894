"""Portfolio weights and rebalanced portfolio return calculations."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np
import pandas as pd

from portfolio_simulator.exceptions import InsufficientDataError, WeightMismatchError

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 1e-6


def weights_from_percentages(percentages: Mapping[str, float]) -> dict[str, float]:
    """Convert ``{"SPY": 60, "AGG": 40}`` into fractional weights."""
    return {ticker: float(pct) / 100.0 for ticker, pct in percentages.items()}


def validate_weights(
    weights: Mapping[str, float],
    tickers: list[str] | None = None,
    tolerance: float = WEIGHT_TOLERANCE,
) -> None:
    """
    Check that weights are usable for a long-only portfolio.

    Args:
        weights: Mapping of ticker to fractional weight.
        tickers: Tickers that have return data. When given, every weighted
            ticker must be among them.
        tolerance: Allowed absolute deviation of the weight sum from 1.0.

    Raises:
        WeightMismatchError: if the mapping is empty, a weight is negative or
            not finite, the weights do not sum to 1.0, or a ticker has no
            return series.
    """
    if not weights:
        raise WeightMismatchError("Portfolio weights are empty")

    non_finite = [t for t, w in weights.items() if not np.isfinite(w)]
    if non_finite:
        raise WeightMismatchError(f"Weights must be finite numbers: {non_finite}")

    negative = [t for t, w in weights.items() if w < 0]
    if negative:
        raise WeightMismatchError(f"Negative weights are not supported: {negative}")

    total = float(sum(weights.values()))
    if abs(total - 1.0) > tolerance:
        raise WeightMismatchError(
            f"Weights must sum to 1.0 (tolerance {tolerance}), got {total:.8f}"
        )

    if tickers is not None:
        missing = [t for t in weights if t not in tickers]
        if missing:
            raise WeightMismatchError(f"No return series for weighted tickers: {missing}")


class Portfolio:
    """A weighted set of assets with aligned monthly log returns."""

    def __init__(
        self,
        weights: Mapping[str, float],
        returns: Mapping[str, pd.Series],
        name: str = "Portfolio",
    ) -> None:
        """
        Initialize a Portfolio.

        Args:
            weights: Target weight per ticker, summing to 1.0.
            returns: Log return series per ticker, indexed by period end.
                Series for tickers without a weight are ignored.
            name: Display name used in reports.
        """
        validate_weights(weights, tickers=list(returns))

        self.name = name
        self.tickers: list[str] = list(weights)
        self.target_weights: dict[str, float] = {t: float(w) for t, w in weights.items()}

        frames = [returns[t].rename(t) for t in self.tickers]
        aligned = pd.concat(frames, axis=1, join="inner").sort_index()
        self._returns: pd.DataFrame = aligned.dropna(how="any")

        if self._returns.empty:
            raise InsufficientDataError(
                f"No common dates across return series for {self.tickers}"
            )
        logger.debug(
            "%s: %d aligned periods %s..%s",
            self.name,
            len(self._returns),
            self._returns.index[0],
            self._returns.index[-1],
        )

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    @property
    def weights(self) -> np.ndarray:
        """Target weights as a 1-D numpy array aligned with self.tickers."""
        return np.array([self.target_weights[t] for t in self.tickers], dtype=float)

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    def asset_returns(self) -> pd.DataFrame:
        """Per-asset log returns on the dates common to every asset."""
        return self._returns.copy()

    def portfolio_returns(self) -> pd.Series:
        """
        Weighted portfolio return per period.

        Weights are reset to target at every period boundary, so each
        period's return is the target-weighted sum of the asset returns.
        """
        return self._returns.dot(self.weights).rename("portfolio_return")

    def growth_of_one(self) -> pd.Series:
        """Historical growth of $1 under the portfolio's log returns."""
        pr = self.portfolio_returns()
        return np.exp(pr.cumsum()).rename("growth_of_1")

    def annualized_return(self, periods_per_year: int = 12) -> float:
        """Annualized simple return implied by the mean log return."""
        pr = self.portfolio_returns()
        return float(np.exp(pr.mean() * periods_per_year) - 1)

    def covariance_matrix(self, periods_per_year: int = 12) -> pd.DataFrame:
        """Annualized covariance matrix of asset returns."""
        return self._returns.cov() * periods_per_year

    def correlation_matrix(self) -> pd.DataFrame:
        """Correlation matrix of asset returns."""
        return self._returns.corr()

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def summary(self) -> dict:
        """Return a summary dictionary of the portfolio."""
        return {
            "name": self.name,
            "tickers": self.tickers,
            "weights": dict(self.target_weights),
            "start": self._returns.index[0].strftime("%Y-%m-%d"),
            "end": self._returns.index[-1].strftime("%Y-%m-%d"),
            "periods": len(self._returns),
            "annualized_return": round(self.annualized_return(), 4),
        }
