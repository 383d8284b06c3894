"""Historical risk metrics for a portfolio's monthly returns."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from portfolio_simulator.portfolio import Portfolio


@dataclass(frozen=True)
class RiskReport:
    """Immutable container for all computed risk metrics."""

    var_95: float
    cvar_95: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    annualized_volatility: float
    annualized_return: float
    calmar_ratio: float

    def to_dict(self) -> dict:
        return {
            "VaR_95": round(self.var_95, 4),
            "CVaR_95": round(self.cvar_95, 4),
            "Sharpe_Ratio": round(self.sharpe_ratio, 4),
            "Sortino_Ratio": round(self.sortino_ratio, 4),
            "Max_Drawdown": round(self.max_drawdown, 4),
            "Annualized_Volatility": round(self.annualized_volatility, 4),
            "Annualized_Return": round(self.annualized_return, 4),
            "Calmar_Ratio": round(self.calmar_ratio, 4),
        }


class RiskCalculator:
    """Compute standard risk metrics for a portfolio."""

    def __init__(
        self,
        portfolio: Portfolio,
        risk_free_rate: float = 0.0,
        periods_per_year: int = 12,
    ) -> None:
        """
        Args:
            portfolio: Portfolio instance.
            risk_free_rate: Annual risk-free rate as a fraction (0.04 = 4 %).
            periods_per_year: Return periods per year (12 for monthly).
        """
        self.portfolio = portfolio
        self.rf = risk_free_rate
        self.ppy = periods_per_year

        self._returns = portfolio.portfolio_returns().values
        # log-return equivalent of the annual rate, per period
        self._rf_period = np.log1p(self.rf) / self.ppy

    # ------------------------------------------------------------------
    # Value at Risk
    # ------------------------------------------------------------------

    def var_historical(self, confidence: float = 0.95) -> float:
        """Historical Value at Risk of a single period."""
        return float(-np.percentile(self._returns, 100 * (1 - confidence)))

    def cvar(self, confidence: float = 0.95) -> float:
        """Conditional VaR (Expected Shortfall): mean of losses beyond VaR."""
        cutoff = np.percentile(self._returns, 100 * (1 - confidence))
        tail = self._returns[self._returns <= cutoff]
        return float(-np.mean(tail)) if len(tail) > 0 else 0.0

    # ------------------------------------------------------------------
    # Return / risk ratios
    # ------------------------------------------------------------------

    def sharpe_ratio(self) -> float:
        """Annualized Sharpe Ratio."""
        excess = self._returns - self._rf_period
        sd = np.std(excess, ddof=1)
        if sd == 0:
            return 0.0
        return float(np.mean(excess) / sd * np.sqrt(self.ppy))

    def sortino_ratio(self) -> float:
        """Annualized Sortino Ratio (downside deviation only)."""
        excess = self._returns - self._rf_period
        downside = excess[excess < 0]
        if len(downside) < 2 or np.std(downside, ddof=1) == 0:
            return 0.0
        return float(np.mean(excess) / np.std(downside, ddof=1) * np.sqrt(self.ppy))

    # ------------------------------------------------------------------
    # Drawdown
    # ------------------------------------------------------------------

    def drawdown_series(self) -> pd.Series:
        """Drawdown of the historical growth of $1 from its running peak."""
        growth = self.portfolio.growth_of_one()
        running_max = growth.cummax().clip(lower=1.0)
        return ((growth - running_max) / running_max).rename("drawdown")

    def max_drawdown(self) -> float:
        """Maximum drawdown of the portfolio."""
        return float(self.drawdown_series().min())

    # ------------------------------------------------------------------
    # Volatility
    # ------------------------------------------------------------------

    def annualized_volatility(self) -> float:
        """Annualized portfolio volatility."""
        return float(np.std(self._returns, ddof=1) * np.sqrt(self.ppy))

    def calmar_ratio(self) -> float:
        """Calmar Ratio = annualized return / |max drawdown|."""
        mdd = abs(self.max_drawdown())
        if mdd == 0:
            return 0.0
        return self.portfolio.annualized_return(self.ppy) / mdd

    # ------------------------------------------------------------------
    # Full report
    # ------------------------------------------------------------------

    def compute_all(self) -> RiskReport:
        """Compute all risk metrics and return a RiskReport."""
        return RiskReport(
            var_95=self.var_historical(0.95),
            cvar_95=self.cvar(0.95),
            sharpe_ratio=self.sharpe_ratio(),
            sortino_ratio=self.sortino_ratio(),
            max_drawdown=self.max_drawdown(),
            annualized_volatility=self.annualized_volatility(),
            annualized_return=self.portfolio.annualized_return(self.ppy),
            calmar_ratio=self.calmar_ratio(),
        )
