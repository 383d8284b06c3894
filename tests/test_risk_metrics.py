"""Tests for the risk metrics module."""

import numpy as np
import pandas as pd
import pytest

from portfolio_simulator.portfolio import Portfolio
from portfolio_simulator.risk_metrics import RiskCalculator, RiskReport


def _make_portfolio() -> Portfolio:
    rng = np.random.default_rng(42)
    n_months = 120
    dates = pd.date_range("2010-01-31", periods=n_months, freq="ME")
    returns = {
        "SPY": pd.Series(rng.normal(0.008, 0.045, n_months), index=dates),
        "AGG": pd.Series(rng.normal(0.002, 0.012, n_months), index=dates),
        "GLD": pd.Series(rng.normal(0.004, 0.040, n_months), index=dates),
    }
    return Portfolio({"SPY": 0.5, "AGG": 0.3, "GLD": 0.2}, returns)


def _make_calculator() -> RiskCalculator:
    return RiskCalculator(_make_portfolio(), risk_free_rate=0.04)


def test_var_is_float():
    assert isinstance(_make_calculator().var_historical(0.95), float)


def test_var_99_greater_than_var_95():
    calc = _make_calculator()
    assert calc.var_historical(0.99) >= calc.var_historical(0.95)


def test_cvar_greater_than_or_equal_to_var():
    calc = _make_calculator()
    assert calc.cvar(0.95) >= calc.var_historical(0.95)


def test_sharpe_ratio_matches_definition():
    calc = _make_calculator()
    r = _make_portfolio().portfolio_returns().values
    excess = r - np.log1p(0.04) / 12
    expected = excess.mean() / excess.std(ddof=1) * np.sqrt(12)
    assert calc.sharpe_ratio() == pytest.approx(expected)


def test_higher_risk_free_rate_lowers_sharpe():
    portfolio = _make_portfolio()
    low = RiskCalculator(portfolio, risk_free_rate=0.0).sharpe_ratio()
    high = RiskCalculator(portfolio, risk_free_rate=0.10).sharpe_ratio()
    assert high < low


def test_sortino_ratio_is_finite():
    sortino = _make_calculator().sortino_ratio()
    assert isinstance(sortino, float)
    assert np.isfinite(sortino)


def test_max_drawdown_bounded():
    mdd = _make_calculator().max_drawdown()
    assert -1.0 <= mdd <= 0.0


def test_drawdown_series_non_positive():
    dd = _make_calculator().drawdown_series()
    assert isinstance(dd, pd.Series)
    assert len(dd) == 120
    assert (dd <= 0).all()


def test_annualized_volatility_positive():
    assert _make_calculator().annualized_volatility() > 0


def test_calmar_ratio_is_finite():
    calmar = _make_calculator().calmar_ratio()
    assert np.isfinite(calmar)


def test_compute_all_returns_risk_report():
    report = _make_calculator().compute_all()
    assert isinstance(report, RiskReport)
    assert isinstance(report.sharpe_ratio, float)
    assert isinstance(report.max_drawdown, float)


def test_risk_report_to_dict():
    d = _make_calculator().compute_all().to_dict()
    for key in (
        "VaR_95", "CVaR_95", "Sharpe_Ratio", "Sortino_Ratio",
        "Max_Drawdown", "Annualized_Volatility", "Annualized_Return", "Calmar_Ratio",
    ):
        assert key in d
