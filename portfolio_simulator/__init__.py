"""
Portfolio Growth Simulator - Monte Carlo simulation of portfolio growth.

Fetches historical prices, builds a monthly-rebalanced portfolio return
series, computes risk metrics such as the Sharpe Ratio, and simulates the
growth of $1 over a future horizon with summary max/median/min paths.
"""

__version__ = "1.0.0"
__author__ = "Taofik Bishi"
