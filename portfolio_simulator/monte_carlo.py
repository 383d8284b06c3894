"""Monte Carlo simulation of portfolio growth."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
import pandas as pd

from portfolio_simulator.exceptions import InsufficientDataError, InvalidParameterError
from portfolio_simulator.portfolio import Portfolio

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Distribution estimation
# ------------------------------------------------------------------


@dataclass(frozen=True)
class DistributionParams:
    """Sample statistics of a periodic return series."""

    mean: float
    stdev: float
    n_obs: int


def estimate_distribution(returns: pd.Series) -> DistributionParams:
    """Arithmetic mean and sample standard deviation (ddof=1) of returns."""
    clean = returns.dropna()
    if len(clean) < 2:
        raise InsufficientDataError(
            f"Need at least 2 return observations, got {len(clean)}"
        )
    params = DistributionParams(
        mean=float(clean.mean()),
        stdev=float(clean.std(ddof=1)),
        n_obs=len(clean),
    )
    logger.info(
        "Estimated mean=%.6f stdev=%.6f from %d periods",
        params.mean, params.stdev, params.n_obs,
    )
    return params


# ------------------------------------------------------------------
# Single path
# ------------------------------------------------------------------


def _check_path_params(init_value: float, n_periods: int, stdev: float) -> None:
    if n_periods <= 0:
        raise InvalidParameterError(f"n_periods must be positive, got {n_periods}")
    if init_value <= 0:
        raise InvalidParameterError(f"init_value must be positive, got {init_value}")
    if stdev < 0:
        raise InvalidParameterError(f"stdev must be non-negative, got {stdev}")


def simulate_growth(
    init_value: float,
    n_periods: int,
    mean: float,
    stdev: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Simulate one path of compounded growth.

    Draws ``n_periods`` returns from Normal(mean, stdev) and compounds them:
    ``growth[0] = init_value``, ``growth[i] = growth[i-1] * (1 + r_i)``.

    Args:
        init_value: Starting value (> 0).
        n_periods: Number of future periods (> 0).
        mean: Mean periodic return.
        stdev: Standard deviation of periodic returns (>= 0). Zero gives
            the deterministic path ``init_value * (1 + mean) ** i`` and
            consumes nothing from ``rng``.
        rng: Random source; pass a seeded generator for reproducible paths.

    Returns:
        Array of length ``n_periods + 1``.
    """
    _check_path_params(init_value, n_periods, stdev)

    if stdev == 0:
        return init_value * (1.0 + mean) ** np.arange(n_periods + 1, dtype=float)

    draws = rng.normal(mean, stdev, size=n_periods)
    factors = np.concatenate(([float(init_value)], 1.0 + draws))
    # left fold: running product starting from init_value
    return np.cumprod(factors)


# ------------------------------------------------------------------
# Batch of paths
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SimulationSummary:
    """Terminal max / median / min of a batch and the paths that reach them."""

    max_value: float
    median_value: float
    min_value: float
    max_id: int
    median_id: int
    min_id: int
    candidates: dict[str, tuple[int, ...]]

    @property
    def ids(self) -> dict[str, int]:
        return {"max": self.max_id, "median": self.median_id, "min": self.min_id}

    def to_dict(self) -> dict:
        return {
            "max": {"value": round(self.max_value, 6), "simulation": self.max_id},
            "median": {"value": round(self.median_value, 6), "simulation": self.median_id},
            "min": {"value": round(self.min_value, 6), "simulation": self.min_id},
        }


@dataclass(frozen=True)
class SimulationBatch:
    """Simulated paths keyed by simulation id (1..K) on a month axis (0..N)."""

    paths: pd.DataFrame   # index: month 0..N, columns: simulation id 1..K
    init_value: float
    params: DistributionParams | None = None

    @property
    def n_simulations(self) -> int:
        return self.paths.shape[1]

    @property
    def horizon(self) -> int:
        return self.paths.shape[0] - 1

    @property
    def ids(self) -> list[int]:
        return list(self.paths.columns)

    @property
    def terminal_values(self) -> pd.Series:
        return self.paths.iloc[-1].rename("terminal_value")

    @property
    def prob_loss(self) -> float:
        """Share of paths ending below the starting value."""
        return float((self.terminal_values < self.init_value).mean())

    def percentiles(self, qs=(5, 25, 50, 75, 95)) -> dict[int, float]:
        values = self.terminal_values.values
        return {q: float(np.percentile(values, q)) for q in qs}

    def path(self, sim_id: int) -> np.ndarray:
        return self.paths[sim_id].to_numpy()

    def select(self, summary: SimulationSummary) -> pd.DataFrame:
        """The max / median / min paths as a three-column comparison table."""
        return pd.DataFrame(
            {label: self.paths[sim_id] for label, sim_id in summary.ids.items()},
            index=self.paths.index,
        )


def run_batch(
    n_simulations: int,
    init_value: float,
    n_periods: int,
    mean: float,
    stdev: float,
    seed: int | None = None,
    max_workers: int | None = None,
) -> SimulationBatch:
    """
    Run ``n_simulations`` independent growth paths.

    Each run draws from its own generator spawned from
    ``SeedSequence(seed)``, so the batch is identical whether it runs
    serially or across ``max_workers`` threads.

    Args:
        n_simulations: Number of paths K (> 0).
        init_value: Starting value of every path.
        n_periods: Months to simulate per path.
        mean: Mean periodic return.
        stdev: Standard deviation of periodic returns.
        seed: Root seed; None draws fresh OS entropy.
        max_workers: Run paths on a thread pool of this size when > 1.
    """
    if n_simulations <= 0:
        raise InvalidParameterError(
            f"n_simulations must be positive, got {n_simulations}"
        )
    _check_path_params(init_value, n_periods, stdev)

    sim_ids = list(range(1, n_simulations + 1))
    children = np.random.SeedSequence(seed).spawn(n_simulations)
    rngs = [np.random.default_rng(child) for child in children]

    def _one(sim_id: int, rng: np.random.Generator) -> tuple[int, np.ndarray]:
        return sim_id, simulate_growth(init_value, n_periods, mean, stdev, rng)

    logger.info(
        "Simulating %d paths over %d periods (workers=%s)",
        n_simulations, n_periods, max_workers or 1,
    )
    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            results = dict(ex.map(_one, sim_ids, rngs))
    else:
        results = dict(_one(i, r) for i, r in zip(sim_ids, rngs))

    paths = pd.DataFrame(
        {sim_id: results[sim_id] for sim_id in sim_ids},
        index=pd.RangeIndex(n_periods + 1, name="month"),
    )
    paths.columns.name = "simulation"
    return SimulationBatch(
        paths=paths,
        init_value=float(init_value),
    )


# ------------------------------------------------------------------
# Summary
# ------------------------------------------------------------------


def summarize(batch: SimulationBatch) -> SimulationSummary:
    """
    Reduce a batch to its terminal max, median and min.

    The median is the standard statistical median (mean of the two middle
    values when K is even). Ties report the lowest simulation id; every
    tying id is kept in ``candidates``. For the median, the reported path
    is the one whose terminal value is closest to the median.
    """
    terminal = batch.terminal_values.sort_index()
    values = terminal.to_numpy()
    ids = terminal.index.to_numpy()

    max_value = float(values.max())
    min_value = float(values.min())
    median_value = float(np.median(values))
    distance = np.abs(values - median_value)

    candidates = {
        "max": tuple(int(i) for i in ids[values == max_value]),
        "median": tuple(int(i) for i in ids[distance == distance.min()]),
        "min": tuple(int(i) for i in ids[values == min_value]),
    }
    return SimulationSummary(
        max_value=max_value,
        median_value=median_value,
        min_value=min_value,
        max_id=candidates["max"][0],
        median_id=candidates["median"][0],
        min_id=candidates["min"][0],
        candidates=candidates,
    )


# ------------------------------------------------------------------
# Engine
# ------------------------------------------------------------------


class MonteCarloEngine:
    """Estimate a portfolio's return distribution and simulate its growth."""

    def __init__(
        self,
        portfolio: Portfolio,
        n_simulations: int = 51,
        horizon: int = 120,
        init_value: float = 1.0,
        seed: int | None = None,
        max_workers: int | None = None,
    ) -> None:
        """
        Args:
            portfolio: Portfolio instance with historical returns.
            n_simulations: Number of simulation paths.
            horizon: Number of months to simulate forward.
            init_value: Starting value of every path (growth of $1 by default).
            seed: Random seed for reproducibility.
            max_workers: Optional thread pool size for the batch.
        """
        self.portfolio = portfolio
        self.n_simulations = n_simulations
        self.horizon = horizon
        self.init_value = init_value
        self.seed = seed
        self.max_workers = max_workers

    def estimate(self) -> DistributionParams:
        return estimate_distribution(self.portfolio.portfolio_returns())

    def run(self) -> SimulationBatch:
        """Estimate (mean, stdev) from history and run the batch."""
        params = self.estimate()
        batch = run_batch(
            self.n_simulations,
            self.init_value,
            self.horizon,
            params.mean,
            params.stdev,
            seed=self.seed,
            max_workers=self.max_workers,
        )
        return SimulationBatch(paths=batch.paths, init_value=batch.init_value, params=params)
