"""User-supplied portfolio and simulation settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path

import pandas as pd
import yaml

from portfolio_simulator.exceptions import InvalidParameterError
from portfolio_simulator.portfolio import validate_weights, weights_from_percentages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioConfig:
    """Inputs for one report run.

    Allocations and the risk-free rate are expressed in percent, the way a
    user writes them (``{"SPY": 60, "AGG": 40}``, ``4.5``).
    """

    name: str
    allocations: dict[str, float]
    risk_free_rate: float = 0.0
    start: str = "2010-01-01"
    months: int = 120
    simulations: int = 51
    init_value: float = 1.0
    seed: int | None = None

    def __post_init__(self) -> None:
        if not self.allocations:
            raise InvalidParameterError("Portfolio needs at least one ticker")
        if self.months <= 0:
            raise InvalidParameterError(f"months must be positive, got {self.months}")
        if self.simulations <= 0:
            raise InvalidParameterError(
                f"simulations must be positive, got {self.simulations}"
            )
        if self.init_value <= 0:
            raise InvalidParameterError(
                f"init_value must be positive, got {self.init_value}"
            )
        try:
            start = pd.Timestamp(self.start)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"Invalid start date {self.start!r}") from exc
        if pd.isna(start):
            raise InvalidParameterError(f"Invalid start date {self.start!r}")
        validate_weights(self.weights)

    @property
    def tickers(self) -> list[str]:
        return list(self.allocations)

    @property
    def start_date(self) -> pd.Timestamp:
        return pd.Timestamp(self.start)

    @property
    def weights(self) -> dict[str, float]:
        """Allocations as fractions summing to 1."""
        return weights_from_percentages(self.allocations)

    @property
    def annual_risk_free(self) -> float:
        """Risk-free rate as a fraction (4.5 -> 0.045)."""
        return self.risk_free_rate / 100.0

    def with_overrides(self, **overrides) -> PortfolioConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_config(path: str | Path) -> PortfolioConfig:
    """
    Read a portfolio definition from YAML.

    Example file::

        name: Balanced
        allocations:
          SPY: 60
          AGG: 40
        risk_free_rate: 4.0
        start: 2010-01-01
        months: 120
        simulations: 51
        seed: 42
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}

    if "allocations" not in raw:
        raise InvalidParameterError(f"{path}: missing 'allocations' section")

    allocations = {str(t): float(pct) for t, pct in raw["allocations"].items()}
    kwargs = {
        "name": str(raw.get("name", path.stem)),
        "allocations": allocations,
    }
    for key, cast in (
        ("risk_free_rate", float),
        ("start", str),
        ("months", int),
        ("simulations", int),
        ("init_value", float),
        ("seed", int),
    ):
        if raw.get(key) is not None:
            kwargs[key] = cast(raw[key])

    logger.debug("Loaded config %s from %s", kwargs["name"], path)
    return PortfolioConfig(**kwargs)
