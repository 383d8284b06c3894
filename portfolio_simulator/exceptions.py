"""Error kinds raised by the simulation pipeline."""


class SimulatorError(Exception):
    """Base class for all portfolio simulator errors."""


class DataFetchError(SimulatorError):
    """Price history could not be obtained or is unusable."""


class WeightMismatchError(SimulatorError, ValueError):
    """Portfolio weights are invalid or reference unknown tickers."""


class InsufficientDataError(SimulatorError, ValueError):
    """Too few observations to estimate distribution parameters."""


class InvalidParameterError(SimulatorError, ValueError):
    """A simulation parameter is out of range."""
