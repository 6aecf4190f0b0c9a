"""Error taxonomy shared by the pipeline, the lifecycle manager and the monitor."""

from __future__ import annotations


class SignalCoreError(Exception):
    """Base class for every error raised by signal-core."""

    def __init__(
        self,
        message: str,
        *,
        symbol: str | None = None,
        signal_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.symbol = symbol
        self.signal_id = signal_id


class InsufficientDataError(SignalCoreError):
    """Not enough candles to compute indicators — skip the symbol this cycle."""


class ProviderUnavailable(SignalCoreError):
    """Market data provider fault — skip now, retry on the next cycle or tick."""


class ConfigurationError(SignalCoreError):
    """Invalid configuration — fatal at startup."""


class InvariantViolation(SignalCoreError):
    """A candidate broke a structural rule (e.g. stop/target ordering) — never admit it."""
