"""Signal persistence — repository protocol and backends."""

from signal_core.persistence.base import SignalRepository
from signal_core.persistence.memory import InMemorySignalRepository
from signal_core.persistence.sql import SqlSignalRepository

__all__ = ["InMemorySignalRepository", "SignalRepository", "SqlSignalRepository"]
