"""Import all table modules so Base.metadata knows about them."""

from signal_core.db.tables.signals import SignalRow

__all__ = ["SignalRow"]
