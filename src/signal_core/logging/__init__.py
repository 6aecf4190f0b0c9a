"""Structured logging."""

from signal_core.logging.setup import (
    bind_cycle_context,
    clear_cycle_context,
    get_logger,
    setup_logging,
)

__all__ = ["bind_cycle_context", "clear_cycle_context", "get_logger", "setup_logging"]
