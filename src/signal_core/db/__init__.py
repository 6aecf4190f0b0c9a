"""Database layer — engine, session factory, schema bootstrap."""

from signal_core.db.base import Base
from signal_core.db.engine import (
    get_session_factory,
    init_engine,
    init_schema,
)

__all__ = [
    "Base",
    "get_session_factory",
    "init_engine",
    "init_schema",
]
