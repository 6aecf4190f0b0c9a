"""Shared test fixtures."""

import pytest
from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signal_core.db.base import Base
from signal_core.persistence import InMemorySignalRepository, SqlSignalRepository


@pytest.fixture
def session_factory():
    """In-memory SQLite session factory with the signals table created.

    Patches JSONB→JSON and drops the schema for SQLite compatibility. The
    single static connection is shared with the repository's worker threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite doesn't support schemas or JSONB
    for table in Base.metadata.tables.values():
        table.schema = None
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()

    Base.metadata.create_all(engine)

    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def sql_repository(session_factory):
    return SqlSignalRepository(session_factory)


@pytest.fixture
def memory_repository():
    return InMemorySignalRepository()
