"""Database schema bootstrap

Tables are created at startup for SQLite databases. Other databases are expected
to be provisioned ahead of time.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine

from approvalflow.infrastructure.database.base import Base
from approvalflow.infrastructure.database.engine import sync_engine

logger = logging.getLogger(__name__)


def ensure_sqlite_schema(engine: Engine | None = None) -> bool:
    """Create missing tables when the engine points at SQLite

    Returns:
        True when the schema was ensured, False for non-SQLite databases
    """
    # Models must be imported so their tables are registered on Base.metadata
    from approvalflow.infrastructure.database import models as _models  # noqa: F401

    engine = engine or sync_engine
    if engine.url.get_backend_name() != "sqlite":
        logger.info("skipping schema bootstrap for %s", engine.url.get_backend_name())
        return False

    Base.metadata.create_all(bind=engine)
    return True
