"""Database engine and session factory

- One synchronous engine built from `settings.database_url`
- SQLite connections may be used from FastAPI's worker threads
- `get_db_session` is the FastAPI dependency yielding one session per request
"""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from approvalflow.config import settings


def get_sync_engine(database_url: str | None = None) -> Engine:
    """Create the engine

    Args:
        database_url: overrides `settings.database_url` (tests)
    """
    url = database_url or settings.database_url
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        url,
        echo=settings.debug,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


sync_engine = get_sync_engine()

SessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def get_db_session() -> Generator[Session, None, None]:
    """Per-request session; always closed when the request ends

    >>> @router.get("/api/workflows")
    >>> def list_workflows(session: Session = Depends(get_db_session)):
    >>>     return SQLAlchemyWorkflowRepository(session).find_all()
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
