"""Pytest configuration - global fixtures"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from approvalflow.infrastructure.database import models  # noqa: F401
from approvalflow.infrastructure.database.base import Base
from approvalflow.infrastructure.database.engine import get_db_session
from approvalflow.interfaces.api.main import app


@pytest.fixture
def api_db_engine():
    """In-memory SQLite shared by every connection of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def client(api_db_engine) -> Generator[TestClient, None, None]:
    """FastAPI test client backed by the in-memory database"""
    testing_session = sessionmaker(bind=api_db_engine, expire_on_commit=False)

    def override_get_db_session() -> Generator[Session, None, None]:
        session = testing_session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
