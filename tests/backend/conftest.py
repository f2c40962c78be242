# tests/backend/conftest.py
"""
Pytest fixtures for backend tests
In-memory database, seeded groups and an API client
"""

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add paths for imports
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ADMIN_SECRET", "test-admin-token")

from database.models import Base, Group  # noqa: E402


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with FK enforcement"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Session with groups g, a and b already created"""
    session = session_factory()
    for name in ("g", "a", "b"):
        session.add(Group(name=name, disabled=False))
    session.commit()
    yield session
    session.close()


@pytest.fixture
def admin_token():
    return os.environ["ADMIN_SECRET"]


@pytest.fixture
def client(db, session_factory, admin_token):
    """TestClient whose requests use the test database"""
    from fastapi.testclient import TestClient
    from database.session import get_db
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with_token = TestClient(app, headers={"X-Admin-Token": admin_token})
    yield with_token
    app.dependency_overrides.clear()
