"""
Test configuration and fixtures for the Page Audit API.

The database URL and static directory are pointed at temporary locations
before any app module is imported, since settings are read at import time.
"""

import os
import tempfile
from typing import Generator

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from sqlalchemy import create_engine

load_dotenv()

test_db_path = tempfile.mktemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"
os.environ["STATIC_DIR"] = tempfile.mkdtemp(prefix="page-audit-static-")

from app.platform.db.base import Base  # noqa: E402
from app.platform.db.session import get_sync_db, to_sync_url  # noqa: E402
from app.features.scan.models.scan import Scan  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    engine = create_engine(to_sync_url(os.environ["DATABASE_URL"]))
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(autouse=True)
def clean_scans():
    yield
    db = get_sync_db()
    try:
        db.query(Scan).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture
def sync_db():
    db = get_sync_db()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app) -> Generator[TestClient, None, None]:
    """
    Create a test client for making HTTP requests.
    This fixture provides a clean TestClient instance for each test function,
    ensuring proper isolation between tests.
    """
    with TestClient(test_app) as test_client:
        yield test_client
