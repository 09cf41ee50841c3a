# ruff: noqa: E402
# IMPORTANT:
# 1) Set environment variables (DATABASE_URL etc.) first, then import postcrud.*
# 2) Every test gets its own migrated SQLite file, no shared state between tests.

from collections.abc import Generator
import os

import pytest
from sqlalchemy.orm import Session


def _setup_test_environment() -> str:
    """Sets up environment variables for tests and returns the final DATABASE_URL."""
    try:
        from dotenv import load_dotenv

        load_dotenv(".env.test", override=False)
    except ImportError:
        pass  # dotenv is optional

    os.environ.setdefault("ENVIRONMENT", "testing")
    os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
    return os.environ["DATABASE_URL"]


# --- EARLY ENVIRONMENT INITIALIZATION ---
TEST_DATABASE_URL = _setup_test_environment()

# isort: off
from postcrud.db.database import MIGRATIONS, close_connection, close_db_connections, establish_connection
from tests.factories.posts import COMPLEX_FILTER_ROWS, GROUPING_ROWS, seed_posts

# isort: on


@pytest.fixture(scope="function")
def database_url(tmp_path) -> str:
    """URL of a fresh, empty SQLite file for the current test."""
    return f"sqlite:///{tmp_path / 'test.sqlite3'}"


@pytest.fixture(scope="function")
def db_session(database_url: str) -> Generator[Session]:
    """
    Provide a migrated database session for each test, like the application
    bootstrap does: connect, apply pending migrations, verify the schema.
    """
    session = establish_connection(database_url, migrations=MIGRATIONS, verify_schema=True)
    try:
        yield session
    finally:
        close_connection(session)


@pytest.fixture(scope="function")
def complex_posts(db_session: Session) -> Session:
    """Nine posts used by the complex filter and delete tests."""
    seed_posts(db_session, COMPLEX_FILTER_ROWS)
    return db_session


@pytest.fixture(scope="function")
def grouping_posts(db_session: Session) -> Session:
    """Nine posts used by the grouping tests."""
    seed_posts(db_session, GROUPING_ROWS)
    return db_session


@pytest.fixture(autouse=True)
def _reset_process_engine() -> Generator[None]:
    yield
    close_db_connections()
