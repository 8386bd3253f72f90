import os
import tempfile
from pathlib import Path
import pytest

# Point the app at a throwaway SQLite file before any tuitionhub import builds the engine.
_DB_DIR = tempfile.mkdtemp(prefix="tuitionhub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure fresh tables for every test."""
    from sqlmodel import SQLModel
    from tuitionhub.database import engine, create_db_and_tables
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    yield


@pytest.fixture
def session():
    from sqlmodel import Session
    from tuitionhub.database import engine
    with Session(engine) as s:
        yield s
