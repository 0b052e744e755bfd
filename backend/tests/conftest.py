from pathlib import Path
import os
import tempfile
import pytest

# Point the app at a throwaway SQLite file before any app module is imported.
_DB_DIR = Path(tempfile.mkdtemp(prefix="exercise-tracker-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR / 'test.db'}"
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test empty tables."""
    from sqlmodel import SQLModel
    from exercise_tracker.database import engine, create_db_and_tables
    SQLModel.metadata.drop_all(engine)
    create_db_and_tables()
    yield


@pytest.fixture
def session():
    from sqlmodel import Session
    from exercise_tracker.database import engine
    with Session(engine) as s:
        yield s
