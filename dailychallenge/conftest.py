# dailychallenge/conftest.py
import os
import sys
from pathlib import Path

import pytest

# Repo root on PYTHONPATH so `dailychallenge.*` imports resolve
REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

TEST_DB_URL = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("DATABASE_URL", TEST_DB_URL)
os.environ["TEST_DATABASE_URL"] = TEST_DB_URL


@pytest.fixture(scope="session", autouse=True)
def engine():
    """One in-memory engine per session; tables are rebuilt per test."""
    from dailychallenge.core.database import init_engine

    return init_engine(TEST_DB_URL)


@pytest.fixture(scope="function", autouse=True)
def reset_db(engine):
    from dailychallenge.core.database import reset_database

    reset_database()
    yield


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from dailychallenge.main import app

    return TestClient(app)
