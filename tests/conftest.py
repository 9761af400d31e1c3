import os

# Must run before feedback_radar modules read their env at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MOCK_LLM", "true")
os.environ.setdefault("LOG_AS_JSON", "false")

import pytest

from feedback_radar import db as dbmod


@pytest.fixture(autouse=True)
def fresh_db(tmp_path):
    """Point the store at a throwaway SQLite file for each test."""
    dbmod.reconfigure(f"sqlite:///{tmp_path / 'feedback_test.db'}")
    dbmod.init_db()
    yield
    dbmod.engine.dispose()
