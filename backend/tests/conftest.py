"""Root conftest — shared test configuration."""

import os

# Settings are read at import time by wolfgame.main; never point tests at Postgres
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
