"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real PostgreSQL instance
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
