"""Root conftest — shared test configuration."""

import os

# Must be set before app.config.get_settings() is first called (lru_cache)
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("CLEANUP_ENABLED", "false")
