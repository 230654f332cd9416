"""
Infrastructure module: database sessions, request correlation, read cache.

Provides:
- Database sessions and transactions (db.py)
- Correlation id middleware and logging filter (correlation.py)
- Redis connection pool (redis/) and the list read cache (cache/)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
]
