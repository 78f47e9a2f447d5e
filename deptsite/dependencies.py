"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from deptsite.config import get_settings
from deptsite.db import DbClient, InMemoryDbClient, PostgresDbClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so the connection pool is shared across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("No DATABASE_URL configured; using the in-memory store")
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client
