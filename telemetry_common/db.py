from __future__ import annotations

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .config import Settings, mask_url


logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    """Builds the bounded connection pool shared by every request.

    Callers that find the pool exhausted wait up to ``db_pool_timeout``
    seconds for a connection to come back.
    """
    logger.info(
        "[DB] Creating engine url=%s pool_size=%s max_overflow=%s timeout=%ss recycle=%ss",
        mask_url(settings.database_url),
        settings.db_pool_size,
        settings.db_max_overflow,
        settings.db_pool_timeout,
        settings.db_pool_recycle,
    )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
        future=True,
    )


def ping_database(engine: Engine) -> None:
    """Runs ``SELECT 1``; raises whatever the driver raises."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
