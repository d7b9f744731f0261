"""
Database engine management with SQLAlchemy async
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool
import logging

logger = logging.getLogger(__name__)


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine used for destination table inserts.

    The pipeline opens one short transaction per chunk and runs for a few
    minutes at most, so connections are not pooled.
    """
    engine = create_async_engine(
        database_url,
        echo=echo,
        poolclass=NullPool,
        future=True
    )
    host = database_url.split("@")[1] if "@" in database_url else "configured"
    logger.info(f"Database engine created for {host}")
    return engine
