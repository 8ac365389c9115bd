"""
PostgreSQL connection handling

This module centralizes database access for the API:
- SQLAlchemy declarative Base (table definitions live in luster.models)
- psycopg2 direct connections (repositories run raw SQL)
- Retry with exponential backoff for flaky connections
"""
import time
import logging

import psycopg2
from psycopg2.extras import RealDictCursor
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from .config import settings

logger = logging.getLogger(__name__)


# ============================================================================
# SQLAlchemy (schema only)
# ============================================================================

Base = declarative_base()

_engine = None


def get_engine():
    """Lazily build the SQLAlchemy engine from settings.DATABASE_URL"""
    global _engine
    if _engine is None:
        if not settings.DATABASE_URL:
            raise Exception("DATABASE_URL not configured")
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )
    return _engine


def init_db():
    """
    Create every table declared under luster.models.

    Usage:
        python -c "from luster.core.database import init_db; init_db()"
    """
    import luster.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database schema created")


# ============================================================================
# psycopg2 direct connections
# ============================================================================

def _database_url() -> str:
    database_url = settings.DATABASE_URL
    if not database_url:
        raise Exception("DATABASE_URL not configured")
    return database_url


def get_db_connection_dict():
    """
    Get a psycopg2 connection with RealDictCursor (rows as dicts)

    Repositories use this so rows map straight onto domain models.

    Example:
        conn = get_db_connection_dict()
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products WHERE id = %s", (product_id,))
        row = cursor.fetchone()
        cursor.close()
        conn.close()
    """
    return psycopg2.connect(_database_url(), cursor_factory=RealDictCursor)


def get_db_connection_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection, retrying on OperationalError

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds, doubled each attempt

    Raises:
        psycopg2.OperationalError: If all attempts fail
    """
    database_url = _database_url()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url)

            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")

    raise last_error if last_error else Exception("Connection failed after all retries")
