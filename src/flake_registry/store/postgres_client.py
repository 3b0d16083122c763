import logging
import time
from typing import Optional

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from flake_registry.config import Settings, get_settings
from flake_registry.errors import StorageError

logger = logging.getLogger(__name__)


def get_connection_pool(
    settings: Optional[Settings] = None,
    wait_ready: bool = True,
    retries: int = 10,
    backoff_sec: float = 1.0,
) -> ThreadedConnectionPool:
    """Create the shared PostgreSQL connection pool, optionally waiting for the server.

    Creating the pool opens `db_pool_min` connections, so a reachable server
    is required. With `wait_ready`, connection failures are retried up to
    `retries` times; this only happens at startup.
    """
    settings = settings or get_settings()
    kwargs = {"connect_timeout": settings.db_connect_timeout}
    if settings.db_statement_timeout_ms > 0:
        kwargs["options"] = f"-c statement_timeout={settings.db_statement_timeout_ms}"

    attempts = max(1, retries) if wait_ready else 1
    for i in range(attempts):
        try:
            pool = ThreadedConnectionPool(
                settings.db_pool_min,
                settings.db_pool_max,
                settings.database_url,
                **kwargs,
            )
            logger.info(
                "Database connection pool created (min=%s, max=%s)",
                settings.db_pool_min,
                settings.db_pool_max,
            )
            return pool
        except psycopg2.OperationalError as e:
            if i == attempts - 1:
                logger.error("Error creating connection pool: %s", e)
                raise StorageError(f"Failed to connect to database: {e}") from e
            logger.warning("Database not ready (attempt %s/%s): %s", i + 1, attempts, e)
            time.sleep(backoff_sec)
