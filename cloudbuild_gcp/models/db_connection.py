"""Connection pool lifecycle bound to application startup and shutdown."""

import threading
from typing import Any, Callable, Dict, MutableMapping, Optional

from loguru import logger
from sqlalchemy import text

from cloudbuild_gcp.constants import Database
from cloudbuild_gcp.core.exceptions import (
    CloudBuildGcpError,
    ConfigurationError,
    PoolNotInitializedError,
    SchemaVerificationError,
)
from cloudbuild_gcp.models.db_factory import ConnectionPool, create_connection_pool
from cloudbuild_gcp.models.pool_config import PoolConfig

PoolFactory = Callable[[PoolConfig], ConnectionPool]


class PoolLifecycleManager:
    """
    Creates the shared connection pool at startup and closes it at shutdown.

    The pool lives in an application-scoped mapping under
    ``Database.POOL_CONTEXT_KEY``. ``on_start`` only creates a pool when the
    mapping holds none, so repeated start signals keep the first pool.

    Example:
        ```python
        manager = PoolLifecycleManager(PoolConfig.from_settings(settings))
        context: dict = {}
        manager.on_start(context)
        with manager.get_pool(context).connect() as conn:
            conn.execute(text("SELECT 1"))
        manager.on_stop(context)
        ```
    """

    context_key = Database.POOL_CONTEXT_KEY

    def __init__(self, config: PoolConfig, pool_factory: Optional[PoolFactory] = None):
        """
        Initialize lifecycle manager.

        Args:
            config: Pool configuration, built once at process start
            pool_factory: Builds a pool from the configuration
                (defaults to create_connection_pool)
        """
        self.config = config
        self._pool_factory = pool_factory or create_connection_pool
        self._lock = threading.Lock()

    def on_start(self, context: MutableMapping[str, Any]) -> ConnectionPool:
        """
        Ensure a pool exists in ``context`` and the votes table exists.

        Args:
            context: Application-scoped storage

        Returns:
            The pool stored in ``context``

        Raises:
            ConfigurationError: If the pool cannot be built from the configuration,
                including socket factory failures such as missing credentials
            SchemaVerificationError: If the pool cannot open connections or the
                table cannot be created; a pool created by this call is closed
                and removed from ``context`` first
        """
        with self._lock:
            logger.info("Creating connection pool")
            pool: Optional[ConnectionPool] = context.get(self.context_key)
            created = pool is None
            if pool is None:
                try:
                    pool = self._pool_factory(self.config)
                except CloudBuildGcpError:
                    raise
                except Exception as e:
                    logger.error(f"Unable to build connection pool: {e}")
                    raise ConfigurationError(
                        f"Unable to build connection pool: {e}",
                        details={"cause": e.__class__.__name__},
                    ) from e
                context[self.context_key] = pool

            try:
                if created:
                    pool.warm(self.config.minimum_idle)
                self._create_table(pool)
            except Exception as e:
                logger.error(f"Unable to verify table schema: {e}")
                if created:
                    context.pop(self.context_key, None)
                    pool.close()
                raise SchemaVerificationError(table=Database.VOTES_TABLE) from e

            logger.info(f"Connection pool ready, table '{Database.VOTES_TABLE}' verified")
            return pool

    def on_stop(self, context: MutableMapping[str, Any]) -> None:
        """
        Close the pool stored in ``context``, if any.

        Args:
            context: Application-scoped storage
        """
        with self._lock:
            pool: Optional[ConnectionPool] = context.pop(self.context_key, None)
            if pool is None:
                logger.debug("No connection pool to close")
                return
            pool.close()

    def get_pool(self, context: MutableMapping[str, Any]) -> ConnectionPool:
        """
        Get the pool stored in ``context``.

        Raises:
            PoolNotInitializedError: If startup has not created a pool
        """
        pool: Optional[ConnectionPool] = context.get(self.context_key)
        if pool is None:
            raise PoolNotInitializedError()
        return pool

    def stats(self, context: MutableMapping[str, Any]) -> Dict[str, Any]:
        pool: Optional[ConnectionPool] = context.get(self.context_key)
        if pool is None:
            return {
                "max_pool_size": self.config.maximum_pool_size,
                "min_idle": self.config.minimum_idle,
                "closed": True,
                "checked_in": 0,
                "checked_out": 0,
                "overflow": 0,
            }
        return pool.stats()

    def health_check(self, context: MutableMapping[str, Any]) -> bool:
        """
        Perform a health check on the pooled database connection.

        Returns:
            True if a connection could be acquired and answered ``SELECT 1``
        """
        try:
            with self.get_pool(context).connect() as conn:
                return conn.execute(text("SELECT 1")).scalar() == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    @staticmethod
    def _create_table(pool: ConnectionPool) -> None:
        with pool.connect() as conn:
            conn.execute(text(Database.CREATE_VOTES_TABLE))
            conn.commit()
