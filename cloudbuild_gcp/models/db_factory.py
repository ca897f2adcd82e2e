"""Connection pool handle and the factory that builds it from a PoolConfig."""

import math
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from google.cloud.sql.connector import Connector, IPTypes
from loguru import logger
from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from cloudbuild_gcp.core.exceptions import PoolClosedError, PoolTimeoutError
from cloudbuild_gcp.models.pool_config import PoolConfig
from cloudbuild_gcp.utils.masking import mask_database_url

_CHECKED_IN_AT = "checked_in_at"


class ConnectionPool:
    """
    Handle owning one SQLAlchemy engine and, optionally, the Cloud SQL connector.

    The handle is terminal once closed: ``close()`` disposes the engine,
    shuts the connector down and makes later ``close()`` calls no-ops.
    Checking out connections or sessions afterwards raises ``PoolClosedError``.
    """

    def __init__(self, engine: Engine, config: PoolConfig, connector: Optional[Connector] = None):
        self.engine = engine
        self.config = config
        self._connector = connector
        self._sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """
        Check a connection out of the pool.

        Blocks up to the configured connection timeout when every pooled
        connection is in use.

        Raises:
            PoolClosedError: If the pool has been closed
            PoolTimeoutError: If no connection became available in time
        """
        self._ensure_open()
        try:
            conn = self.engine.connect()
        except exc.TimeoutError as e:
            logger.error(
                f"Database connection pool exhausted "
                f"(timeout: {self.config.connection_timeout_seconds}s, "
                f"pool_size: {self.config.maximum_pool_size})"
            )
            raise PoolTimeoutError(
                timeout=self.config.connection_timeout_seconds,
                pool_size=self.config.maximum_pool_size,
            ) from e
        with conn:
            yield conn

    def session(self) -> Session:
        """Return a new ORM session bound to this pool."""
        self._ensure_open()
        return self._sessionmaker()

    def warm(self, count: Optional[int] = None) -> int:
        """
        Open ``count`` connections at once and return them to the pool idle.

        Args:
            count: Connections to open (defaults to the configured minimum idle)

        Returns:
            Number of connections opened
        """
        self._ensure_open()
        count = self.config.minimum_idle if count is None else count
        count = min(count, self.config.maximum_pool_size)
        opened: List[Any] = []
        try:
            for _ in range(count):
                opened.append(self.engine.pool.connect())
        finally:
            for proxied in opened:
                proxied.close()
        logger.debug(f"Warmed connection pool with {len(opened)} idle connections")
        return len(opened)

    def _ensure_open(self) -> None:
        if self._closed:
            raise PoolClosedError()

    def stats(self) -> Dict[str, Any]:
        """
        Get current pool statistics.

        Returns:
            Dictionary with configured limits and live counters
        """
        result: Dict[str, Any] = {
            "max_pool_size": self.config.maximum_pool_size,
            "min_idle": self.config.minimum_idle,
            "closed": self._closed,
            "checked_in": 0,
            "checked_out": 0,
            "overflow": 0,
        }
        pool = self.engine.pool
        if not self._closed and isinstance(pool, QueuePool):
            result["checked_in"] = pool.checkedin()
            result["checked_out"] = pool.checkedout()
            result["overflow"] = max(pool.overflow(), 0)
        return result

    def close(self) -> None:
        """Release every held and idle connection. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        try:
            self.engine.dispose()
        except Exception as e:
            logger.warning(f"Error disposing connection pool: {e}")
        if self._connector is not None:
            try:
                self._connector.close()
            except Exception as e:
                logger.warning(f"Error closing Cloud SQL connector: {e}")
        logger.info("Database connection pool closed")


def pool_options(config: PoolConfig) -> Dict[str, Any]:
    """
    SQLAlchemy QueuePool options for the configured limits.

    Overflow is disabled so the pool never exceeds the maximum size; extra
    requests queue for up to the connection timeout.
    """
    return {
        "poolclass": QueuePool,
        "pool_size": config.maximum_pool_size,
        "max_overflow": 0,
        "pool_timeout": config.connection_timeout_seconds,
        "pool_recycle": config.max_lifetime_seconds,
        "pool_pre_ping": True,
    }


def install_idle_timeout(engine: Engine, config: PoolConfig) -> None:
    """
    Retire connections that sat idle past the idle timeout.

    Only connections above the configured minimum idle count are retired;
    the pool replaces a retired connection transparently on checkout.
    """
    idle_timeout = config.idle_timeout_seconds
    minimum_idle = config.minimum_idle

    @event.listens_for(engine, "connect")
    def _reset_idle_clock(dbapi_connection, connection_record):
        connection_record.info.pop(_CHECKED_IN_AT, None)

    @event.listens_for(engine, "checkin")
    def _stamp_checkin(dbapi_connection, connection_record):
        connection_record.info[_CHECKED_IN_AT] = time.monotonic()

    @event.listens_for(engine, "checkout")
    def _retire_if_idle(dbapi_connection, connection_record, connection_proxy):
        checked_in_at = connection_record.info.pop(_CHECKED_IN_AT, None)
        if checked_in_at is None or time.monotonic() - checked_in_at <= idle_timeout:
            return
        pool = engine.pool
        # The connection being checked out counts as idle too
        if isinstance(pool, QueuePool) and pool.checkedin() + 1 <= minimum_idle:
            return
        logger.debug("Retiring connection idle past the idle timeout")
        raise exc.DisconnectionError("Connection exceeded idle timeout")


def connect_timeout_seconds(config: PoolConfig) -> int:
    """Whole-second socket connect timeout; drivers reject zero."""
    return max(1, math.ceil(config.connection_timeout_seconds))


def _cloud_sql_creator(config: PoolConfig, connector: Connector) -> Callable[[], Any]:
    def getconn() -> Any:
        return connector.connect(
            config.instance_connection_name,
            "pymysql",
            user=config.username,
            password=config.password,
            db=config.database,
            timeout=connect_timeout_seconds(config),
        )

    return getconn


def create_connection_pool(config: PoolConfig) -> ConnectionPool:
    """
    Build the connection pool described by ``config``.

    With the Cloud SQL connector as socket factory, raw connections are
    opened by the connector against the instance's preferred IP type and
    the URL only selects the dialect and database. With ``direct`` the URL
    host and port are used as-is.

    Args:
        config: Pool configuration

    Returns:
        New connection pool handle (no connections opened yet)
    """
    url = config.build_url()
    options = pool_options(config)

    connector: Optional[Connector] = None
    if config.uses_cloud_sql_connector:
        connector = Connector(ip_type=IPTypes[config.ip_type])
        options["creator"] = _cloud_sql_creator(config, connector)
    else:
        options["connect_args"] = {"connect_timeout": connect_timeout_seconds(config)}

    engine = create_engine(url, **options)
    install_idle_timeout(engine, config)

    logger.info(
        f"Connection pool configured for {config.instance_connection_name} "
        f"via {config.socket_factory} ({config.ip_type}): "
        f"{mask_database_url(url.render_as_string(hide_password=False))} "
        f"(max={config.maximum_pool_size}, min_idle={config.minimum_idle})"
    )
    return ConnectionPool(engine, config, connector=connector)
