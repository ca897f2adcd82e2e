"""Immutable connection pool configuration built once from settings."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from sqlalchemy.engine import URL

from cloudbuild_gcp.constants import Database, IpTypes, Pools, SocketFactories
from cloudbuild_gcp.core.exceptions import ConfigurationError
from cloudbuild_gcp.utils.masking import mask_database_url

if TYPE_CHECKING:
    from cloudbuild_gcp.core.config.settings import Settings

_JDBC_PREFIX = "jdbc:"


@dataclass(frozen=True)
class PoolConfig:
    """
    Connection pool behaviour and the credentials used to open connections.

    Timeouts are kept in milliseconds; the ``*_seconds`` properties convert
    them for SQLAlchemy, which works in seconds.
    """

    instance_connection_name: str
    jdbc_url: str
    username: str
    password: str = field(repr=False)
    database: str
    maximum_pool_size: int = Pools.MAXIMUM_POOL_SIZE
    minimum_idle: int = Pools.MINIMUM_IDLE
    connection_timeout_ms: int = Pools.CONNECTION_TIMEOUT_MS
    idle_timeout_ms: int = Pools.IDLE_TIMEOUT_MS
    max_lifetime_ms: int = Pools.MAX_LIFETIME_MS
    socket_factory: str = SocketFactories.CLOUD_SQL_CONNECTOR
    ip_type: str = IpTypes.PRIVATE

    def __post_init__(self) -> None:
        if self.maximum_pool_size < 1:
            raise ConfigurationError(
                f"maximum_pool_size must be >= 1, got {self.maximum_pool_size}"
            )
        if not 0 <= self.minimum_idle <= self.maximum_pool_size:
            raise ConfigurationError(
                f"minimum_idle must be between 0 and maximum_pool_size "
                f"({self.maximum_pool_size}), got {self.minimum_idle}"
            )
        for name in ("connection_timeout_ms", "idle_timeout_ms", "max_lifetime_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")
        if self.socket_factory not in SocketFactories.ALL:
            raise ConfigurationError(f"Unsupported socket factory: {self.socket_factory!r}")
        if self.ip_type not in IpTypes.ALL:
            raise ConfigurationError(f"Unsupported IP type: {self.ip_type!r}")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PoolConfig":
        """Build the pool configuration from validated settings."""
        return cls(
            instance_connection_name=settings.instance_connection_name,
            jdbc_url=settings.jdbc_url,
            username=settings.db_user,
            password=settings.db_pass.get_secret_value(),
            database=settings.db_name,
            socket_factory=settings.db_socket_factory,
            ip_type=settings.db_ip_type,
        )

    @property
    def connection_timeout_seconds(self) -> float:
        return self.connection_timeout_ms / 1000

    @property
    def idle_timeout_seconds(self) -> float:
        return self.idle_timeout_ms / 1000

    @property
    def max_lifetime_seconds(self) -> int:
        return self.max_lifetime_ms // 1000

    @property
    def uses_cloud_sql_connector(self) -> bool:
        return self.socket_factory == SocketFactories.CLOUD_SQL_CONNECTOR

    def build_url(self) -> URL:
        """
        Build the SQLAlchemy URL from every component explicitly.

        The base URL contributes the scheme, host and port; the database
        name always comes from ``database``. A ``jdbc:`` prefix is accepted,
        ``mysql`` maps to the PyMySQL dialect and a missing port defaults
        to 3306. JDBC query options are not carried over.

        Returns:
            SQLAlchemy URL

        Raises:
            ConfigurationError: If the base URL cannot be parsed, uses an
                unsupported scheme, or lacks a host for direct connections
        """
        raw = self.jdbc_url.strip()
        if raw.lower().startswith(_JDBC_PREFIX):
            raw = raw[len(_JDBC_PREFIX):]

        try:
            parsed = urlparse(raw)
            port = parsed.port
        except ValueError as e:
            raise ConfigurationError(
                f"Malformed JDBC_URL: {mask_database_url(self.jdbc_url)}"
            ) from e

        scheme = parsed.scheme.lower()
        if scheme == "mysql":
            drivername = Database.MYSQL_DRIVER
        elif scheme.startswith("mysql+"):
            drivername = scheme
        else:
            raise ConfigurationError(
                f"Unsupported JDBC_URL scheme {parsed.scheme!r}; expected jdbc:mysql://",
                details={"url": mask_database_url(self.jdbc_url)},
            )

        host = parsed.hostname
        if host is None and not self.uses_cloud_sql_connector:
            raise ConfigurationError(
                "JDBC_URL must include a host when DB_SOCKET_FACTORY is 'direct'",
                details={"url": mask_database_url(self.jdbc_url)},
            )
        if host is not None and port is None:
            port = Database.MYSQL_DEFAULT_PORT

        return URL.create(
            drivername=drivername,
            username=self.username,
            password=self.password,
            host=host,
            port=port,
            database=self.database,
        )
