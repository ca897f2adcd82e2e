"""Database and connection pool constants."""

from typing import Final


class Database:
    """Database defaults.

    NOTE: These are compile-time defaults only. Runtime configuration
    comes from Settings (cloudbuild_gcp/core/config/settings.py).
    """

    POOL_CONTEXT_KEY: Final[str] = "db-pool"
    VOTES_TABLE: Final[str] = "votes"
    MYSQL_DRIVER: Final[str] = "mysql+pymysql"
    MYSQL_DEFAULT_PORT: Final[int] = 3306

    CREATE_VOTES_TABLE: Final[str] = (
        "CREATE TABLE IF NOT EXISTS votes ( "
        "vote_id SERIAL NOT NULL, time_cast timestamp NOT NULL, candidate CHAR(6) NOT NULL,"
        " PRIMARY KEY (vote_id) );"
    )


class Pools:
    """Connection pool limits and timeouts."""

    MAXIMUM_POOL_SIZE: Final[int] = 5
    MINIMUM_IDLE: Final[int] = 5
    CONNECTION_TIMEOUT_MS: Final[int] = 60_000  # 1 minute
    IDLE_TIMEOUT_MS: Final[int] = 600_000  # 10 minutes
    # Several minutes below Cloud SQL's own connection timeout
    MAX_LIFETIME_MS: Final[int] = 1_800_000  # 30 minutes


class SocketFactories:
    """Supported ways of opening the raw DBAPI connection."""

    CLOUD_SQL_CONNECTOR: Final[str] = "cloud-sql-connector"
    DIRECT: Final[str] = "direct"
    ALL: Final[frozenset] = frozenset({CLOUD_SQL_CONNECTOR, DIRECT})


class IpTypes:
    """Cloud SQL IP types accepted by the connector."""

    PRIVATE: Final[str] = "PRIVATE"
    PUBLIC: Final[str] = "PUBLIC"
    PSC: Final[str] = "PSC"
    ALL: Final[frozenset] = frozenset({PRIVATE, PUBLIC, PSC})
