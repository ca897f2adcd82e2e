"""Pytest configuration and common fixtures."""

import sys
from pathlib import Path
from typing import Callable

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine

# Try to load test-specific environment file if it exists
test_env_file = Path(__file__).parent / ".env.test"
if test_env_file.exists():
    load_dotenv(test_env_file)

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cloudbuild_gcp.constants import SocketFactories
from cloudbuild_gcp.core.config.settings import reset_settings
from cloudbuild_gcp.models.db_factory import ConnectionPool, install_idle_timeout, pool_options
from cloudbuild_gcp.models.pool_config import PoolConfig

TEST_ENVIRONMENT = {
    "INSTANCE_CONNECTION_NAME": "proj:region:inst",
    "JDBC_URL": "jdbc:mysql://host/db",
    "DB_USER": "root",
    "DB_PASS": "secret",
    "DB_NAME": "votes_db",
    "ENV": "testing",
}


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Automatically set up test environment for all tests."""
    for name, value in TEST_ENVIRONMENT.items():
        monkeypatch.setenv(name, value)
    for name in ("DB_SOCKET_FACTORY", "DB_IP_TYPE", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    # Reset settings singleton so each test gets fresh settings
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def pool_config() -> PoolConfig:
    """Pool configuration matching the default limits, connecting directly."""
    return PoolConfig(
        instance_connection_name="proj:region:inst",
        jdbc_url="jdbc:mysql://host/db",
        username="root",
        password="secret",
        database="votes_db",
        socket_factory=SocketFactories.DIRECT,
    )


@pytest.fixture
def sqlite_pool_factory(tmp_path) -> Callable[[PoolConfig], ConnectionPool]:
    """
    Pool factory backed by a SQLite file instead of Cloud SQL.

    Uses the same QueuePool options and idle-timeout hooks as production.
    """

    def factory(config: PoolConfig, database_path: Path = tmp_path / "votes.db") -> ConnectionPool:
        engine = create_engine(
            f"sqlite:///{database_path}",
            connect_args={"check_same_thread": False},
            **pool_options(config),
        )
        install_idle_timeout(engine, config)
        return ConnectionPool(engine, config)

    return factory


@pytest.fixture
def sqlite_pool(pool_config, sqlite_pool_factory):
    """A live SQLite-backed pool, closed after the test."""
    pool = sqlite_pool_factory(pool_config)
    yield pool
    pool.close()

