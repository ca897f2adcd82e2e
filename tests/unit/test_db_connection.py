"""Tests for PoolLifecycleManager with mocked pools."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from cloudbuild_gcp.constants import Database
from cloudbuild_gcp.core.exceptions import (
    ConfigurationError,
    PoolNotInitializedError,
    SchemaVerificationError,
)
from cloudbuild_gcp.models.db_connection import PoolLifecycleManager
from cloudbuild_gcp.models.db_factory import ConnectionPool


def _mock_pool() -> MagicMock:
    return MagicMock(spec=ConnectionPool)


def _executed_sql(pool: MagicMock) -> list:
    conn = pool.connect.return_value.__enter__.return_value
    return [str(call.args[0]) for call in conn.execute.call_args_list]


@pytest.fixture
def pool_factory():
    """Factory producing a fresh mock pool per call."""
    return MagicMock(side_effect=lambda config: _mock_pool())


@pytest.fixture
def manager(pool_config, pool_factory):
    return PoolLifecycleManager(pool_config, pool_factory=pool_factory)


class TestOnStart:
    """Tests for on_start."""

    def test_creates_and_stores_pool(self, manager, pool_factory, pool_config):
        context = {}

        pool = manager.on_start(context)

        pool_factory.assert_called_once_with(pool_config)
        assert context[Database.POOL_CONTEXT_KEY] is pool

    def test_warms_minimum_idle_connections(self, manager):
        pool = manager.on_start({})
        pool.warm.assert_called_once_with(5)

    def test_runs_create_table_ddl(self, manager):
        pool = manager.on_start({})

        assert _executed_sql(pool) == [Database.CREATE_VOTES_TABLE]
        pool.connect.return_value.__enter__.return_value.commit.assert_called_once()

    def test_create_table_ddl(self):
        ddl = Database.CREATE_VOTES_TABLE
        assert ddl.startswith("CREATE TABLE IF NOT EXISTS votes")
        assert "vote_id SERIAL NOT NULL" in ddl
        assert "time_cast timestamp NOT NULL" in ddl
        assert "candidate CHAR(6) NOT NULL" in ddl
        assert "PRIMARY KEY (vote_id)" in ddl

    def test_start_twice_keeps_one_pool(self, manager, pool_factory):
        context = {}

        first = manager.on_start(context)
        second = manager.on_start(context)

        assert first is second
        assert pool_factory.call_count == 1
        assert context[Database.POOL_CONTEXT_KEY] is first
        # Schema is verified on every start, warm-up only on creation
        assert len(_executed_sql(first)) == 2
        first.warm.assert_called_once()

    def test_reuses_pool_already_in_context(self, manager, pool_factory):
        existing = _mock_pool()
        context = {Database.POOL_CONTEXT_KEY: existing}

        assert manager.on_start(context) is existing
        pool_factory.assert_not_called()

    def test_schema_failure_is_fatal_and_cleans_up(self, pool_config):
        pool = _mock_pool()
        pool.connect.side_effect = OperationalError("CREATE TABLE", {}, Exception("denied"))
        manager = PoolLifecycleManager(pool_config, pool_factory=lambda config: pool)
        context = {}

        with pytest.raises(SchemaVerificationError) as exc_info:
            manager.on_start(context)

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert Database.POOL_CONTEXT_KEY not in context
        pool.close.assert_called_once()

    def test_unreachable_database_is_fatal(self, pool_config):
        pool = _mock_pool()
        pool.warm.side_effect = ConnectionRefusedError("connection refused")
        manager = PoolLifecycleManager(pool_config, pool_factory=lambda config: pool)
        context = {}

        with pytest.raises(SchemaVerificationError):
            manager.on_start(context)

        assert context == {}
        pool.close.assert_called_once()
        pool.connect.assert_not_called()

    def test_schema_failure_keeps_existing_pool(self, manager):
        existing = _mock_pool()
        existing.connect.side_effect = OperationalError("CREATE TABLE", {}, Exception("gone"))
        context = {Database.POOL_CONTEXT_KEY: existing}

        with pytest.raises(SchemaVerificationError):
            manager.on_start(context)

        assert context[Database.POOL_CONTEXT_KEY] is existing
        existing.close.assert_not_called()

    def test_configuration_error_propagates(self, pool_config):
        def factory(config):
            raise ConfigurationError("Unsupported JDBC_URL scheme")

        manager = PoolLifecycleManager(pool_config, pool_factory=factory)
        context = {}

        with pytest.raises(ConfigurationError):
            manager.on_start(context)

        assert context == {}

    def test_socket_factory_failure_is_configuration_error(self, pool_config):
        credentials_error = RuntimeError("Your default credentials were not found")

        def factory(config):
            raise credentials_error

        manager = PoolLifecycleManager(pool_config, pool_factory=factory)
        context = {}

        with pytest.raises(ConfigurationError) as exc_info:
            manager.on_start(context)

        assert exc_info.value.__cause__ is credentials_error
        assert exc_info.value.details == {"cause": "RuntimeError"}
        assert "default credentials" in exc_info.value.message
        assert context == {}


class TestOnStop:
    """Tests for on_stop."""

    def test_stop_without_pool_is_noop(self, manager):
        context = {}

        manager.on_stop(context)

        assert context == {}

    def test_stop_after_start_releases_pool(self, manager):
        context = {}
        pool = manager.on_start(context)

        manager.on_stop(context)

        pool.close.assert_called_once()
        assert Database.POOL_CONTEXT_KEY not in context

    def test_second_stop_is_noop(self, manager):
        context = {}
        pool = manager.on_start(context)

        manager.on_stop(context)
        manager.on_stop(context)

        pool.close.assert_called_once()

    def test_start_after_stop_creates_new_pool(self, manager, pool_factory):
        context = {}
        first = manager.on_start(context)
        manager.on_stop(context)

        second = manager.on_start(context)

        assert second is not first
        assert pool_factory.call_count == 2


class TestAccessors:
    """Tests for get_pool, stats and health_check."""

    def test_get_pool_before_start(self, manager):
        with pytest.raises(PoolNotInitializedError):
            manager.get_pool({})

    def test_get_pool_after_start(self, manager):
        context = {}
        pool = manager.on_start(context)
        assert manager.get_pool(context) is pool

    def test_stats_without_pool(self, manager):
        stats = manager.stats({})

        assert stats["closed"] is True
        assert stats["max_pool_size"] == 5
        assert stats["min_idle"] == 5
        assert stats["checked_out"] == 0

    def test_stats_delegates_to_pool(self, manager):
        context = {}
        pool = manager.on_start(context)
        pool.stats.return_value = {"checked_out": 2}

        assert manager.stats(context) == {"checked_out": 2}

    def test_health_check_without_pool(self, manager):
        assert manager.health_check({}) is False

    def test_health_check_healthy(self, manager):
        context = {}
        pool = manager.on_start(context)
        conn = pool.connect.return_value.__enter__.return_value
        conn.execute.return_value.scalar.return_value = 1

        assert manager.health_check(context) is True

    def test_health_check_failure(self, manager):
        context = {}
        pool = manager.on_start(context)
        pool.connect.side_effect = OperationalError("SELECT 1", {}, Exception("lost"))

        assert manager.health_check(context) is False
