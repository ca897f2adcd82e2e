"""Database models module."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .db_connection import PoolLifecycleManager as PoolLifecycleManager
    from .db_factory import ConnectionPool as ConnectionPool
    from .db_factory import create_connection_pool as create_connection_pool
    from .entities import TestingModel as TestingModel
    from .entities import Vote as Vote
    from .pool_config import PoolConfig as PoolConfig

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "ConnectionPool": ("cloudbuild_gcp.models.db_factory", "ConnectionPool"),
    "PoolConfig": ("cloudbuild_gcp.models.pool_config", "PoolConfig"),
    "PoolLifecycleManager": ("cloudbuild_gcp.models.db_connection", "PoolLifecycleManager"),
    "TestingModel": ("cloudbuild_gcp.models.entities", "TestingModel"),
    "Vote": ("cloudbuild_gcp.models.entities", "Vote"),
    "create_connection_pool": ("cloudbuild_gcp.models.db_factory", "create_connection_pool"),
}

__all__ = list(_LAZY_MODULE_MAP.keys())


def __getattr__(name: str) -> Any:
    """Lazy import with explicit mapping - importlib based."""
    if name in _LAZY_MODULE_MAP:
        module_path, attr_name = _LAZY_MODULE_MAP[name]
        module = _importlib.import_module(module_path)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
