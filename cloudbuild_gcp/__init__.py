"""cloudbuild-gcp - Cloud SQL connection pool service."""

import importlib as _importlib
from typing import TYPE_CHECKING, Any

__version__ = "0.0.1"
__license__ = "MIT"

if TYPE_CHECKING:
    from .core.config.settings import get_settings as get_settings
    from .core.logger import setup_structured_logging as setup_structured_logging
    from .models.db_connection import PoolLifecycleManager as PoolLifecycleManager
    from .models.pool_config import PoolConfig as PoolConfig

# Explicit lazy-loading map: name -> (module_path, attribute_name)
_LAZY_MODULE_MAP = {
    "get_settings": ("cloudbuild_gcp.core.config.settings", "get_settings"),
    "setup_structured_logging": ("cloudbuild_gcp.core.logger", "setup_structured_logging"),
    "PoolLifecycleManager": ("cloudbuild_gcp.models.db_connection", "PoolLifecycleManager"),
    "PoolConfig": ("cloudbuild_gcp.models.pool_config", "PoolConfig"),
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
