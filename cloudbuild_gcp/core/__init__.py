"""Core infrastructure module."""

from .config.settings import Settings, get_settings, load_settings, reset_settings
from .environment import Environment
from .exceptions import (
    # Base exception
    CloudBuildGcpError,
    # Configuration
    ConfigurationError,
    MissingEnvironmentVariableError,
    # Database
    DatabaseError,
    PoolClosedError,
    PoolNotInitializedError,
    PoolTimeoutError,
    SchemaVerificationError,
)
from .logger import setup_structured_logging

__all__ = [
    "CloudBuildGcpError",
    "ConfigurationError",
    "DatabaseError",
    "Environment",
    "MissingEnvironmentVariableError",
    "PoolClosedError",
    "PoolNotInitializedError",
    "PoolTimeoutError",
    "SchemaVerificationError",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_structured_logging",
]
