"""Custom exception classes for cloudbuild-gcp."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class CloudBuildGcpError(Exception):
    """Base exception for cloudbuild-gcp."""

    def __init__(
        self, message: str, recoverable: bool = True, details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize cloudbuild-gcp error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(CloudBuildGcpError):
    """Configuration error occurred."""

    def __init__(
        self,
        message: str = "Configuration error",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing."""

    def __init__(self, variable_name: str):
        super().__init__(
            f"Required environment variable '{variable_name}' is not set",
            recoverable=False,
            details={"variable": variable_name},
        )


# Database Errors
class DatabaseError(CloudBuildGcpError):
    """Base class for database-related errors."""

    def __init__(
        self,
        message: str = "Database error occurred",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class SchemaVerificationError(DatabaseError):
    """Raised when the required table schema cannot be created or verified at startup."""

    def __init__(self, table: str = "votes"):
        super().__init__(
            "Unable to verify table schema. Please double check the steps "
            "in the README and try again.",
            recoverable=False,
            details={"table": table},
        )


class PoolNotInitializedError(DatabaseError):
    """Raised when the connection pool is used before startup created it."""

    def __init__(self):
        super().__init__(
            "Connection pool is not initialized. Call on_start() first.", recoverable=False
        )


class PoolClosedError(DatabaseError):
    """Raised when a connection is requested from a pool that has been shut down."""

    def __init__(self):
        super().__init__("Connection pool has been closed.", recoverable=False)


class PoolTimeoutError(DatabaseError):
    """Raised when no pooled connection becomes available within the connection timeout."""

    def __init__(self, timeout: float, pool_size: int):
        super().__init__(
            f"Database connection pool exhausted after {timeout}s (pool size: {pool_size}).",
            recoverable=True,
            details={"timeout": timeout, "pool_size": pool_size},
        )
