"""Application settings with Pydantic validation."""

import re
from typing import Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudbuild_gcp.constants import IpTypes, SocketFactories
from cloudbuild_gcp.core.environment import Environment
from cloudbuild_gcp.core.exceptions import ConfigurationError, MissingEnvironmentVariableError

# project:region:instance, optionally prefixed by a domain-scoped project
_INSTANCE_CONNECTION_NAME = re.compile(r"^(?:[^:\s]+:)?[^:\s]+:[^:\s]+:[^:\s]+$")


class Settings(BaseSettings):
    """Application settings with validation and environment variable support."""

    # Saving credentials in environment variables is convenient, but not secure.
    # Prefer a secret manager in production deployments.
    instance_connection_name: str = Field(
        description="Cloud SQL instance connection name (project:region:instance)"
    )
    jdbc_url: str = Field(description="Base connection URL, e.g. jdbc:mysql://host:3306/db")
    db_user: str = Field(description="Pool connection username")
    db_pass: SecretStr = Field(description="Pool connection password")
    db_name: str = Field(description="Target database name")

    db_socket_factory: str = Field(
        default=SocketFactories.CLOUD_SQL_CONNECTOR,
        description="How raw connections are opened: cloud-sql-connector or direct",
    )
    db_ip_type: str = Field(
        default=IpTypes.PRIVATE, description="Preferred Cloud SQL IP type (PRIVATE, PUBLIC, PSC)"
    )

    # Environment
    env: str = Field(
        default="production", description="Environment (production, development, testing)"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_json: bool = Field(default=True, description="Serialize file logs as JSON")
    log_dir: str = Field(default="logs", description="Directory for log files")

    # HTTP server
    host: str = Field(default="0.0.0.0", description="Bind address for the HTTP server")
    port: int = Field(default=8080, ge=1, le=65535, description="Bind port for the HTTP server")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("instance_connection_name")
    @classmethod
    def validate_instance_connection_name(cls, v: str) -> str:
        """Validate instance connection name format."""
        v = v.strip()
        if not _INSTANCE_CONNECTION_NAME.match(v):
            raise ValueError(
                "INSTANCE_CONNECTION_NAME must look like 'project:region:instance'"
            )
        return v

    @field_validator("jdbc_url", "db_user", "db_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("value must not be blank")
        return v.strip()

    @field_validator("db_socket_factory")
    @classmethod
    def validate_socket_factory(cls, v: str) -> str:
        v_lower = v.strip().lower()
        if v_lower not in SocketFactories.ALL:
            raise ValueError(
                f'DB_SOCKET_FACTORY must be one of: {", ".join(sorted(SocketFactories.ALL))}'
            )
        return v_lower

    @field_validator("db_ip_type")
    @classmethod
    def validate_ip_type(cls, v: str) -> str:
        v_upper = v.strip().upper()
        if v_upper not in IpTypes.ALL:
            raise ValueError(f'DB_IP_TYPE must be one of: {", ".join(sorted(IpTypes.ALL))}')
        return v_upper

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value."""
        if v.lower() not in Environment.VALID:
            raise ValueError(f'ENV must be one of: {", ".join(sorted(Environment.VALID))}')
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f'LOG_LEVEL must be one of: {", ".join(allowed)}')
        return v_upper


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, translating validation failures.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        MissingEnvironmentVariableError: If a required variable is absent
        ConfigurationError: If a value is present but malformed
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        errors = e.errors()
        for error in errors:
            if error["type"] == "missing" and error["loc"]:
                raise MissingEnvironmentVariableError(str(error["loc"][0]).upper()) from e

        problems = {
            ".".join(str(part) for part in error["loc"]).upper(): error["msg"]
            for error in errors
        }
        raise ConfigurationError(
            "Invalid configuration: "
            + "; ".join(f"{name}: {msg}" for name, msg in problems.items()),
            details={"errors": problems},
        ) from e


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If required settings are missing or invalid
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
