"""Constants and configuration defaults for cloudbuild-gcp.

All classes can be imported directly from this package:
    from cloudbuild_gcp.constants import Database, Pools
"""

from .database import (
    Database,
    IpTypes,
    Pools,
    SocketFactories,
)

__all__ = [
    "Database",
    "IpTypes",
    "Pools",
    "SocketFactories",
]
