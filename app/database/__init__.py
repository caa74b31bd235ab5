"""
Database module

Hosted backend client and the in-memory session store.
"""

from app.database.backend import (
    BackendError,
    HostedBackendClient,
    get_backend,
)

from app.database.cache import (
    TTLCache,
    get_session_store,
)

__all__ = [
    "BackendError",
    "HostedBackendClient",
    "get_backend",
    "TTLCache",
    "get_session_store",
]
