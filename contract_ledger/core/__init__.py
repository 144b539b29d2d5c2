"""Core application utilities."""

from .config import Settings, get_settings
from .database import (
    async_session_factory,
    build_engine,
    build_session_factory,
    close_db,
    engine,
    get_session_context,
    init_db,
)
from .security import (
    compute_transaction_id,
    hash_content,
    new_nonce,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "get_session_context",
    "init_db",
    "close_db",
    # Security
    "hash_content",
    "new_nonce",
    "compute_transaction_id",
]
