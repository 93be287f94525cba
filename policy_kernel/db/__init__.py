"""Database layer - engine, base classes, and immutability listeners."""

from policy_kernel.db.base import UUID, Base, UUIDString
from policy_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "session_scope",
    "Base",
    "UUIDString",
    "UUID",
]
