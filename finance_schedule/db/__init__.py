"""Database layer - engine, base classes and column types."""

from finance_schedule.db.base import UUID, Base, TrackedBase, UUIDString
from finance_schedule.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from finance_schedule.db.types import MONEY_DECIMAL_PLACES, round_money

__all__ = [
    "build_engine",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "MONEY_DECIMAL_PLACES",
    "round_money",
]
