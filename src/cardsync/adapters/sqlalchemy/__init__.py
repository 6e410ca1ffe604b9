"""SQLAlchemy adapter package for cardsync."""

from __future__ import annotations

from .engine import StartupError, session_factory, shutdown, startup
from .store import SqlAlchemyActorDirectory, SqlAlchemyCardStore
from .tables import actors_table, card_mirrors_table, cards_table, create_all_tables, metadata

__all__ = [
    "SqlAlchemyActorDirectory",
    "SqlAlchemyCardStore",
    "StartupError",
    "actors_table",
    "card_mirrors_table",
    "cards_table",
    "create_all_tables",
    "metadata",
    "session_factory",
    "shutdown",
    "startup",
]
