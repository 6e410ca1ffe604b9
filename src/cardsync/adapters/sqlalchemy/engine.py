"""Engine lifecycle for the SQLAlchemy adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from cardsync.config import get_database_config

from .tables import create_all_tables

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _AdapterState()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: object, _record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> sessionmaker[Session]:
    """Initialise the engine, create tables and return the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError("SQLAlchemy adapter already initialised. Pass force=True to reconfigure.")

    resolved = engine or create_engine(database_uri or get_database_config().uri)
    _enable_sqlite_foreign_keys(resolved)
    create_all_tables(resolved)
    _STATE.engine = resolved
    _STATE.session_factory = sessionmaker(bind=resolved, expire_on_commit=False)
    return _STATE.session_factory


def session_factory() -> sessionmaker[Session]:
    if _STATE.session_factory is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call cardsync.adapters.sqlalchemy.startup() first."
        )
    return _STATE.session_factory


def shutdown() -> None:
    """Dispose the managed engine and reset state."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None
