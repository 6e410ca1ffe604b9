from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker  # noqa: TC002

from cardsync.adapters.sqlalchemy import shutdown, startup
from tests.support.cards import InMemoryActorDirectory, InMemoryCardStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

INTEGRATION_VARS = (
    "INTEGRATION_DEFAULT_USER",
    "INTEGRATION_BALENA_API_TOKEN",
    "INTEGRATION_BALENA_API_PUBLIC_KEY",
    "INTEGRATION_BALENA_API_PRIVATE_KEY",
    "INTEGRATION_FLOWDOCK_TOKEN",
    "INTEGRATION_FLOWDOCK_SIGNATURE_KEY",
    "INTEGRATION_OUTREACH_APP_ID",
    "INTEGRATION_OUTREACH_APP_SECRET",
    "INTEGRATION_OUTREACH_SIGNATURE_KEY",
    "INTEGRATION_TYPEFORM_TOKEN",
    "INTEGRATION_TYPEFORM_SIGNATURE_KEY",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in INTEGRATION_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def store() -> InMemoryCardStore:
    return InMemoryCardStore()


@pytest.fixture
def actors() -> InMemoryActorDirectory:
    return InMemoryActorDirectory()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = startup(engine=sqlite_engine, force=True)
    try:
        yield factory
    finally:
        shutdown()
