"""SQLAlchemy table metadata for cards, mirror claims and actors."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Uuid,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

metadata = MetaData()

cards_table = Table(
    "cards",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("slug", String, nullable=False, unique=True),
    Column("type", String, nullable=False),
    Column("name", String, nullable=True),
    Column("active", Boolean, nullable=False, default=True),
    Column("tags", JSON, nullable=False, default=list),
    Column("data", JSON, nullable=False, default=dict),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("updated_by", String, nullable=True),
)
Index("ix_cards_type_slug", cards_table.c.type, cards_table.c.slug)

# One row per mirror URI held by an active card.
card_mirrors_table = Table(
    "card_mirrors",
    metadata,
    Column("mirror", String, primary_key=True),
    Column("card_id", Uuid, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False),
)
Index("ix_card_mirrors_card_id", card_mirrors_table.c.card_id)

actors_table = Table(
    "actors",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid.uuid4),
    Column("handle", String, nullable=False, unique=True),
    Column("name", String, nullable=True),
    Column("email", String, nullable=True),
    Column("oauth", JSON, nullable=False, default=dict),
)


def create_all_tables(engine: Engine) -> None:
    log.info("Creating card tables")
    metadata.create_all(engine)
