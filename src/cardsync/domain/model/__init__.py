"""Canonical domain model."""

from __future__ import annotations

from .actor import ActorDescriptor, ActorId
from .card import (
    MIRRORS_KEY,
    ORIGIN_KEY,
    TRANSLATE_DATE_KEY,
    TRANSLATE_SEQUENCE_KEY,
    Card,
)
from .events import EventKind, ExternalEvent, MutationInstruction
from .timestamps import ensure_utc, format_timestamp, parse_timestamp

__all__ = [
    "MIRRORS_KEY",
    "ORIGIN_KEY",
    "TRANSLATE_DATE_KEY",
    "TRANSLATE_SEQUENCE_KEY",
    "ActorDescriptor",
    "ActorId",
    "Card",
    "EventKind",
    "ExternalEvent",
    "MutationInstruction",
    "ensure_utc",
    "format_timestamp",
    "parse_timestamp",
]
