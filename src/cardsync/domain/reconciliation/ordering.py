"""Watermark ordering for translated events.

Events are ordered by ``(timestamp, sequence)``. A missing sequence sorts before
any assigned one, so equal timestamps without a sequence compare equal and the
later delivery is dropped by the strict comparison.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardsync.domain.model import (
    TRANSLATE_DATE_KEY,
    TRANSLATE_SEQUENCE_KEY,
    ensure_utc,
    format_timestamp,
)

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any

    from cardsync.domain.model import Card

type WatermarkKey = tuple[datetime, int]

_NO_SEQUENCE = -1


def watermark_key(timestamp: datetime, sequence: int | None) -> WatermarkKey:
    # stored watermarks keep millisecond precision
    moment = ensure_utc(timestamp)
    moment = moment.replace(microsecond=moment.microsecond // 1000 * 1000)
    return moment, _NO_SEQUENCE if sequence is None else sequence


def stored_watermark(card: Card) -> WatermarkKey | None:
    stored = card.translate_date
    if stored is None:
        return None
    return watermark_key(stored, card.translate_sequence)


def is_newer(card: Card, timestamp: datetime, sequence: int | None) -> bool:
    """Return ``True`` if an event at ``(timestamp, sequence)`` may update ``card``."""

    stored = stored_watermark(card)
    return stored is None or watermark_key(timestamp, sequence) > stored


def stamp_watermark(data: dict[str, Any], timestamp: datetime, sequence: int | None) -> None:
    data[TRANSLATE_DATE_KEY] = format_timestamp(timestamp)
    if sequence is None:
        data.pop(TRANSLATE_SEQUENCE_KEY, None)
    else:
        data[TRANSLATE_SEQUENCE_KEY] = sequence
