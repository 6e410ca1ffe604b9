"""Mirror identifiers: deterministic URIs joining local cards to remote resources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardsync.domain.model import MIRRORS_KEY, Card

if TYPE_CHECKING:
    from cardsync.domain.ports import CardLookup


def mirror_id(base_url: str, external_id: object, *, template: str = "{base}/v5/user({id})") -> str:
    """Build the mirror URI for ``external_id`` on the remote rooted at ``base_url``."""

    return template.format(base=base_url.rstrip("/"), id=external_id)


def find_mirror(card: Card, base_url: str) -> str | None:
    """Return the first mirror of ``card`` that belongs to ``base_url``."""

    return next((mirror for mirror in card.mirrors if mirror.startswith(base_url)), None)


def strip_mirrors(mirrors: tuple[str, ...] | list[str], base_url: str) -> list[str]:
    return [mirror for mirror in mirrors if not mirror.startswith(base_url)]


def replace_mirror(card: Card, base_url: str, new_mirror: str | None) -> Card:
    """Drop every ``base_url`` mirror of ``card`` and append ``new_mirror`` if given."""

    mirrors = strip_mirrors(card.mirrors, base_url)
    if new_mirror is not None:
        mirrors.append(new_mirror)
    data = card.data_dict()
    data[MIRRORS_KEY] = mirrors
    return card.with_data(data)


async def lookup_by_mirror(cards: CardLookup, card_type: str, mirror: str) -> Card | None:
    """Return the active card of ``card_type`` claiming ``mirror``."""

    card = await cards.get_element_by_mirror_id(card_type, mirror)
    if card is None or not card.active:
        return None
    return card
