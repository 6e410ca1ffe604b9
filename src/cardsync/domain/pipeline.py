"""Run adapters and apply what they return to a card store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from cardsync.domain.errors import InvalidInstructionError
from cardsync.domain.model import ORIGIN_KEY

if TYPE_CHECKING:
    from collections.abc import Sequence

    from cardsync.domain.cache import LookupCache
    from cardsync.domain.integration import Integration, IntegrationContext
    from cardsync.domain.model import ActorId, Card, ExternalEvent, MutationInstruction
    from cardsync.domain.ports import CardStore

log = getLogger(__name__)


async def import_instructions(
    store: CardStore,
    instructions: Sequence[MutationInstruction],
    *,
    origin: str | None = None,
) -> list[Card]:
    """Apply ``instructions`` strictly in order and return the stored cards."""

    results: list[Card] = []
    for instruction in instructions:
        card = instruction.card
        if not instruction.actor:
            raise InvalidInstructionError(f"No actor for {card.slug}")
        if not card.slug or not card.type:
            raise InvalidInstructionError("Cards need a slug and a type")
        if origin is not None and ORIGIN_KEY not in card.data:
            data = card.data_dict()
            data[ORIGIN_KEY] = origin
            card = card.with_data(data)
        stored = await store.upsert(card, timestamp=instruction.time, actor=instruction.actor)
        log.debug("Upserted %s (%s)", stored.slug, stored.type)
        results.append(stored)
    return results


async def translate_external_event(
    integration_cls: type[Integration[Any]],
    event: ExternalEvent,
    *,
    context: IntegrationContext,
    store: CardStore,
    token: object = None,
    cache: LookupCache[str, object] | None = None,
) -> list[Card]:
    """Translate ``event`` with a fresh adapter and import the result."""

    async with integration_cls(context=context, token=token, cache=cache) as integration:
        instructions = await integration.translate(event)
    log.info("%s event translated into %s instruction(s)", event.source, len(instructions))
    return await import_instructions(store, instructions, origin=event.slug)


async def mirror_card(
    integration_cls: type[Integration[Any]],
    card: Card,
    *,
    actor: ActorId,
    context: IntegrationContext,
    store: CardStore,
    token: object = None,
) -> list[Card]:
    """Push ``card`` to the remote and import whatever the adapter records."""

    async with integration_cls(context=context, token=token) as integration:
        instructions = await integration.mirror(card, actor=actor)
    return await import_instructions(store, instructions)
