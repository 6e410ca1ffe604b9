"""Entity reconciler: turns one identity claim into ordered mutation instructions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cardsync.domain.mirrors import lookup_by_mirror
from cardsync.domain.model import MutationInstruction

from .plan import plan_reconciliation

if TYPE_CHECKING:
    from cardsync.domain.actors import ActorResolver
    from cardsync.domain.model import ActorDescriptor, ActorId
    from cardsync.domain.ports import CardLookup

    from .contracts import IdentityClaim, ReconciliationPlan

log = getLogger(__name__)


class EntityReconciler:
    """Resolve candidates through the lookup port and emit instructions.

    Holds no state between calls besides what ``actors`` memoizes.
    """

    def __init__(
        self,
        cards: CardLookup,
        actors: ActorResolver,
        *,
        default_actor: str | None = None,
    ) -> None:
        self._cards = cards
        self._actors = actors
        self._default_actor = default_actor

    async def plan(self, claim: IdentityClaim) -> ReconciliationPlan:
        by_mirror = await lookup_by_mirror(self._cards, claim.card_type, claim.mirror)
        by_slug = await self._cards.get_element_by_slug(claim.card_type, claim.slug)
        return plan_reconciliation(claim, by_mirror=by_mirror, by_slug=by_slug)

    async def reconcile(
        self,
        claim: IdentityClaim,
        *,
        actor: ActorDescriptor | None = None,
    ) -> list[MutationInstruction]:
        """Return zero, one or two instructions; the unification donor always comes last."""

        plan = await self.plan(claim)
        if plan.target is None:
            log.debug("No-op for %s: %s", claim.mirror, plan.reason)
            return []

        actor_id = await self.resolve_actor(actor)
        instructions = [
            MutationInstruction(time=claim.timestamp, actor=actor_id, card=card)
            for card in plan.cards()
        ]
        if plan.donor is not None:
            log.info("Unifying %s into %s via %s", plan.donor.slug, plan.target.slug, claim.mirror)
        log.debug("Reconciled %s as %s (%s)", claim.mirror, plan.target.slug, plan.target_state)
        return instructions

    async def resolve_actor(self, actor: ActorDescriptor | None = None) -> ActorId:
        if actor is not None:
            return await self._actors.resolve(actor)
        return await self._actors.resolve_default(self._default_actor)
