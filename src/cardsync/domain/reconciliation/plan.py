"""Pure identity planning: from a claim and two candidates to desired card states."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cardsync.domain.merge import UNSET, get_path, merge_fields, set_path
from cardsync.domain.mirrors import find_mirror, strip_mirrors
from cardsync.domain.model import MIRRORS_KEY, Card, EventKind

from .contracts import IdentityState, ReconciliationPlan
from .ordering import is_newer, stamp_watermark

if TYPE_CHECKING:
    from .contracts import IdentityClaim


def classify(card: Card | None, base_url: str) -> IdentityState:
    """Place ``card`` in the identity lifecycle relative to ``base_url``."""

    if card is None:
        return IdentityState.UNKNOWN
    has_mirror = find_mirror(card, base_url) is not None
    if not card.active and not has_mirror:
        return IdentityState.INACTIVE
    if has_mirror:
        return IdentityState.TRACKED_BY_MIRROR
    return IdentityState.TRACKED_BY_SLUG


def _same_card(left: Card, right: Card) -> bool:
    if left.id is not None and right.id is not None:
        return left.id == right.id
    return left.slug == right.slug and left.type == right.type


def plan_reconciliation(
    claim: IdentityClaim,
    *,
    by_mirror: Card | None,
    by_slug: Card | None,
) -> ReconciliationPlan:
    """Compute the target (and donor, when unifying) for ``claim``.

    ``by_mirror`` must be an active card. A slug candidate that is already
    retired never comes back; the claim then falls through to the mirror
    candidate, or to a no-op when there is none.
    """

    if by_slug is not None and classify(by_slug, claim.base_url).is_terminal:
        if by_mirror is None:
            return ReconciliationPlan(reason=f"{by_slug.slug} is retired")
        by_slug = None

    unify = by_mirror is not None and by_slug is not None and not _same_card(by_mirror, by_slug)
    fallback: Card | None = by_mirror if unify else None
    match = by_slug or by_mirror
    state_before = classify(match, claim.base_url)
    if match is None:
        if claim.kind is EventKind.DELETE:
            return ReconciliationPlan(reason=f"delete for unknown identity {claim.mirror}")
        match = claim.new_card()

    if not is_newer(match, claim.timestamp, claim.sequence):
        return ReconciliationPlan(
            target_state=state_before,
            reason=f"{match.slug} already translated at or after {claim.timestamp.isoformat()}",
        )
    if fallback is not None and not is_newer(fallback, claim.timestamp, claim.sequence):
        # The mirror identity already holds newer remote state than this claim.
        return ReconciliationPlan(
            target_state=state_before,
            reason=f"{fallback.slug} already translated at or after {claim.timestamp.isoformat()}",
        )

    payload = merge_fields(
        match.to_dict(),
        incoming=claim.fields,
        fallback=fallback.to_dict() if fallback is not None else None,
        fields=claim.mutable_fields,
        upsert_allowed=unify,
        placeholders=claim.placeholders,
    )
    for path, value in claim.defaults.items():
        if get_path(payload, path) in (None, UNSET):
            set_path(payload, path, value)

    data = payload.setdefault("data", {})
    mirrors = strip_mirrors(data.get(MIRRORS_KEY) or [], claim.base_url)
    if claim.kind is EventKind.DELETE:
        payload["active"] = False
    else:
        mirrors.append(claim.mirror)
        payload["active"] = claim.active
    data[MIRRORS_KEY] = mirrors
    stamp_watermark(data, claim.timestamp, claim.sequence)
    target = Card.from_dict(payload)

    donor: Card | None = None
    if fallback is not None:
        donor_data = fallback.data_dict()
        donor_data[MIRRORS_KEY] = strip_mirrors(fallback.mirrors, claim.base_url)
        stamp_watermark(donor_data, claim.timestamp, claim.sequence)
        donor = fallback.evolve(active=False, data=donor_data)

    return ReconciliationPlan(
        target=target,
        donor=donor,
        target_state=classify(target, claim.base_url),
        donor_state=IdentityState.UNIFIED if donor is not None else None,
    )
