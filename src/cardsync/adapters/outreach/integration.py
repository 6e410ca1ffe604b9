"""CRM adapter: sequences and prospects in, contact cards out."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from cardsync.adapters.signatures import verify_signature_header
from cardsync.config import OutreachToken
from cardsync.domain.errors import RemoteAuthError, RemoteRequestError, UnsupportedEventError
from cardsync.domain.integration import Integration
from cardsync.domain.mirrors import lookup_by_mirror
from cardsync.domain.model import EventKind
from cardsync.domain.reconciliation import IdentityClaim
from cardsync.domain.slugs import make_slug

from .prospects import OUTREACH_API_URL, PROSPECTS_URL, ProspectMirrorWriter
from .schema import ProspectAttributes, SequenceAttributes, SequenceDocument, WebhookPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.domain.model import ActorId, Card, ExternalEvent, MutationInstruction

log = getLogger(__name__)

SEQUENCES_URL: Final[str] = f"{OUTREACH_API_URL}/api/v2/sequences"
SIGNATURE_HEADER: Final[str] = "outreach-webhook-signature"
ORG_HEADER: Final[str] = "outreach-org-id"

_KIND_BY_ACTION = {
    "created": EventKind.CREATE,
    "updated": EventKind.UPDATE,
    "destroyed": EventKind.DELETE,
}

PROSPECT_FIELDS = (
    ("data", "profile", "email"),
    ("data", "profile", "name", "first"),
    ("data", "profile", "name", "last"),
    ("data", "profile", "title"),
    ("data", "profile", "city"),
    ("data", "profile", "country"),
)


def is_event_valid(
    token: OutreachToken | None, raw_body: bytes, headers: Mapping[str, str]
) -> bool:
    secret = token.signature if token is not None else None
    return verify_signature_header(secret, raw_body, headers, SIGNATURE_HEADER)


class OutreachIntegration(Integration[OutreachToken]):
    slug = "outreach"
    base_url = OUTREACH_API_URL

    @property
    def _configured(self) -> bool:
        return self.token is not None and self.token.has_app_credentials

    async def translate_event(self, event: ExternalEvent) -> list[MutationInstruction]:
        if not self._configured:
            log.debug("Outreach app credentials missing; ignoring event")
            return []
        webhook = WebhookPayload.model_validate(event.json())
        kind = _KIND_BY_ACTION.get(webhook.action)
        if kind is None:
            raise UnsupportedEventError(f"unsupported event {webhook.meta.event_name!r}")
        if not webhook.data.attributes:
            return []

        if webhook.data.type == "sequence":
            return await self._translate_sequence(webhook, kind, event)
        if webhook.data.type == "prospect":
            return await self._translate_prospect(webhook, kind, event)
        raise UnsupportedEventError(f"unsupported resource {webhook.data.type!r}")

    async def _translate_sequence(
        self, webhook: WebhookPayload, kind: EventKind, event: ExternalEvent
    ) -> list[MutationInstruction]:
        org_id = event.header(ORG_HEADER)
        if not org_id:
            raise UnsupportedEventError(f"sequence event without {ORG_HEADER} header")
        url = f"{SEQUENCES_URL}/{webhook.data.id}"
        attributes = SequenceAttributes.model_validate(webhook.data.attributes)

        known = await lookup_by_mirror(self.context.cards, "email-sequence", url)
        if kind is EventKind.UPDATE and known is None:
            try:
                body = await self.fetch(url, cache_key=f"sequence:{webhook.data.id}")
            except RemoteAuthError as exc:
                log.warning("Cannot enrich sequence %s: %s", url, exc)
                return []
            try:
                remote = SequenceDocument.model_validate(body).data.attributes
            except ValidationError:
                log.warning("Ignoring malformed sequence %s from remote", url)
                remote = SequenceAttributes()
            attributes = attributes.model_copy(
                update={
                    "name": attributes.name or remote.name,
                    "share_type": attributes.share_type or remote.share_type,
                }
            )

        claim = IdentityClaim(
            card_type="email-sequence",
            slug=make_slug("email-sequence", org_id, webhook.data.id),
            base_url=url,
            mirror=url,
            kind=kind,
            timestamp=attributes.changed_at(
                created=kind is EventKind.CREATE, delivered_at=webhook.meta.delivered_at
            ),
            sequence=event.sequence,
            fields={("name",): attributes.name},
            mutable_fields=(("name",),),
            active=attributes.is_public,
        )
        return await self.reconciler.reconcile(claim)

    async def _translate_prospect(
        self, webhook: WebhookPayload, kind: EventKind, event: ExternalEvent
    ) -> list[MutationInstruction]:
        attributes = ProspectAttributes.model_validate(webhook.data.attributes)
        nickname = attributes.nickname or f"outreach-{webhook.data.id}"
        claim = IdentityClaim(
            card_type="contact",
            slug=make_slug("contact", nickname),
            base_url=OUTREACH_API_URL,
            mirror=f"{PROSPECTS_URL}/{webhook.data.id}",
            kind=kind,
            timestamp=webhook.meta.delivered_at,
            sequence=event.sequence,
            fields=dict(
                zip(
                    PROSPECT_FIELDS,
                    (
                        attributes.emails[0] if attributes.emails else None,
                        attributes.first_name,
                        attributes.last_name,
                        attributes.title,
                        attributes.address_city,
                        attributes.address_country,
                    ),
                    strict=True,
                )
            ),
            mutable_fields=PROSPECT_FIELDS,
        )
        return await self.reconciler.reconcile(claim)

    async def mirror(self, card: Card, *, actor: ActorId) -> list[MutationInstruction]:
        if card.type != "contact" or not self._configured:
            return []
        if self.context.remote is None:
            raise RemoteRequestError("outreach has no remote requester")
        return await ProspectMirrorWriter(self.context.remote).upsert(card, actor=actor)

    @staticmethod
    def is_event_valid(token: object, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        if token is not None and not isinstance(token, OutreachToken):
            return False
        return is_event_valid(token, raw_body, headers)
