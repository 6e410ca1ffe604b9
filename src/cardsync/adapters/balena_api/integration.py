"""User-directory adapter: remote user events become ``user`` cards."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from cardsync.config import BalenaApiToken
from cardsync.domain.errors import UnsupportedEventError
from cardsync.domain.integration import Integration
from cardsync.domain.mirrors import mirror_id
from cardsync.domain.model import Card, ensure_utc
from cardsync.domain.reconciliation import IdentityClaim
from cardsync.domain.slugs import make_slug

from . import verify
from .schema import ResourceEvent, UserPayload

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from cardsync.domain.merge import FieldPath
    from cardsync.domain.model import EventKind, ExternalEvent, MutationInstruction

log = getLogger(__name__)

BALENA_API_BASE_URL: Final[str] = "https://api.balena-cloud.com"
USER_MIRROR_TEMPLATE: Final[str] = "{base}/v5/user({id})"
PLACEHOLDER_EMAIL: Final[str] = "new@change.me"
COMMUNITY_ROLE: Final[str] = "user-community"

EMAIL: Final[FieldPath] = ("data", "email")
COMPANY: Final[FieldPath] = ("data", "profile", "company")
FIRST_NAME: Final[FieldPath] = ("data", "profile", "name", "first")
LAST_NAME: Final[FieldPath] = ("data", "profile", "name", "last")
USER_FIELDS: Final[tuple[FieldPath, ...]] = (EMAIL, COMPANY, FIRST_NAME, LAST_NAME)


def user_mirror(user_id: object) -> str:
    return mirror_id(BALENA_API_BASE_URL, user_id, template=USER_MIRROR_TEMPLATE)


def build_user_claim(
    user: UserPayload,
    *,
    kind: EventKind,
    timestamp: datetime,
    sequence: int | None = None,
) -> IdentityClaim:
    slug = make_slug("user", user.username)
    return IdentityClaim(
        card_type="user",
        slug=slug,
        base_url=BALENA_API_BASE_URL,
        mirror=user_mirror(user.id),
        kind=kind,
        timestamp=ensure_utc(timestamp),
        sequence=sequence,
        fields={
            EMAIL: user.email,
            COMPANY: user.company,
            FIRST_NAME: user.first_name,
            LAST_NAME: user.last_name,
        },
        mutable_fields=USER_FIELDS,
        defaults={EMAIL: PLACEHOLDER_EMAIL},
        placeholders={EMAIL: PLACEHOLDER_EMAIL},
        skeleton=Card(slug=slug, type="user", data={"roles": [COMMUNITY_ROLE]}),
    )


class BalenaApiIntegration(Integration[BalenaApiToken]):
    slug = "balena-api"
    base_url = BALENA_API_BASE_URL

    async def translate_event(self, event: ExternalEvent) -> list[MutationInstruction]:
        envelope = verify.load_envelope(self.token, event.payload, event.headers)
        if envelope is None:
            raise UnsupportedEventError("payload could not be decoded")
        resource = ResourceEvent.model_validate(envelope)
        if resource.resource != "user":
            raise UnsupportedEventError(f"unsupported resource {resource.resource!r}")

        user = UserPayload.model_validate(resource.payload)
        claim = build_user_claim(
            user,
            kind=resource.kind,
            timestamp=resource.timestamp,
            sequence=event.sequence,
        )
        log.debug("Translating %s for %s", resource.type, claim.mirror)
        return await self.reconciler.reconcile(claim)

    @staticmethod
    def is_event_valid(token: object, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        if token is not None and not isinstance(token, BalenaApiToken):
            return False
        return verify.is_event_valid(token, raw_body, headers)
