"""Outbound writer pushing ``contact`` cards to CRM prospects."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from cardsync.domain.errors import RemoteAuthError, RemoteRequestError
from cardsync.domain.merge import get_path, is_present, set_path
from cardsync.domain.mirrors import find_mirror, replace_mirror
from cardsync.domain.model import Card, MutationInstruction
from cardsync.domain.ports import RemoteRequest

from .schema import ApiErrorDocument, ProspectCollection, ProspectDocument, ProspectResource

if TYPE_CHECKING:
    from collections.abc import Callable

    from cardsync.domain.merge import FieldPath
    from cardsync.domain.model import ActorId
    from cardsync.domain.ports import RemoteRequester, RemoteResponse

log = getLogger(__name__)

OUTREACH_API_URL: Final[str] = "https://api.outreach.io"
PROSPECTS_URL: Final[str] = f"{OUTREACH_API_URL}/api/v2/prospects"
MAX_NAME_LENGTH: Final[int] = 50
PLACEHOLDER_EMAIL_DOMAIN: Final[str] = "@change.me"
EXCLUDED_EMAIL_DETAIL: Final[str] = "Contacts contact is using an excluded email address."
EMAIL_TAKEN_DETAIL: Final[str] = "Contacts email hash has already been taken."
MAX_ATTEMPTS: Final[int] = 3

CONTACT_EMAIL: Final[FieldPath] = ("data", "profile", "email")


def _truncate(value: Any) -> Any:
    if isinstance(value, str) and len(value) > MAX_NAME_LENGTH:
        return value[: MAX_NAME_LENGTH - 3] + "..."
    return value


# (prospect attribute, card path, normalizer)
PROSPECT_MAPPING: Final[tuple[tuple[str, FieldPath, Callable[[Any], Any] | None], ...]] = (
    ("addressCity", ("data", "profile", "city"), None),
    ("addressCountry", ("data", "profile", "country"), None),
    ("title", ("data", "profile", "title"), None),
    ("firstName", ("data", "profile", "name", "first"), _truncate),
    ("lastName", ("data", "profile", "name", "last"), _truncate),
    ("tags", ("tags",), None),
)


def contact_email(card: Card) -> str | None:
    email = get_path(card.to_dict(), CONTACT_EMAIL)
    return email if isinstance(email, str) and email else None


def prospect_attributes(card: Card) -> dict[str, Any]:
    payload = card.to_dict()
    email = contact_email(card)
    attributes: dict[str, Any] = {
        "emails": [email] if email and not email.endswith(PLACEHOLDER_EMAIL_DOMAIN) else [],
        "githubUsername": (
            card.slug.removeprefix("contact-gh-") if card.slug.startswith("contact-gh-") else None
        ),
        "nickname": card.slug.removeprefix("contact-"),
    }
    for attribute, path, normalize in PROSPECT_MAPPING:
        value = get_path(payload, path)
        attributes[attribute] = normalize(value) if normalize is not None else value
    return attributes


def _error_detail(response: RemoteResponse) -> str | None:
    if response.code != 422 or not isinstance(response.body, dict):
        return None
    document = ApiErrorDocument.model_validate(response.body)
    if not document.errors or document.errors[0].id != "validationError":
        return None
    return document.errors[0].detail


class ProspectMirrorWriter:
    """Create or update the prospect mirroring a contact card.

    An existing mirror (or a prospect found by email) is updated in place; otherwise
    a prospect is created and its URI is recorded on the card.
    """

    def __init__(
        self,
        remote: RemoteRequester,
        *,
        clock: Callable[[], datetime] | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self._remote = remote
        self._clock = clock or (lambda: datetime.now(UTC))
        self._max_attempts = max_attempts

    async def upsert(self, card: Card, *, actor: ActorId) -> list[MutationInstruction]:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._upsert_once(card, actor=actor)
            except _EmailTakenError:
                log.info("Retrying taken address for %s (attempt %s)", card.slug, attempt)
            except RemoteAuthError as exc:
                log.warning("Skipping mirror of %s: %s", card.slug, exc)
                return []
        raise RemoteRequestError(
            f"Prospect for {card.slug} kept colliding on its email address", code=422
        )

    async def find_by_email(self, email: str | None, *, actor: ActorId) -> ProspectResource | None:
        if not email:
            return None
        response = await self._remote.request(
            actor,
            RemoteRequest(method="GET", url=PROSPECTS_URL, params={"filter[emails]": email}),
        )
        if response.code != 200:
            raise RemoteRequestError(
                f"Cannot find prospect by email {email}: {response.code}",
                code=response.code,
                body=response.body,
            )
        collection = ProspectCollection.model_validate(response.body or {})
        return collection.data[0] if collection.data else None

    async def _upsert_once(self, card: Card, *, actor: ActorId) -> list[MutationInstruction]:
        prospect = await self.find_by_email(contact_email(card), actor=actor)
        known_url = find_mirror(card, OUTREACH_API_URL)
        url = known_url or (prospect.links.self_url if prospect is not None else None)

        body: dict[str, Any] = {"data": {"type": "prospect", "attributes": prospect_attributes(card)}}
        if url is not None:
            body["data"]["id"] = int(url.rstrip("/").rsplit("/", 1)[-1])
        log.info("Mirroring %s to %s", card.slug, url or PROSPECTS_URL)
        response = await self._remote.request(
            actor,
            RemoteRequest(method="PATCH" if url else "POST", url=url or PROSPECTS_URL, json=body),
        )

        detail = _error_detail(response)
        if detail == EXCLUDED_EMAIL_DETAIL:
            log.info("Omitting excluded prospect %s", card.slug)
            return []
        if detail == EMAIL_TAKEN_DETAIL:
            raise _EmailTakenError(detail)

        if url is not None:
            return self._after_update(
                card, url, response, prospect, known=known_url is not None, actor=actor
            )
        return self._after_create(card, response, actor=actor)

    def _after_update(
        self,
        card: Card,
        url: str,
        response: RemoteResponse,
        prospect: ProspectResource | None,
        *,
        known: bool,
        actor: ActorId,
    ) -> list[MutationInstruction]:
        if response.code != 200:
            raise RemoteRequestError(
                f"Could not update prospect {url}: {response.code}",
                code=response.code,
                body=response.body,
            )
        log.info("Updated prospect %s for %s", url, card.slug)
        if known:
            return []

        payload = replace_mirror(card, OUTREACH_API_URL, url).to_dict()
        if prospect is not None:
            remote = prospect.attributes.model_dump(by_alias=True)
            for attribute, path, _normalize in PROSPECT_MAPPING:
                value = remote.get(attribute)
                if is_present(value) and not is_present(get_path(payload, path)):
                    set_path(payload, path, value)
        log.info("Adding missing mirror %s to %s", url, card.slug)
        return [MutationInstruction(time=self._clock(), actor=actor, card=Card.from_dict(payload))]

    def _after_create(
        self, card: Card, response: RemoteResponse, *, actor: ActorId
    ) -> list[MutationInstruction]:
        if response.code != 201:
            raise RemoteRequestError(
                f"Could not create prospect for {card.slug}: {response.code}",
                code=response.code,
                body=response.body,
            )
        created = ProspectDocument.model_validate(response.body)
        remote_url = created.data.links.self_url or f"{PROSPECTS_URL}/{created.data.id}"
        log.info("Created prospect %s for %s", remote_url, card.slug)
        mirrored = replace_mirror(card, OUTREACH_API_URL, remote_url)
        return [MutationInstruction(time=self._clock(), actor=actor, card=mirrored)]


class _EmailTakenError(RemoteRequestError):
    """Two writers raced to create the same prospect."""
