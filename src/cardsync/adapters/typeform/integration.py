"""Form adapter: submitted responses become ``user-feedback`` cards."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from cardsync.adapters.signatures import verify_signature_header
from cardsync.config import TypeformToken
from cardsync.domain.errors import UnsupportedEventError
from cardsync.domain.integration import Integration
from cardsync.domain.model import ActorDescriptor, EventKind, format_timestamp
from cardsync.domain.reconciliation import IdentityClaim
from cardsync.domain.slugs import make_slug, slugify

from .schema import FormDefinition, FormResponse, FormWebhook

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.domain.model import ExternalEvent, MutationInstruction

log = getLogger(__name__)

TYPEFORM_API_URL: Final[str] = "https://api.typeform.com"
SIGNATURE_HEADER: Final[str] = "typeform-signature"

FEEDBACK_FIELDS = (
    ("data", "formTitle"),
    ("data", "submittedAt"),
    ("data", "answers"),
    ("data", "hidden"),
)


def response_url(form_id: str, token: str) -> str:
    return f"{TYPEFORM_API_URL}/forms/{form_id}/responses/{token}"


def is_event_valid(
    token: TypeformToken | None, raw_body: bytes, headers: Mapping[str, str]
) -> bool:
    secret = token.signature if token is not None else None
    return verify_signature_header(
        secret, raw_body, headers, SIGNATURE_HEADER, prefix="sha256=", encoding="base64"
    )


def _respondent(response: FormResponse) -> ActorDescriptor | None:
    email = next((answer.email for answer in response.answers if answer.email), None)
    if email is None:
        return None
    return ActorDescriptor(handle=slugify(email.split("@", 1)[0]), email=email)


class TypeformIntegration(Integration[TypeformToken]):
    slug = "typeform"
    base_url = TYPEFORM_API_URL

    async def translate_event(self, event: ExternalEvent) -> list[MutationInstruction]:
        webhook = FormWebhook.model_validate(event.json())
        if webhook.event_type != "form_response" or webhook.form_response is None:
            raise UnsupportedEventError(f"unsupported event {webhook.event_type!r}")
        response = webhook.form_response

        title = response.definition.title if response.definition else None
        if title is None:
            title = (await self._get_form(response.form_id)).title

        answers: dict[str, Any] = {answer.key: answer.value for answer in response.answers}
        url = response_url(response.form_id, response.token)
        claim = IdentityClaim(
            card_type="user-feedback",
            slug=make_slug("user-feedback", response.token),
            base_url=url,
            mirror=url,
            kind=EventKind.CREATE,
            timestamp=response.submitted_at,
            sequence=event.sequence,
            fields={
                ("data", "formTitle"): title,
                ("data", "submittedAt"): format_timestamp(response.submitted_at),
                ("data", "answers"): answers,
                ("data", "hidden"): dict(response.hidden),
            },
            mutable_fields=FEEDBACK_FIELDS,
        )
        return await self.reconciler.reconcile(claim, actor=_respondent(response))

    async def _get_form(self, form_id: str) -> FormDefinition:
        body = await self.fetch(f"{TYPEFORM_API_URL}/forms/{form_id}", cache_key=f"form:{form_id}")
        return FormDefinition.model_validate(body)

    @staticmethod
    def is_event_valid(token: object, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        if token is not None and not isinstance(token, TypeformToken):
            return False
        return is_event_valid(token, raw_body, headers)
