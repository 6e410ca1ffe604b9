"""Chat adapter: flow messages become ``chat-thread`` and ``chat-message`` cards."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from cardsync.adapters.signatures import verify_signature_header
from cardsync.config import FlowdockToken
from cardsync.domain.errors import UnsupportedEventError
from cardsync.domain.integration import Integration
from cardsync.domain.model import ActorDescriptor, EventKind, format_timestamp
from cardsync.domain.reconciliation import IdentityClaim
from cardsync.domain.slugs import make_slug

from .schema import FlowdockUser, FlowPayload, MessageEvent

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.domain.model import ExternalEvent, MutationInstruction

log = getLogger(__name__)

FLOWDOCK_API_URL: Final[str] = "https://api.flowdock.com"
FLOWDOCK_APP_URL: Final[str] = "https://www.flowdock.com/app"
SIGNATURE_HEADER: Final[str] = "x-flowdock-signature"

THREAD_FIELDS = (("data", "description"),)
MESSAGE_FIELDS = (
    ("data", "timestamp"),
    ("data", "target"),
    ("data", "payload", "message"),
)


def thread_url(organization: str, flow: str, thread: str) -> str:
    return f"{FLOWDOCK_APP_URL}/{organization}/{flow}/threads/{thread}"


def is_event_valid(
    token: FlowdockToken | None, raw_body: bytes, headers: Mapping[str, str]
) -> bool:
    secret = token.signature if token is not None else None
    return verify_signature_header(secret, raw_body, headers, SIGNATURE_HEADER, prefix="sha256=")


class FlowdockIntegration(Integration[FlowdockToken]):
    slug = "flowdock"
    base_url = FLOWDOCK_APP_URL

    async def translate_event(self, event: ExternalEvent) -> list[MutationInstruction]:
        message = MessageEvent.model_validate(event.json())
        if message.event != "message":
            raise UnsupportedEventError(f"unsupported event {message.event!r}")
        thread = message.thread_key
        if thread is None:
            raise UnsupportedEventError(f"message {message.id} is not part of a thread")

        flow = await self._get_flow(message.flow)
        author = await self._get_user(message.user)
        organization = flow.organization.parameterized_name
        url = thread_url(organization, flow.parameterized_name, thread)
        thread_slug = make_slug("thread", "flowdock", organization, flow.parameterized_name, thread)
        actor = ActorDescriptor(handle=author.nick, name=author.name, email=author.email)

        thread_claim = IdentityClaim(
            card_type="chat-thread",
            slug=thread_slug,
            base_url=url,
            mirror=url,
            kind=EventKind.UPDATE,
            timestamp=message.created_at,
            sequence=event.sequence,
            fields={("data", "description"): message.thread.title if message.thread else None},
            mutable_fields=THREAD_FIELDS,
        )
        message_url = f"{url}/messages/{message.id}"
        message_claim = IdentityClaim(
            card_type="chat-message",
            slug=make_slug("message", thread_slug.removeprefix("thread-"), message.id),
            base_url=message_url,
            mirror=message_url,
            kind=EventKind.CREATE,
            timestamp=message.created_at,
            sequence=event.sequence,
            fields={
                ("data", "timestamp"): format_timestamp(message.created_at),
                ("data", "target"): thread_slug,
                ("data", "payload", "message"): message.content,
            },
            mutable_fields=MESSAGE_FIELDS,
        )

        instructions = await self.reconciler.reconcile(thread_claim, actor=actor)
        instructions.extend(await self.reconciler.reconcile(message_claim, actor=actor))
        log.debug("Flowdock message %s produced %s instruction(s)", message.id, len(instructions))
        return instructions

    async def _get_flow(self, flow_id: str) -> FlowPayload:
        body = await self.fetch(
            f"{FLOWDOCK_API_URL}/flows/find?id={flow_id}", cache_key=f"flow:{flow_id}"
        )
        return FlowPayload.model_validate(body)

    async def _get_user(self, user_id: int | str) -> FlowdockUser:
        body = await self.fetch(f"{FLOWDOCK_API_URL}/users/{user_id}", cache_key=f"user:{user_id}")
        return FlowdockUser.model_validate(body)

    @staticmethod
    def is_event_valid(token: object, raw_body: bytes, headers: Mapping[str, str]) -> bool:
        if token is not None and not isinstance(token, FlowdockToken):
            return False
        return is_event_valid(token, raw_body, headers)
