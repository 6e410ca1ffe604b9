from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from cardsync.adapters.outreach import OutreachIntegration
from cardsync.adapters.outreach.prospects import (
    EMAIL_TAKEN_DETAIL,
    EXCLUDED_EMAIL_DETAIL,
    PROSPECTS_URL,
    ProspectMirrorWriter,
    prospect_attributes,
)
from cardsync.config import OutreachToken
from cardsync.domain.errors import RemoteAuthError, RemoteRequestError
from cardsync.domain.model import ActorId, Card, ExternalEvent, MutationInstruction
from cardsync.domain.pipeline import mirror_card
from tests.helpers.events import make_context, translate_all
from tests.support.cards import InMemoryCardStore
from tests.support.remote import FakeRemoteRequester

ACTOR = ActorId("actor-admin")
NOW = datetime(2024, 3, 1, 13, tzinfo=UTC)
TOKEN = OutreachToken(app_id="app", app_secret="secret")
PROSPECT_5 = f"{PROSPECTS_URL}/5"


def _contact(*, email: str | None = "pat@example.com", mirrors: list[str] | None = None) -> Card:
    profile: dict[str, object] = {"name": {"first": "Pat", "last": "L" * 60}}
    if email is not None:
        profile["email"] = email
    return Card(
        slug="contact-pat",
        type="contact",
        tags=("vip",),
        data={"profile": profile, "mirrors": mirrors or []},
    )


def _validation_error(detail: str) -> dict[str, object]:
    return {"errors": [{"id": "validationError", "detail": detail}]}


def _upsert(remote: FakeRemoteRequester, card: Card) -> list[MutationInstruction]:
    writer = ProspectMirrorWriter(remote, clock=lambda: NOW)
    return asyncio.run(writer.upsert(card, actor=ACTOR))


def test_prospect_attributes_map_card_fields() -> None:
    attributes = prospect_attributes(_contact())

    assert attributes["emails"] == ["pat@example.com"]
    assert attributes["nickname"] == "pat"
    assert attributes["firstName"] == "Pat"
    assert attributes["lastName"] == "L" * 47 + "..."
    assert attributes["tags"] == ["vip"]
    assert attributes["githubUsername"] is None


def test_placeholder_email_is_not_sent() -> None:
    attributes = prospect_attributes(_contact(email="pat@change.me"))

    assert attributes["emails"] == []


def test_unknown_contact_is_created_and_mirror_recorded() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("POST", PROSPECTS_URL, 201, {"data": {"id": 5, "links": {"self": PROSPECT_5}}})

    instructions = _upsert(remote, _contact())

    assert len(instructions) == 1
    assert instructions[0].time == NOW
    assert instructions[0].card.mirrors == (PROSPECT_5,)
    (post,) = remote.calls("POST")
    assert post.json["data"]["type"] == "prospect"
    assert "id" not in post.json["data"]
    assert remote.calls("GET")[0].params == {"filter[emails]": "pat@example.com"}


def test_known_mirror_is_patched_without_instructions() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("PATCH", PROSPECT_5, 200, {"data": {"id": 5}})

    instructions = _upsert(remote, _contact(mirrors=[PROSPECT_5]))

    assert instructions == []
    (patch,) = remote.calls("PATCH")
    assert patch.json["data"]["id"] == 5


def test_prospect_found_by_email_is_linked_and_backfilled() -> None:
    remote = FakeRemoteRequester()
    remote.add(
        "GET",
        PROSPECTS_URL,
        200,
        {
            "data": [
                {
                    "id": 9,
                    "attributes": {"emails": ["pat@example.com"], "title": "CTO"},
                    "links": {"self": f"{PROSPECTS_URL}/9"},
                }
            ]
        },
    )
    remote.add("PATCH", f"{PROSPECTS_URL}/9", 200, {"data": {"id": 9}})

    instructions = _upsert(remote, _contact())

    (instruction,) = instructions
    assert instruction.card.mirrors == (f"{PROSPECTS_URL}/9",)
    assert instruction.card.data["profile"]["title"] == "CTO"
    assert instruction.card.data["profile"]["name"]["first"] == "Pat"


def test_contact_without_email_skips_lookup() -> None:
    remote = FakeRemoteRequester()
    remote.add("POST", PROSPECTS_URL, 201, {"data": {"id": 5, "links": {"self": PROSPECT_5}}})

    _upsert(remote, _contact(email=None))

    assert remote.calls("GET") == []


def test_excluded_email_is_omitted() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("POST", PROSPECTS_URL, 422, _validation_error(EXCLUDED_EMAIL_DETAIL))

    assert _upsert(remote, _contact()) == []


def test_taken_email_is_retried() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("POST", PROSPECTS_URL, 422, _validation_error(EMAIL_TAKEN_DETAIL))
    remote.add("POST", PROSPECTS_URL, 201, {"data": {"id": 5, "links": {"self": PROSPECT_5}}})

    instructions = _upsert(remote, _contact())

    assert len(remote.calls("POST")) == 2
    assert instructions[0].card.mirrors == (PROSPECT_5,)


def test_taken_email_gives_up_after_max_attempts() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("POST", PROSPECTS_URL, 422, _validation_error(EMAIL_TAKEN_DETAIL))

    with pytest.raises(RemoteRequestError):
        _upsert(remote, _contact())

    assert len(remote.calls("POST")) == 3


def test_missing_authorization_is_swallowed() -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, RemoteAuthError("no token"))

    assert _upsert(remote, _contact()) == []


@pytest.mark.parametrize(("method", "code"), [("POST", 500), ("PATCH", 404)])
def test_unexpected_status_is_an_error(method: str, code: int) -> None:
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add(method, PROSPECTS_URL if method == "POST" else PROSPECT_5, code, {})
    card = _contact(mirrors=[PROSPECT_5] if method == "PATCH" else None)

    with pytest.raises(RemoteRequestError) as exc:
        _upsert(remote, card)

    assert exc.value.code == code


def test_mirror_then_translate_resolves_to_same_card(store: InMemoryCardStore) -> None:
    card = store.add(_contact())
    remote = FakeRemoteRequester()
    remote.add("GET", PROSPECTS_URL, 200, {"data": []})
    remote.add("POST", PROSPECTS_URL, 201, {"data": {"id": 5, "links": {"self": PROSPECT_5}}})

    asyncio.run(
        mirror_card(
            OutreachIntegration,
            card,
            actor=ACTOR,
            context=make_context(store, remote=remote),
            store=store,
            token=TOKEN,
        )
    )
    echo = ExternalEvent(
        source="outreach",
        payload={
            "data": {
                "type": "prospect",
                "id": 5,
                "attributes": {"nickname": "pat-renamed", "title": "CEO"},
            },
            "meta": {"eventName": "prospect.updated", "deliveredAt": "2024-03-01T14:00:00Z"},
        },
    )
    asyncio.run(translate_all(OutreachIntegration, [echo], store=store, token=TOKEN))

    assert set(store.cards) == {"contact-pat"}
    stored = store.get("contact-pat")
    assert stored.id == card.id
    assert stored.mirrors == (PROSPECT_5,)
    assert stored.data["profile"]["title"] == "CEO"


def test_mirror_ignores_other_card_types(store: InMemoryCardStore) -> None:
    card = store.add(Card(slug="user-pat", type="user"))

    stored = asyncio.run(
        mirror_card(
            OutreachIntegration,
            card,
            actor=ACTOR,
            context=make_context(store, remote=FakeRemoteRequester()),
            store=store,
            token=TOKEN,
        )
    )

    assert stored == []
