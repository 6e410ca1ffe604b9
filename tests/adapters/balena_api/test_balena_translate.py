from __future__ import annotations

import asyncio

from cardsync.adapters.balena_api import PLACEHOLDER_EMAIL, BalenaApiIntegration, user_mirror
from cardsync.config import BalenaApiToken
from cardsync.domain.model import Card, ExternalEvent
from tests.helpers.events import at, translate_all, user_event
from tests.helpers.jose import seal
from tests.support.cards import InMemoryCardStore


def _translate(store: InMemoryCardStore, *events: ExternalEvent, token: object = None) -> list[Card]:
    return asyncio.run(translate_all(BalenaApiIntegration, events, store=store, token=token))


def test_create_builds_community_user(store: InMemoryCardStore) -> None:
    _translate(
        store,
        user_event(124, "JaneDoe", email="jane@balena.io", company="Balena.io", first_name="Jane"),
    )

    card = store.get("user-janedoe")
    assert card.active
    assert card.data["roles"] == ["user-community"]
    assert card.data["email"] == "jane@balena.io"
    assert card.data["profile"] == {"company": "Balena.io", "name": {"first": "Jane"}}
    assert card.mirrors == ("https://api.balena-cloud.com/v5/user(124)",)
    assert store.history[0][2] == "actor-admin"


def test_rename_onto_existing_user_unifies_profiles(store: InMemoryCardStore) -> None:
    store.add(Card(slug="user-johndoe", type="user", data={"email": "foo@bar.com"}))

    _translate(
        store,
        user_event(124, "janedoe", when=at(0), email="jane@balena.io", company="Balena.io"),
        user_event(124, "johndoe", kind="update", when=at(1)),
    )

    target = store.get("user-johndoe")
    donor = store.get("user-janedoe")
    assert target.active
    assert target.data["email"] == "jane@balena.io"
    assert target.data["profile"]["company"] == "Balena.io"
    assert target.mirrors == (user_mirror(124),)
    assert donor.active is False
    assert donor.mirrors == ()
    assert donor.data["roles"] == ["user-community"]
    assert [card.slug for card, _, _ in store.history[-2:]] == ["user-johndoe", "user-janedoe"]


def test_missing_field_never_pulls_from_other_card(store: InMemoryCardStore) -> None:
    store.add(
        Card(
            slug="user-other",
            type="user",
            data={"profile": {"company": "Other Inc"}, "mirrors": [user_mirror(7)]},
        )
    )

    _translate(store, user_event(8, "solo", email="solo@example.com"))

    assert "profile" not in store.get("user-solo").data
    assert store.get("user-other").active


def test_update_without_email_keeps_known_email(store: InMemoryCardStore) -> None:
    _translate(
        store,
        user_event(124, "janedoe", when=at(0), email="jane@balena.io"),
        user_event(124, "janedoe", kind="update", when=at(1), company="Balena.io"),
    )

    card = store.get("user-janedoe")
    assert card.data["email"] == "jane@balena.io"
    assert card.data["profile"]["company"] == "Balena.io"


def test_placeholder_email_is_written_and_replaced(store: InMemoryCardStore) -> None:
    _translate(store, user_event(124, "janedoe", when=at(0)))
    assert store.get("user-janedoe").data["email"] == PLACEHOLDER_EMAIL

    _translate(store, user_event(124, "janedoe", kind="update", when=at(1), email="j@balena.io"))
    _translate(
        store, user_event(124, "janedoe", kind="update", when=at(2), email=PLACEHOLDER_EMAIL)
    )

    assert store.get("user-janedoe").data["email"] == "j@balena.io"


def test_delete_deactivates_existing_user(store: InMemoryCardStore) -> None:
    _translate(
        store,
        user_event(124, "janedoe", when=at(0), email="jane@balena.io"),
        user_event(124, "janedoe", kind="delete", when=at(1)),
    )

    card = store.get("user-janedoe")
    assert card.active is False
    assert card.mirrors == ()
    assert len(store.cards) == 1


def test_delete_of_unknown_user_creates_nothing(store: InMemoryCardStore) -> None:
    stored = _translate(store, user_event(124, "janedoe", kind="delete", when=at(0)))

    assert stored == []
    assert store.cards == {}


def test_replayed_event_is_noop(store: InMemoryCardStore) -> None:
    event = user_event(124, "janedoe", email="jane@balena.io")

    first = _translate(store, event)
    second = _translate(store, event)

    assert len(first) == 1
    assert second == []


def test_unsupported_resource_is_skipped(store: InMemoryCardStore) -> None:
    event = ExternalEvent(
        source="balena-api",
        headers={"Content-Type": "application/json"},
        payload={
            "timestamp": "2024-03-01T12:00:00Z",
            "resource": "device",
            "type": "create",
            "payload": {"id": 1},
        },
    )

    assert _translate(store, event) == []


def test_encrypted_delivery_is_translated(
    store: InMemoryCardStore, balena_token: BalenaApiToken, key_material: tuple[bytes, bytes]
) -> None:
    private_pem, public_pem = key_material
    body = seal(
        {
            "timestamp": "2024-03-01T12:00:00Z",
            "resource": "user",
            "type": "create",
            "payload": {"id": 9, "username": "sealed", "email": "sealed@example.com"},
        },
        signing_key=private_pem,
        recipient_key=public_pem,
    )
    event = ExternalEvent(
        source="balena-api", headers={"Content-Type": "application/jose"}, payload=body
    )

    _translate(store, event, token=balena_token)

    assert store.get("user-sealed").data["email"] == "sealed@example.com"


def test_undecryptable_delivery_is_skipped(
    store: InMemoryCardStore, balena_token: BalenaApiToken
) -> None:
    event = ExternalEvent(
        source="balena-api", headers={"Content-Type": "application/jose"}, payload=b"garbage"
    )

    assert _translate(store, event, token=balena_token) == []


def test_undecodable_json_body_is_skipped(store: InMemoryCardStore) -> None:
    event = ExternalEvent(
        source="balena-api", headers={"Content-Type": "application/json"}, payload=b"\xff\xfe{"
    )

    assert _translate(store, event) == []
    assert store.cards == {}


def test_stale_rename_does_not_rewind_newer_profile(store: InMemoryCardStore) -> None:
    store.add(Card(slug="user-johndoe", type="user", data={"email": "foo@bar.com"}))

    _translate(
        store,
        user_event(124, "janedoe", when=at(0), email="a@example.com"),
        user_event(124, "janedoe", kind="update", when=at(3), email="b@example.com"),
        user_event(124, "johndoe", kind="update", when=at(2), email="c@example.com"),
    )

    donor = store.get("user-janedoe")
    assert donor.active
    assert donor.data["email"] == "b@example.com"
    assert donor.data["translateDate"] == "2024-03-01T12:00:03.000Z"
    assert store.get("user-johndoe").data["email"] == "foo@bar.com"
