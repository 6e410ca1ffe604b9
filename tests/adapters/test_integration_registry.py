from __future__ import annotations

import pytest

from cardsync.adapters.registry import (
    INTEGRATIONS,
    admit_event,
    get_integration,
    is_valid_event,
)
from cardsync.adapters.signatures import compute_signature, verify_signature_header
from cardsync.config import FlowdockToken
from cardsync.domain.errors import EventValidationError
from cardsync.domain.integration import Integration


def test_every_source_is_registered() -> None:
    assert set(INTEGRATIONS) == {"balena-api", "flowdock", "outreach", "typeform"}
    assert all(issubclass(cls, Integration) for cls in INTEGRATIONS.values())


def test_unknown_source_is_never_valid() -> None:
    assert get_integration("github") is None
    assert not is_valid_event("github", None, b"{}", {})


def test_registry_delegates_to_adapter() -> None:
    body = b'{"event":"message"}'
    headers = {"X-Flowdock-Signature": "sha256=" + compute_signature("k", body)}

    assert is_valid_event("flowdock", FlowdockToken(signature="k"), body, headers)
    assert not is_valid_event("flowdock", FlowdockToken(signature="other"), body, headers)


def test_admit_event_raises_for_rejected_delivery() -> None:
    body = b'{"event":"message"}'
    headers = {"X-Flowdock-Signature": "sha256=" + compute_signature("k", body)}

    admit_event("flowdock", FlowdockToken(signature="k"), body, headers)
    with pytest.raises(EventValidationError):
        admit_event("flowdock", FlowdockToken(signature="other"), body, headers)


@pytest.mark.parametrize("secret", [None, ""])
def test_unconfigured_secret_never_validates(secret: str | None) -> None:
    body = b"{}"
    headers = {"sig": compute_signature("x", body)}

    assert not verify_signature_header(secret, body, headers, "sig")
