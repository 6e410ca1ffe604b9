"""Lookup of integrations by source name."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from cardsync.adapters.balena_api import BalenaApiIntegration
from cardsync.adapters.flowdock import FlowdockIntegration
from cardsync.adapters.outreach import OutreachIntegration
from cardsync.adapters.typeform import TypeformIntegration
from cardsync.domain.errors import EventValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.domain.integration import Integration

log = getLogger(__name__)

INTEGRATIONS: dict[str, type[Integration[Any]]] = {
    integration.slug: integration
    for integration in (
        BalenaApiIntegration,
        FlowdockIntegration,
        OutreachIntegration,
        TypeformIntegration,
    )
}


def get_integration(source: str) -> type[Integration[Any]] | None:
    return INTEGRATIONS.get(source)


def is_valid_event(
    source: str, token: object, raw_body: bytes, headers: Mapping[str, str]
) -> bool:
    """Boundary check run before a delivery is admitted; unknown sources never pass."""

    integration = get_integration(source)
    if integration is None:
        log.debug("Rejecting event from unknown source %s", source)
        return False
    return integration.is_event_valid(token, raw_body, headers)


def admit_event(source: str, token: object, raw_body: bytes, headers: Mapping[str, str]) -> None:
    """Raise ``EventValidationError`` unless :func:`is_valid_event` accepts the delivery."""

    if not is_valid_event(source, token, raw_body, headers):
        raise EventValidationError(f"{source} event failed signature or decryption checks")
