"""User-directory (balena API) integration."""

from __future__ import annotations

from .integration import (
    BALENA_API_BASE_URL,
    PLACEHOLDER_EMAIL,
    BalenaApiIntegration,
    build_user_claim,
    user_mirror,
)
from .schema import ResourceEvent, UserPayload
from .verify import decode_event, is_event_valid

__all__ = [
    "BALENA_API_BASE_URL",
    "PLACEHOLDER_EMAIL",
    "BalenaApiIntegration",
    "ResourceEvent",
    "UserPayload",
    "build_user_claim",
    "decode_event",
    "is_event_valid",
    "user_mirror",
]
