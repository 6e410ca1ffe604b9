"""Chat (Flowdock) integration."""

from __future__ import annotations

from .integration import FLOWDOCK_API_URL, FlowdockIntegration, is_event_valid, thread_url
from .schema import FlowdockUser, FlowPayload, MessageEvent

__all__ = [
    "FLOWDOCK_API_URL",
    "FlowPayload",
    "FlowdockIntegration",
    "FlowdockUser",
    "MessageEvent",
    "is_event_valid",
    "thread_url",
]
