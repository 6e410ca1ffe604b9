"""Form (Typeform) integration."""

from __future__ import annotations

from .integration import TypeformIntegration, is_event_valid, response_url
from .schema import FormResponse, FormWebhook

__all__ = [
    "FormResponse",
    "FormWebhook",
    "TypeformIntegration",
    "is_event_valid",
    "response_url",
]
