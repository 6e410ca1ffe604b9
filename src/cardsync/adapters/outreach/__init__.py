"""CRM (Outreach) integration."""

from __future__ import annotations

from .integration import SEQUENCES_URL, OutreachIntegration, is_event_valid
from .prospects import (
    OUTREACH_API_URL,
    PROSPECTS_URL,
    ProspectMirrorWriter,
    prospect_attributes,
)

__all__ = [
    "OUTREACH_API_URL",
    "PROSPECTS_URL",
    "SEQUENCES_URL",
    "OutreachIntegration",
    "ProspectMirrorWriter",
    "is_event_valid",
    "prospect_attributes",
]
