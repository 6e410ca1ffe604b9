"""Identity reconciliation for translated events.

Modules:
- ``contracts``: claims, plans and the identity lifecycle states
- ``ordering``: the ``translateDate`` watermark and its tie-break
- ``plan``: pure planning from a claim plus looked-up candidates
- ``engine``: lookups, actor attribution and instruction emission
"""

from __future__ import annotations

from .contracts import IdentityClaim, IdentityState, ReconciliationPlan
from .engine import EntityReconciler
from .ordering import is_newer, stamp_watermark, watermark_key
from .plan import classify, plan_reconciliation

__all__ = [
    "EntityReconciler",
    "IdentityClaim",
    "IdentityState",
    "ReconciliationPlan",
    "classify",
    "is_newer",
    "plan_reconciliation",
    "stamp_watermark",
    "watermark_key",
]
