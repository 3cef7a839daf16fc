"""Risk - status reconciliation and risk-score escalation rules."""

from examwatch.risk.models import ELEVATED_STATUSES, StudentStatus
from examwatch.risk.rules import (
    FLAGGED_THRESHOLD,
    HIGH_RISK_THRESHOLD,
    escalate_status,
    escalation_for_score,
    is_suppressed_downgrade,
    reconcile_status,
)

__all__ = [
    "ELEVATED_STATUSES",
    "FLAGGED_THRESHOLD",
    "HIGH_RISK_THRESHOLD",
    "StudentStatus",
    "escalate_status",
    "escalation_for_score",
    "is_suppressed_downgrade",
    "reconcile_status",
]
