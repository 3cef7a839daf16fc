"""Status reconciliation rules applied by student status and risk-score updates.

Both rules only ever move a student towards a higher-risk state: a benign
status update cannot clear an elevated status, and a low risk score never
de-escalates.
"""

from __future__ import annotations

from examwatch.risk.models import ELEVATED_STATUSES, StudentStatus

HIGH_RISK_THRESHOLD = 80
FLAGGED_THRESHOLD = 50


def is_suppressed_downgrade(requested: StudentStatus, current: StudentStatus) -> bool:
    """Whether a requested status would erase an elevated status with "active"."""
    return requested == StudentStatus.ACTIVE and current in ELEVATED_STATUSES


def reconcile_status(requested: StudentStatus, current: StudentStatus) -> StudentStatus:
    """Resolve the status to store for a status update.

    Args:
        requested: Status sent by the client.
        current: Status currently stored for the student.

    Returns:
        The current status when the request is "active" and the student is
        flagged or high-risk, otherwise the requested status.
    """
    if is_suppressed_downgrade(requested, current):
        return current
    return requested


def escalation_for_score(risk_score: int) -> StudentStatus | None:
    """Map a risk score to the status it escalates to, if any."""
    if risk_score >= HIGH_RISK_THRESHOLD:
        return StudentStatus.HIGH_RISK
    if risk_score >= FLAGGED_THRESHOLD:
        return StudentStatus.FLAGGED
    return None


def escalate_status(risk_score: int, current: StudentStatus) -> StudentStatus:
    """Resolve the status to store after a risk-score update.

    Args:
        risk_score: Newly reported risk score.
        current: Status currently stored for the student.

    Returns:
        high-risk for scores >= 80. flagged for scores >= 50, unless the
        student is already high-risk. The current status for lower scores.
    """
    escalation = escalation_for_score(risk_score)
    if escalation is None:
        return current
    if escalation == StudentStatus.FLAGGED and current == StudentStatus.HIGH_RISK:
        return current
    return escalation
