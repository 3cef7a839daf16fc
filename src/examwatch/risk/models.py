"""Status values shared by the store, the rules and the API."""

from enum import StrEnum


class StudentStatus(StrEnum):
    """Coarse student session state."""

    ACTIVE = "active"
    OFFLINE = "offline"
    FLAGGED = "flagged"
    HIGH_RISK = "high-risk"


# Statuses a plain "active" update may not overwrite
ELEVATED_STATUSES = frozenset({StudentStatus.FLAGGED, StudentStatus.HIGH_RISK})
