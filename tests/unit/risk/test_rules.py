"""Unit tests for status reconciliation and risk escalation rules."""

import pytest

from examwatch.risk import (
    FLAGGED_THRESHOLD,
    HIGH_RISK_THRESHOLD,
    StudentStatus,
    escalate_status,
    escalation_for_score,
    is_suppressed_downgrade,
    reconcile_status,
)

ALL_STATUSES = list(StudentStatus)
ELEVATED = [StudentStatus.FLAGGED, StudentStatus.HIGH_RISK]


@pytest.mark.unit
class TestReconcileStatus:
    """Tests for reconcile_status."""

    @pytest.mark.parametrize("current", ELEVATED)
    def test_active_does_not_clear_elevated_status(self, current: StudentStatus) -> None:
        """active on a flagged/high-risk student keeps the stored status."""
        assert reconcile_status(StudentStatus.ACTIVE, current) == current
        assert is_suppressed_downgrade(StudentStatus.ACTIVE, current)

    @pytest.mark.parametrize("current", ALL_STATUSES)
    @pytest.mark.parametrize(
        "requested",
        [StudentStatus.OFFLINE, StudentStatus.FLAGGED, StudentStatus.HIGH_RISK],
    )
    def test_non_active_requests_applied_verbatim(
        self, requested: StudentStatus, current: StudentStatus
    ) -> None:
        """offline, flagged and high-risk always win, including downgrades."""
        assert reconcile_status(requested, current) == requested
        assert not is_suppressed_downgrade(requested, current)

    @pytest.mark.parametrize("current", [StudentStatus.ACTIVE, StudentStatus.OFFLINE])
    def test_active_applied_when_not_elevated(self, current: StudentStatus) -> None:
        """active is applied to an offline or active student."""
        assert reconcile_status(StudentStatus.ACTIVE, current) == StudentStatus.ACTIVE


@pytest.mark.unit
class TestEscalateStatus:
    """Tests for escalate_status."""

    def test_thresholds(self) -> None:
        """Thresholds are 50 and 80."""
        assert FLAGGED_THRESHOLD == 50
        assert HIGH_RISK_THRESHOLD == 80

    @pytest.mark.parametrize("current", ALL_STATUSES)
    @pytest.mark.parametrize("score", [80, 81, 250])
    def test_high_score_is_high_risk(self, score: int, current: StudentStatus) -> None:
        """>= 80 is high-risk whatever the prior status."""
        assert escalate_status(score, current) == StudentStatus.HIGH_RISK

    @pytest.mark.parametrize(
        "current", [StudentStatus.ACTIVE, StudentStatus.OFFLINE, StudentStatus.FLAGGED]
    )
    @pytest.mark.parametrize("score", [50, 65, 79])
    def test_mid_score_is_flagged(self, score: int, current: StudentStatus) -> None:
        """50..79 flags a student that is not high-risk."""
        assert escalate_status(score, current) == StudentStatus.FLAGGED

    @pytest.mark.parametrize("score", [50, 79])
    def test_mid_score_keeps_high_risk(self, score: int) -> None:
        """50..79 does not downgrade high-risk to flagged."""
        assert escalate_status(score, StudentStatus.HIGH_RISK) == StudentStatus.HIGH_RISK

    @pytest.mark.parametrize("current", ALL_STATUSES)
    @pytest.mark.parametrize("score", [0, 1, 49])
    def test_low_score_leaves_status(self, score: int, current: StudentStatus) -> None:
        """< 50 never changes the status; there is no de-escalation."""
        assert escalate_status(score, current) == current

    def test_escalation_for_score(self) -> None:
        """Score-only mapping without the current status."""
        assert escalation_for_score(49) is None
        assert escalation_for_score(50) == StudentStatus.FLAGGED
        assert escalation_for_score(80) == StudentStatus.HIGH_RISK
