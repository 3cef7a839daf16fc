"""Unit tests for StudentStore student operations."""

import logging

import pytest

from examwatch.student_store import StudentNotFoundError, StudentStatus, StudentStore
from examwatch.student_store.passwords import hash_password, verify_password


@pytest.mark.unit
class TestCreateStudent:
    """Tests for create_student."""

    def test_new_student_defaults(self, store: StudentStore) -> None:
        """New students are offline with zero risk and no elapsed time."""
        student = store.create_student(name="Ada", exam="Algebra", password="secret")

        assert student.student_id
        assert student.name == "Ada"
        assert student.exam == "Algebra"
        assert student.student_status == StudentStatus.OFFLINE
        assert student.time_elapsed == "00:00:00"
        assert student.risk_score == 0
        assert student.created_at is not None

    def test_password_is_hashed(self, store: StudentStore) -> None:
        """The stored value is a hash, never the plain password."""
        student = store.create_student(name="Ada", exam="Algebra", password="secret")

        assert student.password_hash != "secret"
        assert verify_password("secret", student.password_hash)

    def test_name_is_default_password(self, store: StudentStore) -> None:
        """Without a password the name is used."""
        student = store.create_student(name="Grace", exam="Physics")

        assert verify_password("Grace", student.password_hash)

    def test_ids_are_unique(self, store: StudentStore) -> None:
        """Students with the same name get distinct IDs."""
        first = store.create_student(name="Sam", exam="Math")
        second = store.create_student(name="Sam", exam="Math")

        assert first.student_id != second.student_id


@pytest.mark.unit
class TestGetAndListStudents:
    """Tests for get_student and list_students."""

    def test_get_student(self, store: StudentStore) -> None:
        """Returns the stored student."""
        created = store.create_student(name="Ada", exam="Algebra")

        fetched = store.get_student(created.student_id)

        assert fetched.name == "Ada"

    def test_get_missing_student_raises(self, store: StudentStore) -> None:
        """StudentNotFoundError for an unknown ID."""
        with pytest.raises(StudentNotFoundError):
            store.get_student("does-not-exist")

    def test_list_newest_first(self, store: StudentStore) -> None:
        """Most recently registered students come first."""
        store.create_student(name="first", exam="Math")
        store.create_student(name="second", exam="Math")

        names = [s.name for s in store.list_students()]

        assert names == ["second", "first"]

    def test_list_empty(self, store: StudentStore) -> None:
        """Empty store lists nothing."""
        assert store.list_students() == []


@pytest.mark.unit
class TestUpdateStatus:
    """Tests for update_status."""

    def test_active_applied_to_offline_student(self, store: StudentStore) -> None:
        """offline -> active."""
        student = store.create_student(name="Ada", exam="Algebra")

        updated = store.update_status(student.student_id, StudentStatus.ACTIVE)

        assert updated.student_status == StudentStatus.ACTIVE

    def test_active_does_not_clear_flagged(
        self, store: StudentStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A flagged student stays flagged on an active request, and it is logged."""
        caplog.set_level(logging.INFO, logger="examwatch.student_store.store")
        student = store.create_student(name="Ada", exam="Algebra")
        store.update_status(student.student_id, StudentStatus.FLAGGED)

        updated = store.update_status(student.student_id, StudentStatus.ACTIVE)

        assert updated.student_status == StudentStatus.FLAGGED
        assert "Ignoring status change to 'active' for flagged student" in caplog.text

    def test_offline_clears_high_risk(self, store: StudentStore) -> None:
        """offline is always applied."""
        student = store.create_student(name="Ada", exam="Algebra")
        store.update_status(student.student_id, StudentStatus.HIGH_RISK)

        updated = store.update_status(student.student_id, StudentStatus.OFFLINE)

        assert updated.student_status == StudentStatus.OFFLINE

    def test_update_missing_student_raises(self, store: StudentStore) -> None:
        """StudentNotFoundError for an unknown ID."""
        with pytest.raises(StudentNotFoundError):
            store.update_status("missing", StudentStatus.ACTIVE)


@pytest.mark.unit
class TestUpdateRiskScore:
    """Tests for update_risk_score."""

    def test_low_score_keeps_status(self, store: StudentStore) -> None:
        """Scores under 50 are stored without changing status."""
        student = store.create_student(name="Ada", exam="Algebra")
        store.update_status(student.student_id, StudentStatus.ACTIVE)

        updated = store.update_risk_score(student.student_id, 30)

        assert updated.risk_score == 30
        assert updated.student_status == StudentStatus.ACTIVE

    def test_score_50_flags(self, store: StudentStore) -> None:
        """A score of 50 flags the student."""
        student = store.create_student(name="Ada", exam="Algebra")

        updated = store.update_risk_score(student.student_id, 50)

        assert updated.student_status == StudentStatus.FLAGGED

    def test_score_80_is_high_risk(self, store: StudentStore) -> None:
        """A score of 80 marks the student high-risk."""
        student = store.create_student(name="Ada", exam="Algebra")

        updated = store.update_risk_score(student.student_id, 80)

        assert updated.student_status == StudentStatus.HIGH_RISK

    def test_mid_score_does_not_downgrade_high_risk(self, store: StudentStore) -> None:
        """High-risk stays high-risk when the score drops into the flagged band."""
        student = store.create_student(name="Ada", exam="Algebra")
        store.update_risk_score(student.student_id, 90)

        updated = store.update_risk_score(student.student_id, 60)

        assert updated.risk_score == 60
        assert updated.student_status == StudentStatus.HIGH_RISK

    def test_lower_score_is_stored_without_deescalation(self, store: StudentStore) -> None:
        """Dropping below 50 stores the score but keeps the elevated status."""
        student = store.create_student(name="Ada", exam="Algebra")
        store.update_risk_score(student.student_id, 55)

        updated = store.update_risk_score(student.student_id, 10)

        assert updated.risk_score == 10
        assert updated.student_status == StudentStatus.FLAGGED

    def test_flag_then_active_stays_flagged(self, store: StudentStore) -> None:
        """Risk 55 flags the student and a later active request keeps the flag."""
        student = store.create_student(name="Ada", exam="Algebra")

        flagged = store.update_risk_score(student.student_id, 55)
        after_active = store.update_status(student.student_id, StudentStatus.ACTIVE)

        assert flagged.student_status == StudentStatus.FLAGGED
        assert after_active.student_status == StudentStatus.FLAGGED
        assert after_active.risk_score == 55

    def test_update_missing_student_raises(self, store: StudentStore) -> None:
        """StudentNotFoundError for an unknown ID."""
        with pytest.raises(StudentNotFoundError):
            store.update_risk_score("missing", 10)


@pytest.mark.unit
class TestUpdateTimeElapsed:
    """Tests for update_time_elapsed."""

    def test_time_is_stored(self, store: StudentStore) -> None:
        """The reported value is stored verbatim."""
        student = store.create_student(name="Ada", exam="Algebra")

        updated = store.update_time_elapsed(student.student_id, "01:02:03")

        assert updated.time_elapsed == "01:02:03"
        assert store.get_student(student.student_id).time_elapsed == "01:02:03"

    def test_update_missing_student_raises(self, store: StudentStore) -> None:
        """StudentNotFoundError for an unknown ID."""
        with pytest.raises(StudentNotFoundError):
            store.update_time_elapsed("missing", "00:00:01")


@pytest.mark.unit
class TestVerifyCredentials:
    """Tests for verify_credentials."""

    def test_valid_credentials(self, store: StudentStore) -> None:
        """Matching name and password returns the student ID."""
        student = store.create_student(name="Ada", exam="Algebra", password="secret")

        result = store.verify_credentials("Ada", "secret")

        assert result.valid
        assert result.student_id == student.student_id

    def test_wrong_password(self, store: StudentStore) -> None:
        """A wrong password is invalid, with no ID."""
        store.create_student(name="Ada", exam="Algebra", password="secret")

        result = store.verify_credentials("Ada", "nope")

        assert not result.valid
        assert result.student_id is None

    def test_unknown_name(self, store: StudentStore) -> None:
        """An unknown name is invalid."""
        assert not store.verify_credentials("Nobody", "secret").valid

    def test_default_password_is_name(self, store: StudentStore) -> None:
        """Students registered without a password log in with their name."""
        student = store.create_student(name="Grace", exam="Physics")

        assert store.verify_credentials("Grace", "Grace").student_id == student.student_id

    def test_duplicate_names_match_by_password(self, store: StudentStore) -> None:
        """With duplicate names, the student whose password matches wins."""
        first = store.create_student(name="Sam", exam="Math", password="one")
        second = store.create_student(name="Sam", exam="Math", password="two")

        assert store.verify_credentials("Sam", "one").student_id == first.student_id
        assert store.verify_credentials("Sam", "two").student_id == second.student_id

    def test_duplicate_names_same_password_newest_wins(self, store: StudentStore) -> None:
        """With identical credentials the most recent registration wins."""
        store.create_student(name="Sam", exam="Math", password="same")
        newest = store.create_student(name="Sam", exam="Physics", password="same")

        assert store.verify_credentials("Sam", "same").student_id == newest.student_id


@pytest.mark.unit
class TestDeleteAndReset:
    """Tests for delete_student and reset_students."""

    def test_delete_student(self, store: StudentStore) -> None:
        """A deleted student can no longer be fetched."""
        student = store.create_student(name="Ada", exam="Algebra")

        store.delete_student(student.student_id)

        with pytest.raises(StudentNotFoundError):
            store.get_student(student.student_id)

    def test_delete_missing_student_raises(self, store: StudentStore) -> None:
        """StudentNotFoundError for an unknown ID."""
        with pytest.raises(StudentNotFoundError):
            store.delete_student("missing")

    def test_delete_keeps_events(self, store: StudentStore) -> None:
        """Events outlive their student."""
        student = store.create_student(name="Ada", exam="Algebra")
        store.create_event(student.student_id, "focus-loss")

        store.delete_student(student.student_id)

        assert len(store.list_events(student.student_id)) == 1

    def test_reset_students(self, store: StudentStore) -> None:
        """Reset deletes every student and reports how many."""
        store.create_student(name="a", exam="x")
        store.create_student(name="b", exam="x")

        assert store.reset_students() == 2
        assert store.list_students() == []

    def test_reset_empty_store(self, store: StudentStore) -> None:
        """Reset on an empty store deletes nothing."""
        assert store.reset_students() == 0


@pytest.mark.unit
class TestPasswords:
    """Tests for the password helpers."""

    def test_hash_is_salted(self) -> None:
        """Two hashes of the same password differ."""
        assert hash_password("secret") != hash_password("secret")

    def test_verify_rejects_malformed_hash(self) -> None:
        """A value that is not a known hash format never verifies."""
        assert not verify_password("secret", "secret")
