"""Tests for the submission service against an in-memory store."""

import pytest
from sqlalchemy.exc import OperationalError

from interest_service.shared.interest import service
from interest_service.shared.interest.broadcast import SubmissionBroadcast
from interest_service.shared.interest.database import InterestSubmission
from interest_service.shared.interest.exceptions import DuplicateError, StoreError, ValidationError


class BrokenSession:
    """Session stand-in whose every query fails like a dropped connection."""

    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def rollback(self):
        pass


def test_submit_normalizes_and_stores(db):
    submission = service.submit_interest(db, "Al", "A@B.com", True)

    assert submission.id
    assert submission.email == "a@b.com"
    assert submission.name == "Al"
    assert submission.subscribed_to_updates is True
    assert submission.created_at is not None
    assert db.query(InterestSubmission).count() == 1


def test_submit_escapes_name(db):
    submission = service.submit_interest(db, "<script>x</script>", "x@y.io")
    assert submission.name == "&lt;script&gt;x&lt;/script&gt;"


def test_max_length_name_keeps_whole_entities(db):
    submission = service.submit_interest(db, "a" * 254 + "&", "x@y.com")

    assert submission.name == "a" * 254 + "&amp;"
    db.expire_all()
    stored = db.query(InterestSubmission).filter_by(email="x@y.com").one()
    assert stored.name.endswith("&amp;")
    assert len(stored.name) == 259


def test_quoted_name_expands_without_truncation(db):
    submission = service.submit_interest(db, "'" * 255, "q@y.com")
    assert submission.name == "&#x27;" * 255


def test_submit_invalid_raises_with_field_errors(db):
    with pytest.raises(ValidationError) as exc_info:
        service.submit_interest(db, "A", "not-an-email")

    assert set(exc_info.value.errors) == {"name", "email"}
    assert exc_info.value.status_code == 400
    assert db.query(InterestSubmission).count() == 0


def test_duplicate_returns_existing_id(db):
    first = service.submit_interest(db, "Al", "A@B.com", True)

    with pytest.raises(DuplicateError) as exc_info:
        service.submit_interest(db, "Someone Else", "  a@b.COM ")

    assert exc_info.value.existing_id == first.id
    assert exc_info.value.submitted_at == first.created_at
    assert db.query(InterestSubmission).count() == 1


def test_concurrent_duplicate_detected_by_unique_constraint(db, monkeypatch):
    first = service.submit_interest(db, "Al", "a@b.com")

    real_find = service.find_by_email
    calls = []

    def stale_then_real(session, email):
        # First lookup misses, as if the other insert had not committed yet
        calls.append(email)
        if len(calls) == 1:
            return None
        return real_find(session, email)

    monkeypatch.setattr(service, "find_by_email", stale_then_real)

    with pytest.raises(DuplicateError) as exc_info:
        service.submit_interest(db, "Al", "a@b.com")

    assert exc_info.value.existing_id == first.id
    assert len(calls) == 2
    assert service.count_submissions(db) == 1


def test_lookup_failure_is_store_error():
    with pytest.raises(StoreError) as exc_info:
        service.submit_interest(BrokenSession(), "Al", "a@b.com")
    assert exc_info.value.message == "Failed to check existing submission"
    assert "connection refused" not in exc_info.value.message


def test_count_empty_then_n(db):
    assert service.count_submissions(db) == 0
    for i in range(3):
        service.submit_interest(db, f"User {i}", f"user{i}@example.com")
    assert service.count_submissions(db) == 3


def test_count_failure_is_store_error():
    with pytest.raises(StoreError) as exc_info:
        service.count_submissions(BrokenSession())
    assert exc_info.value.message == "Failed to get submission count"


def test_list_submissions_pages(db):
    for i in range(3):
        service.submit_interest(db, f"User {i}", f"user{i}@example.com")

    page = service.list_submissions(db, limit=2, offset=0)
    rest = service.list_submissions(db, limit=2, offset=2)

    assert len(page) == 2
    assert len(rest) == 1
    assert {s.email for s in page + rest} == {f"user{i}@example.com" for i in range(3)}


def test_submit_publishes_to_broadcast(db):
    broadcast = SubmissionBroadcast()
    received = []
    broadcast.subscribe(received.append)

    submission = service.submit_interest(db, "Al", "a@b.com", broadcast=broadcast)

    assert received == [submission]


def test_failed_submit_does_not_publish(db):
    broadcast = SubmissionBroadcast()
    received = []
    broadcast.subscribe(received.append)

    with pytest.raises(ValidationError):
        service.submit_interest(db, "", "", broadcast=broadcast)

    assert received == []
