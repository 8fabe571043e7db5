"""Tests for SubmissionService"""
import pytest
from datetime import datetime
from unittest.mock import patch
from services.submission_service import SubmissionService, SubmissionRequest
from utils.errors import SubmissionError
from tests.fixtures.event_fixtures import FakeDatabase


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def service(db):
    return SubmissionService(db=db)


def make_request(**overrides) -> SubmissionRequest:
    data = {
        "title": "Alignment Reading Group",
        "url": "https://example.org/reading-group",
        "submitted_by": "Sam",
    }
    data.update(overrides)
    return SubmissionRequest(**data)


def test_submission_becomes_pending_candidate(service, db):
    candidate_id = service.submit(make_request(event_date="2026-04-02T18:00:00Z", description="  Weekly  "))

    row = db.candidate_row(candidate_id)
    assert candidate_id.startswith("cand-submission-")
    assert row["status"] == "pending"
    assert row["source"] == "submission"
    assert row["source_id"] == candidate_id
    assert row["submitted_by"] == "Sam"
    assert row["location"] == "Global"
    assert row["event_date"] == "2026-04-02"
    assert row["description"] == "Weekly"


@pytest.mark.parametrize("description", [None, "", "   "])
def test_blank_description_is_stored_as_null(service, db, description):
    candidate_id = service.submit(make_request(description=description))
    assert db.candidate_row(candidate_id)["description"] is None


@pytest.mark.parametrize("overrides", [
    {"title": "   "},
    {"url": ""},
    {"submitted_by": " "},
])
def test_required_fields(service, db, overrides):
    with pytest.raises(SubmissionError, match="required"):
        service.submit(make_request(**overrides))
    assert db.candidates == {}


def test_length_limits(service):
    with pytest.raises(SubmissionError, match="too long"):
        service.submit(make_request(title="x" * 201))
    with pytest.raises(SubmissionError, match="too long"):
        service.submit(make_request(description="x" * 1001))


def test_url_scheme(service):
    with pytest.raises(SubmissionError, match="http"):
        service.submit(make_request(url="javascript:alert(1)"))


def test_rate_limit(service, db):
    with patch("services.submission_service.settings") as settings:
        settings.SUBMISSION_RATE_LIMIT_PER_HOUR = 2
        service.submit(make_request(url="https://example.org/1"))
        service.submit(make_request(url="https://example.org/2"))
        with pytest.raises(SubmissionError, match="Too many"):
            service.submit(make_request(url="https://example.org/3"))

    assert len(db.candidates) == 2


def test_gathered_candidates_do_not_count_toward_rate_limit(service, db):
    for _ in range(5):
        db.add_candidate(source="luma", created_at=datetime.utcnow())
    with patch("services.submission_service.settings") as settings:
        settings.SUBMISSION_RATE_LIMIT_PER_HOUR = 1
        service.submit(make_request())


def test_known_url_is_rejected(service, db):
    db.add_candidate(source="luma", url="https://example.org/reading-group/")
    with pytest.raises(SubmissionError, match="already been submitted"):
        service.submit(make_request())


def test_store_failure(service, db):
    db.failures["insert_candidate"] = lambda row: True
    with pytest.raises(SubmissionError, match="Could not save"):
        service.submit(make_request())
