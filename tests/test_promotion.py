"""Tests for PromotionWriter"""
import pytest
from models.candidate import Candidate, CandidateStatus
from models.evaluation import AIEvaluation, EventType
from services.promotion import PromotionWriter
from utils.errors import InvalidStatusTransition
from tests.fixtures.event_fixtures import FakeDatabase


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def writer(db):
    return PromotionWriter(db)


@pytest.fixture
def evaluation():
    return AIEvaluation(
        is_real_event=True,
        is_relevant=True,
        relevance_score=0.85,
        suggested_ev=0.7,
        suggested_friction=0.2,
        event_type=EventType.CONFERENCE,
        clean_title="AI Safety Unconference 2026",
        clean_description="Two days of talks.",
        event_date="2026-03-14",
        location="San Francisco, CA",
        organization="AISU",
    )


def make_candidate(db, **fields) -> Candidate:
    candidate_id = db.add_candidate(
        title="AI Safety Unconference",
        url="https://lu.ma/aisafety2026",
        source="luma",
        source_id="evt-abc",
        **fields,
    )
    return db.get_candidate(candidate_id)


def test_promote_creates_resource_and_links_candidate(writer, db, evaluation):
    candidate = make_candidate(db)
    resource_id = writer.promote(candidate, evaluation)

    assert resource_id.startswith("eval-luma-")
    resource = db.resources[resource_id]
    assert resource["category"] == "events"
    assert resource["source_id"] == "evt-abc"
    assert resource["title"] == "AI Safety Unconference 2026"
    assert resource["source_org"] == "AISU"
    assert resource["event_type"] == "conference"
    assert resource["enabled"] is True

    row = db.candidate_row(candidate.id)
    assert row["status"] == "promoted"
    assert row["promoted_resource_id"] == resource_id


def test_resource_row_fallbacks(writer, db):
    candidate = make_candidate(db, source_org=None, location=None, event_date="2026-05-01")
    evaluation = AIEvaluation(clean_title="", clean_description="")
    row = writer.build_resource_row(candidate, evaluation, "eval-luma-x")

    assert row["title"] == "AI Safety Unconference"
    assert row["source_org"] == "luma"
    assert row["location"] == "Global"
    assert row["event_date"] == "2026-05-01"


def test_resource_insert_failure_leaves_candidate_untouched(writer, db, evaluation):
    candidate = make_candidate(db)
    db.failures["insert_resource"] = lambda row: True

    assert writer.promote(candidate, evaluation) is None
    assert db.candidate_row(candidate.id)["status"] == "pending"
    assert db.resources == {}


def test_candidate_update_failure_removes_resource(writer, db, evaluation):
    candidate = make_candidate(db)
    db.failures["update_candidate"] = lambda candidate_id, updates: updates.get("status") == "promoted"

    assert writer.promote(candidate, evaluation) is None
    assert db.resources == {}
    assert db.candidate_row(candidate.id)["status"] == "pending"
    assert any(call[0] == "delete_resource" for call in db.calls)


def test_rejected_candidate_needs_force(writer, db, evaluation):
    candidate = make_candidate(db, status=CandidateStatus.REJECTED.value)

    with pytest.raises(InvalidStatusTransition):
        writer.promote(candidate, evaluation)
    assert db.resources == {}

    assert writer.promote(candidate, evaluation, force=True) is not None


def test_projection_uses_clean_values(db, evaluation):
    candidate = make_candidate(db)
    projection = PromotionWriter.projection("eval-luma-1", candidate, evaluation)
    assert projection.id == "eval-luma-1"
    assert projection.title == "AI Safety Unconference 2026"
    assert projection.organization == "AISU"
    assert projection.url == "https://lu.ma/aisafety2026"
