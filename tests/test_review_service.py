"""Tests for ReviewService operator actions"""
import pytest
from services.review_service import ReviewService, CandidateNotFound
from utils.errors import InvalidStatusTransition, PersistenceError
from tests.fixtures.event_fixtures import FakeDatabase


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def service(db):
    return ReviewService(db=db)


def evaluated_candidate(db, **fields) -> str:
    data = {
        "status": "evaluated",
        "title": "AI Governance Salon",
        "url": "https://lu.ma/gov-salon",
        "source": "luma",
        "source_id": "evt-gov",
        "ai_is_real_event": True,
        "ai_is_relevant": True,
        "ai_relevance_score": 0.45,
        "ai_event_type": "meetup",
        "ai_summary": "Monthly governance discussion.",
        "ai_organization": "EA London",
    }
    data.update(fields)
    return db.add_candidate(**data)


def promoted_candidate(service, db) -> tuple:
    candidate_id = evaluated_candidate(db)
    resource_id = service.promote(candidate_id)["resource_id"]
    return candidate_id, resource_id


class TestPromote:
    def test_promote_uses_stored_evaluation(self, service, db):
        candidate_id = evaluated_candidate(db)
        result = service.promote(candidate_id)

        assert result["success"] is True
        resource = db.resources[result["resource_id"]]
        assert resource["title"] == "AI Governance Salon"
        assert resource["description"] == "Monthly governance discussion."
        assert resource["source_org"] == "EA London"
        assert resource["event_type"] == "meetup"
        assert db.candidate_row(candidate_id)["status"] == "promoted"

    def test_rejected_candidate_can_be_promoted(self, service, db):
        candidate_id = evaluated_candidate(db, status="rejected")
        assert service.promote(candidate_id)["success"] is True

    def test_already_promoted(self, service, db):
        candidate_id, _ = promoted_candidate(service, db)
        with pytest.raises(InvalidStatusTransition):
            service.promote(candidate_id)
        assert len(db.resources) == 1

    def test_write_failure_reported(self, service, db):
        candidate_id = evaluated_candidate(db)
        db.failures["insert_resource"] = lambda row: True
        result = service.promote(candidate_id)
        assert result["success"] is False
        assert db.candidate_row(candidate_id)["status"] == "evaluated"

    def test_unknown_candidate(self, service):
        with pytest.raises(CandidateNotFound):
            service.promote("cand-missing")


class TestReject:
    def test_reject_evaluated(self, service, db):
        candidate_id = evaluated_candidate(db)
        service.reject(candidate_id)
        assert db.candidate_row(candidate_id)["status"] == "rejected"

    def test_promoted_must_be_unpromoted_first(self, service, db):
        candidate_id, _ = promoted_candidate(service, db)
        with pytest.raises(InvalidStatusTransition):
            service.reject(candidate_id)


class TestUnpromote:
    def test_disables_resource_and_returns_to_review(self, service, db):
        candidate_id, resource_id = promoted_candidate(service, db)
        result = service.unpromote(candidate_id)

        assert result["disabled_resource_id"] == resource_id
        assert db.resources[resource_id]["enabled"] is False
        assert db.resources[resource_id]["status"] == "rejected"
        row = db.candidate_row(candidate_id)
        assert row["status"] == "evaluated"
        assert row["promoted_resource_id"] is None

    def test_candidate_update_failure_restores_resource(self, service, db):
        candidate_id, resource_id = promoted_candidate(service, db)
        db.failures["update_candidate"] = lambda cid, updates: True

        with pytest.raises(PersistenceError):
            service.unpromote(candidate_id)

        assert db.resources[resource_id]["enabled"] is True
        assert db.resources[resource_id]["status"] == "approved"
        assert db.candidate_row(candidate_id)["status"] == "promoted"

    def test_pending_cannot_be_unpromoted(self, service, db):
        candidate_id = db.add_candidate()
        with pytest.raises(InvalidStatusTransition):
            service.unpromote(candidate_id)

    @pytest.mark.parametrize("status", ["evaluated", "rejected"])
    def test_only_promoted_can_be_unpromoted(self, service, db, status):
        candidate_id = evaluated_candidate(db, status=status)
        with pytest.raises(InvalidStatusTransition):
            service.unpromote(candidate_id)
        assert db.candidate_row(candidate_id)["status"] == status
        assert db.calls == []


class TestRequeue:
    def test_requeue_rejected(self, service, db):
        candidate_id = evaluated_candidate(db, status="rejected")
        service.requeue(candidate_id)
        assert db.candidate_row(candidate_id)["status"] == "pending"

    def test_requeue_promoted_takes_listing_down(self, service, db):
        candidate_id, resource_id = promoted_candidate(service, db)
        service.requeue(candidate_id)

        assert db.candidate_row(candidate_id)["status"] == "pending"
        assert db.resources[resource_id]["enabled"] is False

    def test_requeue_pending_is_a_no_op(self, service, db):
        candidate_id = db.add_candidate()
        assert service.requeue(candidate_id)["success"] is True
        assert db.calls == []


def test_list_candidates_filters_by_status(service, db):
    evaluated_candidate(db)
    db.add_candidate()
    listed = service.list_candidates(status="evaluated")
    assert [c.title for c in listed] == ["AI Governance Salon"]
