"""Tests for the FastAPI endpoints"""
import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient
import main
from config import settings
from models.results import BatchReport, EvaluationOutcome
from services.review_service import ReviewService
from services.submission_service import SubmissionService
from utils.errors import ConfigurationError
from tests.fixtures.event_fixtures import FakeDatabase

ADMIN = {"X-API-Key": settings.ADMIN_API_KEY}
CRON = {"X-API-Key": settings.CRON_API_KEY}


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def evaluator():
    evaluator = MagicMock()
    evaluator.process_queue.return_value = BatchReport(total=2, promoted=1, rejected=1)
    evaluator.evaluate_candidate.return_value = EvaluationOutcome.EVALUATED
    return evaluator


@pytest.fixture
def orchestrator():
    orchestrator = MagicMock()
    orchestrator.run.return_value = {"gather": None, "evaluate": BatchReport(), "elapsed_seconds": 0.1}
    return orchestrator


@pytest.fixture
def client(db, evaluator, orchestrator):
    services = {
        "evaluator": evaluator,
        "orchestrator": orchestrator,
        "review": ReviewService(db=db),
        "submission": SubmissionService(db=db),
    }
    with patch.dict(main._services, services, clear=True):
        # No context manager: startup hooks (scheduler) stay off
        yield TestClient(main.app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "missing_credentials" in response.json()


class TestPipelineTrigger:
    def test_requires_cron_key(self, client, orchestrator):
        response = client.post("/pipeline/run", headers={"X-API-Key": "wrong"})
        assert response.status_code == 401
        orchestrator.run.assert_not_called()

    def test_accepted_and_run_in_background(self, client, orchestrator):
        with patch("config.Settings.require_credentials"):
            response = client.post("/pipeline/run?skip_gather=true", headers=CRON)

        assert response.status_code == 200
        assert response.json() == {"status": "accepted"}
        orchestrator.run.assert_called_once_with(skip_gather=True, skip_evaluate=False, force=False)

    def test_missing_credentials(self, client, orchestrator):
        with patch("config.Settings.require_credentials", side_effect=ConfigurationError("Missing required settings: SUPABASE_URL")):
            response = client.post("/pipeline/run", headers=CRON)

        assert response.status_code == 503
        assert "SUPABASE_URL" in response.json()["detail"]
        orchestrator.run.assert_not_called()


class TestEvaluateEndpoints:
    def test_queue(self, client, evaluator):
        response = client.post("/evaluate/queue?force=true", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["report"]["promoted"] == 1
        evaluator.process_queue.assert_called_once_with(force=True)

    def test_queue_requires_admin_key(self, client):
        assert client.post("/evaluate/queue", headers={"X-API-Key": "wrong"}).status_code == 401
        assert client.post("/evaluate/queue").status_code == 401

    def test_single_candidate(self, client, evaluator):
        response = client.post("/evaluate/candidates/cand-1", headers=ADMIN)
        assert response.json() == {"candidate_id": "cand-1", "outcome": "evaluated"}


class TestSubmissions:
    def test_created(self, client, db):
        response = client.post("/submissions", json={
            "title": "Alignment Reading Group",
            "url": "https://example.org/rg",
            "submitted_by": "Sam",
        })
        assert response.status_code == 201
        candidate_id = response.json()["candidate_id"]
        assert db.candidate_row(candidate_id)["status"] == "pending"

    def test_validation_error(self, client):
        response = client.post("/submissions", json={"title": "x", "url": "ftp://x", "submitted_by": "Sam"})
        assert response.status_code == 400
        assert "http" in response.json()["detail"]

    def test_missing_field(self, client):
        assert client.post("/submissions", json={"title": "x"}).status_code == 422


class TestReviewEndpoints:
    def test_list_by_status(self, client, db):
        db.add_candidate(title="Borderline Salon", status="evaluated")
        db.add_candidate(title="Fresh Meetup")

        response = client.get("/candidates?status=evaluated", headers=ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["candidates"][0]["title"] == "Borderline Salon"

    def test_reject(self, client, db):
        candidate_id = db.add_candidate(status="evaluated")
        response = client.post(f"/candidates/{candidate_id}/reject", headers=ADMIN)
        assert response.status_code == 200
        assert db.candidate_row(candidate_id)["status"] == "rejected"

    def test_unknown_candidate(self, client):
        assert client.post("/candidates/cand-missing/reject", headers=ADMIN).status_code == 404

    def test_unknown_action(self, client, db):
        candidate_id = db.add_candidate()
        assert client.post(f"/candidates/{candidate_id}/delete", headers=ADMIN).status_code == 404

    def test_invalid_transition_is_conflict(self, client, db):
        candidate_id = db.add_candidate()
        assert client.post(f"/candidates/{candidate_id}/unpromote", headers=ADMIN).status_code == 409
