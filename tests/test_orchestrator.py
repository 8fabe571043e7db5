"""Tests for PipelineOrchestrator gather and run phases"""
import pytest
from unittest.mock import MagicMock
from agents.orchestrator import PipelineOrchestrator
from connectors.base import SourceConnector
from models.candidate import RawEventRecord
from models.results import BatchReport
from services.candidate_gateway import CandidateGateway
from tests.fixtures.event_fixtures import FakeDatabase


class ListConnector(SourceConnector):
    def __init__(self, source, records, curated=False):
        super().__init__(session=MagicMock(), sleep=lambda s: None)
        self.source = source
        self.name = source.title()
        self.curated = curated
        self.records = records

    def fetch_records(self):
        return self.records


class BrokenConnector(SourceConnector):
    source = "broken"
    name = "Broken"

    def __init__(self):
        super().__init__(session=MagicMock(), sleep=lambda s: None)

    def fetch_records(self):
        raise RuntimeError("upstream exploded")


def raw(source, source_id, title):
    return RawEventRecord(
        source=source,
        source_id=source_id,
        title=title,
        url=f"https://{source}.example.org/events/{source_id}",
        start="2026-03-14T17:00:00Z",
    )


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def evaluator():
    evaluator = MagicMock()
    evaluator.process_queue.return_value = BatchReport(total=1, promoted=1)
    return evaluator


def make_orchestrator(db, connectors, evaluator=None):
    return PipelineOrchestrator(
        connectors=connectors,
        gateway=CandidateGateway(db),
        evaluator_factory=lambda: evaluator,
    )


def test_failing_connector_does_not_stop_others(db):
    good = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    orchestrator = make_orchestrator(db, [BrokenConnector(), good])

    report = orchestrator.gather()

    assert report.failed_sources == ["broken"]
    broken_report = report.connectors[0]
    assert broken_report.error_message == "upstream exploded"
    assert report.connectors[1].inserted == 1
    assert len(db.candidates) == 1


def test_store_failure_fails_only_that_connector(db):
    key_loads = []

    def first_load_fails(*args):
        key_loads.append(1)
        return len(key_loads) == 1

    db.failures["get_candidate_keys"] = first_load_fails
    first = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    second = ListConnector("meetup", [raw("meetup", "2", "AI Alignment Reading Group")])

    report = make_orchestrator(db, [first, second]).gather()

    assert report.failed_sources == ["luma"]
    assert "get_candidate_keys" in report.connectors[0].error_message
    assert report.connectors[1].inserted == 1
    assert [row["source"] for row in db.candidates.values()] == ["meetup"]


def test_pre_filter_rejections_are_counted_not_inserted(db):
    connector = ListConnector("meetup", [
        raw("meetup", "1", "AI Alignment Reading Group"),
        raw("meetup", "2", "Pottery for Beginners"),
        raw("meetup", "3", "Marketing Formats Workshop"),
    ])
    report = make_orchestrator(db, [connector]).gather()
    source_report = report.connectors[0]

    assert source_report.fetched == 3
    assert source_report.kept == 1
    assert source_report.pre_filtered == 2
    assert source_report.inserted == 1
    assert {row["title"] for row in db.candidates.values()} == {"AI Alignment Reading Group"}


def test_gathered_candidates_are_pending_and_normalized(db):
    connector = ListConnector("luma", [raw("luma", "1", "  AI   Safety Social  ")])
    make_orchestrator(db, [connector]).gather()

    row = next(iter(db.candidates.values()))
    assert row["status"] == "pending"
    assert row["title"] == "AI Safety Social"
    assert row["event_date"] == "2026-03-14"


def test_repeat_gather_inserts_nothing_new(db):
    connector = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    orchestrator = make_orchestrator(db, [connector])

    orchestrator.gather()
    second = orchestrator.gather()

    assert second.inserted == 0
    assert second.connectors[0].skipped == 1
    assert len(db.candidates) == 1


def test_dry_run_writes_nothing_and_skips_evaluation(db, evaluator, capsys):
    connector = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    result = make_orchestrator(db, [connector], evaluator).run(dry_run=True)

    assert db.candidates == {}
    assert result["evaluate"] is None
    assert result["gather"].connectors[0].kept == 1
    evaluator.process_queue.assert_not_called()
    assert "AI Safety Meetup" in capsys.readouterr().out


def test_dry_run_never_builds_a_gateway():
    connector = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    orchestrator = PipelineOrchestrator(connectors=[connector], evaluator_factory=MagicMock())
    orchestrator.gather(dry_run=True)
    assert orchestrator._gateway is None


def test_run_gathers_then_evaluates(db, evaluator):
    connector = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    result = make_orchestrator(db, [connector], evaluator).run(force=True)

    assert result["gather"].inserted == 1
    assert result["evaluate"].promoted == 1
    evaluator.process_queue.assert_called_once_with(force=True)


def test_skip_flags(db, evaluator):
    connector = ListConnector("luma", [raw("luma", "1", "AI Safety Meetup")])
    orchestrator = make_orchestrator(db, [connector], evaluator)

    only_evaluate = orchestrator.run(skip_gather=True)
    assert only_evaluate["gather"] is None
    assert db.candidates == {}

    only_gather = orchestrator.run(skip_evaluate=True)
    assert only_gather["evaluate"] is None
    assert evaluator.process_queue.call_count == 1
