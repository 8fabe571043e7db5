"""Tests for CandidateGateway dedup and partial-failure handling"""
import pytest
from models.candidate import GatheredEvent
from services.candidate_gateway import CandidateGateway
from tests.fixtures.event_fixtures import FakeDatabase


def make_event(source_id, url=None, source="luma", title="AI Safety Meetup") -> GatheredEvent:
    return GatheredEvent(
        title=title,
        url=url or f"https://lu.ma/{source_id}",
        source=source,
        source_id=source_id,
    )


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def gateway(db):
    return CandidateGateway(db)


def test_inserts_new_events_as_pending(gateway, db):
    result = gateway.insert([make_event("a"), make_event("b")])

    assert result.inserted == 2
    assert result.skipped == 0
    assert len(result.inserted_ids) == 2
    for candidate_id in result.inserted_ids:
        row = db.candidate_row(candidate_id)
        assert row["status"] == "pending"
        assert candidate_id.startswith("cand-luma-")


def test_second_run_inserts_nothing(gateway, db):
    events = [make_event("a"), make_event("b")]
    gateway.insert(events)
    result = gateway.insert(events)

    assert result.inserted == 0
    assert result.skipped == 2
    assert len(db.candidates) == 2


def test_skips_known_source_key(gateway, db):
    db.add_candidate(source="luma", source_id="a", url="https://lu.ma/other")
    result = gateway.insert([make_event("a")])
    assert result.skipped == 1


def test_skips_normalized_url_match_across_sources(gateway, db):
    db.add_candidate(source="eventbrite", source_id="eb-1", url="https://www.lu.ma/a/")
    result = gateway.insert([make_event("a", url="http://lu.ma/a?utm_source=x")])
    assert result.skipped == 1
    assert result.inserted == 0


def test_skips_events_already_listed_as_resources(gateway, db):
    db.add_resource(source="luma", source_id="a", url="https://lu.ma/listed")
    db.add_resource(source="meetup", source_id="m-1", url="https://lu.ma/b")
    result = gateway.insert([make_event("a"), make_event("b")])
    assert result.skipped == 2


def test_dedups_within_one_batch(gateway):
    result = gateway.insert([
        make_event("a"),
        make_event("a", url="https://lu.ma/a-copy"),
        make_event("c", url="https://lu.ma/a"),
    ])
    assert result.inserted == 1
    assert result.skipped == 2


def test_write_failure_is_counted_and_batch_continues(gateway, db):
    db.failures["insert_candidate"] = lambda row: row["source_id"] == "bad"
    result = gateway.insert([make_event("ok-1"), make_event("bad"), make_event("ok-2")])

    assert result.inserted == 2
    assert result.errors == 1
    assert {row["source_id"] for row in db.candidates.values()} == {"ok-1", "ok-2"}


def test_preassigned_candidate_id_is_used(gateway, db):
    event = make_event("sub-1", source="submission")
    event.candidate_id = "cand-submission-fixed"
    result = gateway.insert([event])
    assert result.inserted_ids == ["cand-submission-fixed"]
    assert "cand-submission-fixed" in db.candidates


def test_empty_batch_touches_nothing(gateway, db):
    result = gateway.insert([])
    assert result.inserted == 0
    assert db.calls == []
