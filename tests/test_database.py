"""Tests for DatabaseService error wrapping and paging against a mocked supabase client"""
import pytest
from unittest.mock import MagicMock
from models.candidate import CandidateStatus
from services.database import PAGE_SIZE, DatabaseService
from utils.errors import PersistenceError

BUILDER_METHODS = ("select", "eq", "in_", "gte", "ilike", "order", "limit", "range", "insert", "update", "delete")


def make_client(execute_side_effect=None, data=None):
    """Client whose query builder chains back to one query object"""
    query = MagicMock()
    for name in BUILDER_METHODS:
        getattr(query, name).return_value = query
    if execute_side_effect is not None:
        query.execute.side_effect = execute_side_effect
    else:
        query.execute.return_value = MagicMock(data=data or [], count=None)
    client = MagicMock()
    client.table.return_value = query
    return client, query


@pytest.mark.parametrize("call", [
    lambda db: db.get_candidate("cand-1"),
    lambda db: db.get_candidates_by_status([CandidateStatus.PENDING]),
    lambda db: db.list_candidates(),
    lambda db: db.find_candidate_by_url("lu.ma/abc"),
    lambda db: db.get_candidate_keys(),
    lambda db: db.get_dedup_resources(50),
    lambda db: db.get_enabled_event_resources(),
])
def test_read_failures_become_persistence_errors(call):
    client, _ = make_client(execute_side_effect=ConnectionError("connection refused"))

    with pytest.raises(PersistenceError) as exc_info:
        call(DatabaseService(client=client))

    assert "connection refused" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_write_failure_becomes_persistence_error():
    client, _ = make_client(execute_side_effect=RuntimeError("duplicate key"))

    with pytest.raises(PersistenceError, match="update candidate cand-1"):
        DatabaseService(client=client).update_candidate("cand-1", {"status": "rejected"})


def test_get_candidate_returns_none_when_missing():
    client, _ = make_client(data=[])
    assert DatabaseService(client=client).get_candidate("cand-missing") is None


def test_keys_are_paged_until_short_page():
    full_page = [{"source": "luma", "source_id": str(i), "url": None} for i in range(PAGE_SIZE)]
    last_page = [{"source": "luma", "source_id": "last", "url": None}]
    client, query = make_client(execute_side_effect=[MagicMock(data=full_page), MagicMock(data=last_page)])

    rows = DatabaseService(client=client).get_candidate_keys()

    assert len(rows) == PAGE_SIZE + 1
    query.range.assert_any_call(0, PAGE_SIZE - 1)
    query.range.assert_any_call(PAGE_SIZE, 2 * PAGE_SIZE - 1)
