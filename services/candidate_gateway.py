from services.database import DatabaseService
from models.candidate import GatheredEvent, CandidateStatus
from models.results import InsertResult
from utils.errors import PersistenceError
from utils.ids import generate_id
from utils.urls import normalize_url
from typing import List, Set, Tuple, Iterable, Dict, Any
import logging

logger = logging.getLogger(__name__)


def candidate_key(source: str, source_id: str) -> str:
    return f"{source}:{source_id}"


class CandidateGateway:
    """Single write path into event_candidates.

    Skips anything whose (source, source_id) or normalized URL is already known
    from either the candidate table or the listed events.
    """

    def __init__(self, db: DatabaseService = None):
        self.db = db or DatabaseService()

    def _load_existing_keys(self) -> Tuple[Set[str], Set[str]]:
        keys: Set[str] = set()
        urls: Set[str] = set()

        rows: List[Dict[str, Any]] = self.db.get_candidate_keys() + self.db.get_event_resource_keys()
        for row in rows:
            if row.get("source") and row.get("source_id"):
                keys.add(candidate_key(row["source"], row["source_id"]))
            if row.get("url"):
                urls.add(normalize_url(row["url"]))

        logger.info(f"Loaded {len(keys)} existing keys and {len(urls)} URLs for dedup")
        return keys, urls

    def insert(self, events: Iterable[GatheredEvent]) -> InsertResult:
        """Insert gathered events as pending candidates, skipping duplicates.

        Args:
            events: Normalized events from a connector, submission or operator

        Returns:
            InsertResult with inserted/skipped/error counts and the new candidate ids
        """
        events = list(events)
        result = InsertResult()
        if not events:
            return result

        keys, urls = self._load_existing_keys()

        for event in events:
            key = candidate_key(event.source, event.source_id)
            url_key = normalize_url(event.url)

            if key in keys or (url_key and url_key in urls):
                result.skipped += 1
                continue

            candidate_id = event.candidate_id or generate_id("cand", event.source)
            row = {
                "id": candidate_id,
                "title": event.title,
                "description": event.description,
                "url": event.url,
                "source": event.source,
                "source_id": event.source_id,
                "source_org": event.source_org,
                "location": event.location,
                "event_date": event.event_date,
                "event_end_date": event.event_end_date,
                "event_time": event.event_time,
                "submitted_by": event.submitted_by,
                "status": CandidateStatus.PENDING.value,
            }

            try:
                self.db.insert_candidate(row)
            except PersistenceError as e:
                result.errors += 1
                logger.error(f"Failed to insert \"{event.title}\": {e}")
                continue

            result.inserted += 1
            result.inserted_ids.append(candidate_id)
            keys.add(key)
            if url_key:
                urls.add(url_key)

        logger.info(
            f"Gateway: {result.inserted} inserted, {result.skipped} skipped, {result.errors} errors"
        )
        return result
