from supabase import create_client, Client
from config import settings
from typing import List, Optional, Dict, Any, Callable, Iterable
from models.candidate import Candidate, CandidateStatus
from models.resource import Resource
from utils.errors import PersistenceError
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

CANDIDATES_TABLE = "event_candidates"
RESOURCES_TABLE = "resources"
EVENTS_CATEGORY = "events"
PAGE_SIZE = 1000


class DatabaseService:
    """Supabase access for event_candidates and resources.

    Every query goes through _execute, so any client or network failure
    reaches callers as PersistenceError.
    """

    def __init__(self, client: Client = None):
        self.client: Client = client or create_client(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
        )

    def _execute(self, description: str, action: Callable[[], Any]):
        try:
            return action()
        except Exception as e:
            logger.error(f"Failed to {description}: {e}")
            raise PersistenceError(f"Failed to {description}: {e}") from e

    def _fetch_all(self, description: str, build_query: Callable[[], Any]) -> List[Dict[str, Any]]:
        """Page through a query with .range() until a short page comes back"""
        rows: List[Dict[str, Any]] = []
        start = 0
        while True:
            response = self._execute(
                description,
                lambda: build_query().range(start, start + PAGE_SIZE - 1).execute(),
            )
            page = response.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE

    # Candidates
    def get_candidate(self, candidate_id: str) -> Optional[Candidate]:
        """Get candidate by ID"""
        response = self._execute(
            f"fetch candidate {candidate_id}",
            lambda: self.client.table(CANDIDATES_TABLE)
            .select("*")
            .eq("id", candidate_id)
            .limit(1)
            .execute(),
        )
        return Candidate(**response.data[0]) if response.data else None

    def get_candidates_by_status(self, statuses: Iterable[CandidateStatus]) -> List[Candidate]:
        """Candidates in any of the given statuses, oldest first"""
        values = [CandidateStatus(s).value for s in statuses]
        rows = self._fetch_all(
            f"fetch {', '.join(values)} candidates",
            lambda: self.client.table(CANDIDATES_TABLE)
            .select("*")
            .in_("status", values)
            .order("created_at", desc=False),
        )
        return [Candidate(**row) for row in rows]

    def list_candidates(self, status: Optional[CandidateStatus] = None, limit: int = 100) -> List[Candidate]:
        """Candidates for review, newest first"""
        query = self.client.table(CANDIDATES_TABLE).select("*")
        if status:
            query = query.eq("status", CandidateStatus(status).value)
        response = self._execute(
            "list candidates",
            lambda: query.order("created_at", desc=True).limit(limit).execute(),
        )
        return [Candidate(**row) for row in response.data]

    def find_candidate_by_url(self, url_fragment: str) -> Optional[Candidate]:
        """First candidate whose url contains the fragment (case-insensitive)"""
        response = self._execute(
            f"find candidate by url {url_fragment}",
            lambda: self.client.table(CANDIDATES_TABLE)
            .select("*")
            .ilike("url", f"%{url_fragment}%")
            .limit(1)
            .execute(),
        )
        return Candidate(**response.data[0]) if response.data else None

    def get_candidate_keys(self) -> List[Dict[str, Any]]:
        """source, source_id and url of every candidate"""
        return self._fetch_all(
            "load candidate keys",
            lambda: self.client.table(CANDIDATES_TABLE).select("source, source_id, url"),
        )

    def get_dedup_candidates(self, limit: int) -> List[Dict[str, Any]]:
        """Projection of evaluated and promoted candidates for the dedup window"""
        response = self._execute(
            "load dedup candidates",
            lambda: self.client.table(CANDIDATES_TABLE)
            .select("id, title, event_date, location, ai_organization, source_org, url")
            .in_("status", [CandidateStatus.PROMOTED.value, CandidateStatus.EVALUATED.value])
            .order("created_at", desc=True)
            .limit(limit)
            .execute(),
        )
        return response.data or []

    def count_candidates_since(self, source: str, since: datetime) -> int:
        response = self._execute(
            f"count {source} candidates",
            lambda: self.client.table(CANDIDATES_TABLE)
            .select("id", count="exact")
            .eq("source", source)
            .gte("created_at", since.isoformat())
            .execute(),
        )
        if response.count is not None:
            return response.count
        return len(response.data or [])

    def insert_candidate(self, candidate_data: dict) -> str:
        """Insert a candidate row, return its ID"""
        response = self._execute(
            f"insert candidate {candidate_data.get('id')}",
            lambda: self.client.table(CANDIDATES_TABLE).insert(candidate_data).execute(),
        )
        return response.data[0]["id"] if response.data else candidate_data["id"]

    def update_candidate(self, candidate_id: str, updates: dict):
        """Update candidate fields"""
        updates = {**updates, "updated_at": datetime.utcnow().isoformat()}
        self._execute(
            f"update candidate {candidate_id}",
            lambda: self.client.table(CANDIDATES_TABLE).update(updates).eq("id", candidate_id).execute(),
        )

    # Resources
    def get_event_resource_keys(self) -> List[Dict[str, Any]]:
        """source, source_id and url of every event resource"""
        return self._fetch_all(
            "load event resource keys",
            lambda: self.client.table(RESOURCES_TABLE)
            .select("source, source_id, url")
            .eq("category", EVENTS_CATEGORY),
        )

    def get_dedup_resources(self, limit: int) -> List[Dict[str, Any]]:
        """Projection of listed events for the dedup window"""
        response = self._execute(
            "load dedup resources",
            lambda: self.client.table(RESOURCES_TABLE)
            .select("id, title, event_date, location, source_org, url")
            .eq("category", EVENTS_CATEGORY)
            .order("created_at", desc=True)
            .limit(limit)
            .execute(),
        )
        return response.data or []

    def get_enabled_event_resources(self) -> List[Resource]:
        rows = self._fetch_all(
            "load enabled event resources",
            lambda: self.client.table(RESOURCES_TABLE)
            .select("*")
            .eq("category", EVENTS_CATEGORY)
            .eq("enabled", True),
        )
        return [Resource(**row) for row in rows]

    def insert_resource(self, resource_data: dict) -> str:
        """Insert a resource row, return its ID"""
        response = self._execute(
            f"insert resource {resource_data.get('id')}",
            lambda: self.client.table(RESOURCES_TABLE).insert(resource_data).execute(),
        )
        return response.data[0]["id"] if response.data else resource_data["id"]

    def update_resource(self, resource_id: str, updates: dict):
        self._execute(
            f"update resource {resource_id}",
            lambda: self.client.table(RESOURCES_TABLE).update(updates).eq("id", resource_id).execute(),
        )

    def delete_resource(self, resource_id: str):
        self._execute(
            f"delete resource {resource_id}",
            lambda: self.client.table(RESOURCES_TABLE).delete().eq("id", resource_id).execute(),
        )
