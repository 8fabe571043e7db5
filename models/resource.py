from pydantic import BaseModel
from typing import Optional, List, Dict, Any, Iterable
from datetime import datetime


class Resource(BaseModel):
    """A promoted, publicly listed event (resources table, category='events')"""
    id: str
    title: str
    url: str
    description: Optional[str] = None
    source_org: Optional[str] = None
    category: str = "events"
    location: Optional[str] = None
    min_minutes: Optional[int] = None
    ev_general: Optional[float] = None
    friction: Optional[float] = None
    enabled: bool = True
    status: str = "approved"
    event_date: Optional[str] = None
    event_end_date: Optional[str] = None
    event_time: Optional[str] = None
    event_type: Optional[str] = None
    is_online: Optional[bool] = None
    activity_score: Optional[float] = None
    url_status: Optional[str] = None
    verified_at: Optional[datetime] = None
    source: Optional[str] = None
    source_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExistingEvent(BaseModel):
    """Dedup projection of a Resource or Candidate shown to the evaluator"""
    id: str
    title: str
    date: Optional[str] = None
    location: Optional[str] = None
    organization: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_resource_row(cls, row: Dict[str, Any]) -> "ExistingEvent":
        return cls(
            id=row["id"],
            title=row.get("title") or "",
            date=row.get("event_date"),
            location=row.get("location"),
            organization=row.get("source_org"),
            url=row.get("url"),
        )

    @classmethod
    def from_candidate_row(cls, row: Dict[str, Any]) -> "ExistingEvent":
        return cls(
            id=row["id"],
            title=row.get("title") or "",
            date=row.get("event_date"),
            location=row.get("location"),
            organization=row.get("ai_organization") or row.get("source_org"),
            url=row.get("url"),
        )

    def prompt_line(self) -> str:
        return (
            f'[{self.id}] "{self.title}" | {self.date or "no date"} | '
            f'{self.location or "no location"} | {self.organization or "unknown org"} | {self.url or ""}'
        )


class DedupWindow:
    """Append-only set of existing events the evaluator checks duplicates against.

    Built once per batch and passed explicitly through the batch loop; every
    promotion in the run is appended so later candidates see it.
    """

    def __init__(self, events: Optional[Iterable[ExistingEvent]] = None):
        self._events: List[ExistingEvent] = []
        self._ids = set()
        for event in events or []:
            self.append(event)

    def append(self, event: ExistingEvent) -> bool:
        """Add an event, ignoring ids already present. Returns True if added."""
        if event.id in self._ids:
            return False
        self._ids.add(event.id)
        self._events.append(event)
        return True

    def __contains__(self, event_id: str) -> bool:
        return event_id in self._ids

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def without(self, event_id: str) -> "DedupWindow":
        """Copy of the window minus one event, so a candidate is never compared to itself"""
        if event_id not in self._ids:
            return self
        return DedupWindow(event for event in self._events if event.id != event_id)

    def render(self) -> str:
        if not self._events:
            return "(none)"
        return "\n".join(event.prompt_line() for event in self._events)
