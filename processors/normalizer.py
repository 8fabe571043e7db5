from models.candidate import RawEventRecord, GatheredEvent
from utils.text_cleaner import TextCleaner
from typing import Optional
from datetime import datetime
import logging
import re

logger = logging.getLogger(__name__)

DESCRIPTION_MAX_CHARS = 500
TITLE_MAX_CHARS = 300

ONLINE_LOCATION = "Online"
GLOBAL_LOCATION = "Global"
UNKNOWN_LOCATION = "Location TBD"

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_TIME_PART = re.compile(r"[T ](\d{2}):(\d{2})")


def parse_event_date(value: Optional[str]) -> Optional[str]:
    """Best-effort YYYY-MM-DD from an upstream date or datetime string"""
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass

    match = _DATE_PREFIX.match(text)
    return match.group(0) if match else None


def parse_event_time(value: Optional[str]) -> Optional[str]:
    """HH:MM as written in the upstream datetime string, if it carries a time"""
    if not value:
        return None
    match = _TIME_PART.search(str(value))
    if not match:
        return None
    return f"{match.group(1)}:{match.group(2)}"


def resolve_location(record: RawEventRecord) -> str:
    """Explicit structured field, then Online, then Global, then Location TBD"""
    location = TextCleaner.clean_optional(record.location)
    if location:
        return location
    if record.is_online:
        return ONLINE_LOCATION
    if record.is_global:
        return GLOBAL_LOCATION
    return UNKNOWN_LOCATION


class Normalizer:
    """Turns a connector's RawEventRecord into a GatheredEvent for the gateway"""

    def normalize(self, record: RawEventRecord) -> Optional[GatheredEvent]:
        """Normalize one record. Returns None only when it has no usable title or url."""
        title = TextCleaner.clean_optional(record.title, TITLE_MAX_CHARS)
        url = (record.url or "").strip()
        if not title or not url:
            logger.debug(f"Dropping {record.source}:{record.source_id} without title or url")
            return None

        return GatheredEvent(
            title=title,
            url=url,
            source=record.source,
            source_id=str(record.source_id),
            description=TextCleaner.clean_optional(record.description, DESCRIPTION_MAX_CHARS),
            source_org=TextCleaner.clean_optional(record.source_org),
            location=resolve_location(record),
            event_date=parse_event_date(record.start),
            event_end_date=parse_event_date(record.end),
            event_time=parse_event_time(record.start),
            submitted_by=TextCleaner.clean_optional(record.submitted_by),
        )

    def normalize_all(self, records):
        events = []
        for record in records:
            event = self.normalize(record)
            if event:
                events.append(event)
        return events
