from connectors.base import SourceConnector
from models.candidate import RawEventRecord
from utils.html_extract import extract_assigned_json
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging
import re

logger = logging.getLogger(__name__)

SEARCH_QUERIES = [
    "AI safety",
    "AI alignment",
    "existential risk AI",
    "AI governance",
    "effective altruism AI",
    "AI safety meetup",
    "AI alignment workshop",
]

SEARCH_API_URL = "https://www.eventbrite.com/api/v3/destination/search/"
SEARCH_PAGE_URL = "https://www.eventbrite.com/d/online/{query}/"

EVENT_HREF_PATTERN = re.compile(r'href="(https://www\.eventbrite\.com/e/([^"?]+))[^"]*"', re.IGNORECASE)
EVENT_ID_PATTERN = re.compile(r"-(\d+)/?$")


def title_from_slug(slug: str) -> str:
    """'ai-safety-social-tickets-123456' -> 'Ai Safety Social'"""
    slug = re.sub(r"-tickets-\d+/?$", "", slug).strip("/")
    return " ".join(word.capitalize() for word in slug.split("-") if word)


class EventbriteConnector(SourceConnector):
    """Keyword search on Eventbrite"""

    source = "eventbrite"
    name = "Eventbrite"
    request_delay = 1.0

    def __init__(self, *args, queries: List[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.queries = queries or SEARCH_QUERIES

    def fetch_records(self) -> List[RawEventRecord]:
        records: List[RawEventRecord] = []
        for query in self.queries:
            records.extend(self.run_strategies(query, [
                ("search api", lambda q=query: self._from_api(q)),
                ("search page", lambda q=query: self._from_search_page(q)),
            ]))
            self.pause()
        return records

    def _from_api(self, query: str) -> List[RawEventRecord]:
        data = self.post_json(
            SEARCH_API_URL,
            {"event_search": {"q": query, "dates": "current_future", "page_size": 40}},
            headers={"Referer": "https://www.eventbrite.com/"},
        )
        results = (data.get("events") or {}).get("results") or []
        return [record for record in (self.parse_event(event) for event in results) if record]

    def _from_search_page(self, query: str) -> List[RawEventRecord]:
        html = self.get_html(SEARCH_PAGE_URL.format(query=quote(query)))
        server_data = extract_assigned_json(html, "__SERVER_DATA__") or {}
        results = ((server_data.get("search_data") or {}).get("events") or {}).get("results") or []
        records = [record for record in (self.parse_event(event) for event in results) if record]
        if records:
            return records
        logger.info(f"{self.name} [{query}]: no embedded search data, scraping event links")
        return self.parse_event_links(html)

    def parse_event(self, event: Dict[str, Any]) -> Optional[RawEventRecord]:
        event_id = event.get("id")
        url = event.get("url")
        if not event_id or not url:
            return None

        start = event.get("start_date") or (event.get("start") or {}).get("local")
        if start and event.get("start_time") and "T" not in start:
            start = f"{start}T{event['start_time']}"
        end = event.get("end_date") or (event.get("end") or {}).get("local")
        summary = event.get("summary") or (event.get("description") or {}).get("text")

        is_online = bool(event.get("is_online_event"))
        organizer = event.get("primary_organizer") or {}

        return RawEventRecord(
            source=self.source,
            source_id=str(event_id),
            title=event.get("name") or f"Eventbrite Event {event_id}",
            url=url,
            description=summary,
            source_org=organizer.get("name") or self.name,
            location=self._venue_location(event.get("primary_venue")),
            is_online=is_online,
            start=start,
            end=end,
        )

    @staticmethod
    def _venue_location(venue: Optional[Dict[str, Any]]) -> Optional[str]:
        address = (venue or {}).get("address") or {}
        parts = [address.get("city"), address.get("region"), address.get("country")]
        parts = [part for part in parts if part]
        return ", ".join(parts) if parts else None

    def parse_event_links(self, html: str) -> List[RawEventRecord]:
        """Last resort: event URLs in the page, titles derived from the slug"""
        records: List[RawEventRecord] = []
        seen = set()
        for match in EVENT_HREF_PATTERN.finditer(html):
            url, slug = match.group(1), match.group(2)
            if url in seen:
                continue
            seen.add(url)

            id_match = EVENT_ID_PATTERN.search(url)
            if not id_match:
                continue

            records.append(RawEventRecord(
                source=self.source,
                source_id=id_match.group(1),
                title=title_from_slug(slug),
                url=url,
                source_org=self.name,
            ))
        return records
