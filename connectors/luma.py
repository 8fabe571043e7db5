from connectors.base import SourceConnector, Strategy
from models.candidate import RawEventRecord
from utils.html_extract import (
    make_soup,
    extract_script_json,
    event_json_ld_nodes,
    json_ld_is_online,
)
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging
import re

logger = logging.getLogger(__name__)

KNOWN_CALENDARS = [
    "aisafety",
    "alignmentjam",
    "eag",
    "ea-london",
    "ea-nyc",
    "ea-sf",
    "pause-ai",
    "apartresearch",
    "mats-program",
]

SEARCH_QUERIES = [
    "AI safety",
    "AI alignment",
    "existential risk",
    "effective altruism",
    "AI governance",
]

API_BASES = ["https://api.lu.ma", "https://api.luma.com"]

API_ID_PATTERN = re.compile(r'"api_id"\s*:\s*"(evt-[A-Za-z0-9]+)"')
SLUG_HREF_PATTERN = re.compile(r'href=["\'](?:https?://(?:lu\.ma|luma\.com))?/([\w-]{6,})["\']', re.IGNORECASE)
EVENT_URL_PREFIX = re.compile(r"^https?://(lu\.ma|luma\.com)/")
NON_EVENT_SLUGS = {
    "discover", "create", "login", "signup", "signin", "about", "pricing", "terms",
    "privacy", "explore", "search", "settings", "notifications", "calendar", "home",
}
MAX_SLUG_LENGTH = 30


def _geo_location(geo: Optional[Dict[str, Any]]) -> Optional[str]:
    if not geo:
        return None
    parts = [geo.get("city"), geo.get("region") or geo.get("city_state"), geo.get("country")]
    parts = [part for part in parts if part]
    return ", ".join(parts) if parts else None


class LumaConnector(SourceConnector):
    """Known organizer calendars plus keyword discovery on Luma"""

    source = "luma"
    name = "Luma"
    request_delay = 0.5
    search_delay = 1.0

    def __init__(self, *args, calendars: List[str] = None, queries: List[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.calendars = calendars if calendars is not None else KNOWN_CALENDARS
        self.queries = queries if queries is not None else SEARCH_QUERIES

    def fetch_records(self) -> List[RawEventRecord]:
        records: List[RawEventRecord] = []

        for calendar in self.calendars:
            records.extend(self.run_strategies(f"calendar {calendar}", self._calendar_strategies(calendar)))
            self.pause()

        for query in self.queries:
            records.extend(self.run_strategies(f"search {query}", self._search_strategies(query)))
            self.pause(self.search_delay)

        return records

    def _calendar_strategies(self, calendar: str) -> List[Strategy]:
        strategies: List[Strategy] = [
            (f"calendar api {base}", lambda url=f"{base}/calendar/get-items?calendar_api_id={calendar}&period=future":
                self._from_api(url, ("entries",)))
            for base in API_BASES
        ]
        strategies += [
            (f"calendar page {domain}", lambda url=f"https://{domain}/{calendar}": self._from_page(url))
            for domain in ("lu.ma", "luma.com")
        ]
        return strategies

    def _search_strategies(self, query: str) -> List[Strategy]:
        quoted = quote(query)
        strategies: List[Strategy] = [
            (f"paginated search {base}", lambda url=f"{base}/discover/get-paginated-events?query={quoted}":
                self._from_api(url, ("entries",)))
            for base in API_BASES
        ]
        strategies += [
            (f"discover search {base}", lambda url=f"{base}/discover/search?query={quoted}&period=future":
                self._from_api(url, ("entries", "events")))
            for base in API_BASES
        ]
        strategies += [
            (f"discover page {domain}", lambda url=f"https://{domain}/discover?q={quoted}": self._from_page(url))
            for domain in ("luma.com", "lu.ma")
        ]
        return strategies

    def _from_api(self, url: str, keys) -> List[RawEventRecord]:
        data = self.get_json(url)
        entries = []
        for key in keys:
            entries = data.get(key) or []
            if entries:
                break
        return [record for record in (self.parse_entry(entry) for entry in entries) if record]

    def _from_page(self, url: str) -> List[RawEventRecord]:
        return self.parse_html(self.get_html(url, allow_redirects=True))

    def parse_entry(self, entry: Dict[str, Any]) -> Optional[RawEventRecord]:
        """Calendar/discover entries wrap the event as entry['event'] or are the event itself"""
        event = entry.get("event") or entry
        slug = event.get("url") or event.get("api_id")
        api_id = event.get("api_id") or slug
        if not api_id:
            return None

        geo = event.get("geo_address_info")
        return RawEventRecord(
            source=self.source,
            source_id=api_id,
            title=event.get("name") or f"Luma Event {api_id}",
            url=f"https://lu.ma/{slug}",
            description=event.get("description"),
            source_org=self.name,
            location=_geo_location(geo),
            is_online=event.get("location_type") == "online" or not geo,
            start=event.get("start_at") or entry.get("start_at"),
            end=event.get("end_at"),
        )

    def parse_html(self, html: str) -> List[RawEventRecord]:
        """Embedded Next.js state, then JSON-LD, then bare ids and slugs"""
        soup = make_soup(html)

        records = self._from_next_data(soup)
        if records:
            return records

        records = self._from_json_ld(soup)
        if records:
            return records

        return self._from_links(html)

    def _from_next_data(self, soup) -> List[RawEventRecord]:
        data = extract_script_json(soup, "__NEXT_DATA__") or {}
        props = (data.get("props") or {}).get("pageProps") or {}
        arrays = [
            (props.get("initialData") or {}).get("entries"),
            props.get("entries"),
            props.get("events"),
            props.get("futureEvents"),
        ]
        records = []
        for array in arrays:
            for entry in array or []:
                if isinstance(entry, dict):
                    record = self.parse_entry(entry)
                    if record:
                        records.append(record)
        return records

    def _from_json_ld(self, soup) -> List[RawEventRecord]:
        records = []
        for node in event_json_ld_nodes(soup):
            url = node.get("url") or ""
            slug = EVENT_URL_PREFIX.sub("", url)
            if not slug:
                continue
            address = (node.get("location") or {}).get("address") if isinstance(node.get("location"), dict) else None
            location = None
            if isinstance(address, dict):
                parts = [address.get("addressLocality"), address.get("addressRegion"), address.get("addressCountry")]
                location = ", ".join(str(part) for part in parts if part and isinstance(part, str)) or None
            records.append(RawEventRecord(
                source=self.source,
                source_id=slug,
                title=node.get("name") or f"Luma Event {slug}",
                url=url if url.startswith("http") else f"https://lu.ma/{slug}",
                description=node.get("description"),
                source_org=self.name,
                location=location,
                is_online=json_ld_is_online(node),
                start=node.get("startDate"),
                end=node.get("endDate"),
            ))
        return records

    def _from_links(self, html: str) -> List[RawEventRecord]:
        records = []
        seen = set()

        for match in API_ID_PATTERN.finditer(html):
            api_id = match.group(1)
            if api_id in seen:
                continue
            seen.add(api_id)
            records.append(RawEventRecord(
                source=self.source,
                source_id=api_id,
                title=f"Luma Event {api_id}",
                url=f"https://lu.ma/event/{api_id}",
                source_org=self.name,
            ))

        for match in SLUG_HREF_PATTERN.finditer(html):
            slug = match.group(1)
            if slug.lower() in NON_EVENT_SLUGS or slug in seen or len(slug) > MAX_SLUG_LENGTH:
                continue
            seen.add(slug)
            records.append(RawEventRecord(
                source=self.source,
                source_id=slug,
                title=f"Luma Event {slug}",
                url=f"https://lu.ma/{slug}",
                source_org=self.name,
            ))

        return records
