from connectors.base import SourceConnector
from models.candidate import RawEventRecord
from utils.errors import UpstreamFetchError
from utils.html_extract import make_soup, extract_script_json, event_json_ld_nodes, json_ld_is_online
from typing import Any, Dict, List, Optional
from urllib.parse import quote
import logging
import re

logger = logging.getLogger(__name__)

SEARCH_QUERIES = [
    "AI safety",
    "AI alignment",
    "existential risk",
    "effective altruism",
    "AI governance",
    "AI ethics meetup",
    "machine learning safety",
]

GQL_URL = "https://www.meetup.com/gql"
FIND_PAGE_URL = "https://www.meetup.com/find/?keywords={query}&source=EVENTS"

KEYWORD_SEARCH_QUERY = """
query($query: String!, $first: Int) {
  keywordSearch(input: { query: $query, first: $first, source: EVENTS }) {
    edges {
      node {
        id
        result {
          ... on Event {
            id
            title
            description
            eventUrl
            dateTime
            endTime
            venue {
              name
              city
              state
              country
            }
            isOnline
            group {
              name
              urlname
            }
          }
        }
      }
    }
  }
}
"""

EVENT_ID_PATTERN = re.compile(r"events/(\d+)")
EVENT_HREF_PATTERN = re.compile(r'href="(https://www\.meetup\.com/([^/"]+)/events/(\d+)[^"]*)"', re.IGNORECASE)


def _venue_location(venue: Optional[Dict[str, Any]]) -> Optional[str]:
    if not venue:
        return None
    parts = [venue.get("city"), venue.get("state"), venue.get("country")]
    parts = [str(part) for part in parts if part]
    return ", ".join(parts) if parts else None


class MeetupConnector(SourceConnector):
    """Keyword search on Meetup.com"""

    source = "meetup"
    name = "Meetup"
    request_delay = 1.5

    def __init__(self, *args, queries: List[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.queries = queries or SEARCH_QUERIES

    def fetch_records(self) -> List[RawEventRecord]:
        records: List[RawEventRecord] = []
        for query in self.queries:
            records.extend(self.run_strategies(query, [
                ("graphql", lambda q=query: self._from_graphql(q)),
                ("find page", lambda q=query: self._from_find_page(q)),
            ]))
            self.pause()
        return records

    def _from_graphql(self, query: str) -> List[RawEventRecord]:
        data = self.post_json(GQL_URL, {"query": KEYWORD_SEARCH_QUERY, "variables": {"query": query, "first": 30}})
        if data.get("errors"):
            raise UpstreamFetchError(f"Meetup GQL error: {data['errors'][0].get('message')}")

        edges = ((data.get("data") or {}).get("keywordSearch") or {}).get("edges") or []
        records = []
        for edge in edges:
            event = (edge.get("node") or {}).get("result") or {}
            if event.get("title") and event.get("eventUrl"):
                record = self.parse_event(event)
                if record:
                    records.append(record)
        return records

    def _from_find_page(self, query: str) -> List[RawEventRecord]:
        return self.parse_html(self.get_html(FIND_PAGE_URL.format(query=quote(query))))

    def parse_event(self, event: Dict[str, Any]) -> Optional[RawEventRecord]:
        url = event.get("eventUrl") or ""
        if url and not url.startswith("http"):
            url = f"https://www.meetup.com{url}"
        id_match = EVENT_ID_PATTERN.search(url)
        event_id = str(event.get("id") or (id_match.group(1) if id_match else ""))
        if not event_id or not url:
            return None

        venue = event.get("venue")
        is_online = event.get("isOnline")
        if is_online is None:
            is_online = event.get("eventType") == "ONLINE" or not venue

        return RawEventRecord(
            source=self.source,
            source_id=event_id,
            title=event.get("title") or f"Meetup Event {event_id}",
            url=url,
            description=event.get("description"),
            source_org=(event.get("group") or {}).get("name") or self.name,
            location=_venue_location(venue),
            is_online=bool(is_online),
            start=event.get("dateTime"),
            end=event.get("endTime"),
        )

    def parse_html(self, html: str) -> List[RawEventRecord]:
        """Apollo cache in __NEXT_DATA__, then JSON-LD, then event links"""
        soup = make_soup(html)

        records = self._from_apollo_state(soup)
        if records:
            return records

        records = self._from_json_ld(soup)
        if records:
            return records

        return self._from_links(html)

    def _from_apollo_state(self, soup) -> List[RawEventRecord]:
        data = extract_script_json(soup, "__NEXT_DATA__") or {}
        apollo = ((data.get("props") or {}).get("pageProps") or {}).get("__APOLLO_STATE__") or {}
        records = []
        for key, value in apollo.items():
            if not key.startswith("Event:") or not isinstance(value, dict):
                continue
            if not value.get("title") or not value.get("eventUrl"):
                continue
            url = value["eventUrl"]
            if not url.startswith("http"):
                url = f"https://www.meetup.com{url}"
            id_match = EVENT_ID_PATTERN.search(url)
            if not id_match:
                continue
            # Apollo refs for venue/group are not resolved; only inline objects are used
            record = self.parse_event({**value, "id": id_match.group(1), "eventUrl": url, "isOnline": None})
            if record:
                records.append(record)
        return records

    def _from_json_ld(self, soup) -> List[RawEventRecord]:
        records = []
        for node in event_json_ld_nodes(soup):
            url = node.get("url") or ""
            id_match = EVENT_ID_PATTERN.search(url)
            if not id_match:
                continue
            location = node.get("location") if isinstance(node.get("location"), dict) else {}
            address = location.get("address") if isinstance(location.get("address"), dict) else {}
            organizer = node.get("organizer") if isinstance(node.get("organizer"), dict) else {}
            records.append(RawEventRecord(
                source=self.source,
                source_id=id_match.group(1),
                title=node.get("name") or f"Meetup Event {id_match.group(1)}",
                url=url,
                description=node.get("description"),
                source_org=organizer.get("name") or self.name,
                location=_venue_location({
                    "city": address.get("addressLocality"),
                    "state": address.get("addressRegion"),
                    "country": address.get("addressCountry") if isinstance(address.get("addressCountry"), str) else None,
                }),
                is_online=json_ld_is_online(node),
                start=node.get("startDate"),
                end=node.get("endDate"),
            ))
        return records

    def _from_links(self, html: str) -> List[RawEventRecord]:
        records = []
        seen = set()
        for match in EVENT_HREF_PATTERN.finditer(html):
            url = match.group(1).split("?")[0]
            group_slug, event_id = match.group(2), match.group(3)
            if event_id in seen:
                continue
            seen.add(event_id)
            group_name = " ".join(word.capitalize() for word in group_slug.split("-") if word)
            records.append(RawEventRecord(
                source=self.source,
                source_id=event_id,
                title=f"Meetup Event {event_id}",
                url=url,
                source_org=group_name or self.name,
            ))
        return records
