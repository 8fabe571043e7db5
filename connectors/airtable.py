from connectors.base import SourceConnector
from models.candidate import RawEventRecord
from utils.errors import UpstreamFetchError
from typing import Any, Dict, List, Optional
import logging
import re

logger = logging.getLogger(__name__)

SHARE_URL = "https://airtable.com/appF8XfZUGXtfi40E/shrLgl03tMK4q6cyc/tblx0L8qJEaLBxJFS"
APP_ID = "appF8XfZUGXtfi40E"

# The share page embeds fetch("/v0.3/view/...") with a signed access policy
SIGNED_URL_PATTERN = re.compile(r'fetch\("(\\u002Fv0\.3\\u002Fview\\u002F[^"]+)"')

COLUMNS = {
    "name": "fldqx8bjKAUc3IfVO",
    "link": "fldNxSWanmMW0l49y",
    "start": "fldRdvrU4kw7liuXt",
    "end": "fld9viXAgNWmLmcwO",
    "description": "fldKQrII3tnj8K2xT",
    "location": "fldK8ohHmfjK1N7dY",
}

LOCATION_CHOICES = {
    "sel70PflnnxyZ12he": "Online",
    "selxRotifMOFbiqwc": "Africa",
    "sel5lwhFu586Tz4ch": "Asia",
    "selRVHbABMZpD21RQ": "Australia/New Zealand",
    "selR8CTHb9hYPenwl": "Canada",
    "selRK2KcSwmkACVlF": "Europe",
    "selgNCBxhKKNrGddJ": "Latin America",
    "selOYK0SjgKJQPLLt": "UK",
    "selXb5cm7gJuS2LSO": "USA",
}


class AirtableConnector(SourceConnector):
    """AISafety.com's curated events table, read through its public shared view"""

    source = "aisafety"
    name = "AISafety.com"
    curated = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.location_choices = dict(LOCATION_CHOICES)

    def fetch_records(self) -> List[RawEventRecord]:
        return self.run_strategies("shared view", [("signed view api", self._from_shared_view)])

    def _from_shared_view(self) -> List[RawEventRecord]:
        api_url = self.signed_api_url(self.get_html(SHARE_URL))
        table = self._fetch_table(api_url)
        self.refresh_choices(table.get("columns") or [])
        rows = table.get("rows") or []
        logger.info(f"{self.name}: {len(rows)} rows in Airtable")
        return [record for record in (self.parse_row(row) for row in rows) if record]

    @staticmethod
    def signed_api_url(html: str) -> str:
        match = SIGNED_URL_PATTERN.search(html)
        if not match:
            raise UpstreamFetchError("Could not find signed API URL in Airtable page")
        return "https://airtable.com" + match.group(1).replace("\\u002F", "/")

    def _fetch_table(self, api_url: str) -> Dict[str, Any]:
        data = self.get_json(api_url, headers={
            "x-airtable-application-id": APP_ID,
            "x-requested-with": "XMLHttpRequest",
            "x-time-zone": "America/New_York",
            "x-user-locale": "en",
        })
        table = (data.get("data") or {}).get("table") or {}
        if not table.get("rows"):
            raise UpstreamFetchError("No table data in Airtable response")
        return table

    def refresh_choices(self, columns: List[Dict[str, Any]]):
        """Learn multi-select option names the static maps don't know yet"""
        for column in columns:
            if column.get("id") != COLUMNS["location"] or column.get("type") != "multiSelect":
                continue
            choices = (column.get("typeOptions") or {}).get("choices") or {}
            for choice_id, choice in choices.items():
                if choice.get("name") and choice_id not in self.location_choices:
                    self.location_choices[choice_id] = choice["name"]

    @staticmethod
    def _resolve(ids: Any, choices: Dict[str, str]) -> List[str]:
        if not isinstance(ids, list):
            return []
        return [choices.get(choice_id, choice_id) for choice_id in ids if choice_id]

    def parse_row(self, row: Dict[str, Any]) -> Optional[RawEventRecord]:
        cells = row.get("cellValuesByColumnId") or {}
        title = cells.get(COLUMNS["name"])
        link = cells.get(COLUMNS["link"]) or {}
        url = link.get("url") if isinstance(link, dict) else None
        if not title or not url:
            return None

        locations = self._resolve(cells.get(COLUMNS["location"]), self.location_choices)

        return RawEventRecord(
            source=self.source,
            source_id=row["id"],
            title=title,
            url=url,
            description=cells.get(COLUMNS["description"]),
            source_org=self.name,
            location=", ".join(locations) if locations else None,
            start=cells.get(COLUMNS["start"]),
            end=cells.get(COLUMNS["end"]),
        )
