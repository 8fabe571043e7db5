"""Common plumbing for source connectors.

A connector knows one upstream. It returns RawEventRecords and never writes to
the store; the orchestrator normalizes, pre-filters and inserts through the
Candidate Store Gateway.

Upstreams drift, so each lookup is expressed as an ordered list of strategies
(structured API, embedded page JSON, regex scrape). The first strategy that
returns a non-empty list wins; a failing strategy is logged and the next one runs.
"""
from abc import ABC, abstractmethod
from config import settings
from models.candidate import RawEventRecord
from utils.errors import UpstreamFetchError
from utils.http import build_session, HTML_ACCEPT, JSON_ACCEPT
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import logging
import requests
import time

logger = logging.getLogger(__name__)

Strategy = Tuple[str, Callable[[], Optional[List[RawEventRecord]]]]

# Errors a strategy may raise when the upstream is down or has changed shape
STRATEGY_ERRORS = (
    requests.RequestException,
    UpstreamFetchError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
)


class SourceConnector(ABC):
    source: str = ""
    name: str = ""
    # Curated listings; pre-filter rejections are counted but not logged one by one
    curated: bool = False
    request_delay: float = 0.0

    def __init__(
        self,
        session: requests.Session = None,
        timeout: float = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session or build_session()
        self.timeout = timeout or settings.CONNECTOR_TIMEOUT_SECONDS
        self._sleep = sleep

    @abstractmethod
    def fetch_records(self) -> List[RawEventRecord]:
        """All records from the upstream for this run (may contain repeats)"""

    def gather(self) -> List[RawEventRecord]:
        """Fetch and deduplicate by the upstream's own id"""
        unique: Dict[str, RawEventRecord] = {}
        for record in self.fetch_records():
            if record.source_id and record.source_id not in unique:
                unique[record.source_id] = record
        logger.info(f"{self.name}: {len(unique)} unique events")
        return list(unique.values())

    def run_strategies(self, label: str, strategies: Sequence[Strategy]) -> List[RawEventRecord]:
        """Try each strategy in order and return the first non-empty result"""
        for strategy_name, strategy in strategies:
            try:
                records = strategy()
            except STRATEGY_ERRORS as e:
                logger.warning(f"{self.name} [{label}] {strategy_name} failed: {e}")
                continue
            if records:
                logger.info(f"{self.name} [{label}] {strategy_name}: {len(records)} events")
                return records
            logger.debug(f"{self.name} [{label}] {strategy_name} returned nothing")
        logger.info(f"{self.name} [{label}]: no events from any strategy")
        return []

    def pause(self, seconds: float = None):
        delay = self.request_delay if seconds is None else seconds
        if delay:
            self._sleep(delay)

    # HTTP helpers
    def _check(self, response: requests.Response, url: str) -> requests.Response:
        if response.status_code >= 400:
            raise UpstreamFetchError(f"{url} returned HTTP {response.status_code}")
        return response

    def get_html(self, url: str, **kwargs) -> str:
        headers = {"Accept": HTML_ACCEPT, **kwargs.pop("headers", {})}
        response = self.session.get(url, headers=headers, timeout=self.timeout, **kwargs)
        return self._check(response, url).text

    def get_json(self, url: str, **kwargs) -> Any:
        headers = {"Accept": JSON_ACCEPT, **kwargs.pop("headers", {})}
        response = self.session.get(url, headers=headers, timeout=self.timeout, **kwargs)
        return self._check(response, url).json()

    def post_json(self, url: str, payload: Dict[str, Any], **kwargs) -> Any:
        headers = {"Accept": JSON_ACCEPT, "Content-Type": "application/json", **kwargs.pop("headers", {})}
        response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout, **kwargs)
        return self._check(response, url).json()
