"""
LinkChecker: periodic health checks for listed event URLs

HEAD first, falling back to GET when a server refuses HEAD (403/405).
Redirects are followed; landing on a different host counts as a redirect.
Dead links keep their Resource row but drop its activity_score so they sink
in the listing.
"""

from services.database import DatabaseService
from models.resource import Resource
from utils.http import build_session, HTML_ACCEPT
from config import settings
from pydantic import BaseModel
from typing import Dict, List, Optional
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from urllib.parse import urlparse
import logging
import requests

logger = logging.getLogger(__name__)

REACHABLE = "reachable"
REDIRECT = "redirect"
DEAD = "dead"

DEAD_ACTIVITY_SCORE = 0.1
LINK_CHECK_USER_AGENT = "aisafety-events link-checker/1.0"


class LinkCheckResult(BaseModel):
    resource_id: str
    url: str
    status: str
    http_code: int = 0
    final_url: Optional[str] = None
    note: Optional[str] = None


def _host(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


class LinkChecker:
    def __init__(
        self,
        db: DatabaseService = None,
        session: requests.Session = None,
        timeout: float = None,
        concurrency: int = None,
    ):
        self._db = db
        self.session = session or build_session(LINK_CHECK_USER_AGENT)
        self.timeout = timeout or settings.LINK_CHECK_TIMEOUT_SECONDS
        self.concurrency = concurrency or settings.LINK_CHECK_CONCURRENCY

    @property
    def db(self) -> DatabaseService:
        if self._db is None:
            self._db = DatabaseService()
        return self._db

    def check_url(self, url: str, resource_id: str = "") -> LinkCheckResult:
        """Classify a single URL as reachable, redirect or dead"""
        headers = {"Accept": HTML_ACCEPT}
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True, headers=headers)

            if response.status_code in (403, 405):
                response = self.session.get(url, timeout=self.timeout, allow_redirects=True, headers=headers)
                if response.ok:
                    return LinkCheckResult(resource_id=resource_id, url=url, status=REACHABLE,
                                           http_code=response.status_code)
                return LinkCheckResult(resource_id=resource_id, url=url, status=DEAD,
                                       http_code=response.status_code,
                                       note=f"GET returned {response.status_code}")

            if not response.ok:
                return LinkCheckResult(resource_id=resource_id, url=url, status=DEAD,
                                       http_code=response.status_code,
                                       note=f"HTTP {response.status_code}")

            final_url = response.url or url
            if _host(final_url) != _host(url):
                return LinkCheckResult(resource_id=resource_id, url=url, status=REDIRECT,
                                       http_code=response.status_code, final_url=final_url,
                                       note=f"Redirected to {_host(final_url)}")

            return LinkCheckResult(resource_id=resource_id, url=url, status=REACHABLE,
                                   http_code=response.status_code)

        except requests.Timeout:
            return LinkCheckResult(resource_id=resource_id, url=url, status=DEAD, note="Timeout")
        except requests.RequestException as e:
            return LinkCheckResult(resource_id=resource_id, url=url, status=DEAD, note=str(e)[:80])

    def check_all(self, resources: List[Resource]) -> List[LinkCheckResult]:
        results = []
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = {
                executor.submit(self.check_url, resource.url, resource.id): resource
                for resource in resources
            }
            for future in as_completed(futures):
                results.append(future.result())
        return results

    def _write_result(self, result: LinkCheckResult, verified_at: str):
        updates = {"url_status": result.status, "verified_at": verified_at}
        if result.status == DEAD:
            updates["activity_score"] = DEAD_ACTIVITY_SCORE
        self.db.update_resource(result.resource_id, updates)

    def check_event_resources(self, dry_run: bool = False) -> Dict[str, int]:
        """
        Check every enabled event Resource and write url_status / verified_at

        Args:
            dry_run: Check and log, write nothing

        Returns:
            Counts per status plus 'checked'
        """
        resources = self.db.get_enabled_event_resources()
        logger.info(f"🔗 Checking {len(resources)} event links ({self.concurrency} at a time)")

        results = self.check_all(resources)
        verified_at = datetime.now(timezone.utc).isoformat()
        counts = {"checked": len(results), REACHABLE: 0, REDIRECT: 0, DEAD: 0}

        for result in results:
            counts[result.status] += 1
            if result.status != REACHABLE:
                logger.info(f"   {result.status}: {result.url} ({result.note})")
            if not dry_run:
                self._write_result(result, verified_at)

        logger.info(
            f"Link check complete: {counts[REACHABLE]} reachable, "
            f"{counts[REDIRECT]} redirected, {counts[DEAD]} dead"
        )
        return counts
