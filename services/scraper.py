from config import settings
from processors.normalizer import parse_event_date
from utils.html_extract import (
    make_soup,
    extract_meta,
    extract_title,
    find_event_json_ld,
    json_ld_location,
    visible_text,
)
from utils.http import build_session, is_html_response, HTML_ACCEPT
from pydantic import BaseModel
from typing import Optional
import logging
import requests

logger = logging.getLogger(__name__)


class ScrapedPage(BaseModel):
    text: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    final_url: Optional[str] = None
    error: Optional[str] = None


class PageScraper:
    """Fetches an event page and reduces it to plain text plus metadata hints.

    Never raises for network or HTTP problems; the failure is reported in
    ScrapedPage.error and the text is empty.
    """

    def __init__(self, session: requests.Session = None, timeout: float = None, max_chars: int = None):
        self.session = session or build_session()
        self.timeout = timeout or settings.SCRAPE_TIMEOUT_SECONDS
        self.max_chars = max_chars or settings.SCRAPE_MAX_CHARS

    def scrape(self, url: str) -> ScrapedPage:
        if not url or not url.lower().startswith(("http://", "https://")):
            return ScrapedPage(error="not an http(s) url")

        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                allow_redirects=True,
                headers={"Accept": HTML_ACCEPT},
            )
        except requests.RequestException as e:
            logger.warning(f"Scrape failed for {url}: {e}")
            return ScrapedPage(error=str(e))

        if response.status_code >= 400:
            logger.warning(f"Scrape of {url} returned HTTP {response.status_code}")
            return ScrapedPage(error=f"HTTP {response.status_code}", final_url=response.url)

        if not is_html_response(response):
            content_type = response.headers.get("Content-Type", "")
            logger.info(f"Skipping non-HTML response from {url} ({content_type})")
            return ScrapedPage(error=f"unsupported content type {content_type}", final_url=response.url)

        return self.parse(response.text, final_url=response.url)

    def parse(self, html: str, final_url: Optional[str] = None) -> ScrapedPage:
        """Extract text and metadata from an HTML document"""
        soup = make_soup(html)

        # Structured data first: visible_text() strips <script> tags
        event = find_event_json_ld(soup) or {}
        raw_date = event.get("startDate") or extract_meta(soup, "event:start_time")

        title = extract_meta(soup, "og:title") or extract_title(soup)
        description = extract_meta(soup, "og:description") or extract_meta(soup, "description")
        image_url = extract_meta(soup, "og:image")
        location = json_ld_location(event) if event else None

        text = visible_text(soup, self.max_chars)

        return ScrapedPage(
            text=text,
            title=title,
            description=description,
            date=parse_event_date(raw_date) or (str(raw_date) if raw_date else None),
            location=location,
            image_url=image_url,
            final_url=final_url,
        )
