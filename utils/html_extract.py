"""Helpers for pulling structured data out of rendered event pages.

Used by the page scraper (context for the evaluator) and by connectors whose
structured API is unavailable (embedded state blobs and JSON-LD).
"""
from bs4 import BeautifulSoup
from typing import Any, Dict, Iterator, List, Optional
import json
import logging
import re

logger = logging.getLogger(__name__)

NOISE_TAGS = ["script", "style", "noscript", "nav", "header", "footer", "svg", "template"]


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract_meta(soup: BeautifulSoup, key: str) -> Optional[str]:
    """Content of <meta property=key> or <meta name=key>"""
    tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return None


def visible_text(soup: BeautifulSoup, max_chars: Optional[int] = None) -> str:
    """Page text with script/style/nav/header/footer removed and whitespace collapsed.

    Mutates the soup (noise tags are decomposed).
    """
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    text = re.sub(r"\s+", " ", soup.get_text(separator=" ")).strip()
    if max_chars is not None:
        text = text[:max_chars]
    return text


def extract_script_json(soup: BeautifulSoup, script_id: str) -> Optional[Dict[str, Any]]:
    """JSON payload of <script id=script_id>, e.g. Next.js __NEXT_DATA__"""
    tag = soup.find("script", id=script_id)
    if not tag or not tag.string:
        return None
    try:
        return json.loads(tag.string)
    except json.JSONDecodeError as e:
        logger.debug(f"Invalid JSON in <script id={script_id}>: {e}")
        return None


def extract_assigned_json(html: str, marker: str) -> Optional[Dict[str, Any]]:
    """Decode the object literal assigned after `marker`, e.g. `window.__SERVER_DATA__ = {...};`"""
    position = html.find(marker)
    if position == -1:
        return None

    start = html.find("{", position)
    if start == -1:
        return None

    try:
        data, _ = json.JSONDecoder().raw_decode(html, start)
    except json.JSONDecodeError as e:
        logger.debug(f"Invalid JSON after {marker}: {e}")
        return None
    return data if isinstance(data, dict) else None


def iter_json_ld(soup: BeautifulSoup) -> Iterator[Dict[str, Any]]:
    """Every JSON-LD object on the page, flattening top-level arrays and @graph"""
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = tag.string or tag.get_text()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                for node in graph:
                    if isinstance(node, dict):
                        yield node
            else:
                yield item


def is_event_node(node: Dict[str, Any]) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return any(str(t).endswith("Event") for t in node_type)
    return isinstance(node_type, str) and node_type.endswith("Event")


def find_event_json_ld(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    for node in iter_json_ld(soup):
        if is_event_node(node):
            return node
    return None


def event_json_ld_nodes(soup: BeautifulSoup) -> List[Dict[str, Any]]:
    return [node for node in iter_json_ld(soup) if is_event_node(node)]


def json_ld_location(node: Dict[str, Any]) -> Optional[str]:
    """Human-readable location from a schema.org Event node"""
    location = node.get("location")
    if isinstance(location, list):
        location = location[0] if location else None
    if not location:
        return None
    if isinstance(location, str):
        return location.strip() or None
    if not isinstance(location, dict):
        return None

    name = location.get("name")
    address = location.get("address")
    if isinstance(address, dict):
        parts = [address.get("addressLocality"), address.get("addressRegion"), address.get("addressCountry")]
        if isinstance(parts[2], dict):
            parts[2] = parts[2].get("name")
        address = ", ".join(str(p) for p in parts if p)
    if name and address:
        return f"{name}, {address}"
    return name or address or None


def json_ld_is_online(node: Dict[str, Any]) -> bool:
    mode = node.get("eventAttendanceMode") or ""
    return "Online" in str(mode)
