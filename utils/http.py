import requests

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/json"


def build_session(user_agent: str = BROWSER_USER_AGENT) -> requests.Session:
    """requests Session with a browser-like User-Agent for upstream sites"""
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept-Language": "en-US,en;q=0.9",
    })
    return session


def is_html_response(response: requests.Response) -> bool:
    content_type = response.headers.get("Content-Type", "").lower()
    # Missing content type: treat as HTML and let the parser decide
    if not content_type:
        return True
    return content_type.startswith("text/") or "html" in content_type or "xml" in content_type
