from urllib.parse import urlparse


def normalize_url(raw_url: str) -> str:
    """Dedup key for a URL: host without "www.", path without trailing slashes,
    no scheme, query or fragment, all lower-cased.

    Two URLs are duplicates iff their normalized forms are equal.
    """
    if not raw_url:
        return ""

    text = raw_url.strip()
    parsed = urlparse(text)

    if not parsed.netloc:
        return text.lower()

    host = parsed.hostname or parsed.netloc
    if host.startswith("www."):
        host = host[4:]

    path = parsed.path.rstrip("/")

    return f"{host}{path}".lower()
