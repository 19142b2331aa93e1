# propscrape/core/urls.py
"""
URL helpers shared by the fetcher, the image resolver and job validation.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

_HTTP_SCHEMES = {"http", "https"}


def is_absolute_http_url(value: object) -> bool:
    """True for strings like `https://host/...` (scheme http/https and a host)."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme.lower() in _HTTP_SCHEMES and bool(parsed.netloc)


def resolve_against(candidate: str, base: str) -> str | None:
    """
    Resolve `candidate` relative to an absolute `base`.

    Returns None when the joined result is not an absolute http(s) URL
    (e.g. `javascript:` or `data:` references, or a malformed base).
    """
    try:
        joined = urljoin(base, candidate.strip())
    except ValueError:
        return None
    return joined if is_absolute_http_url(joined) else None
