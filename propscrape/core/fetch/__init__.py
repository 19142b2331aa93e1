from propscrape.core.errors import FetchError, classify_fetch_error, fetch_error_guard

from .html_fetcher import fetch_html, page_headers

__all__ = [
    "FetchError",
    "classify_fetch_error",
    "fetch_error_guard",
    "fetch_html",
    "page_headers",
]
