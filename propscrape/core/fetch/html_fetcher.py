# propscrape/core/fetch/html_fetcher.py
"""
Listing page fetcher: one GET under browser-like headers, fail fast.

No retries here; the bulk loop decides what to do with a failed URL.
"""

from __future__ import annotations

import logging

import httpx

from propscrape.core.errors import FetchError, fetch_error_guard
from propscrape.schemas.models import ScrapePolicy

logger = logging.getLogger(__name__)


def page_headers(policy: ScrapePolicy) -> dict[str, str]:
    return {
        "User-Agent": policy.page_user_agent,
        "Accept": policy.page_accept,
        "Accept-Language": policy.page_accept_language,
        "Connection": "keep-alive",
    }


async def fetch_html(url: str, *, client: httpx.AsyncClient, policy: ScrapePolicy | None = None) -> str:
    """
    Fetch `url` and return the decoded body on a 2xx status.

    Raises FetchError on non-2xx responses and on any transport failure
    (timeouts, DNS, connection resets).
    """
    pol = policy or ScrapePolicy()

    with fetch_error_guard(url):
        resp = await client.get(
            url,
            headers=page_headers(pol),
            timeout=pol.timeout_s,
            follow_redirects=True,
        )
        if not resp.is_success:
            logger.error("Page fetch failed for %s: HTTP %s", url, resp.status_code)
            raise FetchError(url, resp.reason_phrase or "non-2xx response", status=resp.status_code)
        text = resp.text

    logger.info("Fetched %s (%d chars)", url, len(text))
    return text
