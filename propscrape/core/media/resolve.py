# propscrape/core/media/resolve.py
"""
Candidate image resolution.

Turns the extractor's raw `image_urls` into absolute http(s) URLs, keeping
discovery order. Candidates that cannot be made absolute are dropped (and
logged); they never fail the record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from propscrape.core.urls import is_absolute_http_url, resolve_against

logger = logging.getLogger(__name__)


def pick_base(page_link: str | None, origin_url: str | None) -> str | None:
    """Prefer the record's own page link, else the job origin; both must be absolute."""
    if is_absolute_http_url(page_link):
        return str(page_link).strip()
    if is_absolute_http_url(origin_url):
        return str(origin_url).strip()
    return None


def resolve_candidates(
    candidates: Iterable[object] | None,
    *,
    page_link: str | None,
    origin_url: str | None,
) -> list[str]:
    """
    Resolve candidate references in order.

    - non-strings and blank strings are skipped
    - absolute http(s) URLs are kept as-is
    - anything else is joined onto `pick_base(...)`; without a base, or when
      the joined URL is not absolute http(s), the candidate is dropped
    """
    if not candidates:
        return []

    base = pick_base(page_link, origin_url)
    out: list[str] = []
    for raw in candidates:
        if not isinstance(raw, str) or not raw.strip():
            continue
        cand = raw.strip()
        if is_absolute_http_url(cand):
            out.append(cand)
            continue
        if base is None:
            logger.warning("Dropping image candidate %r: no absolute base URL to resolve against", cand)
            continue
        resolved = resolve_against(cand, base)
        if resolved is None:
            logger.warning("Dropping image candidate %r: not resolvable against %s", cand, base)
            continue
        out.append(resolved)
    return out
