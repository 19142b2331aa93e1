# propscrape/core/errors.py
"""
Typed errors for the scrape-enrich-persist pipeline.

Propagation
-----------
- ValidationError   : bad input; raised before any I/O.
- FetchError        : page-level transport/HTTP failure; fails a single job.
- ExtractionError   : raised by AI extractors; absorbed into "zero records".
- EnhancementError  : raised by AI enhancers; absorbed into pass-through text.
- ImageFetchError   : one image; absorbed into a fallback reference.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import httpx

# =========================
# Exception types
# =========================


class ScrapeError(RuntimeError):
    """Base class for pipeline failures."""


class ValidationError(ScrapeError, ValueError):
    """Malformed or missing required input."""


class FetchError(ScrapeError):
    """HTTP/transport failure while fetching a listing page."""

    def __init__(self, url: str, cause: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        self.cause = cause
        detail = f"HTTP {status}: {cause}" if status is not None else cause
        super().__init__(f"Could not retrieve content from {url}. Reason: {detail}")


class ExtractionError(ScrapeError):
    """The record extractor failed or returned an unusable payload."""


class EnhancementError(ScrapeError):
    """The content enhancer failed or returned an unusable payload."""


class ImageFetchError(ScrapeError):
    """A single image could not be fetched, validated or persisted."""

    def __init__(self, url: str, cause: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        self.cause = cause
        super().__init__(f"{url}: {cause}")


# =========================
# Classification helpers
# =========================


def classify_fetch_error(exc: Exception, url: str) -> ScrapeError:
    """
    Map arbitrary exceptions raised while fetching `url` to a FetchError.

    - ScrapeError subclasses pass through unchanged
    - httpx.HTTPStatusError carries the response status
    - httpx timeouts / transport errors carry no status
    """
    if isinstance(exc, ScrapeError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        resp = exc.response
        return FetchError(url, resp.reason_phrase or "bad status", status=resp.status_code)

    if isinstance(exc, httpx.TimeoutException):
        return FetchError(url, f"timed out ({type(exc).__name__})")

    if isinstance(exc, httpx.HTTPError):
        return FetchError(url, f"{type(exc).__name__}: {exc}")

    return FetchError(url, f"{type(exc).__name__}: {exc}")


@contextmanager
def fetch_error_guard(url: str) -> Iterator[None]:
    """Normalize unexpected exceptions raised while fetching `url`."""
    try:
        yield
    except ScrapeError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_fetch_error(exc, url) from exc


__all__ = [
    "ScrapeError",
    "ValidationError",
    "FetchError",
    "ExtractionError",
    "EnhancementError",
    "ImageFetchError",
    "classify_fetch_error",
    "fetch_error_guard",
]
