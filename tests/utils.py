# tests/utils.py
"""
Single source of truth for test data, fakes and factories.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from typing import Any

import httpx
from PIL import Image

from propscrape.core.errors import EnhancementError, ExtractionError
from propscrape.schemas.models import (
    DraftRecord,
    EnhancedContent,
    FinalizedRecord,
    HistoryEntry,
    ScrapePolicy,
)

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_PAGE_URL = "https://listings.example.com/search?city=dubai"
DEFAULT_TITLE = "Sunny 2BR apartment near the marina"
DEFAULT_DESCRIPTION = "Bright two bedroom flat with balcony, gym access and covered parking."

DEFAULT_LISTING_HTML = f"""<!doctype html>
<html>
<head>
  <title>Listing 123</title>
  <meta property="og:title" content="{DEFAULT_TITLE}">
  <meta property="og:description" content="{DEFAULT_DESCRIPTION}">
  <meta property="og:image" content="https://cdn.example.com/og.jpg">
  <link rel="canonical" href="https://listings.example.com/listing/123">
  <script type="application/ld+json">
  {{"@type": "Apartment", "image": ["/photos/1.jpg", {{"url": "/photos/2.jpg"}}],
    "offers": {{"price": 85000, "priceCurrency": "AED"}},
    "address": {{"streetAddress": "1 Marina Walk", "addressLocality": "Dubai", "addressCountry": "AE"}}}}
  </script>
  <script>window.tracking = true;</script>
  <style>body {{ color: red; }}</style>
</head>
<body>
  <h1>Marina view apartment</h1>
  <!-- listing body -->
  <img src="/photos/1.jpg" alt="living room">
  <img data-src="photos/3.jpg" src="data:image/gif;base64,R0lGOD">
  <img src="/small.jpg" srcset="/photos/4-small.jpg 320w, /photos/4-large.jpg 1280w">
  <p>Lorem ipsum dolor sit amet, consectetur adipiscing elit.</p>
</body>
</html>
"""


# -----------------------------
# Images
# -----------------------------


def png_bytes(width: int = 8, height: int = 6, color: tuple[int, int, int] = (200, 120, 40)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG", compress_level=1)
    return buf.getvalue()


# -----------------------------
# Models
# -----------------------------


def make_policy(tmp_path: Path | None = None, **overrides: Any) -> ScrapePolicy:
    base: dict[str, Any] = {"ai_provider": "heuristic", "timeout_s": 5.0}
    if tmp_path is not None:
        base["uploads_dir"] = tmp_path / "uploads"
        base["data_dir"] = tmp_path / "data"
    base.update(overrides)
    return ScrapePolicy(**base)


def make_raw_record(index: int = 0, *, images: list[str] | None = None, **overrides: Any) -> dict[str, Any]:
    """Raw extractor output (camelCase keys, as the AI returns them)."""
    raw: dict[str, Any] = {
        "title": f"{DEFAULT_TITLE} #{index}",
        "description": DEFAULT_DESCRIPTION,
        "propertyPrice": "AED 85,000",
        "propertyBed": 2,
        "city": "Dubai",
        "image_urls": images if images is not None else [],
    }
    raw.update(overrides)
    return raw


def make_draft(**overrides: Any) -> DraftRecord:
    data: dict[str, Any] = {"title": DEFAULT_TITLE, "description": DEFAULT_DESCRIPTION}
    data.update(overrides)
    return DraftRecord.model_validate(data)


def make_finalized(record_id: str = "prop-1-0-abc", **overrides: Any) -> FinalizedRecord:
    data: dict[str, Any] = {
        "id": record_id,
        "original_url": DEFAULT_PAGE_URL,
        "title": DEFAULT_TITLE,
        "description": DEFAULT_DESCRIPTION,
        "original_title": DEFAULT_TITLE,
        "original_description": DEFAULT_DESCRIPTION,
        "enhanced_title": DEFAULT_TITLE,
        "enhanced_description": DEFAULT_DESCRIPTION,
        "image_urls": [f"/uploads/properties/{record_id}/1_0.jpg"],
        "image_url": f"/uploads/properties/{record_id}/1_0.jpg",
        "scraped_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return FinalizedRecord.model_validate(data)


# -----------------------------
# Fakes
# -----------------------------


class FakeExtractor:
    """Returns canned raw records per HTML body; records every call."""

    def __init__(self, records: list[Any] | None = None, *, by_marker: dict[str, list[Any]] | None = None, error: Exception | None = None):
        self.records = records or []
        self.by_marker = by_marker or {}
        self.error = error
        self.calls: list[str] = []

    async def extract(self, html: str) -> list[Any]:
        self.calls.append(html)
        if self.error is not None:
            raise self.error
        for marker, recs in self.by_marker.items():
            if marker in html:
                return recs
        return self.records


class FailingExtractor(FakeExtractor):
    def __init__(self) -> None:
        super().__init__(error=ExtractionError("model unavailable"))


class FakeEnhancer:
    def __init__(self, *, prefix: str = "Enhanced: ", error: Exception | None = None):
        self.prefix = prefix
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def enhance(self, title: str, description: str) -> EnhancedContent:
        self.calls.append((title, description))
        if self.error is not None:
            raise self.error
        return EnhancedContent(enhanced_title=self.prefix + title, enhanced_description=self.prefix + description)


class FailingEnhancer(FakeEnhancer):
    def __init__(self) -> None:
        super().__init__(error=EnhancementError("quota exceeded"))


class InMemoryImageStorage:
    """ImageStorage double: keeps bytes in a dict, optionally failing every write."""

    def __init__(self, prefix: str = "/uploads/properties", *, fail_all: bool = False):
        self.prefix = prefix
        self.fail_all = fail_all
        self.namespaces: list[str] = []
        self.files: dict[str, bytes] = {}
        self.events: list[str] = []

    def ensure_namespace(self, namespace: str) -> None:
        self.namespaces.append(namespace)
        self.events.append(f"ns:{namespace}")

    async def write(self, namespace: str, filename: str, data: bytes, content_type: str | None) -> str:
        self.events.append(f"write:{namespace}/{filename}")
        if self.fail_all:
            raise OSError("disk full")
        ref = f"{self.prefix}/{namespace}/{filename}"
        self.files[ref] = data
        return ref


class MemoryHistory:
    def __init__(self, log: list[str] | None = None) -> None:
        self.entries: list[HistoryEntry] = []
        self.log = log if log is not None else []

    def append(self, entry: HistoryEntry) -> None:
        self.entries.append(entry)
        self.log.append(f"history:{entry.type}")


class MemoryStore:
    def __init__(self, log: list[str] | None = None) -> None:
        self.records: dict[str, FinalizedRecord] = {}
        self.log = log if log is not None else []

    def save(self, records) -> None:
        for r in records:
            self.records[r.id] = r
        self.log.append(f"save:{len(records)}")

    def update(self, record: FinalizedRecord) -> None:
        self.records[record.id] = record

    def delete(self, record_id: str) -> bool:
        return self.records.pop(record_id, None) is not None


# -----------------------------
# HTTP
# -----------------------------

def html_response(body: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, html=body)


def image_response(data: bytes | None = None, content_type: str | None = "image/png", status: int = 200) -> httpx.Response:
    headers = {"Content-Type": content_type} if content_type else {}
    return httpx.Response(status, content=png_bytes() if data is None else data, headers=headers)


class RouteTransport:
    """
    Builds an `httpx.MockTransport` from a {url: route} table.

    A route is a Response, an async callable returning one, or an exception
    to raise. Unknown URLs answer 404. Every request is kept in `requests`.
    """

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = str(request.url)
        route = self.routes.get(key)
        if route is None:
            route = self.routes.get(key.rstrip("/"))
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)
        return await route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]
