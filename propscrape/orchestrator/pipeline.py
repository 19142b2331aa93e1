# propscrape/orchestrator/pipeline.py
"""
Scrape → extract → {materialize images ∥ enhance text} → assemble → persist.

Pipeline (per job):
  1) URL jobs: validate + fetch the page (FetchError propagates)
  2) run_extraction(extractor, html) → drafts (failures mean zero drafts)
  3) per draft, concurrently: materialize_images(...) and run_enhancement(...)
     all drafts of the job run concurrently and are joined together
  4) assemble FinalizedRecords; save them when a RecordStore is attached
  5) append exactly one HistoryEntry for the job

Bulk jobs run step 1-5 for each URL strictly one after another; a failing
URL is recorded in the error manifest and the loop moves on.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from types import TracebackType

import httpx

from propscrape.ai import get_enhancer, get_extractor
from propscrape.ai.provider_base import ContentEnhancer, RecordExtractor, run_enhancement, run_extraction
from propscrape.core.errors import ValidationError
from propscrape.core.fetch import fetch_html
from propscrape.core.media import ImageStorage, LocalImageStorage, materialize_images
from propscrape.core.records import assemble_record, new_record_id, source_text
from propscrape.core.store import HistoryRecorder, JsonlHistoryRecorder, JsonRecordStore, RecordStore
from propscrape.core.urls import is_absolute_http_url
from propscrape.schemas.models import (
    BulkError,
    BulkJobResult,
    DraftRecord,
    FinalizedRecord,
    HistoryEntry,
    JobKind,
    ScrapePolicy,
)

logger = logging.getLogger(__name__)

HTML_ORIGIN = "scraped-from-html"


# -------------------------
# Input validation
# -------------------------


def validate_url(url: object) -> str:
    if not isinstance(url, str) or not is_absolute_http_url(url):
        raise ValidationError(f"Invalid URL provided: {url!r}")
    return url.strip()


def validate_html(html: object, min_length: int) -> str:
    if not isinstance(html, str) or len(html.strip()) < min_length:
        size = len(html) if isinstance(html, str) else 0
        raise ValidationError(f"Invalid HTML provided: expected at least {min_length} characters, got {size}.")
    return html


def parse_url_list(text: str) -> list[str]:
    """Newline-delimited URLs; surrounding whitespace and blank lines are discarded."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


# -------------------------
# Pipeline
# -------------------------


class ScrapePipeline:
    def __init__(
        self,
        *,
        extractor: RecordExtractor,
        enhancer: ContentEnhancer,
        storage: ImageStorage,
        history: HistoryRecorder,
        store: RecordStore | None = None,
        policy: ScrapePolicy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.extractor = extractor
        self.enhancer = enhancer
        self.storage = storage
        self.history = history
        self.store = store
        self.policy = policy or ScrapePolicy()
        self._client = client
        self._owns_client = client is None

    # ---------- lifecycle ----------
    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.policy.timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> ScrapePipeline:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ---------- entry points ----------
    async def scrape_from_url(self, url: str) -> list[FinalizedRecord]:
        target = validate_url(url)
        return await self._url_job(target, kind="URL", details=target)

    async def scrape_from_html(self, html: str, origin_url: str | None = None) -> list[FinalizedRecord]:
        content = validate_html(html, self.policy.min_html_length)
        logger.info("Scraping pasted HTML (%d chars)", len(content))
        return await self._run_job(content, origin_url=origin_url or HTML_ORIGIN, kind="HTML", details="Pasted HTML content")

    async def scrape_bulk(self, url_list_text: str) -> BulkJobResult:
        urls = parse_url_list(url_list_text)
        if not urls:
            raise ValidationError("No valid URLs found in bulk input.")
        logger.info("Bulk scraping %d URLs", len(urls))

        result = BulkJobResult()
        for n, url in enumerate(urls, start=1):
            logger.info("[bulk %d/%d] %s", n, len(urls), url)
            try:
                target = validate_url(url)
                records = await self._url_job(target, kind="BULK", details=f"Bulk operation included: {target}")
            except Exception as exc:  # noqa: BLE001
                logger.error("[bulk %d/%d] failed to scrape %s: %s", n, len(urls), url, exc)
                result.errors.append(BulkError(url=url, error_message=str(exc)))
                continue
            result.records.extend(records)

        logger.info("Bulk run finished: %s", result.summary())
        return result

    # ---------- job internals ----------
    async def _url_job(self, url: str, *, kind: JobKind, details: str) -> list[FinalizedRecord]:
        logger.info("Scraping URL: %s", url)
        html = await fetch_html(url, client=self.client, policy=self.policy)
        return await self._run_job(html, origin_url=url, kind=kind, details=details)

    async def _run_job(self, html: str, *, origin_url: str, kind: JobKind, details: str) -> list[FinalizedRecord]:
        drafts = await run_extraction(self.extractor, html)
        if drafts:
            records = list(await asyncio.gather(*(self._process_record(i, d, origin_url) for i, d in enumerate(drafts))))
        else:
            logger.info("No properties extracted from %s", origin_url)
            records = []

        if self.store is not None:
            await asyncio.to_thread(self.store.save, records)
        await asyncio.to_thread(self._record_history, kind, details, len(records))
        return records

    async def _process_record(self, index: int, draft: DraftRecord, origin_url: str) -> FinalizedRecord:
        record_id = new_record_id(index)
        title, description = source_text(draft)

        images, enhanced = await asyncio.gather(
            materialize_images(
                draft.image_urls,
                record_id=record_id,
                page_link=draft.page_link,
                origin_url=origin_url,
                client=self.client,
                storage=self.storage,
                policy=self.policy,
            ),
            run_enhancement(self.enhancer, title, description),
        )

        record = assemble_record(
            draft,
            record_id=record_id,
            origin_url=origin_url,
            enhanced=enhanced,
            images=images,
            placeholder=self.policy.placeholder_image_url,
        )
        localized = sum(1 for img in images if img.ok)
        logger.info("[%s] assembled: %d images (%d localized, %d fallback)", record_id, len(images), localized, len(images) - localized)
        return record

    def _record_history(self, kind: JobKind, details: str, count: int) -> None:
        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            type=kind,
            details=details,
            property_count=count,
            created_at=datetime.now(timezone.utc),
        )
        self.history.append(entry)


# -------------------------
# Convenience wrappers
# -------------------------


def build_pipeline(policy: ScrapePolicy | None = None, *, persist: bool = False) -> ScrapePipeline:
    """Default wiring: AI providers per policy, local image storage, JSON history/store under data_dir."""
    pol = policy or ScrapePolicy()
    return ScrapePipeline(
        extractor=get_extractor(pol),
        enhancer=get_enhancer(pol),
        storage=LocalImageStorage(pol.uploads_dir, pol.public_url_prefix),
        history=JsonlHistoryRecorder(pol.data_dir / "history.jsonl"),
        store=JsonRecordStore(pol.data_dir / "records.json") if persist else None,
        policy=pol,
    )


async def scrape_from_url(url: str, *, policy: ScrapePolicy | None = None, persist: bool = False) -> list[FinalizedRecord]:
    async with build_pipeline(policy, persist=persist) as pipeline:
        return await pipeline.scrape_from_url(url)


async def scrape_from_html(
    html: str,
    origin_url: str | None = None,
    *,
    policy: ScrapePolicy | None = None,
    persist: bool = False,
) -> list[FinalizedRecord]:
    async with build_pipeline(policy, persist=persist) as pipeline:
        return await pipeline.scrape_from_html(html, origin_url)


async def scrape_bulk(url_list_text: str, *, policy: ScrapePolicy | None = None, persist: bool = False) -> BulkJobResult:
    async with build_pipeline(policy, persist=persist) as pipeline:
        return await pipeline.scrape_bulk(url_list_text)
