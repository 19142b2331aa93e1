# propscrape/core/media/downloader.py
"""
Image materialization: fetch each resolved candidate, validate it, persist it
to storage and return an ordered list of MaterializedImage.

Concurrency
-----------
All candidates of one record are fetched concurrently (bounded by
`policy.max_concurrent_images`) and joined with `asyncio.gather`, so the
output order is the candidate order regardless of completion order.

Failure policy
--------------
A failing candidate never fails the record: its reference falls back to the
resolved remote URL so the broken image stays visible downstream.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence
from io import BytesIO
from pathlib import Path
from urllib.parse import urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from propscrape.core.errors import ImageFetchError
from propscrape.core.media.resolve import pick_base, resolve_candidates
from propscrape.core.media.storage import ImageStorage
from propscrape.schemas.models import MaterializedImage, ScrapePolicy

logger = logging.getLogger(__name__)

# Extensions we keep; anything else falls back to the URL suffix, then jpg
_IMAGE_EXTS = {"jpg", "png", "webp", "gif", "bmp", "tif", "tiff", "avif", "svg", "heic", "ico"}
_NON_ALNUM = re.compile(r"[^a-z0-9]")


# ---------------------------
# Helpers
# ---------------------------


def _base_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    base = content_type.split(";", 1)[0].strip().lower()
    return base or None


def _normalize_ext(raw: str) -> str:
    ext = _NON_ALNUM.sub("", raw.lower())
    return "jpg" if ext == "jpeg" else ext


def _ext_from_url(url: str) -> str | None:
    try:
        suffix = Path(urlparse(url).path).suffix
    except ValueError:
        return None
    ext = _normalize_ext(suffix.lstrip("."))
    return ext if ext in _IMAGE_EXTS else None


def infer_extension(content_type: str | None, url: str) -> str:
    """
    File extension for a downloaded image.

    image/svg+xml → svg, image/jpeg → jpg; when the content type is missing,
    not an image type, or an unrecognized image subtype, fall back to the URL
    path suffix, then to "jpg".
    """
    base = _base_content_type(content_type)
    if base and base.startswith("image/"):
        subtype = base.split("/", 1)[1].split("+", 1)[0]
        ext = _normalize_ext(subtype)
        if ext in _IMAGE_EXTS:
            return ext
    return _ext_from_url(url) or "jpg"


def image_headers(policy: ScrapePolicy, referer: str | None) -> dict[str, str]:
    return {"User-Agent": policy.image_user_agent, "Referer": referer or ""}


def _probe_dimensions(data: bytes) -> tuple[int | None, int | None]:
    try:
        with Image.open(BytesIO(data)) as im:
            return int(im.width), int(im.height)
    except (UnidentifiedImageError, OSError, ValueError):
        return None, None


def image_references(images: Sequence[MaterializedImage], placeholder: str) -> list[str]:
    """Ordered references; a single placeholder when nothing survived resolution."""
    refs = [img.reference for img in sorted(images, key=lambda i: i.index)]
    return refs or [placeholder]


# ---------------------------
# Single image
# ---------------------------


async def fetch_image(
    url: str,
    *,
    client: httpx.AsyncClient,
    policy: ScrapePolicy,
    referer: str | None,
) -> tuple[bytes, str | None]:
    """
    GET one image and validate it. Returns (bytes, content_type).

    Raises ImageFetchError when the status is not 2xx, when a content type is
    present but is not image/*, or when the payload is empty. A missing
    content type is tolerated.
    """
    try:
        resp = await client.get(
            url,
            headers=image_headers(policy, referer),
            timeout=policy.timeout_s,
            follow_redirects=True,
        )
    except httpx.HTTPError as exc:
        raise ImageFetchError(url, f"{type(exc).__name__}: {exc}") from exc

    if not resp.is_success:
        raise ImageFetchError(url, f"fetch failed with status {resp.status_code}", status=resp.status_code)

    content_type = resp.headers.get("Content-Type")
    base = _base_content_type(content_type)
    if base is not None and not base.startswith("image/"):
        raise ImageFetchError(url, f"invalid content-type {content_type!r}, expected an image", status=resp.status_code)

    data = resp.content
    if not data:
        raise ImageFetchError(url, "downloaded image is empty", status=resp.status_code)

    return data, base


async def materialize_image(
    url: str,
    *,
    index: int,
    namespace: str,
    referer: str | None,
    client: httpx.AsyncClient,
    storage: ImageStorage,
    policy: ScrapePolicy,
) -> MaterializedImage:
    """Fetch + persist one image; on any failure fall back to `url` itself."""
    try:
        data, content_type = await fetch_image(url, client=client, policy=policy, referer=referer)
        ext = infer_extension(content_type, url)
        filename = f"{int(time.time() * 1000)}_{index}.{ext}"
        try:
            reference = await storage.write(namespace, filename, data, content_type)
        except (OSError, ValueError) as exc:
            raise ImageFetchError(url, f"storage write failed: {exc}") from exc
    except ImageFetchError as exc:
        logger.warning("[image %d] %s; keeping remote reference", index, exc)
        return MaterializedImage(index=index, source_url=url, reference=url, ok=False, error=exc.cause)
    except Exception as exc:  # noqa: BLE001
        logger.exception("[image %d] unexpected failure for %s; keeping remote reference", index, url)
        return MaterializedImage(index=index, source_url=url, reference=url, ok=False, error=f"{type(exc).__name__}: {exc}")

    width, height = _probe_dimensions(data)
    logger.info("[image %d] saved %s (%d KB, %s)", index, reference, round(len(data) / 1024), content_type or "unknown type")
    return MaterializedImage(
        index=index,
        source_url=url,
        reference=reference,
        ok=True,
        content_type=content_type,
        bytes_size=len(data),
        width=width,
        height=height,
    )


# ---------------------------
# Public API
# ---------------------------


async def materialize_images(
    candidates: Sequence[object] | None,
    *,
    record_id: str,
    page_link: str | None,
    origin_url: str | None,
    client: httpx.AsyncClient,
    storage: ImageStorage,
    policy: ScrapePolicy | None = None,
) -> list[MaterializedImage]:
    """
    Resolve and materialize a record's candidate images, preserving candidate order.

    The record namespace is created once before any image write. Returns an
    empty list when no candidate resolves; callers substitute the placeholder
    via `image_references`.
    """
    pol = policy or ScrapePolicy()
    resolved = resolve_candidates(candidates, page_link=page_link, origin_url=origin_url)
    logger.info("[%s] %d candidate images resolved", record_id, len(resolved))
    if not resolved:
        return []

    try:
        storage.ensure_namespace(record_id)
    except OSError as exc:
        # writes below will fail individually and fall back
        logger.error("[%s] could not prepare image namespace: %s", record_id, exc)
    referer = pick_base(page_link, origin_url)
    gate = asyncio.Semaphore(pol.max_concurrent_images)

    async def _one(index: int, url: str) -> MaterializedImage:
        async with gate:
            return await materialize_image(
                url,
                index=index,
                namespace=record_id,
                referer=referer,
                client=client,
                storage=storage,
                policy=pol,
            )

    return list(await asyncio.gather(*(_one(i, u) for i, u in enumerate(resolved))))
