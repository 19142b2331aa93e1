# propscrape/core/records/assembler.py
"""
Record assembly: draft + materialized images + enhanced text → FinalizedRecord.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Sequence
from datetime import datetime, timezone

from propscrape.core.media.downloader import image_references
from propscrape.schemas.models import (
    DEFAULT_PLACEHOLDER_IMAGE,
    DraftRecord,
    EnhancedContent,
    FinalizedRecord,
    MaterializedImage,
)


def new_record_id(index: int) -> str:
    """`prop-<epoch ms>-<index>-<random>`: unique per record, sortable by creation time."""
    return f"prop-{int(time.time() * 1000)}-{index}-{secrets.token_hex(3)}"


def source_text(draft: DraftRecord) -> tuple[str | None, str | None]:
    """Title/description as found on the page (falls back to the extractor's original_* fields)."""
    title = draft.title if draft.title is not None else draft.original_title
    description = draft.description if draft.description is not None else draft.original_description
    return title, description


def assemble_record(
    draft: DraftRecord,
    *,
    record_id: str,
    origin_url: str,
    enhanced: EnhancedContent,
    images: Sequence[MaterializedImage],
    placeholder: str = DEFAULT_PLACEHOLDER_IMAGE,
    scraped_at: datetime | None = None,
) -> FinalizedRecord:
    title, description = source_text(draft)
    refs = image_references(images, placeholder)

    data = draft.model_dump()
    data.update(
        id=record_id,
        original_url=origin_url,
        original_title=title,
        original_description=description,
        title=enhanced.enhanced_title,
        description=enhanced.enhanced_description,
        enhanced_title=enhanced.enhanced_title,
        enhanced_description=enhanced.enhanced_description,
        image_urls=refs,
        image_url=refs[0],
        scraped_at=scraped_at or datetime.now(timezone.utc),
    )
    return FinalizedRecord.model_validate(data)
