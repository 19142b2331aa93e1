# propscrape/ai/provider_base.py
"""
AI provider contracts + the pipeline's absorption policies.

Purpose
-------
Keep the pipeline independent of any model vendor. Extractors turn raw HTML
into raw record mappings; enhancers rewrite a title/description pair.

Public API
----------
class RecordExtractor(Protocol):
    async def extract(self, html: str) -> list[dict]
class ContentEnhancer(Protocol):
    async def enhance(self, title: str, description: str) -> EnhancedContent

async def run_extraction(extractor, html) -> list[DraftRecord]
async def run_enhancement(enhancer, title, description) -> EnhancedContent

Invariants & Guardrails
-----------------------
- `run_extraction` never raises: failures become an empty list.
- `run_enhancement` never raises: empty inputs skip the call, failures pass
  the original text through.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from propscrape.core.records.coerce import coerce_drafts
from propscrape.schemas.models import DraftRecord, EnhancedContent

logger = logging.getLogger(__name__)


class RecordExtractor(Protocol):
    async def extract(self, html: str) -> list[dict[str, Any]]: ...


class ContentEnhancer(Protocol):
    async def enhance(self, title: str, description: str) -> EnhancedContent: ...


# ---------- tolerant JSON ----------

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


def _balanced_slice(s: str, start: int, open_ch: str, close_ch: str) -> str | None:
    depth = 0
    in_str = False
    escaped = False
    for i, ch in enumerate(s[start:], start=start):
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return s[start : i + 1]
    return None


def parse_json_payload(text: str) -> Any:
    """
    Tolerant JSON extractor for model output:
      - strips Markdown code fences (``` or ```json)
      - if prose surrounds the JSON, takes the first balanced object/array
    Raises ValueError when no JSON value can be recovered.
    """
    if not isinstance(text, str):
        raise ValueError("Provider returned non-string response.")

    s = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", text.strip(), count=1), count=1)
    try:
        return json.loads(s)
    except json.JSONDecodeError:
        pass

    for open_ch, close_ch in (("{", "}"), ("[", "]")):
        start = s.find(open_ch)
        if start == -1:
            continue
        chunk = _balanced_slice(s, start, open_ch, close_ch)
        if chunk is None:
            continue
        try:
            return json.loads(chunk)
        except json.JSONDecodeError:
            continue
    raise ValueError("Expected a JSON object/array in provider output.")


def properties_from_payload(payload: Any) -> list[Any]:
    """Accept `{"properties": [...]}`, a bare list, or a single record object."""
    if isinstance(payload, dict):
        props = payload.get("properties")
        if isinstance(props, list):
            return props
        if props is None and payload:
            return [payload]
        return []
    if isinstance(payload, list):
        return payload
    return []


# ---------- absorption policies ----------


async def run_extraction(extractor: RecordExtractor, html: str) -> list[DraftRecord]:
    """Extract + coerce drafts; any failure degrades to zero records."""
    try:
        raw = await extractor.extract(html)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Record extraction failed, treating as zero records: %s", exc)
        return []
    drafts = coerce_drafts(raw)
    logger.info("Extractor returned %d records", len(drafts))
    return drafts


async def run_enhancement(
    enhancer: ContentEnhancer,
    title: str | None,
    description: str | None,
) -> EnhancedContent:
    """Rewrite title/description; skip on empty input, pass through on failure."""
    passthrough = EnhancedContent(enhanced_title=title, enhanced_description=description)
    if not title or not description:
        return passthrough
    try:
        out = await enhancer.enhance(title, description)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Content enhancement failed, keeping original text: %s", exc)
        return passthrough
    return EnhancedContent(
        enhanced_title=out.enhanced_title or title,
        enhanced_description=out.enhanced_description or description,
    )
