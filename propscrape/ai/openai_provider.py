# propscrape/ai/openai_provider.py
"""
OpenAI-backed record extractor and content enhancer.

Environment
-----------
OPENAI_API_KEY : required
Model/timeout come from ScrapePolicy (`ai_model`, `ai_timeout_s`), which
`propscrape.config.policy_from_env` can override.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
import openai
from bs4 import BeautifulSoup, Comment

from propscrape.ai.provider_base import parse_json_payload, properties_from_payload
from propscrape.core.errors import EnhancementError, ExtractionError
from propscrape.core.records.coerce import field_kind
from propscrape.schemas.models import DraftRecord, EnhancedContent, ScrapePolicy

logger = logging.getLogger(__name__)

_STRIP_TAGS = ("style", "noscript", "svg", "iframe", "canvas", "template")

_EXTRACT_SYSTEM = (
    "You are an expert at extracting structured data from real estate web pages. "
    "Analyze the HTML and extract details for ALL properties listed on the page."
)

_EXTRACT_RULES = """Return ONLY a JSON object: {"properties": [ {...}, ... ]}.
Each property object may contain these fields (omit a field when it is not on the page):
%s

Rules:
- Never invent values. Omit numbers and booleans that are not stated; do not use 0 or false as "unknown".
- image_urls: every relevant listing photo (img src/data-src, picture/srcset, CSS backgrounds, JSON-LD).
  Keep URLs exactly as written on the page; relative URLs are fine. Never return placeholder images.
- page_link: the direct link to this property's detail page when the page lists several properties.
- Numbers (bedrooms, bathrooms, coordinates) are plain JSON numbers.
- If no property is found, return {"properties": []}.

HTML:
%s"""

_ENHANCE_SYSTEM = (
    "You are a real estate copywriter. Rewrite listing titles and descriptions so they are clear, "
    "attractive and accurate. Keep every fact; do not add features that are not in the text."
)

_ENHANCE_USER = """Return ONLY a JSON object: {"enhancedTitle": "...", "enhancedDescription": "..."}.

Title:
%s

Description:
%s"""


def compact_html(html: str, max_chars: int) -> str:
    """
    Shrink a page before prompting: drop scripts (JSON-LD kept), styles,
    inline SVG and comments, then truncate to `max_chars`.
    """
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all("script"):
        if (tag.get("type") or "").lower() != "application/ld+json":
            tag.decompose()
    for tag in soup.find_all(_STRIP_TAGS):
        tag.decompose()
    for c in soup.find_all(string=lambda s: isinstance(s, Comment)):
        c.extract()
    out = str(soup)
    return out if len(out) <= max_chars else out[:max_chars]


def _schema_lines() -> str:
    lines: list[str] = []
    for name, info in DraftRecord.model_fields.items():
        key = info.alias or name
        kind = field_kind(info.annotation)
        jtype = {"str": "string", "number": "number", "bool": "boolean", "list": "array of strings"}[kind]
        lines.append(f"- {key} ({jtype})")
    return "\n".join(lines)


class _OpenAIBase:
    def __init__(self, policy: ScrapePolicy | None = None, *, client: Any | None = None) -> None:
        self._policy = policy or ScrapePolicy()
        if client is not None:
            self._client = client
            return
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY not set for the OpenAI provider.")
        self._client = openai.AsyncOpenAI(api_key=api_key, timeout=self._policy.ai_timeout_s)

    async def _complete_json(self, system_prompt: str, user_prompt: str) -> Any:
        resp = await self._client.chat.completions.create(
            model=self._policy.ai_model,
            temperature=0,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        if not resp.choices:
            raise ValueError("AI returned no choices")
        content = resp.choices[0].message.content
        if not content:
            raise ValueError("AI returned empty response")
        return parse_json_payload(content)


class OpenAIRecordExtractor(_OpenAIBase):
    async def extract(self, html: str) -> list[dict[str, Any]]:
        page = compact_html(html, self._policy.max_prompt_chars)
        prompt = _EXTRACT_RULES % (_schema_lines(), page)
        try:
            payload = await self._complete_json(_EXTRACT_SYSTEM, prompt)
        except (openai.APIError, httpx.HTTPError) as exc:
            raise ExtractionError(f"AI provider error: {exc}") from exc
        except ValueError as exc:
            raise ExtractionError(f"unusable extraction payload: {exc}") from exc
        return properties_from_payload(payload)


class OpenAIContentEnhancer(_OpenAIBase):
    async def enhance(self, title: str, description: str) -> EnhancedContent:
        try:
            payload = await self._complete_json(_ENHANCE_SYSTEM, _ENHANCE_USER % (title, description))
        except (openai.APIError, httpx.HTTPError) as exc:
            raise EnhancementError(f"AI provider error: {exc}") from exc
        except ValueError as exc:
            raise EnhancementError(f"unusable enhancement payload: {exc}") from exc

        if not isinstance(payload, dict):
            raise EnhancementError("enhancement payload is not an object")
        new_title = payload.get("enhancedTitle")
        new_desc = payload.get("enhancedDescription")
        if not isinstance(new_title, str) or not isinstance(new_desc, str):
            raise EnhancementError("enhancement payload is missing enhancedTitle/enhancedDescription")
        return EnhancedContent(enhanced_title=new_title, enhanced_description=new_desc)
