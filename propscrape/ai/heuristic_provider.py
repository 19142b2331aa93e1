# propscrape/ai/heuristic_provider.py
"""
Deterministic, offline providers.

`HeuristicRecordExtractor` reads OpenGraph, JSON-LD and <img> tags and
returns at most one record per page. `PassthroughEnhancer` only normalizes
whitespace. Both let the full pipeline run locally and in tests without an
API key; the OpenAI providers can be swapped in without touching callers.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

from bs4 import BeautifulSoup

from propscrape.schemas.models import EnhancedContent

_WS = re.compile(r"\s+")


def _meta(soup: BeautifulSoup, *keys: str) -> str | None:
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag and tag.get("content"):
            return str(tag["content"]).strip()
    return None


def _json_ld_objects(soup: BeautifulSoup) -> Iterator[dict[str, Any]]:
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        try:
            data = json.loads(tag.string or "")
        except (json.JSONDecodeError, TypeError):
            continue
        stack = data if isinstance(data, list) else [data]
        for obj in stack:
            if isinstance(obj, dict):
                yield obj
                graph = obj.get("@graph")
                if isinstance(graph, list):
                    yield from (g for g in graph if isinstance(g, dict))


def _ld_images(obj: dict[str, Any]) -> list[str]:
    img = obj.get("image")
    items = img if isinstance(img, list) else [img]
    out: list[str] = []
    for it in items:
        if isinstance(it, str):
            out.append(it)
        elif isinstance(it, dict) and isinstance(it.get("url"), str):
            out.append(it["url"])
    return out


def _img_sources(soup: BeautifulSoup) -> list[str]:
    out: list[str] = []
    for img in soup.find_all("img"):
        src = img.get("data-src") or img.get("src")
        srcset = img.get("srcset")
        if srcset:
            # largest candidate is conventionally listed last
            last = srcset.split(",")[-1].strip().split(" ", 1)[0]
            src = last or src
        if src and not str(src).startswith("data:"):
            out.append(str(src).strip())
    return out


def _dedupe(urls: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for u in urls:
        if u and u not in seen:
            seen.add(u)
            out.append(u)
    return out


class HeuristicRecordExtractor:
    async def extract(self, html: str) -> list[dict[str, Any]]:
        soup = BeautifulSoup(html, "lxml")
        record: dict[str, Any] = {}

        h1 = soup.find("h1")
        title = _meta(soup, "og:title") or (h1.get_text(" ", strip=True) if h1 else None)
        if not title and soup.title and soup.title.string:
            title = soup.title.string.strip()
        if title:
            record["title"] = title

        desc = _meta(soup, "og:description", "description")
        if desc:
            record["description"] = desc

        canonical = soup.find("link", attrs={"rel": "canonical"})
        link = (canonical.get("href") if canonical else None) or _meta(soup, "og:url")
        if link:
            record["page_link"] = str(link).strip()

        images: list[str] = []
        og_image = _meta(soup, "og:image")
        if og_image:
            images.append(og_image)
        for obj in _json_ld_objects(soup):
            images.extend(_ld_images(obj))
            offers = obj.get("offers")
            if isinstance(offers, dict) and offers.get("price") is not None:
                price = f"{offers.get('priceCurrency', '')} {offers['price']}".strip()
                record.setdefault("propertyPrice", price)
            address = obj.get("address")
            if isinstance(address, dict):
                parts = [address.get(k) for k in ("streetAddress", "addressLocality", "addressCountry")]
                line = ", ".join(p for p in parts if isinstance(p, str) and p)
                if line:
                    record.setdefault("propertyAddress", line)
                if isinstance(address.get("addressLocality"), str):
                    record.setdefault("city", address["addressLocality"])
        images.extend(_img_sources(soup))
        record["image_urls"] = _dedupe(images)

        if not record.get("title") and not record["image_urls"]:
            return []
        return [record]


class PassthroughEnhancer:
    async def enhance(self, title: str, description: str) -> EnhancedContent:
        return EnhancedContent(
            enhanced_title=_WS.sub(" ", title).strip(),
            enhanced_description=_WS.sub(" ", description).strip(),
        )
