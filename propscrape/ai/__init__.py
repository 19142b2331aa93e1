"""
AI providers package

    from propscrape.ai import get_extractor, get_enhancer, run_extraction, run_enhancement
"""

from __future__ import annotations

import logging

from propscrape.schemas.models import ScrapePolicy

from .heuristic_provider import HeuristicRecordExtractor, PassthroughEnhancer
from .provider_base import (
    ContentEnhancer,
    RecordExtractor,
    parse_json_payload,
    properties_from_payload,
    run_enhancement,
    run_extraction,
)

logger = logging.getLogger(__name__)


def get_extractor(policy: ScrapePolicy | None = None) -> RecordExtractor:
    pol = policy or ScrapePolicy()
    if pol.ai_provider == "openai":
        try:
            from .openai_provider import OpenAIRecordExtractor

            return OpenAIRecordExtractor(pol)
        except RuntimeError as exc:
            logger.warning("OpenAI extractor unavailable (%s); falling back to heuristic extraction.", exc)
    return HeuristicRecordExtractor()


def get_enhancer(policy: ScrapePolicy | None = None) -> ContentEnhancer:
    pol = policy or ScrapePolicy()
    if pol.ai_provider == "openai":
        try:
            from .openai_provider import OpenAIContentEnhancer

            return OpenAIContentEnhancer(pol)
        except RuntimeError as exc:
            logger.warning("OpenAI enhancer unavailable (%s); text will pass through.", exc)
    return PassthroughEnhancer()


__all__ = [
    "RecordExtractor",
    "ContentEnhancer",
    "HeuristicRecordExtractor",
    "PassthroughEnhancer",
    "get_extractor",
    "get_enhancer",
    "parse_json_payload",
    "properties_from_payload",
    "run_extraction",
    "run_enhancement",
]
