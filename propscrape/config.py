# propscrape/config.py
"""
Policy construction helpers.

    policy_from_dict(d)   -> ScrapePolicy   # instance | dict | None
    policy_from_env(base) -> ScrapePolicy   # light PROPSCRAPE_* overrides
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from propscrape.schemas.models import ScrapePolicy

ENV_PREFIX = "PROPSCRAPE_"


def policy_from_dict(d: dict[str, Any] | ScrapePolicy | None) -> ScrapePolicy:
    """
    Normalize an incoming policy that may be:
      - a ScrapePolicy instance,
      - a plain dict of policy fields,
      - or None (use defaults).
    """
    if isinstance(d, ScrapePolicy):
        return d
    if not d:
        return ScrapePolicy()
    return ScrapePolicy.model_validate(d)


def policy_from_env(base: ScrapePolicy | None = None, prefix: str = ENV_PREFIX) -> ScrapePolicy:
    """
    Apply light, optional overrides from environment variables to a policy.
    """
    pol = base or ScrapePolicy()
    updates: dict[str, Any] = {}

    timeout = os.getenv(f"{prefix}TIMEOUT_S")
    if timeout:
        try:
            value = float(timeout)
            if value > 0:
                updates["timeout_s"] = value
        except ValueError:
            # Ignore bad value; keep validated timeout
            pass

    max_images = os.getenv(f"{prefix}MAX_CONCURRENT_IMAGES")
    if max_images:
        try:
            value = int(max_images)
            if value >= 1:
                updates["max_concurrent_images"] = value
        except ValueError:
            pass

    uploads = os.getenv(f"{prefix}UPLOADS_DIR")
    if uploads:
        updates["uploads_dir"] = Path(uploads)

    data_dir = os.getenv(f"{prefix}DATA_DIR")
    if data_dir:
        updates["data_dir"] = Path(data_dir)

    provider = os.getenv(f"{prefix}AI_PROVIDER")
    if provider:
        normalized = provider.strip().lower()
        if normalized in ("openai", "heuristic"):
            updates["ai_provider"] = normalized

    model = os.getenv(f"{prefix}AI_MODEL")
    if model:
        updates["ai_model"] = model.strip()

    placeholder = os.getenv(f"{prefix}PLACEHOLDER_IMAGE_URL")
    if placeholder:
        updates["placeholder_image_url"] = placeholder.strip()

    if not updates:
        return pol
    return pol.model_copy(update=updates)
