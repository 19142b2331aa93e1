# propscrape/core/store/record_store.py
"""
Record store: CRUD over finalized records.

`JsonRecordStore` keeps one JSON document keyed by record id. Every call
rewrites the document through a temp file + atomic replace, so a call is
atomic on its own; no batching across calls.
"""

from __future__ import annotations

import json
import logging
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

from propscrape.schemas.models import FinalizedRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def save(self, records: Sequence[FinalizedRecord]) -> None: ...

    def update(self, record: FinalizedRecord) -> None: ...

    def delete(self, record_id: str) -> bool: ...


class JsonRecordStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    # ---------- io ----------
    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(raw, dict):
            raise ValueError(f"record store {self.path} is not a JSON object")
        return raw

    def _dump(self, data: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", prefix="records_", suffix=".part", delete=False, dir=str(self.path.parent)
        ) as tf:
            tmp_path = Path(tf.name)
            try:
                json.dump(data, tf, ensure_ascii=False, indent=2)
            except BaseException:
                tf.close()
                tmp_path.unlink(missing_ok=True)
                raise
        try:
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    # ---------- crud ----------
    def save(self, records: Sequence[FinalizedRecord]) -> None:
        if not records:
            return
        data = self._load()
        for rec in records:
            data[rec.id] = rec.model_dump(mode="json")
        self._dump(data)
        logger.info("Saved %d records to %s", len(records), self.path)

    def update(self, record: FinalizedRecord) -> None:
        data = self._load()
        if record.id not in data:
            raise KeyError(record.id)
        data[record.id] = record.model_dump(mode="json")
        self._dump(data)

    def delete(self, record_id: str) -> bool:
        data = self._load()
        if data.pop(record_id, None) is None:
            return False
        self._dump(data)
        return True

    def get(self, record_id: str) -> FinalizedRecord | None:
        raw = self._load().get(record_id)
        return FinalizedRecord.model_validate(raw) if raw is not None else None

    def list(self) -> list[FinalizedRecord]:
        recs = [FinalizedRecord.model_validate(v) for v in self._load().values()]
        return sorted(recs, key=lambda r: r.scraped_at, reverse=True)
