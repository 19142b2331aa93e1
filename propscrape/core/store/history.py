# propscrape/core/store/history.py
"""
Append-only job history (one JSON line per job).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from propscrape.schemas.models import HistoryEntry


class HistoryRecorder(Protocol):
    def append(self, entry: HistoryEntry) -> None: ...


class JsonlHistoryRecorder:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def append(self, entry: HistoryEntry) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.model_dump(mode="json", by_alias=True), ensure_ascii=False)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def entries(self) -> list[HistoryEntry]:
        if not self.path.exists():
            return []
        out: list[HistoryEntry] = []
        for line in self.path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(HistoryEntry.model_validate_json(line))
        return out
