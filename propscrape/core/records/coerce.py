# propscrape/core/records/coerce.py
"""
Field-by-field coercion of untrusted extractor output into DraftRecord.

The AI response is only partially schema-conformant. Each field is checked on
its own: a wrong-typed value makes that field absent, it never discards the
record and never turns into zero/false.
"""

from __future__ import annotations

import logging
import math
import types
from collections.abc import Mapping
from typing import Any, Literal, Union, get_args, get_origin

from propscrape.schemas.models import DraftRecord

logger = logging.getLogger(__name__)

FieldKind = Literal["str", "number", "bool", "list"]

_TRUE = {"true", "yes", "y", "1"}
_FALSE = {"false", "no", "n", "0"}


def field_kind(annotation: Any) -> FieldKind:
    origin = get_origin(annotation)
    members = get_args(annotation) if origin in (Union, types.UnionType) else (annotation,)
    for m in members:
        if m is type(None):
            continue
        if get_origin(m) is list:
            return "list"
        if m is bool:
            return "bool"
        if m is float or m is int:
            return "number"
    return "str"


def _build_field_table() -> dict[str, tuple[str, FieldKind]]:
    table: dict[str, tuple[str, FieldKind]] = {}
    for name, info in DraftRecord.model_fields.items():
        kind = field_kind(info.annotation)
        table[name] = (name, kind)
        if info.alias:
            table[info.alias] = (name, kind)
    return table


_FIELDS = _build_field_table()


def _as_str(v: object) -> str | None:
    if isinstance(v, str):
        return v
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return None


def _as_number(v: object) -> float | None:
    if isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        f = float(v)
    elif isinstance(v, str):
        try:
            f = float(v.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    return f if math.isfinite(f) else None


def _as_bool(v: object) -> bool | None:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        low = v.strip().lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
    return None


def _as_str_list(v: object) -> list[str] | None:
    if isinstance(v, str):
        return [v] if v.strip() else []
    if isinstance(v, (list, tuple)):
        return [s for s in v if isinstance(s, str) and s.strip()]
    return None


_COERCERS = {
    "str": _as_str,
    "number": _as_number,
    "bool": _as_bool,
    "list": _as_str_list,
}


def coerce_draft(raw: Mapping[str, Any]) -> DraftRecord:
    """Build a DraftRecord from one raw mapping, dropping invalid fields individually."""
    clean: dict[str, Any] = {}
    dropped: list[str] = []
    for key, value in raw.items():
        entry = _FIELDS.get(key)
        if entry is None or value is None:
            continue
        name, kind = entry
        coerced = _COERCERS[kind](value)
        if coerced is None:
            dropped.append(key)
            continue
        clean[name] = coerced

    if dropped:
        logger.debug("Dropped unusable draft fields: %s", ", ".join(sorted(dropped)))
    return DraftRecord.model_validate(clean)


def coerce_drafts(raw: object) -> list[DraftRecord]:
    """Coerce a list of raw mappings; non-mapping entries are skipped."""
    if not isinstance(raw, (list, tuple)):
        return []
    out: list[DraftRecord] = []
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping):
            logger.warning("Skipping extracted item %d: expected an object, got %s", i, type(item).__name__)
            continue
        out.append(coerce_draft(item))
    return out
