# propscrape/core/export.py
"""
Flat export of finalized records (JSON / CSV).

Each record is grouped into fixed sections, then flattened to dotted keys
(`location.city`, `images.image_urls`, ...). Lists are joined with " | ".
Absent values get a per-type default so every row has the same columns.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from propscrape.core.urls import is_absolute_http_url, resolve_against
from propscrape.schemas.models import FinalizedRecord

NA = "N/A"
LIST_SEP = " | "

# section -> [(exported key, default when absent)]
_SECTIONS: dict[str, list[tuple[str, Any]]] = {
    "main": [
        ("id", NA),
        ("title", NA),
        ("propertyPrice", NA),
        ("description", NA),
        ("categories", []),
        ("whatDoYouRent", NA),
        ("propertyFurnishingStatus", NA),
        ("tenantType", NA),
        ("scraped_at", NA),
        ("original_url", NA),
        ("page_link", NA),
    ],
    "location": [
        ("propertyAddress", NA),
        ("city", NA),
        ("neighborhoodArea", NA),
        ("propertyCountry", NA),
        ("propertyLongitude", 0),
        ("propertyLatitude", 0),
    ],
    "property_details": [
        ("propertyBed", 0),
        ("propertyBathroom", 0),
        ("propertyLivingRoom", 0),
        ("propertyRoom", 0),
        ("propertySize", NA),
        ("propertyBuilding", NA),
        ("propertyTax", NA),
        ("propertyDeposit", NA),
        ("propertyDiscount", NA),
    ],
    "status_and_terms": [
        ("propertyDisplayStatus", NA),
        ("propertyApprovalStatus", NA),
        ("propertyMinimumStay", NA),
        ("propertyMaximumStay", NA),
        ("propertyMinimumNotice", NA),
        ("termAndCondition", NA),
    ],
    "preferences_flags": [
        ("propertyGenderPreference", NA),
        ("featuredProperty", False),
        ("platinumProperty", False),
        ("premiumProperty", False),
    ],
    "features_and_amenities": [
        ("featuresAndAmenities", []),
    ],
    "legal_and_reference": [
        ("validated_information", NA),
        ("permit_number", NA),
        ("ded_license_number", NA),
        ("rera_registration_number", NA),
        ("dld_brn", NA),
        ("reference_id", NA),
    ],
    "agent_and_owner": [
        ("propertyAgent", NA),
        ("propertyOwnerDetails", NA),
        ("listed_by_name", NA),
        ("listed_by_phone", NA),
        ("listed_by_email", NA),
    ],
    "ai_enhancements_originals": [
        ("original_title", NA),
        ("original_description", NA),
    ],
    "additional": [
        ("matterportLink", NA),
    ],
}

_SECTION_ORDER = (
    "main",
    "location",
    "property_details",
    "status_and_terms",
    "preferences_flags",
    "features_and_amenities",
    "images",
    "legal_and_reference",
    "agent_and_owner",
    "ai_enhancements_originals",
    "additional",
)


def _absolute(ref: str, base_url: str | None) -> str:
    if not ref or is_absolute_http_url(ref) or not base_url:
        return ref
    return resolve_against(ref, base_url) or ref


def nest_record(record: FinalizedRecord, base_url: str | None = None) -> dict[str, dict[str, Any]]:
    """Sectioned view of a record with defaults filled in."""
    data = record.model_dump(mode="json", by_alias=True)
    nested: dict[str, dict[str, Any]] = {}
    for section in _SECTION_ORDER:
        if section == "images":
            nested["images"] = {
                "image_url": _absolute(record.image_url, base_url),
                "image_urls": [_absolute(u, base_url) for u in record.image_urls],
            }
            continue
        nested[section] = {}
        for key, default in _SECTIONS[section]:
            value = data.get(key)
            nested[section][key] = default if value is None else value
    return nested


def _flatten(obj: dict[str, Any], parent: str = "", out: dict[str, Any] | None = None) -> dict[str, Any]:
    out = {} if out is None else out
    for key, value in obj.items():
        new_key = f"{parent}.{key}" if parent else key
        if isinstance(value, dict):
            _flatten(value, new_key, out)
        elif isinstance(value, list):
            out[new_key] = LIST_SEP.join(str(v) for v in value)
        else:
            out[new_key] = value
    return out


def flatten_record(record: FinalizedRecord, base_url: str | None = None) -> dict[str, Any]:
    return _flatten(nest_record(record, base_url))


def to_json(records: Iterable[FinalizedRecord], base_url: str | None = None) -> str:
    rows = [flatten_record(r, base_url) for r in records]
    return json.dumps(rows, indent=2, ensure_ascii=False)


def _header(rows: Sequence[dict[str, Any]]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def write_csv(records: Iterable[FinalizedRecord], path: str | Path, base_url: str | None = None) -> int:
    """Write flattened records to `path`; returns the number of rows written."""
    rows = [flatten_record(r, base_url) for r in records]
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=_header(rows))
        writer.writeheader()
        writer.writerows(rows)
    return len(rows)
