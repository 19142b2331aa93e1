# tests/unit/test_record_assembly.py
from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from propscrape.core.records import assemble_record, new_record_id, source_text
from propscrape.schemas.models import DEFAULT_PLACEHOLDER_IMAGE, EnhancedContent, FinalizedRecord, MaterializedImage
from tests.utils import DEFAULT_PAGE_URL, make_draft, make_finalized


def _img(index: int, ok: bool = True) -> MaterializedImage:
    remote = f"https://cdn.example.com/{index}.jpg"
    ref = f"/uploads/properties/p/{index}.jpg" if ok else remote
    return MaterializedImage(index=index, source_url=remote, reference=ref, ok=ok)


def test_record_id_shape_and_uniqueness():
    ids = {new_record_id(0) for _ in range(50)}
    assert len(ids) == 50
    assert all(re.fullmatch(r"prop-\d{13}-0-[0-9a-f]{6}", i) for i in ids)


def test_assembly_keeps_originals_and_uses_enhanced_text():
    draft = make_draft(title="old title", description="old desc", propertyBed=2, city="Dubai")
    enhanced = EnhancedContent(enhanced_title="New title", enhanced_description="New desc")
    at = datetime(2024, 1, 2, tzinfo=timezone.utc)

    rec = assemble_record(
        draft,
        record_id="prop-1-0-aaaaaa",
        origin_url=DEFAULT_PAGE_URL,
        enhanced=enhanced,
        images=[_img(1), _img(0, ok=False)],
        scraped_at=at,
    )

    assert rec.id == "prop-1-0-aaaaaa"
    assert rec.original_url == DEFAULT_PAGE_URL
    assert rec.original_title == "old title"
    assert rec.original_description == "old desc"
    assert rec.title == rec.enhanced_title == "New title"
    assert rec.description == rec.enhanced_description == "New desc"
    assert rec.image_urls == ["https://cdn.example.com/0.jpg", "/uploads/properties/p/1.jpg"]
    assert rec.image_url == rec.image_urls[0]
    assert rec.property_bed == 2
    assert rec.city == "Dubai"
    assert rec.scraped_at == at


@pytest.mark.parametrize("placeholder", [DEFAULT_PLACEHOLDER_IMAGE, "https://img.example.com/none.png"])
def test_zero_images_get_placeholder(placeholder):
    rec = assemble_record(
        make_draft(),
        record_id="prop-1-0-bbbbbb",
        origin_url=DEFAULT_PAGE_URL,
        enhanced=EnhancedContent(enhanced_title="t", enhanced_description="d"),
        images=[],
        placeholder=placeholder,
    )
    assert rec.image_urls == [placeholder]
    assert rec.image_url == placeholder
    assert rec.scraped_at.tzinfo is not None


def test_source_text_falls_back_to_original_fields():
    draft = make_draft(title=None, description=None, original_title="T", original_description="D")
    assert source_text(draft) == ("T", "D")


def test_finalized_record_rejects_mismatched_primary_image():
    with pytest.raises(PydanticValidationError):
        make_finalized(image_urls=["a", "b"], image_url="b")
    with pytest.raises(PydanticValidationError):
        make_finalized(image_urls=[], image_url="a")
    assert isinstance(make_finalized(), FinalizedRecord)
