# propscrape/schemas/models.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_PLACEHOLDER_IMAGE = "https://placehold.co/600x400.png"

# =========================
# Pipeline policy
# =========================


class ScrapePolicy(BaseModel):
    """
    Policy for the scrape-enrich-persist pipeline.

    Defines request headers, timeouts, concurrency bounds, storage locations
    and AI provider selection. Frozen so a single instance can be shared
    across concurrent branches.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    timeout_s: float = Field(
        30.0,
        gt=0,
        description="Timeout in seconds applied to every page and image fetch.",
    )
    page_user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
        description="Browser-like User-Agent used for listing page requests.",
    )
    page_accept: str = Field(
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
        description="Accept header used for listing page requests.",
    )
    page_accept_language: str = Field("en-US,en;q=0.9", description="Accept-Language header for page requests.")
    image_user_agent: str = Field(
        "Mozilla/5.0 (compatible; PropScrape/1.0)",
        description="User-Agent used for image requests (distinct from the page UA).",
    )

    min_html_length: int = Field(100, ge=1, description="Minimum length of pasted HTML accepted by an HTML job.")
    max_concurrent_images: int = Field(8, ge=1, description="Upper bound of concurrent image fetches per record.")
    placeholder_image_url: str = Field(
        DEFAULT_PLACEHOLDER_IMAGE,
        description="Sentinel reference used when no candidate image survives resolution.",
    )

    uploads_dir: Path = Field(
        default=Path("public/uploads/properties"),
        description="Root directory where localized images are written (one sub-directory per record).",
    )
    public_url_prefix: str = Field(
        "/uploads/properties",
        description="Public URL prefix under which `uploads_dir` is served.",
    )
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the JSON record store and the history log.",
    )

    ai_provider: Literal["openai", "heuristic"] = Field(
        "openai",
        description="Record extraction / enhancement backend. 'heuristic' runs offline.",
    )
    ai_model: str = Field("gpt-4o-mini", description="Model name passed to the AI provider.")
    ai_timeout_s: float = Field(60.0, gt=0, description="Timeout in seconds for a single AI call.")
    max_prompt_chars: int = Field(
        120_000,
        ge=1_000,
        description="Compacted HTML is truncated to this many characters before prompting.",
    )


# =========================
# Records
# =========================


class DraftRecord(BaseModel):
    """
    One property as returned by the record extractor, after field coercion.

    Every field is optional; an absent number or flag means "unknown", never
    zero/false. Aliases match the extraction schema sent to the AI model.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Identity
    page_link: str | None = None
    reference_id: str | None = None
    original_title: str | None = None
    original_description: str | None = None
    title: str | None = None
    description: str | None = None
    image_urls: list[str] = Field(default_factory=list, description="Candidate image references, possibly relative.")
    matterport_link: str | None = Field(None, alias="matterportLink")
    categories: list[str] | None = None
    what_do_you_rent: str | None = Field(None, alias="whatDoYouRent")

    # Location
    city: str | None = None
    neighborhood_area: str | None = Field(None, alias="neighborhoodArea")
    property_country: str | None = Field(None, alias="propertyCountry")
    property_building: str | None = Field(None, alias="propertyBuilding")
    property_address: str | None = Field(None, alias="propertyAddress")
    property_longitude: float | None = Field(None, alias="propertyLongitude")
    property_latitude: float | None = Field(None, alias="propertyLatitude")

    # Pricing & terms
    property_price: str | None = Field(None, alias="propertyPrice")
    property_discount: str | None = Field(None, alias="propertyDiscount")
    property_deposit: str | None = Field(None, alias="propertyDeposit")
    property_size: str | None = Field(None, alias="propertySize")
    property_tax: str | None = Field(None, alias="propertyTax")
    property_minimum_stay: str | None = Field(None, alias="propertyMinimumStay")
    property_maximum_stay: str | None = Field(None, alias="propertyMaximumStay")
    property_minimum_notice: str | None = Field(None, alias="propertyMinimumNotice")
    term_and_condition: str | None = Field(None, alias="termAndCondition")

    # Status & flags
    property_display_status: str | None = Field(None, alias="propertyDisplayStatus")
    property_approval_status: str | None = Field(None, alias="propertyApprovalStatus")
    property_furnishing_status: str | None = Field(None, alias="propertyFurnishingStatus")
    property_gender_preference: str | None = Field(None, alias="propertyGenderPreference")
    featured_property: bool | None = Field(None, alias="featuredProperty")
    platinum_property: bool | None = Field(None, alias="platinumProperty")
    premium_property: bool | None = Field(None, alias="premiumProperty")

    # Occupancy
    tenant_type: str | None = Field(None, alias="tenantType")
    nationality: str | None = None
    religion: str | None = None
    property_bed: float | None = Field(None, alias="propertyBed")
    property_living_room: float | None = Field(None, alias="propertyLivingRoom")
    property_room: float | None = Field(None, alias="propertyRoom")
    property_bathroom: float | None = Field(None, alias="propertyBathroom")
    features_and_amenities: list[str] | None = Field(None, alias="featuresAndAmenities")

    # Contact & regulatory
    property_agent: str | None = Field(None, alias="propertyAgent")
    property_owner_details: str | None = Field(None, alias="propertyOwnerDetails")
    validated_information: str | None = None
    permit_number: str | None = None
    ded_license_number: str | None = None
    rera_registration_number: str | None = None
    dld_brn: str | None = None
    listed_by_name: str | None = None
    listed_by_phone: str | None = None
    listed_by_email: str | None = None


class MaterializedImage(BaseModel):
    """Outcome of processing one resolved candidate image."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    index: int = Field(..., ge=0, description="Ordinal of the candidate in discovery order.")
    source_url: str = Field(..., description="Resolved absolute URL the image was fetched from.")
    reference: str = Field(..., description="Durable reference on success, else the original resolved URL.")
    ok: bool = Field(..., description="True when the bytes were persisted to storage.")
    content_type: str | None = None
    bytes_size: int | None = Field(None, ge=0)
    width: int | None = Field(None, ge=1)
    height: int | None = Field(None, ge=1)
    error: str | None = Field(None, description="Failure cause when `ok` is False.")


class FinalizedRecord(DraftRecord):
    """A fully processed record: localized images, enhanced text, identifiers."""

    id: str
    original_url: str
    enhanced_title: str | None = None
    enhanced_description: str | None = None
    image_urls: list[str] = Field(..., min_length=1)
    image_url: str
    scraped_at: datetime

    @model_validator(mode="after")
    def _primary_image_is_first(self) -> FinalizedRecord:
        if self.image_url != self.image_urls[0]:
            raise ValueError("image_url must equal image_urls[0]")
        return self


class EnhancedContent(BaseModel):
    """Rewritten title/description (equal to the inputs when enhancement was skipped or failed)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enhanced_title: str | None = Field(None, alias="enhancedTitle")
    enhanced_description: str | None = Field(None, alias="enhancedDescription")


# =========================
# History & bulk results
# =========================

JobKind = Literal["URL", "HTML", "BULK"]


class HistoryEntry(BaseModel):
    """One job's audit metadata. Append-only."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    type: JobKind
    details: str
    property_count: int = Field(..., ge=0, alias="propertyCount")
    created_at: datetime


class BulkError(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    error_message: str


class BulkJobResult(BaseModel):
    """Records gathered across a bulk run plus the per-URL failure manifest."""

    records: list[FinalizedRecord] = Field(default_factory=list)
    errors: list[BulkError] = Field(default_factory=list)

    def summary(self) -> str:
        return f"{len(self.records)} records, {len(self.errors)} failed URLs"
