"""Listing models."""

from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, field_validator, model_validator
from ulid import ULID


# Fields an approved duplicate carries over onto its canonical listing
CONTENT_FIELDS = (
    "title",
    "description",
    "price",
    "address",
    "property_type",
    "square_feet",
    "bedrooms",
    "bathrooms",
    "images",
    "property_url",
    "email_source",
    "email_subject",
    "email_date",
)


def generate_listing_id() -> str:
    """Generate a text-based listing ID (ULID format)."""
    return str(ULID())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ListingStatus(str, Enum):
    """Business status of a listing, independent of archive/delete flags."""
    ACTIVE = "active"
    PENDING = "pending"
    SOLD = "sold"


class Listing(BaseModel):
    """Property listing in the shared catalog."""
    listing_id: str = Field(default_factory=generate_listing_id, description="Listing ID (text)")
    owner_id: Optional[str] = Field(None, description="Owning user ID (opaque)")
    title: Optional[str] = Field(None, description="Listing title")
    description: Optional[str] = None
    price: Optional[str] = Field(None, description="Asking price as entered")
    address: Optional[str] = Field(None, description="Free-text property address")
    property_type: Optional[str] = None
    square_feet: Optional[str] = None
    bedrooms: Optional[str] = None
    bathrooms: Optional[str] = None
    images: list[str] = Field(default_factory=list, description="Image URLs")
    property_url: Optional[str] = None
    email_source: Optional[str] = Field(None, description="Sender of the source email")
    email_subject: Optional[str] = None
    email_date: Optional[datetime] = None
    status: ListingStatus = Field(default=ListingStatus.ACTIVE, description="Status: active, pending, sold")
    archived: bool = False
    deleted: bool = Field(default=False, description="Soft-delete flag")
    duplicate_of: Optional[str] = Field(None, description="Canonical listing ID while pending review")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("address")
    @classmethod
    def _strip_address(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_not_self_duplicate(self) -> "Listing":
        if self.duplicate_of is not None and self.duplicate_of == self.listing_id:
            raise ValueError("listing cannot be a duplicate of itself")
        return self

    @property
    def has_address(self) -> bool:
        return bool(self.address and self.address.strip())

    @property
    def in_matching_pool(self) -> bool:
        """Whether the listing participates in duplicate matching."""
        return not self.archived and not self.deleted

    def touch(self) -> None:
        self.updated_at = utc_now()

    def content(self) -> dict:
        """Mutable content fields copied on approve."""
        return self.model_dump(include=set(CONTENT_FIELDS))


class DuplicateCheck(BaseModel):
    """Exact-address matches for a listing."""
    is_duplicate: bool
    existing: list[Listing] = Field(default_factory=list)


class RecheckResult(BaseModel):
    """Outcome of rechecking a single listing."""
    listing: Listing
    original: Optional[Listing] = None
    is_duplicate: bool = False
    demoted: bool = Field(default=False, description="Listing transitioned to pending by this call")
    message: str = ""


class BulkRecheckResult(BaseModel):
    """Aggregate outcome of a catalog-wide recheck."""
    demoted_count: int = 0
    checked_count: int = 0
    failed_count: int = 0


class ListingComparison(BaseModel):
    """Duplicate and its canonical, for side-by-side review."""
    duplicate: Listing
    original: Listing
