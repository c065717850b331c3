"""Tests for Listing model."""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError
from src.models.listing import CONTENT_FIELDS, Listing, ListingStatus


@pytest.mark.unit
def test_listing_defaults():
    listing = Listing(address="123 Main St")

    assert len(listing.listing_id) == 26
    assert listing.status == ListingStatus.ACTIVE
    assert listing.archived is False
    assert listing.deleted is False
    assert listing.duplicate_of is None
    assert listing.images == []


@pytest.mark.unit
def test_listing_cannot_reference_itself():
    with pytest.raises(ValidationError):
        Listing(listing_id="01ARZ3NDEKTSV4RRFFQ69G5FAV", duplicate_of="01ARZ3NDEKTSV4RRFFQ69G5FAV")


@pytest.mark.unit
def test_listing_status_validation():
    for status in ("active", "pending", "sold"):
        assert Listing(status=status).status == ListingStatus(status)

    with pytest.raises(ValidationError):
        Listing(status="archived")


@pytest.mark.unit
def test_naive_timestamps_treated_as_utc():
    listing = Listing(created_at="2024-12-09T12:00:00")
    assert listing.created_at == datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.parametrize("address,expected", [(None, False), ("", False), ("   ", False), ("1 Elm", True)])
def test_has_address(address, expected):
    assert Listing(address=address).has_address is expected


@pytest.mark.unit
def test_content_contains_only_content_fields():
    listing = Listing(title="Warehouse", address="9 Dock Rd", status="sold", images=["a.jpg"])
    content = listing.content()

    assert set(content) == set(CONTENT_FIELDS)
    assert content["title"] == "Warehouse"
    assert "status" not in content


@pytest.mark.unit
def test_touch_updates_timestamp(freeze_time_fixture):
    listing = Listing(created_at="2024-01-01T00:00:00Z", updated_at="2024-01-01T00:00:00Z")
    listing.touch()
    assert listing.updated_at == datetime(2024, 12, 9, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
def test_address_is_stripped():
    assert Listing(address="  123 Main St ").address == "123 Main St"
    assert Listing(address="   ").address == ""
    assert Listing().address is None
