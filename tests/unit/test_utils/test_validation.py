"""Tests for listing ID validation and error bodies."""

import pytest
from src.utils.errors import CatalogError, ConflictError, InvalidInputError, NotFoundError, RepositoryError
from src.utils.validation import validate_listing_id


@pytest.mark.unit
@pytest.mark.parametrize("listing_id", ["01ARZ3NDEKTSV4RRFFQ69G5FAV", "prop_123", "a-b", "  padded  "])
def test_valid_ids_are_stripped(listing_id):
    assert validate_listing_id(listing_id) == listing_id.strip()


@pytest.mark.unit
@pytest.mark.parametrize("listing_id", [None, "", "   ", "has space", "../etc/passwd", "x" * 65, 42])
def test_invalid_ids_raise(listing_id):
    with pytest.raises(InvalidInputError):
        validate_listing_id(listing_id)


@pytest.mark.unit
def test_field_name_in_message():
    with pytest.raises(InvalidInputError) as exc_info:
        validate_listing_id("", field="canonical_id")

    assert "canonical_id" in exc_info.value.message


@pytest.mark.unit
def test_error_kinds_and_status_codes():
    assert (NotFoundError.kind, NotFoundError.status_code) == ("not_found", 404)
    assert (ConflictError.kind, ConflictError.status_code) == ("conflict", 409)
    assert (InvalidInputError.kind, InvalidInputError.status_code) == ("invalid_input", 400)
    assert (RepositoryError.kind, RepositoryError.status_code) == ("repository_error", 500)
    assert issubclass(RepositoryError, CatalogError)


@pytest.mark.unit
def test_error_to_dict():
    body = NotFoundError("Listing not found", listing_id="abc").to_dict()
    assert body == {"error": {"kind": "not_found", "message": "Listing not found", "listing_id": "abc"}}

    assert "listing_id" not in ConflictError("nope").to_dict()["error"]
