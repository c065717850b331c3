"""Tests for review, duplicate, and listing maintenance endpoints."""

import asyncio
import pytest
from unittest.mock import patch
from http.server import BaseHTTPRequestHandler
from api.duplicates import handler as duplicates_handler
from api.listings import handler as listings_handler
from api.review import handler as review_handler
from src.models.listing import ListingStatus
from src.services.property_repository import InMemoryPropertyRepository
from src.services.review_workflow import ReviewWorkflow
from tests.utils.assertions import assert_error_response
from tests.utils.factories import create_listing
from tests.utils.helpers import call_handler

MISSING_ID = "01ARZ3NDEKTSV4RRFFQ69G5FAV"


@pytest.fixture
def catalog(main_street_cluster):
    original, newer = main_street_cluster
    repository = InMemoryPropertyRepository([original, newer])
    workflow = ReviewWorkflow(repository, duplicate_detection_enabled=True)
    with patch("src.utils.http_handler.get_workflow", return_value=workflow):
        yield repository, original, newer


def _stored(repository, listing_id):
    return asyncio.run(repository.find_by_id(listing_id))


@pytest.mark.unit
def test_handlers_are_request_handlers():
    for handler_cls in (duplicates_handler, review_handler, listings_handler):
        assert issubclass(handler_cls, BaseHTTPRequestHandler)


@pytest.mark.unit
def test_recheck_endpoint_marks_duplicate(catalog):
    repository, original, newer = catalog

    status, body = call_handler(duplicates_handler, "POST", f"/api/duplicates/recheck/{newer.listing_id}")

    assert status == 200
    assert body["is_duplicate"] is True
    assert body["listing"]["status"] == "pending"
    assert body["listing"]["duplicate_of"] == original.listing_id


@pytest.mark.unit
def test_recheck_all_reports_demoted_count(catalog):
    status, body = call_handler(duplicates_handler, "POST", "/api/duplicates/recheck-all")
    assert status == 200
    assert body["demoted_count"] == 1

    status, body = call_handler(duplicates_handler, "POST", "/duplicates/recheck-all")
    assert status == 200
    assert body["demoted_count"] == 0


@pytest.mark.unit
def test_similar_endpoint(catalog):
    repository, original, newer = catalog

    status, body = call_handler(duplicates_handler, "GET", f"/api/duplicates/{newer.listing_id}/similar")

    assert status == 200
    assert [item["listing_id"] for item in body] == [original.listing_id]


@pytest.mark.unit
def test_pending_and_compare(catalog):
    repository, original, newer = catalog
    call_handler(duplicates_handler, "POST", f"/api/duplicates/recheck/{newer.listing_id}")

    status, body = call_handler(review_handler, "GET", "/api/review/pending")
    assert status == 200
    assert [item["listing_id"] for item in body] == [newer.listing_id]

    status, body = call_handler(review_handler, "GET", f"/api/review/{newer.listing_id}/compare")
    assert status == 200
    assert body["duplicate"]["listing_id"] == newer.listing_id
    assert body["original"]["listing_id"] == original.listing_id


@pytest.mark.unit
def test_approve_endpoint(catalog):
    repository, original, newer = catalog
    call_handler(duplicates_handler, "POST", f"/api/duplicates/recheck/{newer.listing_id}")

    status, body = call_handler(
        review_handler, "POST", f"/api/review/{newer.listing_id}/approve?canonicalId={original.listing_id}"
    )

    assert status == 200
    assert body["listing"]["listing_id"] == original.listing_id
    assert body["listing"]["title"] == newer.title

    status, body = call_handler(review_handler, "POST", f"/api/review/{newer.listing_id}/approve")
    assert status == 404
    assert_error_response(body, "not_found")


@pytest.mark.unit
def test_approve_without_link_is_conflict(catalog):
    repository, original, newer = catalog

    status, body = call_handler(
        review_handler, "POST", f"/api/review/{newer.listing_id}/approve?canonical_id={original.listing_id}"
    )

    assert status == 409
    assert_error_response(body, "conflict")


@pytest.mark.unit
def test_reject_endpoint(catalog):
    repository, original, newer = catalog
    call_handler(duplicates_handler, "POST", f"/api/duplicates/recheck/{newer.listing_id}")

    status, body = call_handler(review_handler, "POST", f"/api/review/{newer.listing_id}/reject")

    assert status == 200
    assert body["listing_id"] == newer.listing_id
    assert _stored(repository, original.listing_id) == original


@pytest.mark.unit
def test_compare_missing_is_not_found(catalog):
    status, body = call_handler(review_handler, "GET", f"/api/review/{MISSING_ID}/compare")
    assert status == 404
    assert_error_response(body, "not_found")


@pytest.mark.unit
def test_malformed_id_is_invalid_input(catalog):
    status, body = call_handler(listings_handler, "POST", "/api/listings/bad%20id!/archive")
    assert status == 400
    assert_error_response(body, "invalid_input")


@pytest.mark.unit
def test_archive_delete_restore_purge(catalog):
    repository, original, newer = catalog
    listing_id = original.listing_id

    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/archive")
    assert status == 200
    assert body["listing"]["archived"] is True

    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/unarchive")
    assert body["listing"]["archived"] is False

    # Purge guard: listing is not in the trash yet
    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/purge")
    assert status == 409
    assert_error_response(body, "conflict")

    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/delete")
    assert body["listing"]["deleted"] is True

    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/restore")
    assert body["listing"]["deleted"] is False
    assert body["listing"]["status"] == "active"

    call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/delete")
    status, body = call_handler(listings_handler, "POST", f"/api/listings/{listing_id}/purge")
    assert status == 200
    assert body["listing_id"] == listing_id


@pytest.mark.unit
def test_intake_endpoint_detects_duplicate(catalog):
    repository, original, newer = catalog
    incoming = create_listing(address="123 main st", created_at=newer.created_at.replace(hour=15))

    status, body = call_handler(listings_handler, "POST", "/api/listings", body=incoming.model_dump(mode="json"))

    assert status == 201
    assert body["is_duplicate"] is True
    assert _stored(repository, incoming.listing_id).status == ListingStatus.PENDING


@pytest.mark.unit
def test_intake_endpoint_rejects_bad_body(catalog):
    status, body = call_handler(listings_handler, "POST", "/api/listings", body={"status": "archived"})
    assert status == 400
    assert_error_response(body, "invalid_input")

    status, body = call_handler(listings_handler, "POST", "/api/listings", body=["not", "an", "object"])
    assert status == 400


@pytest.mark.unit
def test_unknown_route_is_404(catalog):
    status, body = call_handler(review_handler, "GET", "/api/review/somewhere/else/entirely")
    assert status == 404
    assert_error_response(body, "not_found")


@pytest.mark.unit
def test_unexpected_error_is_500(catalog):
    with patch.object(ReviewWorkflow, "bulk_recheck", side_effect=RuntimeError("boom")):
        status, body = call_handler(duplicates_handler, "POST", "/api/duplicates/recheck-all")

    assert status == 500
    assert_error_response(body, "internal_error")
