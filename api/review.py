"""Pending review endpoints."""

from src.utils.http_handler import CatalogRequestHandler, route


class handler(CatalogRequestHandler):
    """Vercel serverless function handler for /api/review."""

    routes = [
        route("GET", r"/review/pending", "pending"),
        route("GET", r"/review/(?P<duplicate_id>[^/]+)/compare", "compare"),
        route("POST", r"/review/(?P<duplicate_id>[^/]+)/approve", "approve"),
        route("POST", r"/review/(?P<duplicate_id>[^/]+)/reject", "reject"),
    ]

    async def pending(self, workflow, query):
        listings = await workflow.list_pending_review()
        return 200, [listing.model_dump(mode="json") for listing in listings]

    async def compare(self, workflow, query, duplicate_id):
        comparison = await workflow.compare(duplicate_id)
        return 200, comparison.model_dump(mode="json")

    async def approve(self, workflow, query, duplicate_id):
        canonical_id = query.get("canonical_id") or query.get("canonicalId")
        listing = await workflow.approve(duplicate_id, canonical_id)
        return 200, {
            "success": True,
            "message": "Duplicate approved and merged",
            "listing": listing.model_dump(mode="json"),
        }

    async def reject(self, workflow, query, duplicate_id):
        duplicate = await workflow.reject(duplicate_id)
        return 200, {
            "success": True,
            "message": "Duplicate rejected",
            "listing_id": duplicate.listing_id,
        }
