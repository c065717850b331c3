"""Duplicate detection endpoints."""

from src.utils.http_handler import CatalogRequestHandler, route


class handler(CatalogRequestHandler):
    """Vercel serverless function handler for /api/duplicates."""

    routes = [
        route("POST", r"/duplicates/recheck-all", "recheck_all"),
        route("POST", r"/duplicates/recheck/(?P<listing_id>[^/]+)", "recheck"),
        route("GET", r"/duplicates/(?P<listing_id>[^/]+)/similar", "similar"),
    ]

    async def recheck_all(self, workflow, query):
        result = await workflow.bulk_recheck()
        return 200, result.model_dump()

    async def recheck(self, workflow, query, listing_id):
        result = await workflow.recheck(listing_id)
        return 200, {
            "success": True,
            "is_duplicate": result.is_duplicate,
            "message": result.message,
            "listing": result.listing.model_dump(mode="json"),
        }

    async def similar(self, workflow, query, listing_id):
        listings = await workflow.find_similar(listing_id)
        return 200, [listing.model_dump(mode="json") for listing in listings]
