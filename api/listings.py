"""Listing intake and maintenance endpoints (archive, trash, purge)."""

from pydantic import ValidationError
from src.models.listing import Listing
from src.utils.errors import InvalidInputError
from src.utils.http_handler import CatalogRequestHandler, route


class handler(CatalogRequestHandler):
    """Vercel serverless function handler for /api/listings."""

    routes = [
        route("POST", r"/listings", "intake"),
        route("POST", r"/listings/(?P<listing_id>[^/]+)/(?P<action>archive|unarchive|delete|restore)", "transition"),
        route("POST", r"/listings/(?P<listing_id>[^/]+)/purge", "purge"),
    ]

    async def intake(self, workflow, query):
        body = self._read_json_body()
        try:
            listing = Listing.model_validate(body)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid listing: {e.errors()[0].get('msg', 'validation error')}")

        result = await workflow.intake(listing)
        return 201, {
            "success": True,
            "is_duplicate": result.is_duplicate,
            "message": result.message,
            "listing": result.listing.model_dump(mode="json"),
        }

    async def transition(self, workflow, query, listing_id, action):
        operations = {
            "archive": workflow.archive,
            "unarchive": workflow.unarchive,
            "delete": workflow.soft_delete,
            "restore": workflow.restore,
        }
        listing = await operations[action](listing_id)
        return 200, {"success": True, "listing": listing.model_dump(mode="json")}

    async def purge(self, workflow, query, listing_id):
        await workflow.purge(listing_id)
        return 200, {"success": True, "message": "Listing permanently deleted", "listing_id": listing_id}
