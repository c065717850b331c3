"""Supabase client wrapper and Supabase-backed property repository."""

import os
import logging
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.models.listing import Listing, ListingStatus
from src.services.address_key import addresses_match, contains_all_tokens
from src.services.property_repository import PropertyRepository
from src.utils.errors import NotFoundError, RepositoryError
from src.utils.logging_config import CatalogConfig

logger = logging.getLogger(__name__)

# Global client instance (shared connection, not shared catalog state)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create the Supabase client."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise RepositoryError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


async def close_supabase_client() -> None:
    """Drop the cached Supabase client."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def escape_like(value: str) -> str:
    """
    Escape LIKE wildcards so the value matches literally.

    PostgREST reads `*` as `%`, so it becomes the single-character wildcard
    `_` instead; callers re-check the rows they get back.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_").replace("*", "_")


def _to_listings(rows: Optional[list[dict]]) -> list[Listing]:
    return [Listing.model_validate(row) for row in rows or []]


class SupabasePropertyRepository(PropertyRepository):
    """Listings stored in a Supabase (PostgREST) table."""

    def __init__(self, table: Optional[str] = None):
        self.table = table or CatalogConfig.PROPERTIES_TABLE

    def _active_query(self, client: Client, exclude_id: Optional[str] = None):
        query = client.table(self.table).select("*").eq("archived", False).eq("deleted", False)
        if exclude_id:
            query = query.neq("listing_id", exclude_id)
        return query

    async def find_by_id(self, listing_id: str) -> Listing:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).select("*").eq("listing_id", listing_id).limit(1).execute()
            except Exception as e:
                raise RepositoryError(f"Failed to get listing: {e}", listing_id=listing_id)

        if not result.data:
            raise NotFoundError(f"Listing not found: {listing_id}", listing_id=listing_id)
        return Listing.model_validate(result.data[0])

    async def find_active_by_address_exact(self, address: str, exclude_id: Optional[str] = None) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                # ILIKE without wildcards is a case-insensitive equality test
                result = self._active_query(client, exclude_id).ilike("address", escape_like(address.strip())).execute()
                listings = _to_listings(result.data)
            except Exception as e:
                raise RepositoryError(f"Failed to find listings by address: {e}")
        return [listing for listing in listings if addresses_match(listing.address, address)]

    async def find_active_by_address_tokens(self, tokens: list[str], exclude_id: Optional[str] = None) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                query = self._active_query(client, exclude_id)
                for token in tokens:
                    query = query.ilike("address", f"%{escape_like(token)}%")
                result = query.execute()
                listings = _to_listings(result.data)
            except Exception as e:
                raise RepositoryError(f"Failed to find listings by address tokens: {e}")
        return [listing for listing in listings if contains_all_tokens(listing.address, tokens)]

    async def find_all_active(self) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                result = self._active_query(client).order("created_at").execute()
                return _to_listings(result.data)
            except Exception as e:
                raise RepositoryError(f"Failed to list active listings: {e}")

    async def find_by_status(self, status: ListingStatus) -> list[Listing]:
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(self.table)
                    .select("*")
                    .eq("status", status.value)
                    .eq("deleted", False)
                    .order("created_at", desc=True)
                    .execute()
                )
                return _to_listings(result.data)
            except Exception as e:
                raise RepositoryError(f"Failed to list {status.value} listings: {e}")

    async def save(self, listing: Listing) -> Listing:
        async with SupabaseClient() as client:
            try:
                result = (
                    client.table(self.table)
                    .upsert(listing.model_dump(mode="json"), on_conflict="listing_id")
                    .execute()
                )
            except Exception as e:
                raise RepositoryError(f"Failed to save listing: {e}", listing_id=listing.listing_id)

        if result.data and len(result.data) > 0:
            return Listing.model_validate(result.data[0])
        raise RepositoryError("Failed to save listing: no data returned", listing_id=listing.listing_id)

    async def delete(self, listing_id: str) -> None:
        async with SupabaseClient() as client:
            try:
                result = client.table(self.table).delete().eq("listing_id", listing_id).execute()
            except Exception as e:
                raise RepositoryError(f"Failed to delete listing: {e}", listing_id=listing_id)

        if not result.data:
            raise NotFoundError(f"Listing not found: {listing_id}", listing_id=listing_id)
