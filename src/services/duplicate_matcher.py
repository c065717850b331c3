"""Duplicate matching - find listings that share an address with a given listing."""

from src.models.listing import DuplicateCheck, Listing
from src.services.address_key import tokens
from src.services.property_repository import PropertyRepository
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class DuplicateMatcher:
    """Read-only address matching against the catalog."""

    def __init__(self, repository: PropertyRepository):
        self.repository = repository

    async def find_exact(self, listing: Listing) -> list[Listing]:
        """Active listings with the same address (case-insensitive), excluding the listing itself."""
        if not listing.has_address:
            return []

        matches = await self.repository.find_active_by_address_exact(
            listing.address.strip(), exclude_id=listing.listing_id
        )
        logger.debug(
            "Exact address matches",
            listing_id=listing.listing_id,
            match_count=len(matches)
        )
        return matches

    async def find_similar(self, listing: Listing) -> list[Listing]:
        """
        Active listings whose address contains every significant token of this one.

        Coarse: generic street words produce false positives. Results only
        feed human review.
        """
        address_tokens = tokens(listing.address)
        if not address_tokens:
            return []

        matches = await self.repository.find_active_by_address_tokens(
            address_tokens, exclude_id=listing.listing_id
        )
        logger.debug(
            "Similar address matches",
            listing_id=listing.listing_id,
            token_count=len(address_tokens),
            match_count=len(matches)
        )
        return matches

    async def check_for_duplicates(self, listing: Listing) -> DuplicateCheck:
        existing = await self.find_exact(listing)
        return DuplicateCheck(is_duplicate=bool(existing), existing=existing)
