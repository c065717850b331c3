"""Property repository interface and in-process implementation."""

from abc import ABC, abstractmethod
from typing import Optional
from src.models.listing import Listing, ListingStatus
from src.services.address_key import addresses_match, contains_all_tokens
from src.utils.errors import NotFoundError


class PropertyRepository(ABC):
    """
    Abstract listing persistence used by the duplicate engine.

    "Active" queries return listings that are neither archived nor deleted,
    whatever their business status.
    """

    @abstractmethod
    async def find_by_id(self, listing_id: str) -> Listing:
        """Return the listing (soft-deleted included) or raise NotFoundError."""

    @abstractmethod
    async def find_active_by_address_exact(self, address: str, exclude_id: Optional[str] = None) -> list[Listing]:
        """Active listings whose address equals `address` case-insensitively."""

    @abstractmethod
    async def find_active_by_address_tokens(self, tokens: list[str], exclude_id: Optional[str] = None) -> list[Listing]:
        """Active listings whose address contains every token case-insensitively."""

    @abstractmethod
    async def find_all_active(self) -> list[Listing]:
        """All active listings."""

    @abstractmethod
    async def find_by_status(self, status: ListingStatus) -> list[Listing]:
        """Non-deleted listings with the given status, archived included."""

    @abstractmethod
    async def save(self, listing: Listing) -> Listing:
        """Insert or update a listing."""

    @abstractmethod
    async def delete(self, listing_id: str) -> None:
        """Hard delete. Raises NotFoundError when the listing does not exist."""


class InMemoryPropertyRepository(PropertyRepository):
    """Dict-backed repository for in-process catalogs."""

    def __init__(self, listings: Optional[list[Listing]] = None):
        self._listings: dict[str, Listing] = {}
        for listing in listings or []:
            self._listings[listing.listing_id] = listing.model_copy(deep=True)

    def _active(self, exclude_id: Optional[str] = None) -> list[Listing]:
        return [
            listing.model_copy(deep=True)
            for listing in self._listings.values()
            if listing.in_matching_pool and listing.listing_id != exclude_id
        ]

    async def find_by_id(self, listing_id: str) -> Listing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise NotFoundError(f"Listing not found: {listing_id}", listing_id=listing_id)
        return listing.model_copy(deep=True)

    async def find_active_by_address_exact(self, address: str, exclude_id: Optional[str] = None) -> list[Listing]:
        return [listing for listing in self._active(exclude_id) if addresses_match(listing.address, address)]

    async def find_active_by_address_tokens(self, tokens: list[str], exclude_id: Optional[str] = None) -> list[Listing]:
        return [listing for listing in self._active(exclude_id) if contains_all_tokens(listing.address, tokens)]

    async def find_all_active(self) -> list[Listing]:
        return self._active()

    async def find_by_status(self, status: ListingStatus) -> list[Listing]:
        return [
            listing.model_copy(deep=True)
            for listing in self._listings.values()
            if listing.status == status and not listing.deleted
        ]

    async def save(self, listing: Listing) -> Listing:
        self._listings[listing.listing_id] = listing.model_copy(deep=True)
        return listing

    async def delete(self, listing_id: str) -> None:
        if self._listings.pop(listing_id, None) is None:
            raise NotFoundError(f"Listing not found: {listing_id}", listing_id=listing_id)
