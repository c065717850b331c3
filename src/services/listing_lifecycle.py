"""Listing lifecycle - status transitions and duplicate linkage."""

from typing import Optional
from src.models.listing import Listing, ListingStatus, RecheckResult
from src.services.address_key import addresses_match
from src.services.canonical_selector import canonical_sort_key, order_cluster, select_canonical
from src.services.duplicate_matcher import DuplicateMatcher
from src.services.property_repository import PropertyRepository
from src.utils.errors import ConflictError, NotFoundError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


class ListingLifecycle:
    """
    Applies lifecycle transitions to listings in a catalog.

    Every transition re-reads the listings it touches right before writing,
    so IDs collected earlier in a request are never trusted. A listing that
    disappeared in between surfaces as NotFoundError.
    """

    def __init__(self, repository: PropertyRepository, matcher: Optional[DuplicateMatcher] = None):
        self.repository = repository
        self.matcher = matcher or DuplicateMatcher(repository)

    async def _valid_original(self, listing: Listing) -> Optional[Listing]:
        """The listing's current canonical, or None when the link is stale."""
        if not listing.duplicate_of:
            return None

        try:
            original = await self.repository.find_by_id(listing.duplicate_of)
        except NotFoundError:
            return None

        if not original.in_matching_pool or original.status == ListingStatus.PENDING:
            return None
        if not addresses_match(original.address, listing.address):
            return None
        if canonical_sort_key(original) > canonical_sort_key(listing):
            return None
        return original

    async def recheck(self, listing_id: str) -> RecheckResult:
        """
        Re-run exact matching for one listing and apply the outcome.

        A listing that is not the oldest in its address cluster moves to
        pending and links to the oldest one. A canonical listing that still
        carries a link from an earlier demotion gets it cleared and returns
        to active. Running this twice on an unchanged catalog is a no-op the
        second time.
        """
        listing = await self.repository.find_by_id(listing_id)

        if not listing.has_address:
            if listing.duplicate_of is None:
                return RecheckResult(listing=listing, message="No address to check")
            return await self._clear_link(listing, "Listing has no address; duplicate link cleared")

        if not listing.in_matching_pool:
            return RecheckResult(listing=listing, message="Archived or deleted listings are not matched")

        if listing.status == ListingStatus.PENDING and listing.duplicate_of:
            original = await self._valid_original(listing)
            if original is not None:
                return RecheckResult(
                    listing=listing,
                    original=original,
                    is_duplicate=True,
                    message="Listing is already marked as duplicate"
                )

        matches = await self.matcher.find_exact(listing)
        canonical = select_canonical([*matches, listing])

        if canonical.listing_id != listing.listing_id:
            if listing.status == ListingStatus.PENDING and listing.duplicate_of == canonical.listing_id:
                return RecheckResult(
                    listing=listing,
                    original=canonical,
                    is_duplicate=True,
                    message="Listing is already marked as duplicate"
                )

            # Canonical may have been removed since the match query
            canonical = await self.repository.find_by_id(canonical.listing_id)
            if not canonical.in_matching_pool:
                raise ConflictError(
                    f"Canonical listing {canonical.listing_id} changed during recheck",
                    listing_id=listing.listing_id
                )

            was_pending = listing.status == ListingStatus.PENDING
            listing.status = ListingStatus.PENDING
            listing.duplicate_of = canonical.listing_id
            listing.touch()
            saved = await self.repository.save(listing)

            logger.info(
                "Listing marked as duplicate",
                listing_id=listing.listing_id,
                duplicate_of=canonical.listing_id,
                owner_id=mask_user_id(listing.owner_id),
                cluster_size=len(matches) + 1
            )
            return RecheckResult(
                listing=saved,
                original=canonical,
                is_duplicate=True,
                demoted=not was_pending,
                message=f'Listing marked as duplicate of "{canonical.title or canonical.listing_id}"'
            )

        if listing.duplicate_of is not None:
            return await self._clear_link(listing, "Listing is canonical; stale duplicate link cleared")

        return RecheckResult(listing=listing, message="No duplicates found")

    async def _clear_link(self, listing: Listing, message: str) -> RecheckResult:
        stale_link = listing.duplicate_of
        listing.duplicate_of = None
        if listing.status == ListingStatus.PENDING:
            listing.status = ListingStatus.ACTIVE
        listing.touch()
        saved = await self.repository.save(listing)

        logger.info(
            "Cleared stale duplicate link",
            listing_id=listing.listing_id,
            stale_duplicate_of=stale_link
        )
        return RecheckResult(listing=saved, message=message)

    async def _relink_dependents(self, listing_id: str) -> int:
        """Recheck pending listings that pointed at a listing which left the matching pool."""
        pending = await self.repository.find_by_status(ListingStatus.PENDING)
        dependents = order_cluster(listing for listing in pending if listing.duplicate_of == listing_id)

        relinked = 0
        for dependent in dependents:
            try:
                await self.recheck(dependent.listing_id)
                relinked += 1
            except (NotFoundError, ConflictError) as e:
                # Changed by a concurrent request
                logger.warning(
                    "Skipped dependent during relink",
                    listing_id=listing_id,
                    dependent_id=dependent.listing_id,
                    error=str(e)
                )

        if dependents:
            logger.info(
                "Rechecked dependents of removed listing",
                listing_id=listing_id,
                dependent_count=len(dependents),
                relinked_count=relinked
            )
        return relinked

    async def approve(self, duplicate_id: str, canonical_id: str) -> Listing:
        """Copy the duplicate's content onto the canonical listing, then remove the duplicate."""
        if duplicate_id == canonical_id:
            raise ConflictError("A listing cannot be merged into itself", listing_id=duplicate_id)

        duplicate = await self.repository.find_by_id(duplicate_id)
        canonical = await self.repository.find_by_id(canonical_id)
        if canonical.deleted:
            raise NotFoundError(f"Canonical listing was deleted: {canonical_id}", listing_id=canonical_id)

        merged = canonical.model_copy(update=duplicate.content())
        merged.touch()
        saved = await self.repository.save(merged)
        await self.repository.delete(duplicate.listing_id)

        logger.info(
            "Approved duplicate merged into canonical listing",
            duplicate_id=duplicate_id,
            canonical_id=canonical_id
        )
        await self._relink_dependents(duplicate_id)
        return saved

    async def reject(self, duplicate_id: str) -> Listing:
        """Remove the duplicate; its canonical is left untouched."""
        duplicate = await self.repository.find_by_id(duplicate_id)
        await self.repository.delete(duplicate.listing_id)

        logger.info(
            "Rejected duplicate removed",
            duplicate_id=duplicate_id,
            duplicate_of=duplicate.duplicate_of
        )
        await self._relink_dependents(duplicate_id)
        return duplicate

    async def _set_flag(self, listing_id: str, flag: str, value: bool) -> Listing:
        listing = await self.repository.find_by_id(listing_id)
        if getattr(listing, flag) == value:
            return listing

        setattr(listing, flag, value)
        listing.touch()
        saved = await self.repository.save(listing)
        logger.info(
            "Listing flag updated",
            listing_id=listing_id,
            flag=flag,
            value=value
        )
        return saved

    async def archive(self, listing_id: str) -> Listing:
        return await self._set_flag(listing_id, "archived", True)

    async def unarchive(self, listing_id: str) -> Listing:
        return await self._set_flag(listing_id, "archived", False)

    async def soft_delete(self, listing_id: str) -> Listing:
        """Flag the listing deleted and relink anything that was pending against it."""
        listing = await self._set_flag(listing_id, "deleted", True)
        await self._relink_dependents(listing_id)
        return listing

    async def restore(self, listing_id: str) -> Listing:
        """
        Bring a soft-deleted listing back into the matching pool.

        Its cluster may have changed while it was deleted, so the listing is
        rechecked; when it comes back as the canonical one, the other members
        are rechecked as well so they demote against it.
        """
        await self._set_flag(listing_id, "deleted", False)
        await self.recheck_cluster(listing_id)
        return await self.repository.find_by_id(listing_id)

    async def recheck_cluster(self, listing_id: str) -> RecheckResult:
        """
        Recheck a listing, then the rest of its cluster if it came out canonical.

        Used when a listing (re)enters the pool and may be older than the
        cluster's current canonical.
        """
        result = await self.recheck(listing_id)
        if result.is_duplicate or not result.listing.in_matching_pool:
            return result

        for member in order_cluster(await self.matcher.find_exact(result.listing)):
            try:
                await self.recheck(member.listing_id)
            except (NotFoundError, ConflictError) as e:
                logger.warning(
                    "Skipped cluster member during recheck",
                    listing_id=listing_id,
                    member_id=member.listing_id,
                    error=str(e)
                )
        return result

    async def permanently_delete(self, listing_id: str) -> None:
        """Irreversibly remove the listing."""
        listing = await self.repository.find_by_id(listing_id)
        await self.repository.delete(listing.listing_id)
        logger.info("Listing permanently deleted", listing_id=listing_id)
        await self._relink_dependents(listing_id)
