"""Review workflow - human-facing duplicate review and listing maintenance operations."""

from typing import Optional
from src.models.listing import (
    BulkRecheckResult,
    Listing,
    ListingComparison,
    ListingStatus,
    RecheckResult,
)
from src.services.canonical_selector import order_cluster
from src.services.listing_lifecycle import ListingLifecycle
from src.services.property_repository import PropertyRepository
from src.utils.errors import ConflictError, NotFoundError
from src.utils.logging import get_structured_logger, log_timing, mask_sensitive_data, mask_user_id, timed
from src.utils.logging_config import CatalogConfig
from src.utils.validation import validate_listing_id

logger = get_structured_logger(__name__)


class ReviewWorkflow:
    """
    Entry point for callers (HTTP handlers, intake jobs).

    Validates IDs before touching the repository and enforces the guards
    that the lifecycle itself does not: approve needs a linked duplicate,
    reject needs a pending listing, purge needs a soft-deleted one.
    """

    def __init__(
        self,
        repository: PropertyRepository,
        lifecycle: Optional[ListingLifecycle] = None,
        duplicate_detection_enabled: Optional[bool] = None,
    ):
        self.repository = repository
        self.lifecycle = lifecycle or ListingLifecycle(repository)
        if duplicate_detection_enabled is None:
            duplicate_detection_enabled = CatalogConfig.DUPLICATE_DETECTION_ENABLED
        self.duplicate_detection_enabled = duplicate_detection_enabled

    async def list_pending_review(self) -> list[Listing]:
        """Pending, non-deleted listings, newest first."""
        pending = await self.repository.find_by_status(ListingStatus.PENDING)
        return list(reversed(order_cluster(listing for listing in pending if not listing.deleted)))

    @timed("bulk_recheck")
    async def bulk_recheck(self) -> BulkRecheckResult:
        """
        Recheck every active or sold listing that is neither archived nor deleted.

        Listings are processed oldest first, each as its own read-then-write.
        A failure on one listing is logged and counted; the scan continues.
        """
        result = BulkRecheckResult()
        listings = await self.repository.find_all_active()
        candidates = [
            listing for listing in order_cluster(listings)
            if listing.status in (ListingStatus.ACTIVE, ListingStatus.SOLD)
        ]

        logger.info("Bulk recheck started", candidate_count=len(candidates))

        for listing in candidates:
            result.checked_count += 1
            try:
                outcome = await self.lifecycle.recheck(listing.listing_id)
            except Exception as e:
                result.failed_count += 1
                logger.error(
                    "Recheck failed during bulk recheck",
                    exc_info=True,
                    listing_id=listing.listing_id,
                    error=str(e)
                )
                continue

            if outcome.demoted:
                result.demoted_count += 1

            if result.checked_count % CatalogConfig.BULK_RECHECK_LOG_EVERY == 0:
                logger.info(
                    "Bulk recheck progress",
                    checked_count=result.checked_count,
                    demoted_count=result.demoted_count,
                    failed_count=result.failed_count
                )

        logger.info(
            "Bulk recheck finished",
            checked_count=result.checked_count,
            demoted_count=result.demoted_count,
            failed_count=result.failed_count
        )
        return result

    async def compare(self, duplicate_id: str) -> ListingComparison:
        """Resolve a duplicate and its canonical for side-by-side display."""
        duplicate_id = validate_listing_id(duplicate_id, "duplicate_id")
        duplicate = await self.repository.find_by_id(duplicate_id)

        if not duplicate.duplicate_of:
            raise NotFoundError(
                f"Listing {duplicate_id} is not linked to an original",
                listing_id=duplicate_id
            )

        original = await self.repository.find_by_id(duplicate.duplicate_of)
        if original.deleted:
            raise NotFoundError(
                f"Original listing was deleted: {original.listing_id}",
                listing_id=original.listing_id
            )
        return ListingComparison(duplicate=duplicate, original=original)

    async def approve(self, duplicate_id: str, canonical_id: Optional[str] = None) -> Listing:
        """
        Replace the canonical listing's content with the duplicate's and drop the duplicate.

        `canonical_id` defaults to the duplicate's link; when given it must agree
        with that link, otherwise a concurrent change is reported as a conflict.
        """
        duplicate_id = validate_listing_id(duplicate_id, "duplicate_id")
        if canonical_id is not None:
            canonical_id = validate_listing_id(canonical_id, "canonical_id")

        duplicate = await self.repository.find_by_id(duplicate_id)
        if not duplicate.duplicate_of:
            raise ConflictError(
                f"Listing {duplicate_id} is not marked as a duplicate",
                listing_id=duplicate_id
            )
        if canonical_id is not None and canonical_id != duplicate.duplicate_of:
            raise ConflictError(
                f"Listing {duplicate_id} is a duplicate of {duplicate.duplicate_of}, not {canonical_id}",
                listing_id=duplicate_id
            )

        with log_timing("approve_duplicate", logger=logger, duplicate_id=duplicate_id):
            return await self.lifecycle.approve(duplicate_id, duplicate.duplicate_of)

    async def reject(self, duplicate_id: str) -> Listing:
        """Discard a pending duplicate. Returns the removed listing."""
        duplicate_id = validate_listing_id(duplicate_id, "duplicate_id")
        duplicate = await self.repository.find_by_id(duplicate_id)
        if duplicate.status != ListingStatus.PENDING:
            raise ConflictError(
                f"Listing {duplicate_id} is not pending review",
                listing_id=duplicate_id
            )
        return await self.lifecycle.reject(duplicate_id)

    async def recheck(self, listing_id: str) -> RecheckResult:
        return await self.lifecycle.recheck(validate_listing_id(listing_id))

    async def find_similar(self, listing_id: str) -> list[Listing]:
        """Candidate duplicates by address tokens; never changes listing state."""
        listing = await self.repository.find_by_id(validate_listing_id(listing_id))
        return await self.lifecycle.matcher.find_similar(listing)

    async def archive(self, listing_id: str) -> Listing:
        return await self.lifecycle.archive(validate_listing_id(listing_id))

    async def unarchive(self, listing_id: str) -> Listing:
        return await self.lifecycle.unarchive(validate_listing_id(listing_id))

    async def soft_delete(self, listing_id: str) -> Listing:
        return await self.lifecycle.soft_delete(validate_listing_id(listing_id))

    async def restore(self, listing_id: str) -> Listing:
        return await self.lifecycle.restore(validate_listing_id(listing_id))

    async def purge(self, listing_id: str) -> None:
        """Permanently delete a listing that is already in the trash."""
        listing_id = validate_listing_id(listing_id)
        listing = await self.repository.find_by_id(listing_id)
        if not listing.deleted:
            raise ConflictError(
                f"Listing {listing_id} must be deleted before it can be purged",
                listing_id=listing_id
            )
        await self.lifecycle.permanently_delete(listing_id)

    async def intake(self, listing: Listing, detect_duplicates: Optional[bool] = None) -> RecheckResult:
        """
        Store a newly ingested listing and run duplicate detection on it.

        Review state is never taken from the caller: the listing enters the
        catalog undeleted, unlinked and not pending. Detection follows the
        catalog setting unless `detect_duplicates` overrides it; when the new
        listing turns out older than its cluster's canonical, the cluster is
        rechecked against it.
        """
        listing_id = validate_listing_id(listing.listing_id)
        status = ListingStatus.ACTIVE if listing.status == ListingStatus.PENDING else listing.status
        listing = listing.model_copy(update={"status": status, "duplicate_of": None, "deleted": False})
        try:
            await self.repository.find_by_id(listing_id)
        except NotFoundError:
            pass
        else:
            raise ConflictError(f"Listing already exists: {listing_id}", listing_id=listing_id)

        saved = await self.repository.save(listing)
        logger.info(
            "Listing ingested",
            listing_id=listing_id,
            owner_id=mask_user_id(saved.owner_id),
            email_source=mask_sensitive_data(saved.email_source)
        )

        if detect_duplicates is None:
            detect_duplicates = self.duplicate_detection_enabled
        if not detect_duplicates:
            return RecheckResult(listing=saved, message="Duplicate detection disabled")

        return await self.lifecycle.recheck_cluster(listing_id)


def create_review_workflow(repository: Optional[PropertyRepository] = None) -> ReviewWorkflow:
    """Build a workflow over the given repository, defaulting to the Supabase catalog."""
    if repository is None:
        from src.services.supabase_client import SupabasePropertyRepository
        repository = SupabasePropertyRepository()
    return ReviewWorkflow(repository)
