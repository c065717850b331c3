"""Canonical listing selection for a duplicate cluster."""

from typing import Iterable
from src.models.listing import Listing


def canonical_sort_key(listing: Listing):
    return (listing.created_at, listing.listing_id)


def order_cluster(cluster: Iterable[Listing]) -> list[Listing]:
    """Cluster members oldest first, ties broken by listing ID."""
    return sorted(cluster, key=canonical_sort_key)


def select_canonical(cluster: Iterable[Listing]) -> Listing:
    """The oldest listing wins; identical timestamps fall back to the smaller ID."""
    ordered = order_cluster(cluster)
    if not ordered:
        raise ValueError("cannot select a canonical listing from an empty cluster")
    return ordered[0]
