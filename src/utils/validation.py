"""Input validation for listing identifiers."""

import re
from typing import Optional
from src.utils.errors import InvalidInputError

LISTING_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_listing_id(listing_id: Optional[str], field: str = "listing_id") -> str:
    """Return the stripped ID or raise InvalidInputError."""
    if listing_id is None or not isinstance(listing_id, str):
        raise InvalidInputError(f"{field} is required")

    listing_id = listing_id.strip()
    if not LISTING_ID_PATTERN.match(listing_id):
        raise InvalidInputError(f"{field} is malformed: {listing_id[:64]!r}")
    return listing_id
