"""Error handling utilities."""

from typing import Optional


class CatalogError(Exception):
    """Base exception for the listing catalog backend."""
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, listing_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.listing_id = listing_id

    def to_dict(self) -> dict:
        """Structured error body for API responses."""
        error = {"kind": self.kind, "message": self.message}
        if self.listing_id:
            error["listing_id"] = self.listing_id
        return {"error": error}


class NotFoundError(CatalogError):
    """Referenced listing does not exist or was removed out-of-band."""
    kind = "not_found"
    status_code = 404


class ConflictError(CatalogError):
    """Operation precondition violated."""
    kind = "conflict"
    status_code = 409


class InvalidInputError(CatalogError):
    """Malformed id or missing required field."""
    kind = "invalid_input"
    status_code = 400


class RepositoryError(CatalogError):
    """Persistence operation error."""
    kind = "repository_error"
    status_code = 500
