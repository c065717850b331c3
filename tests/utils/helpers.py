"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional, Tuple
from unittest.mock import Mock
from src.models.listing import Listing
from src.services.property_repository import InMemoryPropertyRepository


def all_listings(repository: InMemoryPropertyRepository) -> list[Listing]:
    """Every stored listing, deleted and archived included."""
    return [listing.model_copy(deep=True) for listing in repository._listings.values()]


def call_handler(
    handler_cls,
    method: str,
    path: str,
    body: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Any]:
    """Drive a serverless handler without a socket and return (status, parsed JSON body)."""
    raw = json.dumps(body).encode("utf-8") if body is not None else b""

    h = handler_cls.__new__(handler_cls)
    h.path = path
    h.command = method
    h.headers = {"Content-Length": str(len(raw)), "Content-Type": "application/json", **(headers or {})}
    h.rfile = BytesIO(raw)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()

    getattr(h, f"do_{method}")()

    status = h.send_response.call_args[0][0]
    return status, json.loads(h.wfile.getvalue().decode("utf-8"))
