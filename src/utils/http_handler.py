"""Shared plumbing for the Vercel serverless handlers."""

import asyncio
import json
import re
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlparse
from src.utils.errors import CatalogError, InvalidInputError
from src.utils.logging import correlation_context, get_structured_logger, setup_logging
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

_workflow = None


def get_workflow():
    """Build the catalog workflow on first request."""
    global _workflow
    if _workflow is None:
        setup_logging()
        from src.services.review_workflow import create_review_workflow
        _workflow = create_review_workflow()
    return _workflow


def route(method: str, pattern: str, action: str) -> tuple[str, re.Pattern, str]:
    """Route entry; the optional /api prefix matches both rewritten and direct paths."""
    return method, re.compile(rf"^(?:/api)?{pattern}/?$"), action


class CatalogRequestHandler(BaseHTTPRequestHandler):
    """Dispatch requests to coroutine actions and render JSON responses."""

    routes: list[tuple[str, re.Pattern, str]] = []

    def _send_json(self, status: int, payload: Any) -> None:
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode('utf-8'))

    def _read_json_body(self) -> dict:
        content_length = int(self.headers.get('Content-Length', 0) or 0)
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
        if not raw_body:
            return {}
        try:
            body = json.loads(raw_body)
        except json.JSONDecodeError:
            raise InvalidInputError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise InvalidInputError("Request body must be a JSON object")
        return body

    def _dispatch(self, method: str) -> None:
        parsed = urlparse(self.path)
        query = {key: values[0] for key, values in parse_qs(parsed.query).items()}

        for route_method, pattern, action in self.routes:
            if route_method != method:
                continue
            match = pattern.match(parsed.path)
            if not match:
                continue

            params = {key: unquote(value) for key, value in match.groupdict().items()}
            correlation_id: Optional[str] = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)
            with correlation_context(correlation_id):
                try:
                    status, payload = asyncio.run(getattr(self, action)(get_workflow(), query, **params))
                except CatalogError as e:
                    logger.warning(
                        "Request failed",
                        path=parsed.path,
                        error_kind=e.kind,
                        error=e.message
                    )
                    self._send_json(e.status_code, e.to_dict())
                    return
                except Exception as e:
                    logger.error("Unhandled error", exc_info=True, path=parsed.path, error=str(e))
                    self._send_json(500, {"error": {"kind": "internal_error", "message": "internal server error"}})
                    return

            self._send_json(status, payload)
            return

        self._send_json(404, {"error": {"kind": "not_found", "message": f"No route for {method} {parsed.path}"}})

    def do_GET(self):
        self._dispatch("GET")

    def do_POST(self):
        self._dispatch("POST")
