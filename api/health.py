"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
from src.utils.logging_config import CatalogConfig


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps({
            "status": "ok",
            "service": "listing-catalog",
            "properties_table": CatalogConfig.PROPERTIES_TABLE,
            "duplicate_detection_enabled": CatalogConfig.DUPLICATE_DETECTION_ENABLED,
        })
        self.wfile.write(response.encode('utf-8'))

    def do_POST(self):
        """Same as GET."""
        self.do_GET()
