"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
import os

from src.utils.config import MarketplaceConfig
from src.utils.timestamps import to_store, utc_now


def health_payload() -> dict:
    """Liveness plus which collaborators are configured; makes no remote calls."""
    return {
        "status": "ok",
        "service": "ardhi-backend",
        "time": to_store(utc_now()),
        "checks": {
            "supabase_configured": bool(
                os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
            ),
            "ai_assist_enabled": MarketplaceConfig.USE_AI_ASSIST,
            "revalidation_webhook": bool(MarketplaceConfig.REVALIDATE_WEBHOOK_URL),
        },
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps(health_payload())
        self.wfile.write(response.encode('utf-8'))

    def do_HEAD(self):
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
