"""Test helper functions."""

import json
from typing import Any, Dict, Optional

from src.models.principal import Principal
from tests.utils.fake_supabase import FakeSupabaseClient


def create_vercel_request(
    method: str = "POST",
    path: str = "/api/listings",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, str]] = None,
    token: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {"content-type": "application/json"}
    if token:
        headers = {**headers, "Authorization": f"Bearer {token}"}

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, (dict, list)) else body,
        "query": query or {},
    }


def sign_in(client: FakeSupabaseClient, principal: Principal) -> str:
    """Register a profile and access token for ``principal``; returns the token."""
    token = f"token-{principal.uid}"
    client.auth.tokens[token] = principal.uid
    client.add("profiles", {
        "id": principal.uid,
        "role": principal.role.value,
        "display_name": principal.display_name,
        "photo_url": principal.photo_url,
    })
    return token


def response_json(response: Dict[str, Any]) -> Any:
    return json.loads(response["body"])
