"""Supabase client handle with explicit open/close and async context manager support."""

import os
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class SupabaseClient:
    """Explicitly constructed Supabase handle passed into the core functions.

    Usage::

        async with SupabaseClient.from_env() as client:
            page = await search_listings(client, filters, principal)
    """

    def __init__(self, url: str, key: str):
        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        self.url = url
        self._key = key
        self._client: Optional[Client] = None

    @classmethod
    def from_env(cls) -> "SupabaseClient":
        return cls(
            os.environ.get("SUPABASE_URL", ""),
            os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
        )

    def open(self) -> Client:
        """Create the underlying client if not already open."""
        if self._client is None:
            # Sessions are per request; nothing to persist or refresh
            options = ClientOptions(
                auto_refresh_token=False,
                persist_session=False,
            )
            self._client = create_client(self.url, self._key, options)
            logger.info("Supabase client initialized", url=self.url)
        return self._client

    def close(self) -> None:
        """Drop the underlying client; supabase-py has no explicit close."""
        if self._client is not None:
            self._client = None
            logger.info("Supabase client closed")

    @property
    def client(self) -> Client:
        if self._client is None:
            raise SupabaseError("Supabase client is not open")
        return self._client

    def table(self, name: str) -> Any:
        return self.client.table(name)

    @property
    def auth(self) -> Any:
        return self.client.auth

    @property
    def storage(self) -> Any:
        return self.client.storage

    async def __aenter__(self) -> "SupabaseClient":
        self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=str(exc_val),
                type=exc_type.__name__
            )
        self.close()
        return False


def execute(query: Any, action: str) -> list[dict]:
    """Run a PostgREST query builder, wrapping transport/store failures."""
    try:
        result = query.execute()
    except SupabaseError:
        raise
    except Exception as e:
        raise SupabaseError(f"Failed to {action}: {e}") from e
    return list(result.data) if result.data else []


def _quote(value: Any) -> str:
    return '"' + str(value).replace('"', '\\"') + '"'


def start_after_clause(sort_field: str, descending: bool, cursor_row: dict[str, Any]) -> str:
    """PostgREST `or` filter selecting rows strictly after the cursor row.

    Rows are ordered by (sort_field, id) so equal sort values still page
    without gaps or repeats.
    """
    op = "lt" if descending else "gt"
    value = _quote(cursor_row.get(sort_field))
    row_id = _quote(cursor_row["id"])
    return f"{sort_field}.{op}.{value},and({sort_field}.eq.{value},id.{op}.{row_id})"
