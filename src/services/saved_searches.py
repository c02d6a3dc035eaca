"""Saved searches: named filter sets stored per buyer."""

from typing import Any, Optional
from pydantic import ValidationError

from src.models.principal import Principal
from src.models.search import SavedSearch, SearchFilters
from src.services.auth import require_principal
from src.services.supabase_client import execute
from src.utils.errors import InvalidInputError, MalformedRecordError, NotFoundError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.timestamps import to_datetime, to_store, utc_now

logger = get_structured_logger(__name__)

SAVED_SEARCHES_TABLE = "saved_searches"
MAX_SAVED_SEARCHES = 20


def to_saved_search(row: dict[str, Any]) -> SavedSearch:
    data = dict(row)
    try:
        data["created_at"] = to_datetime(data.get("created_at"))
        return SavedSearch.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed saved search {row.get('id')}: {e}") from e


async def list_saved_searches(client: Any, principal: Optional[Principal]) -> list[SavedSearch]:
    """The caller's saved searches, newest first."""
    principal = require_principal(principal)
    rows = execute(
        client.table(SAVED_SEARCHES_TABLE).select("*").eq("user_id", principal.uid)
        .order("created_at", desc=True).order("id", desc=True),
        "list saved searches",
    )
    searches = []
    for row in rows:
        try:
            searches.append(to_saved_search(row))
        except MalformedRecordError as e:
            logger.error("Skipping malformed saved search", search_id=row.get("id"), error=str(e))
    return searches


async def save_search(
    client: Any,
    principal: Optional[Principal],
    name: str,
    filters: SearchFilters,
) -> SavedSearch:
    """Store the filters under ``name``; the page cursor is not kept."""
    principal = require_principal(principal)
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("A name is required to save a search.")

    existing = execute(
        client.table(SAVED_SEARCHES_TABLE).select("id").eq("user_id", principal.uid),
        "count saved searches",
    )
    if len(existing) >= MAX_SAVED_SEARCHES:
        raise InvalidInputError(f"You can keep at most {MAX_SAVED_SEARCHES} saved searches.")

    saved = SavedSearch(
        id=generate_document_id(),
        user_id=principal.uid,
        name=name,
        filters=filters.model_copy(update={"cursor": None}),
        created_at=utc_now(),
    )
    row = saved.model_dump(mode="json", exclude={"filters": {"cursor"}})
    row["created_at"] = to_store(saved.created_at)
    execute(client.table(SAVED_SEARCHES_TABLE).insert(row), "save search")
    logger.info("Search saved", search_id=saved.id, user=mask_user_id(principal.uid))
    return saved


async def delete_saved_search(client: Any, principal: Optional[Principal], search_id: str) -> None:
    principal = require_principal(principal)
    rows = execute(
        client.table(SAVED_SEARCHES_TABLE).delete().eq("id", search_id).eq("user_id", principal.uid),
        "delete saved search",
    )
    if not rows:
        raise NotFoundError(f"Saved search not found: {search_id}")
    logger.info("Saved search deleted", search_id=search_id, user=mask_user_id(principal.uid))
