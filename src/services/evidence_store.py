"""Evidence store adapter - evidence rows to and from the `evidence` table."""

from typing import Any
from pydantic import ValidationError

from src.models.evidence import Evidence, EvidenceDraft
from src.services.supabase_client import execute
from src.utils.errors import MalformedRecordError, NotFoundError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger
from src.utils.timestamps import to_datetime, to_store, utc_now

logger = get_structured_logger(__name__)

EVIDENCE_TABLE = "evidence"


def to_evidence(row: dict[str, Any]) -> Evidence:
    """Validate a stored row into an Evidence record with a native `uploaded_at`."""
    if not row:
        raise MalformedRecordError("Evidence document data is empty")
    data = dict(row)
    try:
        data["uploaded_at"] = to_datetime(data.get("uploaded_at"))
        return Evidence.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed evidence record {row.get('id')}: {e}") from e


async def get_evidence_for_listing(client: Any, listing_id: str) -> list[Evidence]:
    """Fetch all evidence documents of a listing, oldest upload first."""
    rows = execute(
        client.table(EVIDENCE_TABLE).select("*").eq("listing_id", listing_id).order("uploaded_at"),
        "get evidence for listing",
    )
    return [to_evidence(row) for row in rows]


async def get_evidence_by_id(client: Any, evidence_id: str) -> Evidence:
    rows = execute(
        client.table(EVIDENCE_TABLE).select("*").eq("id", evidence_id).limit(1),
        "get evidence",
    )
    if not rows:
        raise NotFoundError(f"Evidence not found: {evidence_id}")
    return to_evidence(rows[0])


async def insert_evidence(
    client: Any,
    listing_id: str,
    owner_id: str,
    drafts: list[EvidenceDraft],
) -> list[Evidence]:
    """Insert evidence rows for a listing; new documents start unverified."""
    if not drafts:
        return []
    uploaded_at = to_store(utc_now())
    rows = [
        {
            "id": generate_document_id(),
            "listing_id": listing_id,
            "owner_id": owner_id,
            "type": draft.type.value,
            "name": draft.name,
            "storage_path": draft.storage_path,
            "content": draft.content or f"(File: {draft.name} - cannot be summarized)",
            "verified": False,
            "uploaded_at": uploaded_at,
        }
        for draft in drafts
    ]
    inserted = execute(client.table(EVIDENCE_TABLE).insert(rows), "insert evidence")
    logger.info("Evidence inserted", listing_id=listing_id, count=len(inserted))
    return [to_evidence(row) for row in inserted]


async def attach_summary(client: Any, evidence_id: str, summary: str) -> Evidence:
    """Store an AI summary; the only mutation evidence allows."""
    rows = execute(
        client.table(EVIDENCE_TABLE).update({"summary": summary}).eq("id", evidence_id),
        "attach evidence summary",
    )
    if not rows:
        raise NotFoundError(f"Evidence not found: {evidence_id}")
    return to_evidence(rows[0])


async def delete_evidence_for_listing(client: Any, listing_id: str) -> list[str]:
    """Delete evidence rows of a listing and return their storage paths."""
    rows = execute(
        client.table(EVIDENCE_TABLE).delete().eq("listing_id", listing_id),
        "delete evidence",
    )
    return [row["storage_path"] for row in rows if row.get("storage_path")]
