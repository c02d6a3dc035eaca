"""Buyer reports against listings, queued for admin review."""

from typing import Any, Optional

from src.models.principal import Principal
from src.services.supabase_client import execute
from src.utils.errors import InvalidInputError
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, loggable_text, mask_user_id
from src.utils.timestamps import to_store, utc_now

logger = get_structured_logger(__name__)

REPORTS_TABLE = "listing_reports"
MAX_REASON_LENGTH = 2000


async def report_listing(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    reason: str,
) -> str:
    """Record a report and return its ID. Anonymous reports are accepted."""
    listing_id = (listing_id or "").strip()
    reason = (reason or "").strip()
    if not listing_id or not reason:
        raise InvalidInputError("Listing ID and reason are required.")
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidInputError(f"Reason must be at most {MAX_REASON_LENGTH} characters.")

    report_id = generate_document_id()
    execute(
        client.table(REPORTS_TABLE).insert({
            "id": report_id,
            "listing_id": listing_id,
            "reason": reason,
            "reporter_id": principal.uid if principal else None,
            "status": "new",
            "created_at": to_store(utc_now()),
        }),
        "report listing",
    )
    logger.info(
        "Listing reported",
        report_id=report_id,
        listing_id=listing_id,
        reporter=mask_user_id(principal.uid) if principal else None,
        reason=loggable_text(reason)
    )
    return report_id
