"""Listing mutations - create, owner edit, admin status/badge changes, delete.

Every write targets a single document. Bulk operations update each listing
independently: there is no cross-document transaction, already-applied
updates are not rolled back, and failures are reported per ID.
"""

from typing import Any, Optional

from src.models.listing import BadgeValue, Listing, ListingDraft, ListingPatch, ListingStatus
from src.models.principal import Principal
from src.services.auth import require_admin, require_principal
from src.services.badge_suggestion import suggest_badge
from src.services.evidence_store import delete_evidence_for_listing, get_evidence_for_listing, insert_evidence
from src.services.listing_store import (
    delete_listing_row,
    get_listing_row,
    insert_listing_row,
    to_listing,
    update_listing_row,
    validate_badge,
    validate_status,
)
from src.services.revalidation import ADMIN_PATH, PUBLIC_FEED_PATH, SELLER_DASHBOARD_PATH, Revalidator
from src.utils.config import MarketplaceConfig
from src.utils.errors import (
    InvalidInputError,
    MalformedRecordError,
    NotFoundError,
    PartialFailureError,
    PermissionDeniedError,
    SupabaseError,
)
from src.utils.ids import generate_document_id
from src.utils.logging import get_structured_logger, log_timing, mask_user_id
from src.utils.timestamps import to_store, utc_now

logger = get_structured_logger(__name__)


async def create_listing(
    client: Any,
    principal: Optional[Principal],
    draft: ListingDraft,
    revalidator: Revalidator,
) -> Listing:
    """Store a seller submission as a pending listing with its evidence."""
    principal = require_principal(principal)
    listing_id = generate_document_id()
    now = to_store(utc_now())
    suggestion = suggest_badge(draft.evidence, len(draft.images))

    row = {
        "id": listing_id,
        "owner_id": principal.uid,
        "title": draft.title,
        "description": draft.description,
        "location": draft.location,
        "county": draft.county,
        "price": draft.price,
        "area": draft.area,
        "size": draft.size,
        "land_type": draft.land_type,
        "latitude": draft.latitude,
        "longitude": draft.longitude,
        "is_approximate_location": False,
        "status": ListingStatus.PENDING.value,
        "badge": None,
        "badge_suggestion": suggestion.model_dump(mode="json"),
        "images": [image.model_dump() for image in draft.images],
        "seller": {
            "name": principal.display_name or "Anonymous Seller",
            "avatar_url": principal.photo_url or None,
        },
        "created_at": now,
        "updated_at": now,
    }

    with log_timing("create_listing", logger=logger, listing_id=listing_id):
        listing = await insert_listing_row(client, row)
        evidence = await insert_evidence(client, listing_id, principal.uid, draft.evidence)

    logger.info(
        "Listing created",
        listing_id=listing_id,
        owner=mask_user_id(principal.uid),
        evidence_count=len(evidence),
        suggested_badge=suggestion.badge.value
    )
    await revalidator.revalidate(PUBLIC_FEED_PATH, SELLER_DASHBOARD_PATH, ADMIN_PATH)
    return listing.model_copy(update={"evidence": evidence})


async def update_listing(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    patch: ListingPatch,
    revalidator: Revalidator,
) -> Listing:
    """Apply an edit. An owner edit always sends the listing back to review."""
    principal = require_principal(principal)
    row = await get_listing_row(client, listing_id)
    if row is None:
        raise NotFoundError(f"Listing not found: {listing_id}")

    is_owner = row.get("owner_id") == principal.uid
    if not is_owner and not principal.is_admin:
        raise PermissionDeniedError("You do not have permission to edit this listing.")

    updates = patch.model_dump(mode="json", exclude_unset=True, exclude={"evidence"})
    updates["updated_at"] = to_store(utc_now())
    if is_owner:
        updates["status"] = ListingStatus.PENDING.value

    if patch.evidence:
        await insert_evidence(client, listing_id, row["owner_id"], patch.evidence)
    if patch.evidence or patch.images is not None:
        evidence = await get_evidence_for_listing(client, listing_id)
        photo_count = len(patch.images) if patch.images is not None else len(to_listing(row).images)
        updates["badge_suggestion"] = suggest_badge(evidence, photo_count).model_dump(mode="json")

    listing = await update_listing_row(client, listing_id, updates)
    logger.info(
        "Listing updated",
        listing_id=listing_id,
        editor=mask_user_id(principal.uid),
        owner_edit=is_owner,
        fields=sorted(k for k in updates if k != "updated_at")
    )
    await revalidator.revalidate_listing(listing_id, SELLER_DASHBOARD_PATH)
    return listing


async def bulk_set_status(
    client: Any,
    principal: Optional[Principal],
    listing_ids: list[str],
    status: ListingStatus | str,
    revalidator: Revalidator,
) -> int:
    """Set ``status`` on each listing independently and return the count updated.

    Raises PartialFailureError naming the failed IDs when any update fails;
    successful updates stay applied.
    """
    require_admin(principal)
    if not listing_ids:
        raise InvalidInputError("No listing ids provided.")
    status = validate_status(status)

    updated: list[str] = []
    failures: dict[str, str] = {}
    for listing_id in dict.fromkeys(listing_ids):
        now = to_store(utc_now())
        try:
            await update_listing_row(client, listing_id, {
                "status": status.value,
                "updated_at": now,
                "admin_reviewed_at": now,
            })
            updated.append(listing_id)
        except MalformedRecordError as e:
            # The write was applied; only the returned row failed to parse
            updated.append(listing_id)
            logger.warning("Bulk status update applied to malformed listing", listing_id=listing_id, error=str(e))
        except (NotFoundError, SupabaseError) as e:
            failures[listing_id] = str(e)
            logger.warning("Bulk status update failed", listing_id=listing_id, error=str(e))

    if updated:
        paths = [p for listing_id in updated for p in (f"/listings/{listing_id}", f"/admin/listings/{listing_id}")]
        await revalidator.revalidate(*paths, ADMIN_PATH, PUBLIC_FEED_PATH)

    logger.info(
        "Bulk status update finished",
        status=status.value,
        requested=len(listing_ids),
        updated=len(updated),
        failed=len(failures)
    )
    if failures:
        raise PartialFailureError(len(updated), failures)
    return len(updated)


async def set_status_and_badge(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    revalidator: Revalidator,
    status: Optional[ListingStatus | str] = None,
    badge: Optional[BadgeValue | str] = None,
) -> Listing:
    """Admin review action on one listing."""
    require_admin(principal)
    if status is None and badge is None:
        raise InvalidInputError("Nothing to update: provide a status and/or a badge.")

    now = to_store(utc_now())
    updates: dict[str, Any] = {"updated_at": now}
    if status is not None:
        updates["status"] = validate_status(status).value
        updates["admin_reviewed_at"] = now
    if badge is not None:
        updates["badge"] = validate_badge(badge).value

    listing = await update_listing_row(client, listing_id, updates)
    logger.info(
        "Listing reviewed",
        listing_id=listing_id,
        status=updates.get("status"),
        badge=updates.get("badge")
    )
    await revalidator.revalidate_listing(listing_id)
    return listing


async def accept_badge_suggestion(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    revalidator: Revalidator,
) -> Listing:
    """Copy the advisory suggestion into the authoritative badge."""
    require_admin(principal)
    row = await get_listing_row(client, listing_id)
    if row is None:
        raise NotFoundError(f"Listing not found: {listing_id}")
    listing = to_listing(row)
    if listing.badge_suggestion is None:
        raise InvalidInputError("Listing has no badge suggestion to accept.")
    return await set_status_and_badge(
        client, principal, listing_id, revalidator, badge=listing.badge_suggestion.badge
    )


def _storage_path_from_url(url: str, bucket: str) -> Optional[str]:
    marker = f"/{bucket}/"
    if marker not in url:
        return None
    return url.split(marker, 1)[1].split("?", 1)[0] or None


async def delete_listing(
    client: Any,
    principal: Optional[Principal],
    listing_id: str,
    revalidator: Revalidator,
) -> None:
    """Delete a listing with its evidence. Owner or admin only."""
    principal = require_principal(principal)
    row = await get_listing_row(client, listing_id)
    if row is None:
        raise NotFoundError(f"Listing not found: {listing_id}")
    if row.get("owner_id") != principal.uid and not principal.is_admin:
        raise PermissionDeniedError("You do not have permission to delete this listing.")

    bucket = MarketplaceConfig.SUPABASE_STORAGE_BUCKET
    object_paths = await delete_evidence_for_listing(client, listing_id)
    for image in to_listing(row).images:
        path = _storage_path_from_url(image.url, bucket)
        if path:
            object_paths.append(path)

    if object_paths:
        # Orphaned blobs are tolerable; a half-deleted listing is not
        try:
            client.storage.from_(bucket).remove(object_paths)
        except Exception as e:
            logger.warning(
                "Failed to delete stored files",
                listing_id=listing_id,
                object_count=len(object_paths),
                error=str(e)
            )

    await delete_listing_row(client, listing_id)
    logger.info("Listing deleted", listing_id=listing_id, deleted_by=mask_user_id(principal.uid))
    await revalidator.revalidate_listing(listing_id, SELLER_DASHBOARD_PATH)
