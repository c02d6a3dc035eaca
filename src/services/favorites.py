"""Buyer favorites: listings a user has bookmarked."""

from typing import Any, Optional

from src.models.listing import Listing
from src.models.principal import Principal
from src.services.auth import require_principal
from src.services.listing_store import (
    LISTINGS_TABLE,
    can_see_advisory_fields,
    can_view,
    get_listing_for_viewer,
    to_listings,
)
from src.services.supabase_client import execute
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.timestamps import to_store, utc_now

logger = get_structured_logger(__name__)

FAVORITES_TABLE = "favorites"


def favorite_key(user_id: str, listing_id: str) -> str:
    """One row per (user, listing); adding twice overwrites the same row."""
    return f"{user_id}:{listing_id}"


async def add_favorite(client: Any, principal: Optional[Principal], listing_id: str) -> None:
    principal = require_principal(principal)
    listing = await get_listing_for_viewer(client, principal, listing_id)
    execute(
        client.table(FAVORITES_TABLE).upsert({
            "id": favorite_key(principal.uid, listing.id),
            "user_id": principal.uid,
            "listing_id": listing.id,
            "created_at": to_store(utc_now()),
        }),
        "add favorite",
    )
    logger.info("Favorite added", listing_id=listing_id, user=mask_user_id(principal.uid))


async def remove_favorite(client: Any, principal: Optional[Principal], listing_id: str) -> None:
    """Removing a listing that is not a favorite is a no-op."""
    principal = require_principal(principal)
    execute(
        client.table(FAVORITES_TABLE).delete().eq("id", favorite_key(principal.uid, listing_id)),
        "remove favorite",
    )
    logger.info("Favorite removed", listing_id=listing_id, user=mask_user_id(principal.uid))


async def list_favorite_ids(client: Any, principal: Optional[Principal]) -> list[str]:
    """Favorited listing IDs, most recently added first."""
    principal = require_principal(principal)
    rows = execute(
        client.table(FAVORITES_TABLE).select("listing_id").eq("user_id", principal.uid)
        .order("created_at", desc=True),
        "list favorites",
    )
    return [row["listing_id"] for row in rows]


async def list_favorite_listings(
    client: Any,
    principal: Optional[Principal],
    limit: Optional[int] = None,
) -> list[Listing]:
    """Favorited listings the user may still see, in favorite order.

    Listings that were deleted or moved out of the approved state since they
    were favorited are left out.
    """
    favorite_ids = await list_favorite_ids(client, principal)
    if limit is not None:
        favorite_ids = favorite_ids[:limit]
    if not favorite_ids:
        return []

    rows = execute(
        client.table(LISTINGS_TABLE).select("*").in_("id", favorite_ids),
        "get favorite listings",
    )
    by_id = {listing.id: listing for listing in to_listings(rows)}
    listings = []
    for listing_id in favorite_ids:
        listing = by_id.get(listing_id)
        if listing is None or not can_view(listing, principal):
            continue
        listings.append(listing if can_see_advisory_fields(listing, principal) else listing.public_view())
    return listings
