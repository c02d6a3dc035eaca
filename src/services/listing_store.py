"""Listing store adapter - listing rows to and from the `listings` table.

Read path: timestamps become aware datetimes, the legacy single ``image``
column is folded into ``images``, and listings without a geocode get
deterministic approximate coordinates. Write path: status and badge values
are checked against their enums before anything reaches the store.
"""

import hashlib
from typing import Any, Optional
from pydantic import ValidationError

from src.models.listing import BadgeValue, Listing, ListingStatus
from src.models.principal import Principal
from src.services.evidence_store import get_evidence_for_listing
from src.services.supabase_client import execute
from src.utils.errors import InvalidInputError, MalformedRecordError, NotFoundError
from src.utils.logging import get_structured_logger, mask_user_id
from src.utils.timestamps import to_datetime

logger = get_structured_logger(__name__)

LISTINGS_TABLE = "listings"

# Kenya bounding box used for approximate coordinates
KENYA_LAT_RANGE = (-4.7, 5.0)
KENYA_LON_RANGE = (34.0, 41.9)

_TIMESTAMP_FIELDS = ("created_at", "updated_at", "admin_reviewed_at")
_LEGACY_IMAGE_FIELDS = ("image", "image_hint")


def generate_coords_from_location(location: str) -> tuple[float, float]:
    """Deterministic pseudo-position inside Kenya for a location string.

    Not a geocode: callers must flag the result as approximate.
    """
    digest = hashlib.sha256((location or "").strip().lower().encode("utf-8")).digest()
    lat_fraction = int.from_bytes(digest[:8], "big") / 2 ** 64
    lon_fraction = int.from_bytes(digest[8:16], "big") / 2 ** 64
    lat_min, lat_max = KENYA_LAT_RANGE
    lon_min, lon_max = KENYA_LON_RANGE
    latitude = round(lat_min + lat_fraction * (lat_max - lat_min), 6)
    longitude = round(lon_min + lon_fraction * (lon_max - lon_min), 6)
    return latitude, longitude


def placeholder_view_count(price: int) -> int:
    """Synthetic view metric shown on seller dashboards; not a real counter."""
    # Half-up rounding, not banker's rounding
    return max(5, int(price / 1_000_000 + 0.5))


def validate_status(value: Any) -> ListingStatus:
    try:
        return ListingStatus(value)
    except ValueError:
        raise InvalidInputError(f"Invalid listing status: {value!r}")


def validate_badge(value: Any) -> Optional[BadgeValue]:
    if value is None:
        return None
    try:
        return BadgeValue(value)
    except ValueError:
        raise InvalidInputError(f"Invalid badge value: {value!r}")


def _migrate_images(data: dict[str, Any]) -> None:
    images = data.get("images") or []
    legacy_url = data.get("image")
    if not images and legacy_url:
        images = [{"url": legacy_url, "hint": data.get("image_hint") or ""}]
    data["images"] = images
    for field in _LEGACY_IMAGE_FIELDS:
        data.pop(field, None)


def _fill_coordinates(data: dict[str, Any]) -> None:
    if data.get("latitude") is None or data.get("longitude") is None:
        data["latitude"], data["longitude"] = generate_coords_from_location(data.get("location") or "")
        data["is_approximate_location"] = True
    else:
        data["is_approximate_location"] = bool(data.get("is_approximate_location", False))


def to_listing(row: dict[str, Any], evidence: Optional[list] = None) -> Listing:
    """Normalize and validate a stored row into a Listing."""
    if not row:
        raise MalformedRecordError("Listing document data is empty")
    data = dict(row)
    try:
        for field in _TIMESTAMP_FIELDS:
            data[field] = to_datetime(data.get(field))
        _migrate_images(data)
        _fill_coordinates(data)
        if not data.get("seller"):
            data.pop("seller", None)
        data["evidence"] = evidence or []
        return Listing.model_validate(data)
    except (ValidationError, ValueError) as e:
        raise MalformedRecordError(f"Malformed listing record {row.get('id')}: {e}") from e


def to_listings(rows: list[dict[str, Any]]) -> list[Listing]:
    """Convert rows for list views, dropping (and logging) malformed ones."""
    listings = []
    for row in rows:
        try:
            listings.append(to_listing(row))
        except MalformedRecordError as e:
            logger.error("Skipping malformed listing", listing_id=row.get("id"), error=str(e))
    return listings


def can_view(listing: Listing, principal: Optional[Principal]) -> bool:
    """Non-approved listings are visible only to their owner and admins."""
    if listing.status == ListingStatus.APPROVED:
        return True
    if principal is None:
        return False
    return principal.is_admin or principal.uid == listing.owner_id


def can_see_advisory_fields(listing: Listing, principal: Optional[Principal]) -> bool:
    return principal is not None and (principal.is_admin or principal.uid == listing.owner_id)


async def get_listing_row(client: Any, listing_id: str) -> Optional[dict[str, Any]]:
    """Raw row lookup, used to resolve pagination cursors."""
    if not listing_id:
        return None
    rows = execute(
        client.table(LISTINGS_TABLE).select("*").eq("id", listing_id).limit(1),
        "get listing",
    )
    return rows[0] if rows else None


async def get_listing_by_id(client: Any, listing_id: str) -> Optional[Listing]:
    """Listing with its evidence, or None. Applies no visibility rule."""
    row = await get_listing_row(client, listing_id)
    if row is None:
        return None
    evidence = await get_evidence_for_listing(client, listing_id)
    return to_listing(row, evidence)


async def get_listing_for_viewer(client: Any, principal: Optional[Principal], listing_id: str) -> Listing:
    """Listing detail as the given principal may see it.

    Hidden listings raise NotFoundError so their existence is not disclosed.
    """
    listing = await get_listing_by_id(client, listing_id)
    if listing is None:
        raise NotFoundError(f"Listing not found: {listing_id}")
    if not can_view(listing, principal):
        logger.info(
            "Hidden listing requested",
            listing_id=listing_id,
            viewer=mask_user_id(principal.uid) if principal else None
        )
        raise NotFoundError(f"Listing not found: {listing_id}")
    if not can_see_advisory_fields(listing, principal):
        return listing.public_view()
    return listing


async def get_listings_for_owner(client: Any, owner_id: str) -> list[Listing]:
    """Seller dashboard listings, newest first, without evidence."""
    if not owner_id:
        return []
    rows = execute(
        client.table(LISTINGS_TABLE).select("*").eq("owner_id", owner_id)
        .order("created_at", desc=True).order("id", desc=True),
        "get listings for owner",
    )
    return to_listings(rows)


async def get_all_listings_for_admin(client: Any) -> list[Listing]:
    """Admin review table, newest first, without evidence."""
    rows = execute(
        client.table(LISTINGS_TABLE).select("*")
        .order("created_at", desc=True).order("id", desc=True),
        "get listings for admin",
    )
    return to_listings(rows)


async def insert_listing_row(client: Any, row: dict[str, Any]) -> Listing:
    validate_status(row.get("status"))
    validate_badge(row.get("badge"))
    inserted = execute(client.table(LISTINGS_TABLE).insert(row), "create listing")
    if not inserted:
        raise MalformedRecordError("Failed to create listing: no data returned")
    return to_listing(inserted[0])


async def update_listing_row(client: Any, listing_id: str, updates: dict[str, Any]) -> Listing:
    """Single-document update; NotFoundError when no row matched."""
    if "status" in updates:
        updates["status"] = validate_status(updates["status"]).value
    if "badge" in updates:
        badge = validate_badge(updates["badge"])
        updates["badge"] = badge.value if badge else None
    rows = execute(
        client.table(LISTINGS_TABLE).update(updates).eq("id", listing_id),
        "update listing",
    )
    if not rows:
        raise NotFoundError(f"Listing not found: {listing_id}")
    return to_listing(rows[0])


async def delete_listing_row(client: Any, listing_id: str) -> None:
    rows = execute(
        client.table(LISTINGS_TABLE).delete().eq("id", listing_id),
        "delete listing",
    )
    if not rows:
        raise NotFoundError(f"Listing not found: {listing_id}")
