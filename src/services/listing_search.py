"""Listing search - store-native predicates plus in-memory post-filtering.

The store can apply equality filters, one set-membership filter and a single
range predicate per query. Price is the only range pushed down; when it is
active the scan is ordered by price ascending, otherwise by ``created_at``
descending. Area and free-text predicates are applied in memory to the page
that was fetched.

Because post-filtering is per page, a page may hold fewer than ``page_size``
items while more matches exist further along the scan. ``next_cursor`` is
derived from the last *raw* row and is set whenever the raw page was full;
callers keep paging until it is ``None``.
"""

from typing import Any, AsyncIterator, Optional

from src.models.listing import Listing, ListingStatus
from src.models.principal import Principal
from src.models.search import SearchFilters, SearchPage
from src.services.listing_store import LISTINGS_TABLE, get_listing_row, to_listings
from src.services.supabase_client import execute, start_after_clause
from src.utils.errors import PermissionDeniedError
from src.utils.logging import get_structured_logger, log_timing, mask_user_id

logger = get_structured_logger(__name__)


def resolve_status_filter(requested: Any, principal: Optional[Principal]) -> Optional[ListingStatus]:
    """Status to filter on; None means no status predicate (admin 'all')."""
    is_admin = principal is not None and principal.is_admin
    if requested is None:
        return ListingStatus.APPROVED
    if requested == "all":
        if not is_admin:
            raise PermissionDeniedError("Only admins may search listings of every status")
        return None
    status = ListingStatus(requested)
    if status != ListingStatus.APPROVED and not is_admin:
        raise PermissionDeniedError("Only admins may search listings that are not approved")
    return status


def matches_in_memory(listing: Listing, filters: SearchFilters) -> bool:
    """Predicates the store did not apply: area range and free text."""
    if filters.has_area_filter and not (filters.min_area <= listing.area <= filters.max_area):
        return False
    if filters.query:
        needle = filters.query.lower()
        haystacks = (listing.title, listing.location, listing.county)
        if not any(needle in (h or "").lower() for h in haystacks):
            return False
    return True


async def search_listings(
    client: Any,
    filters: SearchFilters,
    principal: Optional[Principal] = None,
) -> SearchPage:
    """Return one page of listings matching ``filters`` for ``principal``."""
    status = resolve_status_filter(filters.status, principal)
    is_admin = principal is not None and principal.is_admin

    query = client.table(LISTINGS_TABLE).select("*")
    if status is not None:
        query = query.eq("status", status.value)
    if filters.land_type:
        query = query.eq("land_type", filters.land_type)
    if filters.badges:
        query = query.in_("badge", [badge.value for badge in filters.badges])

    if filters.has_price_filter:
        query = query.gte("price", filters.min_price).lte("price", filters.max_price)
        sort_field, descending = "price", False
    else:
        sort_field, descending = "created_at", True

    if filters.cursor:
        cursor_row = await get_listing_row(client, filters.cursor)
        if cursor_row is None:
            # Deleted or unknown document: start from the beginning
            logger.info("Search cursor not found, restarting scan", cursor=filters.cursor)
        else:
            query = query.or_(start_after_clause(sort_field, descending, cursor_row))

    query = query.order(sort_field, desc=descending).order("id", desc=descending).limit(filters.page_size)

    with log_timing(
        "search_listings",
        logger=logger,
        sort_field=sort_field,
        has_cursor=bool(filters.cursor),
        viewer=mask_user_id(principal.uid) if principal else None
    ):
        rows = execute(query, "search listings")

    listings = [listing for listing in to_listings(rows) if matches_in_memory(listing, filters)]
    if not is_admin:
        listings = [
            listing.public_view()
            for listing in listings
            if listing.status == ListingStatus.APPROVED
        ]

    next_cursor = rows[-1]["id"] if rows and len(rows) == filters.page_size else None

    logger.debug(
        "Search page built",
        raw_count=len(rows),
        returned_count=len(listings),
        has_next_page=next_cursor is not None
    )
    return SearchPage(items=listings, next_cursor=next_cursor)


async def iter_search_pages(
    client: Any,
    filters: SearchFilters,
    principal: Optional[Principal] = None,
) -> AsyncIterator[SearchPage]:
    """Follow ``next_cursor`` until the scan is exhausted."""
    current = filters
    while True:
        page = await search_listings(client, current, principal)
        yield page
        if page.next_cursor is None:
            return
        current = current.model_copy(update={"cursor": page.next_cursor})
