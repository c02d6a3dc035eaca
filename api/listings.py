"""Listing search (GET), submission (POST), owner edit (PATCH) and delete (DELETE) endpoint."""

from src.models.listing import ListingDraft, ListingPatch
from src.models.search import SearchFilters
from src.services.listing_mutations import create_listing, delete_listing, update_listing
from src.services.listing_search import search_listings
from src.services.listing_store import get_listing_for_viewer
from src.services.revalidation import Revalidator
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve

# Query parameter -> SearchFilters field
QUERY_FIELDS = {
    "status": "status",
    "q": "query",
    "query": "query",
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "minArea": "min_area",
    "maxArea": "max_area",
    "landType": "land_type",
    "pageSize": "page_size",
    "cursor": "cursor",
}


def parse_filters(query_params: dict) -> SearchFilters:
    """Build SearchFilters from query string values; empty values are ignored."""
    data = {}
    for param, field in QUERY_FIELDS.items():
        value = query_params.get(param)
        if value not in (None, ""):
            data[field] = value
    badges = query_params.get("badges")
    if badges:
        data["badges"] = [b.strip() for b in badges.split(",") if b.strip()] if isinstance(badges, str) else badges
    return SearchFilters.model_validate(data)


async def _get(client, principal, request):
    query_params = request.get("query") or {}
    listing_id = query_params.get("id")
    if listing_id:
        listing = await get_listing_for_viewer(client, principal, listing_id)
        return json_response(200, listing)

    page = await search_listings(client, parse_filters(query_params), principal)
    return json_response(200, {
        "listings": [listing.model_dump(mode="json") for listing in page.items],
        "nextCursor": page.next_cursor,
    })


async def _post(client, principal, request):
    draft = ListingDraft.model_validate(read_json_body(request))
    listing = await create_listing(client, principal, draft, Revalidator.from_env())
    return json_response(201, {"id": listing.id, "status": listing.status.value})


def _listing_id(request) -> str:
    listing_id = (request.get("query") or {}).get("id")
    if not listing_id:
        raise InvalidInputError("id is required")
    return listing_id


async def _patch(client, principal, request):
    patch = ListingPatch.model_validate(read_json_body(request))
    listing = await update_listing(client, principal, _listing_id(request), patch, Revalidator.from_env())
    return json_response(200, {"id": listing.id, "status": listing.status.value})


async def _delete(client, principal, request):
    listing_id = _listing_id(request)
    await delete_listing(client, principal, listing_id, Revalidator.from_env())
    return json_response(200, {"id": listing_id, "deleted": True})


_ENDPOINTS = {"POST": _post, "PATCH": _patch, "DELETE": _delete}


def handler(request):
    """GET searches or fetches one listing (``?id=``); POST submits a new listing.

    PATCH and DELETE act on ``?id=`` and are limited to the owner or an admin.
    An owner edit sends the listing back to review.
    """
    endpoint = _ENDPOINTS.get((request.get("method") or "GET").upper())
    if endpoint is not None:
        return serve(request, endpoint)
    return serve(request, _get, method="GET")
