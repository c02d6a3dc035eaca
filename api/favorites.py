"""Buyer favorites endpoint.

GET lists favorited listings (``?idsOnly=true`` for just the IDs, ``?limit=``
to cap the list). POST ``{listingId}`` adds one; DELETE ``?listingId=``
removes one.
"""

from src.services.favorites import add_favorite, list_favorite_ids, list_favorite_listings, remove_favorite
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve


async def _get(client, principal, request):
    query_params = request.get("query") or {}
    if query_params.get("idsOnly") == "true":
        return json_response(200, {"listingIds": await list_favorite_ids(client, principal)})

    limit = query_params.get("limit")
    try:
        limit = int(limit) if limit not in (None, "") else None
    except ValueError as e:
        raise InvalidInputError("limit must be an integer") from e
    listings = await list_favorite_listings(client, principal, limit=limit)
    return json_response(200, {"listings": [listing.model_dump(mode="json") for listing in listings]})


async def _post(client, principal, request):
    listing_id = read_json_body(request).get("listingId")
    if not listing_id or not isinstance(listing_id, str):
        raise InvalidInputError("listingId is required")
    await add_favorite(client, principal, listing_id)
    return json_response(201, {"listingId": listing_id, "favorite": True})


async def _delete(client, principal, request):
    listing_id = (request.get("query") or {}).get("listingId")
    if not listing_id:
        raise InvalidInputError("listingId is required")
    await remove_favorite(client, principal, listing_id)
    return json_response(200, {"listingId": listing_id, "favorite": False})


_ENDPOINTS = {"POST": _post, "DELETE": _delete}


def handler(request):
    endpoint = _ENDPOINTS.get((request.get("method") or "GET").upper())
    if endpoint is not None:
        return serve(request, endpoint)
    return serve(request, _get, method="GET")
