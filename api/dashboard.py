"""Seller dashboard endpoint: the caller's own listings, newest first."""

from src.services.auth import require_principal
from src.services.listing_store import get_listings_for_owner, placeholder_view_count
from src.utils.http import json_response, serve


async def _get(client, principal, request):
    principal = require_principal(principal)
    listings = await get_listings_for_owner(client, principal.uid)
    return json_response(200, {
        "listings": [
            {**listing.model_dump(mode="json", exclude={"evidence"}), "views": placeholder_view_count(listing.price)}
            for listing in listings
        ],
    })


def handler(request):
    return serve(request, _get, method="GET")
