"""Admin bulk status update endpoint."""

from src.services.listing_mutations import bulk_set_status
from src.services.revalidation import Revalidator
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    body = read_json_body(request)
    listing_ids = body.get("listingIds")
    if not isinstance(listing_ids, list) or not all(isinstance(i, str) for i in listing_ids):
        raise InvalidInputError("listingIds must be a list of listing IDs")

    updated = await bulk_set_status(client, principal, listing_ids, body.get("status"), Revalidator.from_env())
    return json_response(200, {"status": "success", "updated": updated})


def handler(request):
    """
    Set the status of several listings.

    Partial failures return 207 with the per-ID failure detail; updates that
    succeeded stay applied.
    """
    return serve(request, _post, method="POST")
