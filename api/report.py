"""Listing report endpoint; anonymous reports are accepted."""

from src.services.listing_reports import report_listing
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    body = read_json_body(request)
    report_id = await report_listing(client, principal, body.get("listingId") or "", body.get("reason") or "")
    return json_response(201, {"id": report_id})


def handler(request):
    return serve(request, _post, method="POST")
