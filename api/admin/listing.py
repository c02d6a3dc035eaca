"""Admin review of a single listing.

GET returns the review table, or one listing with its evidence (``?id=``).
POST ``{listingId, status?, badge?}`` applies a review decision, and
``{listingId, acceptSuggestion: true}`` copies the suggested badge.
``{listingId, analyzeUploads: true}`` runs the suspicious-upload check and
``{evidenceId}`` stores an AI summary on one evidence document.
"""

from src.services.ai_assistant import analyze_listing_uploads, summarize_and_attach
from src.services.auth import require_admin
from src.services.listing_mutations import accept_badge_suggestion, set_status_and_badge
from src.services.listing_store import get_all_listings_for_admin, get_listing_for_viewer
from src.services.revalidation import Revalidator
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve


async def _get(client, principal, request):
    require_admin(principal)
    listing_id = (request.get("query") or {}).get("id")
    if listing_id:
        return json_response(200, await get_listing_for_viewer(client, principal, listing_id))

    listings = await get_all_listings_for_admin(client)
    return json_response(200, {"listings": [listing.model_dump(mode="json") for listing in listings]})


async def _post(client, principal, request):
    body = read_json_body(request)
    revalidator = Revalidator.from_env()

    evidence_id = body.get("evidenceId")
    if evidence_id:
        evidence = await summarize_and_attach(client, principal, evidence_id, revalidator)
        return json_response(200, {"id": evidence.id, "summary": evidence.summary})

    listing_id = body.get("listingId")
    if not listing_id or not isinstance(listing_id, str):
        raise InvalidInputError("listingId is required")

    if body.get("analyzeUploads"):
        analysis = await analyze_listing_uploads(client, principal, listing_id, revalidator)
        return json_response(200, {"id": listing_id, "imageAnalysis": analysis.model_dump(mode="json")})
    if body.get("acceptSuggestion"):
        listing = await accept_badge_suggestion(client, principal, listing_id, revalidator)
    else:
        listing = await set_status_and_badge(
            client, principal, listing_id, revalidator, status=body.get("status"), badge=body.get("badge")
        )
    return json_response(200, {
        "id": listing.id,
        "status": listing.status.value,
        "badge": listing.badge.value if listing.badge else None,
    })


def handler(request):
    if (request.get("method") or "GET").upper() == "POST":
        return serve(request, _post)
    return serve(request, _get, method="GET")
