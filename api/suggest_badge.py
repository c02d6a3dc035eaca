"""Badge suggestion preview for the listing form; nothing is stored."""

from src.models.evidence import EvidenceDraft
from src.services.auth import require_principal
from src.services.badge_suggestion import suggest_badge
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    require_principal(principal)
    body = read_json_body(request)
    evidence = body.get("evidence") or []
    if not isinstance(evidence, list):
        raise InvalidInputError("evidence must be a list")
    photo_count = body.get("photoCount", 0)
    if isinstance(photo_count, bool) or not isinstance(photo_count, int) or photo_count < 0:
        raise InvalidInputError("photoCount must be a non-negative integer")

    drafts = [EvidenceDraft.model_validate(item) for item in evidence]
    return json_response(200, suggest_badge(drafts, photo_count))


def handler(request):
    return serve(request, _post, method="POST")
