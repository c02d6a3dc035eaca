"""Saved search endpoint.

GET lists the caller's saved searches. POST ``{name, filters}`` saves one,
where ``filters`` uses the same keys as the listing search query string.
DELETE ``?id=`` removes one.
"""

from api.listings import parse_filters
from src.services.saved_searches import delete_saved_search, list_saved_searches, save_search
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve


async def _get(client, principal, request):
    searches = await list_saved_searches(client, principal)
    return json_response(200, {"searches": [s.model_dump(mode="json") for s in searches]})


async def _post(client, principal, request):
    body = read_json_body(request)
    filters = body.get("filters") or {}
    if not isinstance(filters, dict):
        raise InvalidInputError("filters must be an object")
    saved = await save_search(client, principal, body.get("name") or "", parse_filters(filters))
    return json_response(201, saved)


async def _delete(client, principal, request):
    search_id = (request.get("query") or {}).get("id")
    if not search_id:
        raise InvalidInputError("id is required")
    await delete_saved_search(client, principal, search_id)
    return json_response(200, {"id": search_id, "deleted": True})


_ENDPOINTS = {"POST": _post, "DELETE": _delete}


def handler(request):
    endpoint = _ENDPOINTS.get((request.get("method") or "GET").upper())
    if endpoint is not None:
        return serve(request, endpoint)
    return serve(request, _get, method="GET")
