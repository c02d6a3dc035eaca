"""Conversation message endpoint.

A failed send returns the unsent text as ``draft`` so the client can restore
it; nothing is retried server-side.
"""

from src.services.messaging import list_messages, send_message
from src.utils.errors import InvalidInputError, MarketplaceError
from src.utils.http import error_response, json_response, read_json_body, serve


async def _get(client, principal, request):
    conversation_id = (request.get("query") or {}).get("conversationId")
    if not conversation_id:
        raise InvalidInputError("conversationId is required")
    messages = await list_messages(client, principal, conversation_id)
    return json_response(200, {"messages": [m.model_dump(mode="json") for m in messages]})


async def _post(client, principal, request):
    body = read_json_body(request)
    text = body.get("text", "")
    try:
        conversation_id = body.get("conversationId")
        if not conversation_id:
            raise InvalidInputError("conversationId is required")
        message = await send_message(client, principal, conversation_id, text)
    except MarketplaceError as e:
        return error_response(e, extra={"draft": text})
    return json_response(201, message)


def handler(request):
    if (request.get("method") or "GET").upper() == "POST":
        return serve(request, _post)
    return serve(request, _get, method="GET")
