"""Conversation inbox endpoint.

GET lists the caller's conversations. POST ``{listingId}`` opens (or returns
the existing) conversation with the listing's seller; POST
``{conversationId, action}`` closes or reopens one.
"""

from src.services.messaging import (
    close_conversation,
    derive_conversation_status,
    get_or_create_conversation,
    list_conversations,
    reopen_conversation,
)
from src.utils.errors import InvalidInputError
from src.utils.http import json_response, read_json_body, serve

ACTIONS = {"close": close_conversation, "reopen": reopen_conversation}


def _conversation_payload(conversation, viewer_id):
    return {
        **conversation.model_dump(mode="json"),
        "status": derive_conversation_status(conversation, viewer_id).value,
    }


async def _get(client, principal, request):
    conversations = await list_conversations(client, principal)
    return json_response(200, {
        "conversations": [_conversation_payload(c, principal.uid) for c in conversations],
    })


async def _post(client, principal, request):
    body = read_json_body(request)
    conversation_id = body.get("conversationId")
    if conversation_id:
        action = ACTIONS.get(body.get("action")) if isinstance(body.get("action"), str) else None
        if action is None:
            raise InvalidInputError(f"action must be one of: {', '.join(ACTIONS)}")
        conversation = await action(client, principal, conversation_id)
        return json_response(200, _conversation_payload(conversation, principal.uid))

    listing_id = body.get("listingId")
    if not listing_id:
        raise InvalidInputError("listingId or conversationId is required")
    conversation = await get_or_create_conversation(client, principal, listing_id)
    return json_response(200, _conversation_payload(conversation, principal.uid))


def handler(request):
    if (request.get("method") or "GET").upper() == "POST":
        return serve(request, _post)
    return serve(request, _get, method="GET")
