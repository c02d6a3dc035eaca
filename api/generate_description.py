"""AI property description endpoint."""

from src.services.ai_assistant import generate_property_description
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    body = read_json_body(request)
    description = await generate_property_description(principal, body.get("bulletPoints") or "")
    return json_response(200, {"description": description})


def handler(request):
    return serve(request, _post, method="POST")
