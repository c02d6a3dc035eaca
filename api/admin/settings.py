"""Admin platform settings endpoint.

GET returns the current settings (defaults if never saved) and, with
``?audit=true``, the recent audit entries. PATCH merges the given fields and
records the change in the audit log.
"""

from src.services.platform_settings import get_platform_settings, list_audit_entries, update_platform_settings
from src.services.revalidation import Revalidator
from src.utils.http import json_response, read_json_body, serve


async def _get(client, principal, request):
    settings = await get_platform_settings(client, principal)
    payload = {"status": "success", "data": settings.model_dump(mode="json")}
    if (request.get("query") or {}).get("audit") == "true":
        entries = await list_audit_entries(client, principal)
        payload["audit"] = [entry.model_dump(mode="json") for entry in entries]
    return json_response(200, payload)


async def _patch(client, principal, request):
    settings = await update_platform_settings(client, principal, read_json_body(request), Revalidator.from_env())
    return json_response(200, {
        "status": "success",
        "message": "Settings updated successfully",
        "data": settings.model_dump(mode="json"),
    })


def handler(request):
    if (request.get("method") or "GET").upper() == "PATCH":
        return serve(request, _patch)
    return serve(request, _get, method="GET")
