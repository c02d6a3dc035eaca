"""Public contact form endpoint."""

from src.models.outreach import ContactSubmission
from src.services.outreach import submit_contact_message
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    submission = ContactSubmission.model_validate(read_json_body(request))
    message_id = await submit_contact_message(client, submission)
    return json_response(201, {"ok": True, "id": message_id})


def handler(request):
    return serve(request, _post, method="POST")
