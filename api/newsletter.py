"""Newsletter endpoint: POST ``{email}`` subscribes, DELETE ``{email}`` unsubscribes."""

from src.models.outreach import NewsletterSignup
from src.services.outreach import subscribe_to_newsletter, unsubscribe_from_newsletter
from src.utils.http import json_response, read_json_body, serve


async def _post(client, principal, request):
    signup = NewsletterSignup.model_validate(read_json_body(request))
    if not await subscribe_to_newsletter(client, signup):
        return json_response(200, {"status": "warning", "message": "This email is already subscribed"})
    return json_response(200, {"status": "success", "message": "Successfully subscribed to newsletter"})


async def _delete(client, principal, request):
    signup = NewsletterSignup.model_validate(read_json_body(request))
    await unsubscribe_from_newsletter(client, signup.email)
    return json_response(200, {"status": "success", "message": "Successfully unsubscribed"})


def handler(request):
    if (request.get("method") or "POST").upper() == "DELETE":
        return serve(request, _delete)
    return serve(request, _post, method="POST")
