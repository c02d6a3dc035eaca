"""Request/response helpers shared by the `api/` handlers.

Handlers receive a request dict (``method``, ``headers``, ``query``, ``body``)
and return ``{"statusCode", "headers", "body"}``. Exceptions are mapped to
status codes here and nowhere else.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Mapping, Optional
from pydantic import BaseModel, ValidationError

from src.models.principal import Principal
from src.services.auth import bearer_token, resolve_principal
from src.services.supabase_client import SupabaseClient
from src.utils.errors import (
    AuthenticationRequiredError,
    InvalidInputError,
    MarketplaceError,
    NotFoundError,
    PartialFailureError,
    PermissionDeniedError,
    UpstreamUnavailableError,
)
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

Endpoint = Callable[[Any, Optional[Principal], dict], Awaitable[dict]]


def get_header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup."""
    for key, value in (headers or {}).items():
        if key.lower() == name.lower():
            return value
    return None


def json_response(status_code: int, payload: Any, headers: Optional[dict] = None) -> dict:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    response_headers = {"Content-Type": "application/json"}
    if headers:
        response_headers.update(headers)
    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(payload, default=str),
    }


def read_json_body(request: dict) -> dict:
    """Parse the request body into a dict; bad JSON is a validation error."""
    body = request.get("body")
    if body is None or body == "" or body == b"":
        return {}
    if isinstance(body, dict):
        return body
    try:
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        parsed = json.loads(body)
    except UnicodeDecodeError as e:
        raise InvalidInputError("Request body is not valid UTF-8") from e
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON body: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return parsed


def error_response(exc: Exception, extra: Optional[dict] = None) -> dict:
    """Map an exception to a status code and JSON error body."""
    payload: dict[str, Any] = {"error": str(exc)}
    if isinstance(exc, PartialFailureError):
        status_code = 207
        payload.update({"updated": exc.updated, "failures": exc.failures})
    elif isinstance(exc, AuthenticationRequiredError):
        status_code = 401
    elif isinstance(exc, PermissionDeniedError):
        status_code = 403
    elif isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, InvalidInputError):
        status_code = 400
    elif isinstance(exc, ValidationError):
        status_code = 400
        payload = {
            "error": "Invalid request",
            "details": [
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ],
        }
    elif isinstance(exc, UpstreamUnavailableError):
        status_code = 503
        payload["retryable"] = True
    else:
        status_code = 500
        payload = {"error": "Internal server error"}

    if extra:
        payload.update(extra)
    return json_response(status_code, payload)


async def _dispatch(request: dict, endpoint: Endpoint) -> dict:
    async with SupabaseClient.from_env() as client:
        principal = await resolve_principal(client, bearer_token(request.get("headers") or {}))
        return await endpoint(client, principal, request)


def serve(request: dict, endpoint: Endpoint, method: Optional[str] = None) -> dict:
    """Run an async endpoint for one request inside a correlation context."""
    headers = request.get("headers") or {}
    with correlation_context(get_header(headers, LoggingConfig.LOG_CORRELATION_ID_HEADER)) as correlation_id:
        request_method = (request.get("method") or "GET").upper()
        if method and request_method != method:
            return json_response(405, {"error": f"Method {request_method} not allowed"})
        try:
            response = asyncio.run(_dispatch(request, endpoint))
        except (MarketplaceError, ValidationError) as e:
            logger.warning(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__
            )
            response = error_response(e)
        except Exception as e:
            logger.error("Unhandled error", error=str(e), exc_info=True)
            response = error_response(e)
        response["headers"][LoggingConfig.LOG_CORRELATION_ID_HEADER] = correlation_id
        return response
