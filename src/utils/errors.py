"""Error handling utilities."""

from typing import Optional


class MarketplaceError(Exception):
    """Base exception for the marketplace backend."""
    pass


class NotFoundError(MarketplaceError):
    """Referenced listing, evidence or conversation does not exist."""
    pass


class PermissionDeniedError(MarketplaceError):
    """Principal lacks the role or ownership for the operation."""
    pass


class AuthenticationRequiredError(PermissionDeniedError):
    """No verified principal on the request."""
    pass


class InvalidInputError(MarketplaceError):
    """Malformed filters or missing required fields."""
    pass


class PartialFailureError(MarketplaceError):
    """Some documents in a bulk operation were updated, some failed."""

    def __init__(self, updated: int, failures: dict[str, str], message: Optional[str] = None):
        self.updated = updated
        self.failures = failures
        super().__init__(
            message or f"{len(failures)} of {updated + len(failures)} updates failed: {', '.join(sorted(failures))}"
        )


class UpstreamUnavailableError(MarketplaceError):
    """Remote dependency failed; the caller may retry."""
    retryable = True


class SupabaseError(UpstreamUnavailableError):
    """Supabase operation error."""
    pass


class MalformedRecordError(SupabaseError):
    """Stored record failed schema validation."""
    pass


class AIServiceError(UpstreamUnavailableError):
    """Generative model call failed."""
    pass
