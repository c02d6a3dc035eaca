"""Invalidation of cached read paths after listing mutations."""

from typing import Optional
import httpx

from src.utils.config import MarketplaceConfig
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

PUBLIC_FEED_PATH = "/"
SELLER_DASHBOARD_PATH = "/dashboard"
ADMIN_PATH = "/admin"


def listing_paths(listing_id: str) -> list[str]:
    """Read paths that render a single listing."""
    return [f"/listings/{listing_id}", f"/admin/listings/{listing_id}"]


class Revalidator:
    """Collects invalidated paths and notifies the rendering tier.

    With no webhook configured the paths are only recorded, which is what the
    tests and local runs rely on. Webhook failures are logged, never raised:
    the mutation has already been applied.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        secret: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = MarketplaceConfig.REVALIDATE_TIMEOUT_SECONDS,
    ):
        self.webhook_url = webhook_url
        self.secret = secret
        self.timeout = timeout
        self._http_client = http_client
        self.invalidated: list[str] = []

    @classmethod
    def from_env(cls) -> "Revalidator":
        return cls(
            webhook_url=MarketplaceConfig.REVALIDATE_WEBHOOK_URL or None,
            secret=MarketplaceConfig.REVALIDATE_SECRET or None,
        )

    async def revalidate(self, *paths: str) -> list[str]:
        unique = list(dict.fromkeys(p for p in paths if p))
        if not unique:
            return []
        self.invalidated.extend(unique)
        logger.debug("Revalidating read paths", paths=unique)
        if self.webhook_url:
            await self._notify(unique)
        return unique

    async def revalidate_listing(self, listing_id: str, *extra: str) -> list[str]:
        """Detail pages of the listing, the admin table and the public feed."""
        return await self.revalidate(*listing_paths(listing_id), ADMIN_PATH, PUBLIC_FEED_PATH, *extra)

    async def _notify(self, paths: list[str]) -> None:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["X-Revalidate-Secret"] = self.secret
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.webhook_url, json={"paths": paths}, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as http:
                    response = await http.post(self.webhook_url, json={"paths": paths}, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Revalidation webhook failed", paths=paths, error=str(e))
