"""Marketplace settings read from environment variables."""

import os


class MarketplaceConfig:
    """Search defaults, AI and revalidation settings."""

    SUPABASE_STORAGE_BUCKET = os.environ.get("SUPABASE_STORAGE_BUCKET", "listings")

    # Upper bounds of the "full range" filters; a filter at the bound is inactive
    SEARCH_PAGE_SIZE = int(os.environ.get("SEARCH_PAGE_SIZE", "12"))
    SEARCH_MAX_PAGE_SIZE = int(os.environ.get("SEARCH_MAX_PAGE_SIZE", "100"))
    SEARCH_MAX_PRICE = int(os.environ.get("SEARCH_MAX_PRICE", "50000000"))
    SEARCH_MAX_AREA = float(os.environ.get("SEARCH_MAX_AREA", "100"))

    LLM_PROVIDER = os.environ.get("LLM_PROVIDER", "anthropic").lower()
    LLM_MODEL = os.environ.get("LLM_MODEL", "claude-sonnet-4-20250514")
    USE_AI_ASSIST = os.environ.get("USE_AI_ASSIST", "true").lower() == "true"

    REVALIDATE_WEBHOOK_URL = os.environ.get("REVALIDATE_WEBHOOK_URL", "")
    REVALIDATE_SECRET = os.environ.get("REVALIDATE_SECRET", "")
    REVALIDATE_TIMEOUT_SECONDS = float(os.environ.get("REVALIDATE_TIMEOUT_SECONDS", "2.0"))

    MESSAGE_POLL_INTERVAL_SECONDS = float(os.environ.get("MESSAGE_POLL_INTERVAL_SECONDS", "2.0"))
