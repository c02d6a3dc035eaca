"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "anthropic")
os.environ.setdefault("LLM_MODEL", "claude-sonnet-4-20250514")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("USE_AI_ASSIST", "true")
os.environ.setdefault("LOG_FORMAT", "text")

from src.models.principal import Role
from src.services.revalidation import Revalidator
from tests.utils.factories import create_listing_row, create_principal
from tests.utils.fake_supabase import FakeSupabaseClient


@pytest.fixture
def fake_client():
    """Empty in-memory Supabase client."""
    return FakeSupabaseClient()


@pytest.fixture
def revalidator():
    """Revalidator that only records invalidated paths."""
    return Revalidator()


@pytest.fixture
def seller():
    return create_principal(Role.SELLER)


@pytest.fixture
def buyer():
    return create_principal(Role.BUYER)


@pytest.fixture
def admin():
    return create_principal(Role.ADMIN)


@pytest.fixture
def pending_listing_row(seller):
    return create_listing_row(owner_id=seller.uid, status="pending")


@pytest.fixture
def approved_listing_row(seller):
    return create_listing_row(owner_id=seller.uid, status="approved")


@pytest.fixture
def mock_llm_model():
    """LangChain chat model whose structured runnable is an AsyncMock."""
    model = MagicMock()
    structured = MagicMock()
    structured.ainvoke = AsyncMock()
    model.with_structured_output.return_value = structured
    return model

