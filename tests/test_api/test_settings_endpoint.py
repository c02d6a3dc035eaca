"""Tests for the admin settings endpoint."""

import pytest
from unittest.mock import patch
from api.admin.settings import handler
from src.services.platform_settings import AUDIT_LOGS_TABLE
from tests.utils.assertions import assert_valid_response
from tests.utils.fake_supabase import FakeSupabaseClient
from tests.utils.helpers import create_vercel_request, response_json, sign_in


@pytest.fixture
def store():
    client = FakeSupabaseClient()
    with patch("src.utils.http.SupabaseClient") as mock_client_class:
        mock_client_class.from_env.return_value = client
        yield client


@pytest.mark.unit
def test_get_defaults(store, admin):
    response = handler(create_vercel_request(method="GET", token=sign_in(store, admin)))

    assert_valid_response(response, 200)
    assert response_json(response)["data"]["platform_name"] == "Ardhi"


@pytest.mark.unit
def test_patch_then_read_audit(store, admin):
    token = sign_in(store, admin)

    patched = handler(create_vercel_request(
        method="PATCH", body={"support_phone": "+254 700 000 000", "moderation_threshold_days": 30}, token=token
    ))
    read = handler(create_vercel_request(method="GET", query={"audit": "true"}, token=token))

    assert_valid_response(patched, 200)
    assert response_json(patched)["data"]["moderation_threshold_days"] == 30
    body = response_json(read)
    assert body["data"]["support_phone"] == "+254 700 000 000"
    assert body["audit"][0]["changes"]["moderation_threshold_days"] == {"old": 7, "new": 30}
    assert len(store.rows(AUDIT_LOGS_TABLE)) == 1


@pytest.mark.unit
def test_patch_validation_error(store, admin):
    response = handler(create_vercel_request(method="PATCH", body={"support_email": "support"}, token=sign_in(store, admin)))

    assert_valid_response(response, 400)
    assert response_json(response)["details"][0]["field"] == "support_email"


@pytest.mark.unit
def test_settings_admin_only(store, seller):
    response = handler(create_vercel_request(method="PATCH", body={"maintenance_mode": True}, token=sign_in(store, seller)))

    assert_valid_response(response, 403)
