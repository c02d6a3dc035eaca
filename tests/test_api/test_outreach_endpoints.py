"""Tests for the contact form and newsletter endpoints."""

import pytest
from unittest.mock import patch
from api.contact import handler as contact_handler
from api.newsletter import handler as newsletter_handler
from src.services.outreach import CONTACT_MESSAGES_TABLE, EMAIL_QUEUE_TABLE, NEWSLETTER_TABLE
from tests.utils.assertions import assert_valid_response
from tests.utils.fake_supabase import FakeSupabaseClient
from tests.utils.helpers import create_vercel_request, response_json


@pytest.fixture
def store():
    client = FakeSupabaseClient()
    with patch("src.utils.http.SupabaseClient") as mock_client_class:
        mock_client_class.from_env.return_value = client
        yield client


@pytest.mark.unit
def test_contact_form(store):
    response = contact_handler(create_vercel_request(
        body={"name": "Kamau", "email": "kamau@example.com", "message": "Do you list land in Nyeri?"}
    ))

    assert_valid_response(response, 201)
    body = response_json(response)
    assert body["ok"] is True
    assert store.get(CONTACT_MESSAGES_TABLE, body["id"])["name"] == "Kamau"
    assert store.rows(EMAIL_QUEUE_TABLE)[0]["template"] == "contact-confirmation"


@pytest.mark.unit
def test_contact_form_missing_fields(store):
    response = contact_handler(create_vercel_request(body={"name": "Kamau", "email": "kamau@example.com"}))

    assert_valid_response(response, 400)
    assert response_json(response)["details"][0]["field"] == "message"
    assert store.rows(CONTACT_MESSAGES_TABLE) == []


@pytest.mark.unit
def test_newsletter_subscribe_twice(store):
    first = newsletter_handler(create_vercel_request(body={"email": "kamau@example.com"}))
    second = newsletter_handler(create_vercel_request(body={"email": "kamau@example.com"}))

    assert response_json(first)["status"] == "success"
    assert_valid_response(second, 200)
    assert response_json(second)["status"] == "warning"
    assert len(store.rows(NEWSLETTER_TABLE)) == 1


@pytest.mark.unit
def test_newsletter_invalid_email(store):
    response = newsletter_handler(create_vercel_request(body={"email": "kamau"}))

    assert_valid_response(response, 400)


@pytest.mark.unit
def test_newsletter_unsubscribe(store):
    newsletter_handler(create_vercel_request(body={"email": "kamau@example.com"}))

    response = newsletter_handler(create_vercel_request(method="DELETE", body={"email": "kamau@example.com"}))
    unknown = newsletter_handler(create_vercel_request(method="DELETE", body={"email": "wafula@example.com"}))

    assert_valid_response(response, 200)
    assert store.rows(NEWSLETTER_TABLE)[0]["status"] == "unsubscribed"
    assert_valid_response(unknown, 404)
