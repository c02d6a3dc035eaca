"""Tests for the listings endpoint."""

import pytest
from unittest.mock import patch
from api.listings import handler, parse_filters
from src.services.listing_store import LISTINGS_TABLE
from tests.utils.assertions import assert_valid_response
from tests.utils.factories import create_listing_draft_data, create_listing_row
from tests.utils.fake_supabase import FakeSupabaseClient
from tests.utils.helpers import create_vercel_request, response_json, sign_in


@pytest.fixture
def store():
    client = FakeSupabaseClient()
    with patch("src.utils.http.SupabaseClient") as mock_client_class:
        mock_client_class.from_env.return_value = client
        yield client


@pytest.mark.unit
def test_parse_filters_from_query_string():
    filters = parse_filters({"q": "thika", "minPrice": "1000000", "maxArea": "10", "badges": "Gold, Silver", "pageSize": ""})

    assert filters.query == "thika"
    assert filters.min_price == 1000000
    assert filters.max_area == 10
    assert [b.value for b in filters.badges] == ["Gold", "Silver"]
    assert filters.page_size == 12


@pytest.mark.unit
def test_public_search(store):
    approved = create_listing_row(status="approved", price=5_000_000, area=5)
    pending = create_listing_row(status="pending", price=5_000_000, area=5)
    store.add(LISTINGS_TABLE, approved, pending)

    response = handler(create_vercel_request(
        method="GET", query={"minPrice": "1000000", "maxPrice": "6000000", "minArea": "3", "maxArea": "10"}
    ))

    assert_valid_response(response, 200)
    body = response_json(response)
    assert [l["id"] for l in body["listings"]] == [approved["id"]]
    assert body["nextCursor"] is None
    assert "X-Correlation-ID" in response["headers"]


@pytest.mark.unit
def test_invalid_range_is_bad_request(store):
    response = handler(create_vercel_request(method="GET", query={"minPrice": "9", "maxPrice": "1"}))

    assert_valid_response(response, 400)


@pytest.mark.unit
def test_anonymous_cannot_search_pending(store):
    response = handler(create_vercel_request(method="GET", query={"status": "pending"}))

    assert_valid_response(response, 403)


@pytest.mark.unit
def test_hidden_listing_detail_is_not_found(store, seller):
    row = create_listing_row(owner_id=seller.uid, status="pending")
    store.add(LISTINGS_TABLE, row)

    anonymous = handler(create_vercel_request(method="GET", query={"id": row["id"]}))
    owner = handler(create_vercel_request(method="GET", query={"id": row["id"]}, token=sign_in(store, seller)))

    assert_valid_response(anonymous, 404)
    assert_valid_response(owner, 200)
    assert response_json(owner)["status"] == "pending"


@pytest.mark.unit
def test_create_listing(store, seller):
    response = handler(create_vercel_request(
        method="POST", body=create_listing_draft_data(), token=sign_in(store, seller)
    ))

    assert_valid_response(response, 201)
    body = response_json(response)
    assert body["status"] == "pending"
    assert store.get(LISTINGS_TABLE, body["id"])["owner_id"] == seller.uid


@pytest.mark.unit
def test_create_listing_requires_login(store):
    response = handler(create_vercel_request(method="POST", body=create_listing_draft_data()))

    assert_valid_response(response, 401)


@pytest.mark.unit
def test_create_listing_without_images_rejected(store, seller):
    response = handler(create_vercel_request(
        method="POST", body=create_listing_draft_data(images=[]), token=sign_in(store, seller)
    ))

    assert_valid_response(response, 400)
    assert store.rows(LISTINGS_TABLE) == []


@pytest.mark.unit
def test_store_outage_is_retryable(store):
    store.fail_tables[LISTINGS_TABLE] = "*"

    response = handler(create_vercel_request(method="GET"))

    assert_valid_response(response, 503)
    assert response_json(response)["retryable"] is True


@pytest.mark.unit
def test_owner_edit_returns_listing_to_review(store, seller):
    row = create_listing_row(owner_id=seller.uid, status="approved", price=3_000_000)
    store.add(LISTINGS_TABLE, row)

    response = handler(create_vercel_request(
        method="PATCH", query={"id": row["id"]}, body={"price": 2_750_000}, token=sign_in(store, seller)
    ))

    assert_valid_response(response, 200)
    assert response_json(response) == {"id": row["id"], "status": "pending"}
    assert store.get(LISTINGS_TABLE, row["id"])["price"] == 2_750_000


@pytest.mark.unit
def test_edit_with_null_title_is_rejected(store, seller):
    row = create_listing_row(owner_id=seller.uid, status="approved")
    store.add(LISTINGS_TABLE, row)

    response = handler(create_vercel_request(
        method="PATCH", query={"id": row["id"]}, body={"title": None}, token=sign_in(store, seller)
    ))

    assert_valid_response(response, 400)
    assert store.get(LISTINGS_TABLE, row["id"])["title"] == row["title"]
    assert store.get(LISTINGS_TABLE, row["id"])["status"] == "approved"


@pytest.mark.unit
def test_edit_by_another_seller_is_forbidden(store, seller, buyer):
    row = create_listing_row(owner_id=seller.uid)
    store.add(LISTINGS_TABLE, row)

    response = handler(create_vercel_request(
        method="PATCH", query={"id": row["id"]}, body={"title": "Mine now"}, token=sign_in(store, buyer)
    ))

    assert_valid_response(response, 403)


@pytest.mark.unit
def test_edit_requires_listing_id(store, seller):
    response = handler(create_vercel_request(method="PATCH", body={"title": "x"}, token=sign_in(store, seller)))

    assert_valid_response(response, 400)


@pytest.mark.unit
def test_owner_delete(store, seller):
    row = create_listing_row(owner_id=seller.uid)
    store.add(LISTINGS_TABLE, row)

    response = handler(create_vercel_request(method="DELETE", query={"id": row["id"]}, token=sign_in(store, seller)))

    assert_valid_response(response, 200)
    assert response_json(response) == {"id": row["id"], "deleted": True}
    assert store.get(LISTINGS_TABLE, row["id"]) is None


@pytest.mark.unit
def test_delete_missing_listing(store, admin):
    response = handler(create_vercel_request(method="DELETE", query={"id": "nope"}, token=sign_in(store, admin)))

    assert_valid_response(response, 404)


@pytest.mark.unit
def test_unsupported_method(store):
    response = handler(create_vercel_request(method="PUT"))

    assert_valid_response(response, 405)
