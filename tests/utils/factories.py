"""Test data factories using Faker."""

from faker import Faker
from typing import Optional
from datetime import datetime, timedelta, timezone

from src.models.principal import Principal, Role
from src.utils.ids import generate_document_id
from src.utils.timestamps import to_store

fake = Faker()

COUNTIES = ["Nairobi", "Kiambu", "Machakos", "Kajiado", "Nakuru", "Mombasa", "Kisumu"]
LAND_TYPES = ["Residential", "Agricultural", "Commercial", "Industrial"]

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def create_principal(role: Role = Role.BUYER, uid: Optional[str] = None) -> Principal:
    """Create a verified caller identity."""
    return Principal(
        uid=uid or f"user_{fake.uuid4().replace('-', '')[:20]}",
        role=role,
        display_name=fake.name(),
        photo_url=fake.image_url(),
    )


def create_listing_row(
    owner_id: Optional[str] = None,
    status: str = "approved",
    created_at: Optional[datetime] = None,
    **overrides,
) -> dict:
    """Create a stored listing row."""
    created = created_at or BASE_TIME - timedelta(minutes=fake.random_int(min=1, max=100000))
    county = fake.random_element(COUNTIES)
    row = {
        "id": generate_document_id(),
        "owner_id": owner_id or f"user_{fake.uuid4().replace('-', '')[:20]}",
        "title": f"{fake.random_int(min=1, max=20)} acres in {county}",
        "description": fake.text(max_nb_chars=300),
        "location": f"{fake.street_name()}, {county}",
        "county": county,
        "price": fake.random_int(min=200, max=40000) * 1000,
        "area": round(fake.pyfloat(min_value=0.1, max_value=50, right_digits=2), 2),
        "size": "50x100 ft",
        "land_type": fake.random_element(LAND_TYPES),
        "latitude": float(fake.latitude()),
        "longitude": float(fake.longitude()),
        "is_approximate_location": False,
        "status": status,
        "badge": None,
        "badge_suggestion": None,
        "image_analysis": None,
        "images": [{"url": fake.image_url(), "hint": "land plot"}],
        "seller": {"name": fake.name(), "avatar_url": None},
        "created_at": to_store(created),
        "updated_at": to_store(created),
        "admin_reviewed_at": None,
    }
    row.update(overrides)
    return row


def create_evidence_row(listing_id: str, owner_id: str, evidence_type: str = "title_deed", **overrides) -> dict:
    """Create a stored evidence row."""
    row = {
        "id": generate_document_id(),
        "listing_id": listing_id,
        "owner_id": owner_id,
        "type": evidence_type,
        "name": f"{evidence_type}.pdf",
        "storage_path": f"evidence/{owner_id}/{listing_id}/{evidence_type}.pdf",
        "content": fake.text(max_nb_chars=500),
        "summary": None,
        "verified": False,
        "uploaded_at": to_store(BASE_TIME),
    }
    row.update(overrides)
    return row


def create_conversation_row(listing_id: str, buyer_id: str, seller_id: str, **overrides) -> dict:
    """Create a stored conversation row opened by the buyer."""
    row = {
        "id": generate_document_id(),
        "listing_id": listing_id,
        "listing_title": fake.sentence(nb_words=4),
        "listing_image": fake.image_url(),
        "participant_ids": [buyer_id, seller_id],
        "participants": {
            buyer_id: {"display_name": fake.name(), "photo_url": None},
            seller_id: {"display_name": fake.name(), "photo_url": None},
        },
        "initiator_id": buyer_id,
        "last_message": None,
        "status": "new",
        "updated_at": to_store(BASE_TIME),
    }
    row.update(overrides)
    return row


def create_message_row(conversation_id: str, sender_id: str, timestamp: Optional[datetime] = None, **overrides) -> dict:
    row = {
        "id": generate_document_id(),
        "conversation_id": conversation_id,
        "sender_id": sender_id,
        "text": fake.sentence(),
        "timestamp": to_store(timestamp or BASE_TIME),
    }
    row.update(overrides)
    return row


def create_listing_draft_data(**overrides) -> dict:
    """Create a listing submission payload."""
    county = fake.random_element(COUNTIES)
    data = {
        "title": f"Prime plot in {county}",
        "description": fake.text(max_nb_chars=300),
        "location": f"{fake.street_name()}, {county}",
        "county": county,
        "price": 2500000,
        "area": 0.5,
        "size": "50x100 ft",
        "land_type": "Residential",
        "images": [
            {"url": fake.image_url(), "hint": "plot front"},
            {"url": fake.image_url(), "hint": "access road"},
        ],
        "evidence": [
            {"type": "title_deed", "name": "title.pdf", "storage_path": "evidence/u/title.pdf", "content": "Title No. 123"},
        ],
    }
    data.update(overrides)
    return data
