"""Conversation and message models."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class ConversationStatus(str, Enum):
    NEW = "new"
    RESPONDED = "responded"
    CLOSED = "closed"


class Participant(BaseModel):
    display_name: str = ""
    photo_url: Optional[str] = None


class LastMessage(BaseModel):
    text: str
    sender_id: str
    timestamp: datetime


class Conversation(BaseModel):
    """Buyer/seller thread scoped to one listing."""
    id: str
    listing_id: str
    listing_title: str = ""
    listing_image: Optional[str] = None
    participant_ids: list[str] = Field(..., min_length=2, max_length=2)
    participants: dict[str, Participant] = Field(default_factory=dict)
    initiator_id: str = Field(..., description="Participant who opened the conversation (the buyer)")
    last_message: Optional[LastMessage] = None
    status: Optional[ConversationStatus] = ConversationStatus.NEW
    updated_at: datetime

    @field_validator("participant_ids")
    @classmethod
    def distinct_participants(cls, value: list[str]) -> list[str]:
        if len(set(value)) != 2:
            raise ValueError("A conversation needs two distinct participants")
        return value

    def has_participant(self, uid: Optional[str]) -> bool:
        return bool(uid) and uid in self.participant_ids


class Message(BaseModel):
    """Immutable chat message."""
    id: str
    conversation_id: str
    sender_id: str
    text: str = Field(..., min_length=1)
    timestamp: datetime
