"""Evidence models."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class EvidenceType(str, Enum):
    """Kinds of supporting documents."""
    TITLE_DEED = "title_deed"
    SURVEY_MAP = "survey_map"
    RATE_CLEARANCE = "rate_clearance"
    OTHER = "other"


class Evidence(BaseModel):
    """Supporting document attached to exactly one listing."""
    id: str = Field(..., description="Store document key")
    listing_id: str = Field(..., description="Parent listing ID")
    owner_id: str = Field(..., description="Uploader (listing owner)")
    type: EvidenceType = EvidenceType.OTHER
    name: str = Field(..., description="Original file name")
    storage_path: str = Field(..., description="Object path in the storage bucket")
    content: str = Field("", description="Plain text used for AI summarization")
    summary: Optional[str] = None
    verified: bool = False
    uploaded_at: datetime


class EvidenceDraft(BaseModel):
    """Evidence reference submitted with a listing; the file is already in storage."""
    type: EvidenceType = EvidenceType.OTHER
    name: str = Field(..., min_length=1)
    storage_path: str = Field(..., min_length=1)
    content: str = ""
