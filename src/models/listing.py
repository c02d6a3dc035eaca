"""Listing models."""

from enum import Enum
from typing import ClassVar, Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from src.models.evidence import Evidence, EvidenceDraft


class ListingStatus(str, Enum):
    """Review lifecycle of a listing."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class BadgeValue(str, Enum):
    """Trust tier, admin-assigned or suggested."""
    GOLD = "Gold"
    SILVER = "Silver"
    BRONZE = "Bronze"
    NONE = "None"


class ListingImage(BaseModel):
    """Image reference; the first image of a listing is its thumbnail."""
    url: str = Field(..., min_length=1, description="Public URL in blob storage")
    hint: str = Field("", description="Short alt/search hint")


class BadgeSuggestion(BaseModel):
    """Advisory badge derived from evidence, never authoritative."""
    badge: BadgeValue
    reason: str


class ImageAnalysis(BaseModel):
    """Advisory risk signal for uploaded media."""
    is_suspicious: bool = Field(..., description="True when the uploads look tampered or inconsistent")
    reason: str = Field(..., description="Short explanation from the reviewer model")


class SellerInfo(BaseModel):
    """Seller display snapshot taken at creation time."""
    name: str = "Anonymous Seller"
    avatar_url: Optional[str] = None


class Listing(BaseModel):
    """Land listing as seen past the store adapter."""
    id: str = Field(..., description="Store document key")
    owner_id: str = Field(..., description="Seller identity reference")
    title: str
    description: str = ""
    location: str = ""
    county: str = ""
    price: int = Field(..., gt=0, description="Asking price, currency-agnostic integer")
    area: float = Field(..., gt=0, description="Area in acres")
    size: str = Field("", description="Free-text dimensions, e.g. 50x100 ft")
    land_type: str = ""
    latitude: float
    longitude: float
    is_approximate_location: bool = False
    status: ListingStatus = ListingStatus.PENDING
    seller: SellerInfo = Field(default_factory=SellerInfo)
    images: list[ListingImage] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    badge: Optional[BadgeValue] = None
    badge_suggestion: Optional[BadgeSuggestion] = None
    image_analysis: Optional[ImageAnalysis] = None
    created_at: datetime
    updated_at: datetime
    admin_reviewed_at: Optional[datetime] = None

    @property
    def thumbnail(self) -> Optional[ListingImage]:
        return self.images[0] if self.images else None

    def public_view(self) -> "Listing":
        """Copy without the advisory fields buyers must not see."""
        return self.model_copy(update={"badge_suggestion": None, "image_analysis": None})


class ListingDraft(BaseModel):
    """Seller submission for a new listing."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=5000)
    location: str = Field(..., min_length=1)
    county: str = Field(..., min_length=1)
    price: int = Field(..., gt=0)
    area: float = Field(..., gt=0)
    size: str = ""
    land_type: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    images: list[ListingImage] = Field(..., min_length=1, description="At least one image is required")
    evidence: list[EvidenceDraft] = Field(default_factory=list)


class ListingPatch(BaseModel):
    """Owner edit; status and badge are not editable here."""
    # Clearing the coordinates falls back to an approximate location
    CLEARABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"latitude", "longitude"})

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    location: Optional[str] = Field(None, min_length=1)
    county: Optional[str] = Field(None, min_length=1)
    price: Optional[int] = Field(None, gt=0)
    area: Optional[float] = Field(None, gt=0)
    size: Optional[str] = None
    land_type: Optional[str] = Field(None, min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    images: Optional[list[ListingImage]] = Field(None, min_length=1)
    evidence: list[EvidenceDraft] = Field(default_factory=list, description="Additional evidence; existing documents are kept")

    @model_validator(mode="after")
    def reject_cleared_fields(self) -> "ListingPatch":
        cleared = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.CLEARABLE_FIELDS
        )
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self
