"""Platform settings edited from the admin console."""

from datetime import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, EmailStr, Field, HttpUrl

# Social links may be left blank
SocialLink = Union[HttpUrl, Literal[""]]


class TrustStats(BaseModel):
    """Marketing figures shown on the landing page."""
    total_listings: int = Field(0, ge=0)
    total_buyers: int = Field(0, ge=0)
    fraud_cases_resolved: int = Field(0, ge=0)


class PlatformSettings(BaseModel):
    platform_name: str = Field("Ardhi", min_length=1, max_length=100)
    contact_email: EmailStr = "contact@ardhi.co.ke"
    support_email: EmailStr = "support@ardhi.co.ke"
    support_phone: str = ""
    site_description: str = Field(
        "A trusted platform for buying and selling land in Kenya",
        min_length=10,
        max_length=1000
    )
    max_upload_size_mb: int = Field(50, ge=1, le=1000)
    moderation_threshold_days: int = Field(7, ge=1, le=365)
    maintenance_mode: bool = False
    maintenance_message: str = ""
    enable_user_signups: bool = True
    enable_listing_creation: bool = True
    social_facebook: SocialLink = ""
    social_twitter: SocialLink = ""
    social_linkedin: SocialLink = ""
    trust_stats: Optional[TrustStats] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class AuditEntry(BaseModel):
    """One admin change; ``changes`` maps a field to its old and new value."""
    id: str
    admin_id: str
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    changes: dict[str, dict] = Field(default_factory=dict)
    timestamp: datetime
