"""Contact form, newsletter and outbound email records."""

from enum import Enum
from pydantic import BaseModel, EmailStr, Field


class ContactSubmission(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)


class NewsletterSignup(BaseModel):
    email: EmailStr
    source: str = Field("footer", max_length=50)


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


class EmailTemplate(str, Enum):
    """Templates rendered by the mail worker that drains the queue."""
    CONTACT_CONFIRMATION = "contact-confirmation"
    NEWSLETTER_CONFIRMATION = "newsletter-confirmation"
