"""Authenticated caller identity."""

from enum import Enum
from pydantic import BaseModel, Field


class Role(str, Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class Principal(BaseModel):
    """Verified `{uid, role}` supplied by the identity provider."""
    uid: str = Field(..., min_length=1)
    role: Role = Role.BUYER
    display_name: str = ""
    photo_url: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
