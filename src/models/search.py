"""Search request and result models."""

from datetime import datetime
from typing import Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from src.models.listing import BadgeValue, Listing, ListingStatus
from src.utils.config import MarketplaceConfig


class SearchFilters(BaseModel):
    """Structured filter request for the listing search."""
    status: Optional[Union[ListingStatus, Literal["all"]]] = Field(
        None,
        description="Defaults to approved; only admins may pass another status or 'all'"
    )
    query: Optional[str] = Field(None, description="Case-insensitive substring over title/location/county")
    min_price: int = Field(0, ge=0)
    max_price: int = Field(default_factory=lambda: MarketplaceConfig.SEARCH_MAX_PRICE, ge=0)
    min_area: float = Field(0, ge=0)
    max_area: float = Field(default_factory=lambda: MarketplaceConfig.SEARCH_MAX_AREA, ge=0)
    land_type: Optional[str] = None
    badges: Optional[list[BadgeValue]] = None
    page_size: int = Field(
        default_factory=lambda: MarketplaceConfig.SEARCH_PAGE_SIZE,
        ge=1,
        le=MarketplaceConfig.SEARCH_MAX_PAGE_SIZE
    )
    cursor: Optional[str] = Field(None, description="Opaque token: ID of the last raw document of the previous page")

    @model_validator(mode="after")
    def check_ranges(self) -> "SearchFilters":
        if self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        if self.min_area > self.max_area:
            raise ValueError("min_area must not exceed max_area")
        if self.query is not None:
            self.query = self.query.strip() or None
        return self

    @property
    def has_price_filter(self) -> bool:
        return self.min_price > 0 or self.max_price < MarketplaceConfig.SEARCH_MAX_PRICE

    @property
    def has_area_filter(self) -> bool:
        return self.min_area > 0 or self.max_area < MarketplaceConfig.SEARCH_MAX_AREA


class SearchPage(BaseModel):
    """One page of results.

    ``next_cursor`` is set whenever the raw store page was full, even if
    in-memory filters left fewer than ``page_size`` items. Callers keep paging
    until it is ``None``.
    """
    items: list[Listing] = Field(default_factory=list)
    next_cursor: Optional[str] = None


class SavedSearch(BaseModel):
    """Named filter set a buyer can re-run from their dashboard."""
    id: str
    user_id: str
    name: str = Field(..., min_length=1, max_length=100)
    filters: SearchFilters
    created_at: datetime
