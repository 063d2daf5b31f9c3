from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from smartcatalog.domain.services.constants import DEFAULT_LIMIT, DEFAULT_PAGE, SORT_RELEVANCE


class SearchFilters(BaseModel):
    """Structured, conjunctive filters applied to the catalog before ranking."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    category: Optional[str] = None
    min_price: Optional[float] = Field(default=None, alias="minPrice")
    max_price: Optional[float] = Field(default=None, alias="maxPrice")
    brand: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            not self.category
            and self.min_price is None
            and self.max_price is None
            and not self.brand
            and not self.attributes
        )


class SearchQuery(BaseModel):
    """A validated search request (one per request, never persisted)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    text: str = Field(min_length=1)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    sort_by: str = Field(default=SORT_RELEVANCE, alias="sortBy")
    page: int = Field(default=DEFAULT_PAGE, ge=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(alias="hasNextPage")
    has_prev_page: bool = Field(alias="hasPrevPage")


class SearchHistoryEntry(BaseModel):
    """One durable audit record of a search attempt, successful or not."""
    model_config = ConfigDict(populate_by_name=True)

    query: str
    results_count: int = Field(default=0, alias="resultsCount")
    execution_time_ms: int = Field(default=0, alias="executionTimeMs")
    success: bool = True
    error_type: Optional[str] = Field(default=None, alias="errorType")
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    ip_address: Optional[str] = Field(default=None, alias="ipAddress")
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort_by: Optional[str] = Field(default=None, alias="sortBy")
    user_id: Optional[int] = Field(default=None, alias="userId")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="createdAt")
