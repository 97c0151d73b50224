"""
Search Request Validation

This module defines the Pydantic model for hybrid search requests. It is the
API-level validation layer: malformed requests are rejected here, before any
backend is contacted.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import SearchStrategy

MAX_QUERY_LENGTH = 1000
MIN_RESULT_LIMIT = 1
MAX_RESULT_LIMIT = 100


class HybridSearchRequest(BaseModel):
    """
    Pydantic model for a hybrid search request.

    Requests are immutable and compare by value, so two requests with the
    same fields are interchangeable for caching.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=False)

    query: str = Field(..., max_length=MAX_QUERY_LENGTH, description="Search query text")
    tenant_id: str = Field(..., description="Tenant (business) scope for all results")
    filters: Dict[str, Any] = Field(default_factory=dict, description="Filters passed through to both backends")
    search_strategy: SearchStrategy = Field(SearchStrategy.AUTO, description="Retrieval strategy")
    limit: Optional[int] = Field(
        None,
        ge=MIN_RESULT_LIMIT,
        le=MAX_RESULT_LIMIT,
        description="Number of results to return (engine default when omitted)",
    )
    include_metadata: bool = Field(True, description="Include per-result metadata in the response")

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Reject blank queries"""
        if not v or not v.strip():
            raise ValueError("Query cannot be empty")
        return v

    @field_validator("tenant_id")
    @classmethod
    def validate_tenant_id(cls, v: str) -> str:
        """Reject blank tenant ids"""
        if not v or not v.strip():
            raise ValueError("Tenant ID is required")
        return v

    @field_validator("filters", mode="before")
    @classmethod
    def default_filters(cls, v: Any) -> Any:
        """Treat a missing filter map as empty"""
        return {} if v is None else v
