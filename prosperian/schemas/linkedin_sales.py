from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SalesFilterValue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    text: str = Field(..., min_length=1)
    selection_type: str = Field(default="INCLUDED", alias="selectionType")


class SalesFilter(BaseModel):
    type: str = Field(..., min_length=1)
    values: List[SalesFilterValue] = Field(default_factory=list)


class GenerateUrlRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_type: Optional[str] = Field(default=None, alias="searchType")
    keywords: Optional[str] = None
    filters: List[SalesFilter] = Field(default_factory=list)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    view_all_filters: bool = Field(default=False, alias="viewAllFilters")


class ParseUrlRequest(BaseModel):
    url: Optional[str] = None


class ValidateFiltersRequest(BaseModel):
    """Filters are kept loose here; reporting their problems is the point."""
    model_config = ConfigDict(populate_by_name=True)

    search_type: Optional[str] = Field(default=None, alias="searchType")
    filters: Optional[Any] = None


class FilterIssue(BaseModel):
    filter: str
    message: str


class FilterType(BaseModel):
    type: str
    name: str
    description: str


class ParsedSalesUrl(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    search_type: Optional[str] = Field(default=None, serialization_alias="searchType")
    session_id: Optional[str] = Field(default=None, serialization_alias="sessionId")
    view_all_filters: bool = Field(default=False, serialization_alias="viewAllFilters")
    keywords: Optional[str] = None
    filters: List[Dict[str, Any]] = Field(default_factory=list)
