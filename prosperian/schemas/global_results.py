# prosperian/schemas/global_results.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class GlobalResultResponse(BaseModel):
    page: Optional[int] = None
    pageSize: int
    total: int = Field(ge=0)
    totalPages: int = Field(ge=0)
    totalCompanies: int = Field(ge=0)
    global_results: List[Dict[str, Any]]


class AppliedFilters(BaseModel):
    company_names: List[str] = Field(default_factory=list)
    titles: List[str] = Field(default_factory=list)
    lead_locations: List[str] = Field(default_factory=list)
    employee_ranges: List[str] = Field(default_factory=list)
    company_locations: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)


class SearchSummary(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[str] = None
    leads_count: int = 0
    status: str = "completed"


class SearchFetchError(BaseModel):
    search_id: Optional[str] = None
    search_name: Optional[str] = None
    error: str


class WorkflowGlobalResultsResponse(BaseModel):
    success: bool = True
    total_searches: int
    total_leads: int
    filtered_leads: int
    unique_companies: int
    applied_filters: AppliedFilters
    leads: List[Dict[str, Any]]
    searches: Optional[List[SearchSummary]] = None
    errors: Optional[List[SearchFetchError]] = None
    processing_time: float
    message: str

    def to_response(self) -> Dict[str, Any]:
        data = self.model_dump()
        for key in ("searches", "errors"):
            if data[key] is None:
                data.pop(key)
        return data


class WorkflowErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str
    processing_time: float
    pronto_error: Any = None
