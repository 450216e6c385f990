"""
Pydantic schemas for response validation and serialization.
"""

from prosperian.schemas.global_results import (
    AppliedFilters,
    GlobalResultResponse,
    SearchFetchError,
    SearchSummary,
    WorkflowErrorResponse,
    WorkflowGlobalResultsResponse,
)

__all__ = [
    "AppliedFilters",
    "GlobalResultResponse",
    "SearchFetchError",
    "SearchSummary",
    "WorkflowErrorResponse",
    "WorkflowGlobalResultsResponse",
]
