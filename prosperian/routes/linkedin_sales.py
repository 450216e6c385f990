# prosperian/routes/linkedin_sales.py
from __future__ import annotations

from fastapi import APIRouter

from prosperian.core.exceptions import ValidationError
from prosperian.core.logging import get_structlog_logger
from prosperian.schemas.linkedin_sales import GenerateUrlRequest, ParseUrlRequest, ValidateFiltersRequest
from prosperian.services.sales_navigator import (
    FILTER_TYPES,
    SalesNavigatorError,
    build_search_url,
    extract_session_id,
    parse_search_url,
    validate_filters,
)

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/linkedin-sales", tags=["linkedin-sales"])


def _filters_payload(body: GenerateUrlRequest):
    return [sales_filter.model_dump(by_alias=True) for sales_filter in body.filters]


@router.post("/generate-url")
async def generate_url(body: GenerateUrlRequest):
    """Sales Navigator search URL for a search type, filters and keywords."""
    try:
        built = build_search_url(
            body.search_type,
            body.filters,
            body.keywords,
            session_id=body.session_id,
            view_all_filters=body.view_all_filters,
        )
    except SalesNavigatorError as e:
        raise ValidationError(str(e), code="invalid_search")

    return {
        "success": True,
        "url": built.url,
        "searchType": body.search_type,
        "filters": _filters_payload(body),
        "queryString": built.query,
        "message": "LinkedIn Sales Navigator URL generated",
    }


@router.post("/generate-url-with-session")
async def generate_url_with_session(body: GenerateUrlRequest):
    try:
        built = build_search_url(
            body.search_type,
            body.filters,
            body.keywords,
            session_id=body.session_id,
            view_all_filters=body.view_all_filters,
            session_mode=True,
        )
    except SalesNavigatorError as e:
        raise ValidationError(str(e), code="invalid_search")

    return {
        "success": True,
        "url": built.url,
        "searchType": body.search_type,
        "sessionId": body.session_id,
        "filters": _filters_payload(body),
        "queryString": built.query,
        "message": "LinkedIn Sales Navigator URL generated with session",
    }


@router.post("/parse-url")
async def parse_url(body: ParseUrlRequest):
    try:
        parsed = parse_search_url(body.url)
    except SalesNavigatorError as e:
        raise ValidationError(str(e), code="invalid_url")

    return {
        "success": True,
        "parsed": parsed.model_dump(by_alias=True),
        "message": "URL parsed",
    }


@router.post("/extract-session")
async def extract_session(body: ParseUrlRequest):
    try:
        encoded, decoded = extract_session_id(body.url)
    except SalesNavigatorError as e:
        raise ValidationError(str(e), code="invalid_url")

    return {
        "success": True,
        "sessionId": encoded,
        "sessionIdDecoded": decoded,
        "message": "sessionId extracted",
    }


@router.get("/filter-types")
async def filter_types():
    return {
        "success": True,
        "people": [filter_type.model_dump() for filter_type in FILTER_TYPES["people"]],
        "company": [filter_type.model_dump() for filter_type in FILTER_TYPES["company"]],
    }


@router.post("/validate-filters")
async def check_filters(body: ValidateFiltersRequest):
    """Report filter errors and warnings; an invalid filter set is still a 200."""
    try:
        result = validate_filters(body.search_type, body.filters)
    except SalesNavigatorError as e:
        raise ValidationError(str(e), code="invalid_filters")

    logger.info("sales_navigator.filters_validated", valid=result.valid, errors=len(result.errors))
    return {
        "success": True,
        "valid": result.valid,
        "errors": [issue.model_dump() for issue in result.errors],
        "warnings": [issue.model_dump() for issue in result.warnings],
    }
