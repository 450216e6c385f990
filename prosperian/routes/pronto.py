# prosperian/routes/pronto.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, NoReturn, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from prosperian.clients.pronto import ProntoClient, ProntoError
from prosperian.core.config import settings
from prosperian.core.exceptions import ServiceUnavailableError, ValidationError, error_for_upstream_status
from prosperian.core.logging import get_structlog_logger
from prosperian.routes.deps import get_pronto_client
from prosperian.schemas.global_results import WorkflowErrorResponse, WorkflowGlobalResultsResponse
from prosperian.services.aggregation import WorkflowError, workflow_global_results
from prosperian.services.search_format import (
    format_list_detail,
    format_lists,
    format_search_detail,
    format_search_list,
    parse_searches,
)

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/pronto", tags=["pronto"])

FILTER_OPTIONS: Dict[str, Any] = {
    "companySizes": ["1-10", "11-50", "51-200", "201-500", "501-1000", "1000+"],
    "industries": [
        "Software", "Technology", "Finance", "Healthcare", "Education",
        "Manufacturing", "Retail", "Luxury", "Marketing", "Consulting",
        "Real Estate", "Media", "Transportation", "Energy", "Food & Beverage",
    ],
    "locations": [
        "Paris", "Lyon", "Marseille", "Toulouse", "Nice", "Nantes", "Strasbourg",
        "Montpellier", "Bordeaux", "Lille", "New York", "London", "Berlin",
        "Amsterdam", "Barcelona", "Madrid", "Rome", "Milan",
    ],
    "jobTitles": [
        "CEO", "CTO", "CFO", "Marketing Director", "Head of Marketing",
        "Sales Director", "Head of Sales", "HR Director", "Head of HR",
        "Product Manager", "Project Manager", "Business Development Manager",
        "Operations Manager", "Finance Manager", "IT Manager", "Design Director",
        "Creative Director", "Legal Counsel", "Compliance Officer",
    ],
}


class LeadSearchCreate(BaseModel):
    search_url: str = Field(..., min_length=1, description="Sales Navigator search URL")
    webhook_url: Optional[str] = None
    name: Optional[str] = None
    streaming: bool = True
    custom: Optional[Dict[str, Any]] = None
    limit: int = 100


class ListCreate(BaseModel):
    name: Optional[str] = None
    webhook_url: Optional[str] = None
    companies: Optional[List[Any]] = None


class LeadSearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    persona: Optional[str] = None
    exact_match: bool = Field(default=False, alias="exactMatch")
    job_titles: List[str] = Field(default_factory=list, alias="jobTitles")
    company_size: List[str] = Field(default_factory=list, alias="companySize")
    lead_location: List[str] = Field(default_factory=list, alias="leadLocation")
    company_location: List[str] = Field(default_factory=list, alias="companyLocation")
    industries: List[str] = Field(default_factory=list)
    limit: int = 50
    offset: int = 0


class CompanyLeadsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: Optional[str] = Field(default=None, alias="companyName")
    limit: int = 50
    offset: int = 0


class LeadsExtractRequest(BaseModel):
    query: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
    limit: int = 10


UPSTREAM_MESSAGES = {
    400: ("Pronto rejected the request for {resource}", "invalid_request"),
    401: ("Pronto API key is invalid or expired", "invalid_api_key"),
    403: ("Access to {resource} was refused", "forbidden"),
    404: ("{resource} not found", "not_found"),
    429: ("Too many requests to Pronto, retry later", "rate_limited"),
}


def raise_for_pronto_error(error: ProntoError, *, resource: str = "Pronto resource") -> NoReturn:
    """Translate an upstream failure into the matching API exception."""
    details = {"pronto_error": error.payload} if error.payload is not None else {}
    exc_class = error_for_upstream_status(error.status_code)
    if error.status_code in UPSTREAM_MESSAGES:
        message, code = UPSTREAM_MESSAGES[error.status_code]
        raise exc_class(message.format(resource=resource), code=code, details=details)
    raise exc_class(
        f"Pronto request failed for {resource}",
        code="pronto_error",
        details={"error": error.message, **details},
    )


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@router.get("/searches")
async def list_searches(client: ProntoClient = Depends(get_pronto_client)):
    """List the searches available on the Pronto account."""
    try:
        payload = await client.list_searches()
    except ProntoError as e:
        raise_for_pronto_error(e, resource="searches")

    searches = format_search_list(payload)
    logger.info("pronto.searches_listed", count=len(searches))
    return {
        "success": True,
        "searches": searches,
        "total": len(searches),
        "message": f"{len(searches)} searches available",
    }


@router.get("/searches/{search_id}")
async def get_search(
    search_id: str,
    include_leads: str = Query("true"),
    limit: str = Query(str(settings.search_detail_default_limit)),
    offset: str = Query("0"),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Search metadata and, unless ``include_leads=false``, its formatted leads."""
    with_leads = include_leads.strip().lower() == "true"
    try:
        limit_num = int(limit)
    except ValueError:
        limit_num = settings.search_detail_default_limit
    limit_num = min(max(limit_num or settings.search_detail_default_limit, 1), 1000)
    try:
        offset_num = max(int(offset), 0)
    except ValueError:
        offset_num = 0

    try:
        payload = await client.get_search(
            search_id, include_leads=with_leads, limit=limit_num, offset=offset_num
        )
    except ProntoError as e:
        raise_for_pronto_error(e, resource=f"search {search_id}")

    detail = format_search_detail(payload, search_id, include_leads=with_leads)
    logger.info("pronto.search_fetched", search_id=search_id, leads=len(detail["leads"]))
    return detail


@router.get("/companies/enrich")
async def enrich_company(
    name: Optional[str] = Query(None),
    domain: Optional[str] = Query(None),
    linkedin_url: Optional[str] = Query(None),
    country: str = Query(settings.enrich_default_country),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Enrich a single company through Pronto."""
    if not name or not name.strip():
        raise ValidationError("Company name is required", code="missing_parameter", details={"field": "name"})

    try:
        company = await client.enrich_account(
            name=name.strip(),
            company_linkedin_url=linkedin_url,
            domain=domain,
            country=country,
        )
    except ProntoError as e:
        raise_for_pronto_error(e, resource=f'company "{name}"')

    logger.info("pronto.company_enriched", company=name)
    return {
        "success": True,
        "company": company,
        "message": f'Company "{name}" enriched',
    }


@router.get("/get-filter-options")
async def get_filter_options():
    return {
        "success": True,
        "filters": FILTER_OPTIONS,
        "message": "Filter options retrieved",
    }


@router.get("/status")
async def pronto_status(client: ProntoClient = Depends(get_pronto_client)):
    """Which proxied Pronto capabilities are currently reachable."""
    searches_available = True
    message = "Searches endpoint available"
    try:
        await client.list_searches()
    except ProntoError as e:
        searches_available = False
        message = f"Searches endpoint unavailable: {e.message}"
        logger.warning("pronto.status_unavailable", status_code=e.status_code, error=e.message)

    available = ["GET /api/pronto/searches", "GET /api/pronto/workflow/global-results"] if searches_available else []
    return {
        "success": True,
        "status": {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "services": {
                "authentication": {"available": searches_available, "message": message},
                "searches": {"available": searches_available, "message": message},
            },
            "available_endpoints": available,
            "unavailable_endpoints": [] if searches_available else [
                "GET /api/pronto/searches",
                "GET /api/pronto/workflow/global-results",
            ],
        },
        "message": "Pronto service status retrieved",
    }


@router.get("/health-check")
async def pronto_health_check(client: ProntoClient = Depends(get_pronto_client)):
    timestamp = datetime.utcnow().isoformat() + "Z"
    try:
        await client.count_profiles()
    except ProntoError as e:
        logger.warning("pronto.unhealthy", status_code=e.status_code, error=e.message)
        status_code = status.HTTP_401_UNAUTHORIZED if e.status_code == 401 else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "message": "Pronto API key is invalid" if e.status_code == 401 else "Pronto API unreachable",
                "status": "unhealthy",
                "error": e.message,
                "timestamp": timestamp,
            },
        )

    return {
        "success": True,
        "message": "Pronto API reachable",
        "status": "healthy",
        "timestamp": timestamp,
    }


@router.post("/leads", status_code=status.HTTP_201_CREATED)
async def create_lead_search(
    body: LeadSearchCreate,
    client: ProntoClient = Depends(get_pronto_client),
):
    """Start a Pronto lead extraction from a Sales Navigator search URL."""
    if not _is_http_url(body.search_url):
        raise ValidationError("search_url is not a valid URL", code="invalid_search_url")
    if not 1 <= body.limit <= 1000:
        raise ValidationError("limit must be between 1 and 1000", code="invalid_limit")

    payload: Dict[str, Any] = {
        "search_url": body.search_url,
        "streaming": body.streaming,
        "limit": body.limit,
    }
    if body.webhook_url:
        payload["webhook_url"] = body.webhook_url
    if body.name:
        payload["name"] = body.name
    if body.custom:
        payload["custom"] = body.custom

    try:
        created = await client.create_leads_search(payload)
    except ProntoError as e:
        raise_for_pronto_error(e, resource="lead search")

    created = created if isinstance(created, dict) else {}
    search = {
        "search_id": created.get("id") or created.get("search_id"),
        "status": created.get("status") or "created",
        "name": created.get("name") or body.name,
        "search_url": created.get("search_url") or body.search_url,
        "webhook_url": created.get("webhook_url") or body.webhook_url,
        "streaming": created.get("streaming", body.streaming),
        "limit": created.get("limit") or body.limit,
        "created_at": created.get("created_at") or datetime.utcnow().isoformat() + "Z",
        "custom": created.get("custom") or body.custom,
    }
    logger.info("pronto.lead_search_created", search_id=search["search_id"])
    return {
        "success": True,
        "search": search,
        "message": f'Lead search "{search["name"] or "Unnamed"}" created',
    }


@router.get(
    "/workflow/global-results",
    response_model=WorkflowGlobalResultsResponse,
    responses={500: {"model": WorkflowErrorResponse}},
)
async def get_workflow_global_results(
    company_filter: Optional[str] = Query(None, description="Company names, comma-separated"),
    title_filter: Optional[str] = Query(None, description="Lead titles, comma-separated"),
    lead_location_filter: Optional[str] = Query(None, description="Lead locations, comma-separated"),
    employee_range_filter: Optional[str] = Query(None, description="Employee ranges, comma-separated"),
    company_location_filter: Optional[str] = Query(None, description="Company locations, comma-separated"),
    industry_filter: Optional[str] = Query(None, description="Industries, comma-separated"),
    limit: Optional[str] = Query(None, description="Maximum leads returned (1-10000, default 1000)"),
    include_search_details: Optional[str] = Query("false"),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Leads of every Pronto search combined, filtered and truncated to ``limit``."""
    try:
        result = await workflow_global_results(
            client,
            company_filter=company_filter,
            title_filter=title_filter,
            lead_location_filter=lead_location_filter,
            employee_range_filter=employee_range_filter,
            company_location_filter=company_location_filter,
            industry_filter=industry_filter,
            limit=limit,
            include_search_details=include_search_details,
        )
    except WorkflowError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=WorkflowErrorResponse(
                error="Global workflow failed",
                details=e.details,
                processing_time=e.processing_time,
                pronto_error=e.pronto_error,
            ).model_dump(),
        )
    return JSONResponse(content=result.to_response())


@router.post("/lists", status_code=status.HTTP_201_CREATED)
async def create_list(body: ListCreate, client: ProntoClient = Depends(get_pronto_client)):
    """Create a Pronto company list."""
    if not body.name:
        raise ValidationError("name is required", code="missing_parameter", details={"field": "name"})
    if not body.companies:
        raise ValidationError(
            "companies must contain at least one company",
            code="missing_parameter",
            details={"field": "companies"},
        )
    for index, company in enumerate(body.companies):
        if not isinstance(company, dict) or not company.get("name"):
            raise ValidationError(
                f"Company at index {index} must have a name",
                code="invalid_company",
                details={"index": index},
            )

    payload: Dict[str, Any] = {"name": body.name, "companies": body.companies}
    if body.webhook_url:
        payload["webhook_url"] = body.webhook_url

    try:
        created = await client.create_list(payload)
    except ProntoError as e:
        raise_for_pronto_error(e, resource="list")

    created = created if isinstance(created, dict) else {}
    logger.info("pronto.list_created", list_id=created.get("id"), companies=len(body.companies))
    return {
        "success": True,
        "list": {
            "id": created.get("id"),
            "name": body.name,
            "webhook_url": body.webhook_url,
            "companies_count": len(body.companies),
            "companies": body.companies,
            "created_at": created.get("created_at") or datetime.utcnow().isoformat() + "Z",
            "pronto_response": created,
        },
        "message": f'List "{body.name}" created with {len(body.companies)} companies',
    }


@router.get("/lists")
async def list_lists(client: ProntoClient = Depends(get_pronto_client)):
    try:
        payload = await client.list_lists()
    except ProntoError as e:
        raise_for_pronto_error(e, resource="lists")

    lists = format_lists(payload)
    logger.info("pronto.lists_listed", count=len(lists))
    return {
        "success": True,
        "lists": lists,
        "total": len(lists),
        "message": f"{len(lists)} lists found",
    }


@router.get("/lists/{list_id}")
async def get_list(list_id: str, client: ProntoClient = Depends(get_pronto_client)):
    try:
        payload = await client.get_list(list_id)
    except ProntoError as e:
        raise_for_pronto_error(e, resource=f"list {list_id}")

    detail = format_list_detail(payload, list_id)
    return {
        "success": True,
        "list": detail,
        "message": f'List "{detail["name"]}" retrieved',
    }


# Pronto retired its direct lead search endpoints. These routes validate the
# request and point callers at the existing searches instead.

@router.post("/search-leads")
async def search_leads(body: LeadSearchRequest, client: ProntoClient = Depends(get_pronto_client)):
    if not body.persona and not body.job_titles:
        raise ValidationError("persona or jobTitles is required", code="missing_parameter")

    try:
        searches = parse_searches(await client.list_searches())
    except ProntoError as e:
        logger.warning("pronto.search_leads_listing_failed", status_code=e.status_code, error=e.message)
        raise ServiceUnavailableError("Pronto is temporarily unavailable", code="pronto_unavailable") from e

    terms = [term.lower() for term in [body.persona or "", *body.job_titles] if term]
    relevant = [search for search in searches if any(term in search.name.lower() for term in terms)][:3]
    raise ServiceUnavailableError(
        "Direct lead search is no longer offered by Pronto, use an existing search",
        code="direct_search_unavailable",
        details={
            "alternative": {
                "searches": [
                    {
                        "id": search.id,
                        "name": search.name,
                        "leads_count": search.expected_lead_count,
                        "created_at": search.created_at,
                        "access_url": f"{settings.api_prefix}/pronto-workflows/search-leads/{search.id}",
                    }
                    for search in relevant
                ],
                "total_available_searches": len(searches),
            },
            "suggestions": [
                f"GET {settings.api_prefix}/pronto-workflows/search-leads/{{search_id}} returns the leads of a search",
                f"GET {settings.api_prefix}/pronto/searches lists every available search",
            ],
        },
    )


@router.post("/search-leads-from-company")
async def search_leads_from_company(body: CompanyLeadsRequest):
    if not body.company_name:
        raise ValidationError("companyName is required", code="missing_parameter", details={"field": "companyName"})

    raise ServiceUnavailableError(
        "Lead search by company is no longer offered by Pronto",
        code="company_search_unavailable",
        details={
            "company_searched": body.company_name,
            "suggestions": [
                f"GET {settings.api_prefix}/pronto/searches lists every available search",
                "Look for the company in the leads of an existing search",
            ],
        },
    )


@router.post("/leads/extract")
async def extract_leads(body: LeadsExtractRequest):
    if not body.query:
        raise ValidationError("query is required", code="missing_parameter", details={"field": "query"})

    raise ServiceUnavailableError(
        "Lead extraction is no longer offered by Pronto",
        code="extraction_unavailable",
        details={
            "request_details": {"query": body.query, "filters": body.filters, "limit": body.limit},
            "suggestions": [
                f"GET {settings.api_prefix}/pronto/searches lists every available search",
                f"GET {settings.api_prefix}/pronto/status reports which services are reachable",
            ],
        },
    )
