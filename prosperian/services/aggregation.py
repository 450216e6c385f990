# prosperian/services/aggregation.py
"""
Global lead aggregation across every Pronto search.

``global_result`` backs ``GET /prosperian/get/global/result`` (concurrent
fan-out, three filters, optional pagination, per-request enrichment).
``workflow_global_results`` backs ``GET /pronto/workflow/global-results``
(six filters, limit, per-search error reporting).
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from prosperian.clients.pronto import ProntoClient, ProntoError
from prosperian.core.config import Settings, settings as default_settings
from prosperian.core.logging import get_structlog_logger
from prosperian.schemas.global_results import (
    AppliedFilters,
    GlobalResultResponse,
    SearchFetchError,
    SearchSummary,
    WorkflowGlobalResultsResponse,
)
from prosperian.services.enrichment import CompanyEnricher
from prosperian.services.fanout import FetchOutcome, fan_out
from prosperian.services.lead_filter import (
    FilterSet,
    company_name,
    filter_leads,
    filter_search_results,
)
from prosperian.services.pagination import leading_int, paginate_flat, resolve_page, total_pages
from prosperian.services.search_format import (
    Search,
    SearchResult,
    count_leads,
    format_search_detail,
    parse_searches,
    search_meta,
)

logger = get_structlog_logger(__name__)


class WorkflowError(Exception):
    """Fatal failure of the workflow aggregation, with the time spent before it."""

    def __init__(self, details: str, processing_time: float, pronto_error: Any = None) -> None:
        super().__init__(details)
        self.details = details
        self.processing_time = processing_time
        self.pronto_error = pronto_error


def _seconds(milliseconds: int) -> float:
    return milliseconds / 1000


async def fetch_searches(client: ProntoClient) -> List[Search]:
    """List every search; failures propagate since nothing can be built without it."""
    searches = parse_searches(await client.list_searches())
    logger.info(
        "searches.listed",
        count=len(searches),
        expected_leads=sum(search.expected_lead_count for search in searches),
    )
    return searches


def regroup(
    searches: Sequence[Search],
    outcomes: Sequence[FetchOutcome[str, Any]],
) -> List[SearchResult]:
    results: List[SearchResult] = []
    for search, outcome in zip(searches, outcomes):
        if not outcome.ok:
            continue
        detail = format_search_detail(outcome.value, search.id)
        results.append(SearchResult(search.id, search.name, detail["leads"]))
    return results


async def _enrich_entry(enricher: CompanyEnricher, entry: Dict[str, Any], lead: Dict[str, Any]) -> Dict[str, Any]:
    enrich = await enricher.enrich_lead(lead)
    if enrich is None:
        return dict(entry)
    return {**entry, "enrich": enrich}


async def global_result(
    client: ProntoClient,
    *,
    page: Optional[str] = None,
    paginate: Optional[str] = None,
    company_name_filter: Optional[str] = None,
    first_name_filter: Optional[str] = None,
    last_name_filter: Optional[str] = None,
    config: Settings = default_settings,
) -> GlobalResultResponse:
    searches = await fetch_searches(client)
    search_ids = [search.id for search in searches]

    outcomes = await fan_out(
        search_ids,
        lambda search_id: client.get_search(
            search_id, include_leads=True, limit=config.search_detail_default_limit
        ),
        timeout=_seconds(config.global_result_detail_timeout_ms),
        max_concurrency=config.fanout_max_concurrency,
        label="global_result.search_detail",
    )

    results = regroup(searches, outcomes)
    expected_total = sum(search.expected_lead_count for search in searches)
    fetched_total = count_leads(results)
    logger.info(
        "global_result.collected",
        searches=len(results),
        failed_searches=len(searches) - len(results),
        leads=fetched_total,
        expected_leads=expected_total,
        missing_leads=expected_total - fetched_total,
    )

    filters = FilterSet.from_raw(
        company_name=company_name_filter,
        first_name=first_name_filter,
        last_name=last_name_filter,
    )
    results = [result for result in filter_search_results(results, filters) if result.leads]
    total = count_leads(results)

    enricher = CompanyEnricher(
        client,
        timeout=_seconds(config.global_result_enrich_timeout_ms),
        max_concurrency=config.fanout_max_concurrency,
        country=config.enrich_default_country,
    )

    page_number = resolve_page(page, paginate)
    if page_number is not None:
        page_size = config.global_result_page_size
        entries, _ = paginate_flat(results, page_number, page_size)
        enriched = await asyncio.gather(
            *(_enrich_entry(enricher, entry, entry["lead"]) for entry in entries)
        )
        response = GlobalResultResponse(
            page=page_number,
            pageSize=page_size,
            total=total,
            totalPages=total_pages(total, page_size),
            totalCompanies=total,
            global_results=list(enriched),
        )
    else:
        async def _enrich_group(result: SearchResult) -> Dict[str, Any]:
            leads = await asyncio.gather(
                *(_enrich_entry(enricher, lead, lead) for lead in result.leads)
            )
            return SearchResult(result.search_id, result.search_name, list(leads)).to_dict()

        grouped = await asyncio.gather(*(_enrich_group(result) for result in results))
        response = GlobalResultResponse(
            page=None,
            pageSize=total,
            total=total,
            totalPages=1,
            totalCompanies=total,
            global_results=list(grouped),
        )

    logger.info(
        "global_result.complete",
        page=page_number,
        total=total,
        returned=len(response.global_results),
        enrich_calls=enricher.cache.misses,
        enrich_cache_hits=enricher.cache.hits,
    )
    return response


def parse_limit(raw: Optional[str], config: Settings = default_settings) -> int:
    value = leading_int(raw) or 0
    if value == 0:
        value = config.workflow_default_limit
    return min(max(value, 1), config.workflow_max_limit)


def _applied_filters(filters: FilterSet) -> AppliedFilters:
    return AppliedFilters(
        company_names=filters.get("company_name"),
        titles=filters.get("title"),
        lead_locations=filters.get("lead_location"),
        employee_ranges=filters.get("employee_range"),
        company_locations=filters.get("company_location"),
        industries=filters.get("industry"),
    )


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _tag_leads(search: Search, payload: Any) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    meta = search_meta(payload, {"id": search.id, "name": search.name, "created_at": search.created_at})
    raw_leads = payload.get("leads") if isinstance(payload, dict) else None
    if not isinstance(raw_leads, list):
        raw_leads = []

    tagged = []
    for item in raw_leads:
        if not isinstance(item, dict):
            continue
        tagged.append({
            "search_id": _str_or_none(meta["id"]),
            "search_name": meta["name"],
            "lead": item.get("lead") or item,
            "company": item.get("company") or {},
        })
    return meta, tagged


async def workflow_global_results(
    client: ProntoClient,
    *,
    company_filter: Optional[str] = None,
    title_filter: Optional[str] = None,
    lead_location_filter: Optional[str] = None,
    employee_range_filter: Optional[str] = None,
    company_location_filter: Optional[str] = None,
    industry_filter: Optional[str] = None,
    limit: Optional[str] = None,
    include_search_details: Optional[str] = None,
    config: Settings = default_settings,
) -> WorkflowGlobalResultsResponse:
    start_time = time.monotonic()
    try:
        return await _run_workflow(
            client,
            filters=FilterSet.from_raw(
                company_name=company_filter,
                title=title_filter,
                lead_location=lead_location_filter,
                employee_range=employee_range_filter,
                company_location=company_location_filter,
                industry=industry_filter,
            ),
            limit=parse_limit(limit, config),
            include_details=(include_search_details or "").strip().lower() == "true",
            start_time=start_time,
            config=config,
        )
    except Exception as e:
        processing_time = time.monotonic() - start_time
        pronto_error = e.payload if isinstance(e, ProntoError) else None
        logger.error(
            "workflow.global_results_failed",
            error=str(e),
            error_type=type(e).__name__,
            processing_time=processing_time,
        )
        raise WorkflowError(str(e) or type(e).__name__, processing_time, pronto_error) from e


async def _run_workflow(
    client: ProntoClient,
    *,
    filters: FilterSet,
    limit: int,
    include_details: bool,
    start_time: float,
    config: Settings,
) -> WorkflowGlobalResultsResponse:
    applied = _applied_filters(filters)
    logger.info("workflow.global_results_started", filters=applied.model_dump(), limit=limit)

    searches = await fetch_searches(client)
    if not searches:
        return WorkflowGlobalResultsResponse(
            total_searches=0,
            total_leads=0,
            filtered_leads=0,
            unique_companies=0,
            applied_filters=applied,
            leads=[],
            searches=[],
            processing_time=time.monotonic() - start_time,
            message="No searches found",
        )

    outcomes = await fan_out(
        [search.id for search in searches],
        lambda search_id: client.get_search(
            search_id, include_leads=True, limit=config.workflow_detail_limit
        ),
        max_concurrency=config.workflow_fetch_concurrency,
        label="workflow.search_detail",
    )

    all_leads: List[Dict[str, Any]] = []
    details: List[SearchSummary] = []
    errors: List[SearchFetchError] = []
    for search, outcome in zip(searches, outcomes):
        if not outcome.ok:
            errors.append(SearchFetchError(search_id=search.id, search_name=search.name, error=outcome.error))
            continue
        meta, tagged = _tag_leads(search, outcome.value)
        all_leads.extend(tagged)
        if include_details:
            details.append(SearchSummary(
                id=_str_or_none(meta["id"]),
                name=meta["name"],
                created_at=_str_or_none(meta["created_at"]),
                leads_count=len(tagged),
            ))

    filtered = filter_leads(all_leads, filters)
    if len(filtered) > limit:
        logger.info("workflow.results_truncated", limit=limit, filtered=len(filtered))
        filtered = filtered[:limit]

    unique_companies = len({name for name in (company_name(lead) for lead in filtered) if name})
    processing_time = time.monotonic() - start_time

    if filters.is_empty:
        message = f"{len(filtered)} leads found in total (no filters applied)"
    else:
        message = f"{len(filtered)} leads found after applying filters to {len(all_leads)} leads"

    logger.info(
        "workflow.global_results_complete",
        searches=len(searches),
        total_leads=len(all_leads),
        filtered_leads=len(filtered),
        unique_companies=unique_companies,
        errors=len(errors),
        processing_time=processing_time,
    )

    return WorkflowGlobalResultsResponse(
        total_searches=len(searches),
        total_leads=len(all_leads),
        filtered_leads=len(filtered),
        unique_companies=unique_companies,
        applied_filters=applied,
        leads=filtered,
        searches=details if include_details else None,
        errors=errors or None,
        processing_time=processing_time,
        message=message,
    )
