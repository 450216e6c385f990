# prosperian/services/workflows.py
"""
Per-search workflows: every search with its first leads, or one page of a
single search's leads, optionally with company enrichment.
"""
from __future__ import annotations

import asyncio
import math
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from prosperian.clients.pronto import ProntoClient
from prosperian.core.config import Settings, settings as default_settings
from prosperian.core.logging import get_structlog_logger
from prosperian.services.aggregation import fetch_searches
from prosperian.services.enrichment import CompanyEnricher, EnrichSuccess, hints_for
from prosperian.services.fanout import fan_out
from prosperian.services.lead_filter import company_name
from prosperian.services.pagination import leading_int
from prosperian.services.search_format import advisory_count, format_search_detail

logger = get_structlog_logger(__name__)


@dataclass
class WorkflowStats:
    searches_processed: int = 0
    searches_with_leads: int = 0
    leads_enriched: int = 0
    errors: int = 0


def flag(raw: Optional[str], default: bool) -> bool:
    """Query flag: only the literal ``true`` enables, only ``false`` disables."""
    if raw is None:
        return default
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return default


def bounded_int(raw: Optional[str], default: int, upper: int) -> int:
    value = leading_int(raw)
    if not value or value < 1:
        return default
    return min(value, upper)


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def make_enricher(client: ProntoClient, config: Settings) -> CompanyEnricher:
    return CompanyEnricher(
        client,
        timeout=config.global_result_enrich_timeout_ms / 1000,
        max_concurrency=config.fanout_max_concurrency,
        country=config.enrich_default_country,
    )


async def enrich_companies(enricher: CompanyEnricher, leads: List[Dict[str, Any]]) -> int:
    """
    Attach ``company_enrichment`` to every lead and return how many succeeded.

    Leads of the same company share one upstream call through the enricher's cache.
    """
    results = await asyncio.gather(
        *(enricher.enrich(company_name(lead), hints_for(lead)) for lead in leads)
    )
    enriched = 0
    for lead, result in zip(leads, results):
        if isinstance(result, EnrichSuccess):
            lead["company_enrichment"] = result.payload
            enriched += 1
        else:
            lead["company_enrichment"] = None
    return enriched


async def all_searches_complete(
    client: ProntoClient,
    *,
    include_leads: bool = True,
    leads_per_search: Optional[int] = None,
    include_enrichment: bool = False,
    max_searches: Optional[int] = None,
    config: Settings = default_settings,
) -> Dict[str, Any]:
    """
    Every search (up to ``max_searches``) with its first ``leads_per_search`` leads.

    A search whose detail cannot be fetched is reported with ``processed`` false
    and its error; listing the searches is the only fatal step.
    """
    start = time.monotonic()
    leads_per_search = leads_per_search or config.all_searches_leads_per_search
    max_searches = max_searches or config.all_searches_max_searches

    searches = await fetch_searches(client)
    to_process = searches[:max_searches]
    outcomes = await fan_out(
        [search.id for search in to_process],
        lambda search_id: client.get_search(
            search_id, include_leads=include_leads, limit=leads_per_search, offset=0
        ),
        max_concurrency=config.workflow_fetch_concurrency,
        label="all_searches.fetch",
    )

    stats = WorkflowStats()
    enricher = make_enricher(client, config) if include_enrichment else None
    entries: List[Dict[str, Any]] = []
    total_leads = 0

    for search, outcome in zip(to_process, outcomes):
        entry: Dict[str, Any] = {
            "id": search.id,
            "name": search.name,
            "leads_count": search.expected_lead_count,
            "created_at": search.created_at,
            "details": None,
            "leads": [],
            "leads_pagination": None,
            "processed": outcome.ok,
            "error": outcome.error,
        }
        entries.append(entry)
        if not outcome.ok:
            stats.errors += 1
            continue

        stats.searches_processed += 1
        detail = format_search_detail(outcome.value, search.id, include_leads=include_leads)
        entry["details"] = detail["search"]
        if not include_leads:
            continue

        leads = detail["leads"]
        entry["leads"] = leads
        available = max(search.expected_lead_count, len(leads))
        entry["leads_pagination"] = {
            "page": 1,
            "limit": leads_per_search,
            "total": available,
            "pages": math.ceil(available / leads_per_search),
        }
        total_leads += len(leads)
        if leads:
            stats.searches_with_leads += 1
        if enricher is not None and leads:
            stats.leads_enriched += await enrich_companies(enricher, leads)

    processing_time = _elapsed_ms(start)
    logger.info(
        "all_searches.complete",
        searches=len(to_process),
        leads=total_leads,
        errors=stats.errors,
        duration_ms=processing_time,
    )
    return {
        "success": True,
        "data": {
            "workflow": "all-searches-complete",
            "timestamp": _timestamp(),
            "searches": entries,
            "total_searches": len(searches),
            "total_leads": total_leads,
            "processing_time": processing_time,
            "stats": asdict(stats),
        },
        "summary": {
            "total_searches_found": len(searches),
            "searches_processed": stats.searches_processed,
            "searches_with_leads": stats.searches_with_leads,
            "total_leads_extracted": total_leads,
            "leads_enriched": stats.leads_enriched,
            "errors_encountered": stats.errors,
            "processing_time_ms": processing_time,
        },
    }


async def search_leads(
    client: ProntoClient,
    search_id: str,
    *,
    page: int = 1,
    limit: int = 100,
    include_enrichment: bool = False,
    workflow: str = "search-leads",
    config: Settings = default_settings,
) -> Dict[str, Any]:
    """One page of a search's leads. Upstream errors propagate to the caller."""
    start = time.monotonic()
    offset = (page - 1) * limit
    payload = await client.get_search(search_id, include_leads=True, limit=limit, offset=offset)

    detail = format_search_detail(payload, search_id)
    leads = detail["leads"]
    raw_search = payload.get("search") if isinstance(payload, dict) else None
    listed = advisory_count(raw_search.get("leads_count")) if isinstance(raw_search, dict) else 0
    total = max(listed, offset + len(leads))

    leads_enriched = 0
    if include_enrichment and leads:
        leads_enriched = await enrich_companies(make_enricher(client, config), leads)

    pages = math.ceil(total / limit)
    processing_time = _elapsed_ms(start)
    logger.info(
        "search_leads.complete",
        workflow=workflow,
        search_id=search_id,
        page=page,
        leads=len(leads),
        enriched=leads_enriched,
        duration_ms=processing_time,
    )
    return {
        "success": True,
        "data": {
            "workflow": workflow,
            "timestamp": _timestamp(),
            "search_id": search_id,
            "search_details": detail["search"],
            "leads": leads,
            "pagination": {"page": page, "limit": limit, "total": total, "pages": pages},
            "processing_time": processing_time,
        },
        "summary": {
            "search_name": detail["search"]["name"],
            "leads_found": len(leads),
            "leads_enriched": leads_enriched,
            "total_pages": pages,
            "processing_time_ms": processing_time,
        },
    }
