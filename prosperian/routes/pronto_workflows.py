# prosperian/routes/pronto_workflows.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from prosperian.clients.pronto import ProntoClient, ProntoError
from prosperian.core.config import settings
from prosperian.routes.deps import get_pronto_client
from prosperian.routes.pronto import raise_for_pronto_error
from prosperian.services.pagination import resolve_page
from prosperian.services.workflows import all_searches_complete, bounded_int, flag, search_leads

router = APIRouter(prefix="/pronto-workflows", tags=["pronto-workflows"])

MAX_PAGE_SIZE = 1000


@router.get("/all-searches-complete")
async def get_all_searches_complete(
    include_leads: Optional[str] = Query("true"),
    leads_per_search: Optional[str] = Query(None),
    include_enrichment: Optional[str] = Query("false"),
    max_searches: Optional[str] = Query(None),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Every search with its first leads and per-search processing status."""
    try:
        return await all_searches_complete(
            client,
            include_leads=flag(include_leads, True),
            leads_per_search=bounded_int(leads_per_search, settings.all_searches_leads_per_search, MAX_PAGE_SIZE),
            include_enrichment=flag(include_enrichment, False),
            max_searches=bounded_int(max_searches, settings.all_searches_max_searches, settings.all_searches_max_searches),
        )
    except ProntoError as e:
        raise_for_pronto_error(e, resource="searches")


@router.get("/search-leads/{search_id}")
async def get_search_leads(
    search_id: str,
    page: Optional[str] = Query("1"),
    limit: Optional[str] = Query("100"),
    include_enrichment: Optional[str] = Query("false"),
    client: ProntoClient = Depends(get_pronto_client),
):
    try:
        return await search_leads(
            client,
            search_id,
            page=resolve_page(page, None) or 1,
            limit=bounded_int(limit, 100, MAX_PAGE_SIZE),
            include_enrichment=flag(include_enrichment, False),
        )
    except ProntoError as e:
        raise_for_pronto_error(e, resource=f"search {search_id}")


@router.get("/search-leads-enhanced/{search_id}")
async def get_search_leads_enhanced(
    search_id: str,
    page: Optional[str] = Query("1"),
    limit: Optional[str] = Query("50"),
    include_company_data: Optional[str] = Query("true"),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Like ``search-leads`` with company enrichment on by default."""
    try:
        return await search_leads(
            client,
            search_id,
            page=resolve_page(page, None) or 1,
            limit=bounded_int(limit, 50, MAX_PAGE_SIZE),
            include_enrichment=flag(include_company_data, True),
            workflow="enhanced-search-leads",
        )
    except ProntoError as e:
        raise_for_pronto_error(e, resource=f"search {search_id}")
