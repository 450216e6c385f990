# prosperian/routes/workflow.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from prosperian.clients.pronto import ProntoClient, ProntoError
from prosperian.core.logging import get_structlog_logger
from prosperian.routes.deps import get_pronto_client
from prosperian.schemas.global_results import GlobalResultResponse
from prosperian.services.aggregation import global_result

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/prosperian", tags=["workflow"])


@router.get("/get/global/result", response_model=GlobalResultResponse)
async def get_global_result(
    page: Optional[str] = Query(None, description="Page number; enables flat paginated mode"),
    paginate: Optional[str] = Query(None, description="Alias of page, takes precedence"),
    company_name: Optional[str] = Query(None, description="Company name filter (comma-separated alternatives)"),
    first_name: Optional[str] = Query(None, description="Lead first name filter"),
    last_name: Optional[str] = Query(None, description="Lead last name filter"),
    client: ProntoClient = Depends(get_pronto_client),
):
    """Leads of every Pronto search, filtered, optionally paginated, and enriched."""
    try:
        return await global_result(
            client,
            page=page,
            paginate=paginate,
            company_name_filter=company_name,
            first_name_filter=first_name,
            last_name_filter=last_name,
        )
    except ProntoError as e:
        logger.error("global_result.failed", status_code=e.status_code, error=e.message)
        return JSONResponse(
            status_code=e.status_code or 500,
            content={"error": e.payload if e.payload is not None else e.message},
        )
