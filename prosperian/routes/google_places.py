# prosperian/routes/google_places.py
from __future__ import annotations

from typing import NoReturn, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from prosperian.clients.apify import ApifyClient, ApifyError, ApifyTimeoutError
from prosperian.core.exceptions import ExternalServiceError, ServiceUnavailableError, ValidationError
from prosperian.core.logging import get_structlog_logger
from prosperian.routes.deps import get_apify_client
from prosperian.services.places import build_places_input, normalize_places, quota_recommendations

logger = get_structlog_logger(__name__)

router = APIRouter(prefix="/google-places", tags=["google-places"])


class EnseigneSearch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enseigne: Optional[str] = None
    location: str = "France"
    max_results: Optional[int] = Field(default=None, alias="maxResults")


def raise_for_apify_error(error: ApifyError) -> NoReturn:
    if isinstance(error, ApifyTimeoutError):
        raise ServiceUnavailableError("Google Places search timed out", code="apify_timeout")
    details = {"apify_error": error.payload} if error.payload is not None else {}
    raise ExternalServiceError(error.message, code="apify_error", details=details)


@router.post("/search-enseigne")
async def search_enseigne(body: EnseigneSearch, client: ApifyClient = Depends(get_apify_client)):
    """Places matching a brand name, crawled from Google Maps through Apify."""
    if not body.enseigne or not body.enseigne.strip():
        raise ValidationError("enseigne is required", code="missing_parameter", details={"field": "enseigne"})

    enseigne = body.enseigne.strip()
    try:
        items = await client.run_actor(build_places_input(enseigne, body.location, body.max_results))
    except ApifyError as e:
        raise_for_apify_error(e)

    results = normalize_places(items)
    logger.info("places.searched", enseigne=enseigne, location=body.location, results=len(results))
    return {
        "success": True,
        "results": results,
        "totalResults": len(results),
        "searchQuery": f"{enseigne} {body.location}",
        "source": "apify",
    }


@router.get("/check-quota")
async def check_quota(client: ApifyClient = Depends(get_apify_client)):
    try:
        user = await client.current_user()
        usage = await client.monthly_usage()
    except ApifyError as e:
        raise_for_apify_error(e)

    return {
        "success": True,
        "user": {"id": user.get("id"), "username": user.get("username"), "plan": user.get("plan")},
        "usage": usage,
        "recommendations": quota_recommendations(user, usage),
    }
