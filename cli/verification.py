# cli/verification.py
"""
Verification helpers used by the CLI.
All functions return a VerificationResult(success, message, data).
"""
from __future__ import annotations

import importlib
import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

KEY_MODULES = [
    # Core
    "prosperian.core.config",
    "prosperian.core.exceptions",
    "prosperian.core.logging",
    # Clients
    "prosperian.clients.apify",
    "prosperian.clients.pronto",
    # Services
    "prosperian.services.aggregation",
    "prosperian.services.enrichment",
    "prosperian.services.fanout",
    "prosperian.services.lead_filter",
    "prosperian.services.pagination",
    "prosperian.services.places",
    "prosperian.services.sales_navigator",
    "prosperian.services.search_format",
    "prosperian.services.workflows",
    # Routes
    "prosperian.routes.google_places",
    "prosperian.routes.health",
    "prosperian.routes.linkedin_sales",
    "prosperian.routes.pronto",
    "prosperian.routes.pronto_workflows",
    "prosperian.routes.workflow",
    # Main
    "prosperian.main",
]


@dataclass
class VerificationResult:
    """Structured result from verification functions."""
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


async def check_imports() -> VerificationResult:
    """Verify the key modules import without errors."""
    errors = []
    for module_name in KEY_MODULES:
        try:
            importlib.import_module(module_name)
        except Exception as e:
            errors.append({"module": module_name, "error": str(e), "type": type(e).__name__})

    if errors:
        failed = ", ".join(error["module"] for error in errors)
        return VerificationResult(
            success=False,
            message=f"Failed to import {len(errors)} modules: {failed}",
            data={"errors": errors, "modules_tested": len(KEY_MODULES)},
        )
    return VerificationResult(
        success=True,
        message=f"Successfully imported {len(KEY_MODULES)} modules",
        data={"modules_tested": len(KEY_MODULES)},
    )


async def check_api_health(api_url: str = "http://localhost:8000", timeout: float = 5.0) -> VerificationResult:
    """Check the API is running and its liveness check responds."""
    url = f"{api_url}/api/health/live"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {str(e)}",
            data={"error": str(e), "url": api_url},
        )

    if response.status_code == 200:
        return VerificationResult(
            success=True,
            message="API health check passed",
            data={"status_code": response.status_code, "url": url},
        )
    return VerificationResult(
        success=False,
        message=f"API health check failed with status {response.status_code}",
        data={"status_code": response.status_code, "url": url},
    )


async def check_pronto_status(api_url: str = "http://localhost:8000", timeout: float = 10.0) -> VerificationResult:
    """Ask the running API whether the Pronto upstream answers."""
    url = f"{api_url}/api/pronto/health-check"
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {str(e)}",
            data={"error": str(e), "url": api_url},
        )

    body = _json_or_empty(response)
    if response.status_code == 200 and body.get("status") == "healthy":
        return VerificationResult(success=True, message="Pronto API reachable", data=body)
    return VerificationResult(
        success=False,
        message=body.get("message") or f"Pronto health check failed with status {response.status_code}",
        data={"status_code": response.status_code, **body},
    )


async def fetch_workflow_global_results(
    api_url: str = "http://localhost:8000",
    filters: Optional[Dict[str, str]] = None,
    limit: Optional[int] = None,
    timeout: float = 120.0,
) -> VerificationResult:
    """Run the workflow global-results aggregation on a running API."""
    params: Dict[str, Any] = {key: value for key, value in (filters or {}).items() if value}
    if limit is not None:
        params["limit"] = limit

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(f"{api_url}/api/pronto/workflow/global-results", params=params)
    except httpx.RequestError as e:
        return VerificationResult(
            success=False,
            message=f"API not accessible at {api_url}: {str(e)}",
            data={"error": str(e), "url": api_url},
        )
    except Exception as e:
        return VerificationResult(
            success=False,
            message=f"Global results error: {str(e)}",
            data={"error": str(e), "traceback": traceback.format_exc()},
        )

    body = _json_or_empty(response)
    if response.status_code == 200 and body.get("success"):
        return VerificationResult(success=True, message=body.get("message", ""), data=body)
    return VerificationResult(
        success=False,
        message=body.get("details") or f"Global results failed with status {response.status_code}",
        data={"status_code": response.status_code, **body},
    )


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
