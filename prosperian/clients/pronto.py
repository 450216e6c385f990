# prosperian/clients/pronto.py
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from prosperian.core.config import settings
from prosperian.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)


class ProntoError(Exception):
    """Raised when a Pronto call fails. ``status_code`` is None for transport errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ProntoTimeoutError(ProntoError):
    """Raised when a Pronto call exceeds its deadline."""

    def __init__(self, message: str = "Timeout") -> None:
        super().__init__(message)


def _decode_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:200]


class ProntoClient:
    """Thin async wrapper around the Pronto v2 REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "X-API-KEY": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ProntoClient":
        return cls(
            base_url=settings.pronto_base_url,
            api_key=settings.pronto_api_key,
            timeout=settings.pronto_timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ProntoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("pronto.timeout", method=method, path=path, error=str(e))
            raise ProntoTimeoutError() from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("pronto.http_error", method=method, path=path, status_code=status)
            raise ProntoError(
                f"Pronto returned HTTP {status} for {method} {path}",
                status_code=status,
                payload=_decode_payload(e.response),
            ) from e
        except httpx.RequestError as e:
            logger.error("pronto.request_error", method=method, path=path, error=str(e))
            raise ProntoError(f"Pronto request failed: {str(e)[:200]}") from e

        return _decode_payload(response)

    async def list_searches(self) -> Dict[str, Any]:
        return await self._request("GET", "/searches")

    async def get_search(
        self,
        search_id: str,
        *,
        include_leads: bool = True,
        limit: int = 100,
        offset: int = 0,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if include_leads:
            params = {"include_leads": "true", "limit": limit, "offset": offset}
        return await self._request("GET", f"/searches/{search_id}", params=params or None)

    async def enrich_account(
        self,
        *,
        name: str,
        company_linkedin_url: Optional[str] = None,
        domain: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"name": name}
        if company_linkedin_url:
            body["company_linkedin_url"] = company_linkedin_url
        if domain:
            body["domain"] = domain
        if country:
            body["country"] = country
        return await self._request("POST", "/accounts/single_enrich", json=body)

    async def count_profiles(self) -> Dict[str, Any]:
        return await self._request("GET", "/accounts/count-profiles")

    async def create_leads_search(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/leads", json=payload)

    async def list_lists(self) -> Any:
        return await self._request("GET", "/lists")

    async def get_list(self, list_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/lists/{list_id}")

    async def create_list(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/lists", json=payload)
