# prosperian/clients/apify.py
from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from prosperian.core.config import settings
from prosperian.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

FAILED_RUN_STATUSES = ("FAILED", "ABORTED", "TIMED-OUT")


class ApifyError(Exception):
    """Raised when an Apify call fails or an actor run ends unsuccessfully."""

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


class ApifyTimeoutError(ApifyError):
    """Raised when a call or an actor run exceeds its deadline."""


def _decode_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:200]


def _data(payload: Any) -> Dict[str, Any]:
    data = payload.get("data") if isinstance(payload, dict) else None
    return data if isinstance(data, dict) else {}


class ApifyClient:
    """Async client for the parts of the Apify v2 API used to run one actor."""

    def __init__(
        self,
        base_url: str,
        token: str,
        actor_id: str,
        timeout: float = 15.0,
        poll_interval: float = 2.0,
        max_wait: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.actor_id = actor_id
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ApifyClient":
        return cls(
            base_url=settings.apify_base_url,
            token=settings.apify_token,
            actor_id=settings.apify_actor_id,
            timeout=settings.apify_timeout_seconds,
            poll_interval=settings.apify_poll_interval_seconds,
            max_wait=settings.apify_max_wait_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("apify.timeout", method=method, path=path, error=str(e))
            raise ApifyTimeoutError("Timeout") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("apify.http_error", method=method, path=path, status_code=status)
            raise ApifyError(
                f"Apify returned HTTP {status} for {method} {path}",
                status_code=status,
                payload=_decode_payload(e.response),
            ) from e
        except httpx.RequestError as e:
            logger.error("apify.request_error", method=method, path=path, error=str(e))
            raise ApifyError(f"Apify request failed: {str(e)[:200]}") from e

        return _decode_payload(response)

    async def start_run(self, run_input: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request("POST", f"/acts/{quote(self.actor_id, safe='')}/runs", json=run_input)
        run = _data(payload)
        if not run.get("id"):
            raise ApifyError("Apify did not return a run id", payload=payload)
        logger.info("apify.run_started", run_id=run["id"], actor_id=self.actor_id)
        return run

    async def get_run(self, run_id: str) -> Dict[str, Any]:
        return _data(await self._request("GET", f"/actor-runs/{run_id}"))

    async def dataset_items(self, run_id: str) -> List[Dict[str, Any]]:
        items = await self._request("GET", f"/actor-runs/{run_id}/dataset/items")
        return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []

    async def wait_for_run(self, run_id: str) -> Dict[str, Any]:
        """Poll a run until it succeeds; failure statuses and ``max_wait`` raise."""
        deadline = time.monotonic() + self.max_wait
        while True:
            run = await self.get_run(run_id)
            status = run.get("status")
            if status == "SUCCEEDED":
                return run
            if status in FAILED_RUN_STATUSES:
                logger.error(
                    "apify.run_failed",
                    run_id=run_id,
                    status=status,
                    exit_code=run.get("exitCode"),
                    started_at=run.get("startedAt"),
                    finished_at=run.get("finishedAt"),
                )
                raise ApifyError(f"Apify run {run_id} ended with status {status}", payload=run)
            if time.monotonic() >= deadline:
                raise ApifyTimeoutError(f"Apify run {run_id} did not finish within {self.max_wait:g}s")
            await asyncio.sleep(self.poll_interval)

    async def run_actor(self, run_input: Dict[str, Any]) -> List[Dict[str, Any]]:
        run = await self.start_run(run_input)
        await self.wait_for_run(run["id"])
        return await self.dataset_items(run["id"])

    async def current_user(self) -> Dict[str, Any]:
        return _data(await self._request("GET", "/users/me"))

    async def monthly_usage(self) -> Dict[str, Any]:
        return _data(await self._request("GET", "/users/me/usage/monthly"))
