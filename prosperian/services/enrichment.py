# prosperian/services/enrichment.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from prosperian.clients.pronto import ProntoClient, ProntoError, ProntoTimeoutError
from prosperian.core.logging import get_structlog_logger
from prosperian.services.lead_filter import company_name, path

logger = get_structlog_logger(__name__)


@dataclass(frozen=True)
class EnrichSuccess:
    payload: Any


@dataclass(frozen=True)
class EnrichFailure:
    error: str
    timed_out: bool = False
    payload: Any = None


EnrichResult = Union[EnrichSuccess, EnrichFailure]


@dataclass(frozen=True)
class EnrichHints:
    company_linkedin_url: Optional[str] = None
    domain: Optional[str] = None


def _domain(website: Any) -> Optional[str]:
    if not website or not isinstance(website, str):
        return None
    parsed = urlparse(website if "://" in website else f"//{website}")
    host = parsed.netloc or parsed.path
    return host[4:] if host.startswith("www.") else host or None


def hints_for(item: Mapping[str, Any]) -> EnrichHints:
    linkedin_url = (
        path("company", "linkedin_url")(item)
        or path("company_linkedin_url")(item)
        or path("lead", "company", "linkedin_url")(item)
    )
    website = path("company", "website")(item) or path("domain")(item) or path("website")(item)
    return EnrichHints(company_linkedin_url=linkedin_url or None, domain=_domain(website))


class EnrichmentCache:
    """
    Request-scoped enrichment results keyed by exact company name.

    Entries hold the in-flight task, so concurrent lookups of the same name
    share one upstream call. Lookup and insert happen without an await in
    between, which makes them atomic on the event loop.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, "asyncio.Future[EnrichResult]"] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_create(
        self,
        key: str,
        factory: Callable[[], Awaitable[EnrichResult]],
    ) -> EnrichResult:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            entry = asyncio.ensure_future(factory())
            self._entries[key] = entry
        else:
            self.hits += 1
        return await asyncio.shield(entry)


class CompanyEnricher:
    """Enriches each distinct company name at most once per instance."""

    def __init__(
        self,
        client: ProntoClient,
        *,
        timeout: Optional[float] = None,
        max_concurrency: int = 0,
        country: Optional[str] = None,
        cache: Optional[EnrichmentCache] = None,
    ) -> None:
        self.client = client
        self.timeout = timeout
        self.country = country
        self.cache = cache if cache is not None else EnrichmentCache()
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None

    async def enrich(self, name: str, hints: Optional[EnrichHints] = None) -> Optional[EnrichResult]:
        if not name:
            return None
        return await self.cache.get_or_create(name, lambda: self._fetch(name, hints or EnrichHints()))

    async def _fetch(self, name: str, hints: EnrichHints) -> EnrichResult:
        if self._semaphore is None:
            return await self._call(name, hints)
        async with self._semaphore:
            return await self._call(name, hints)

    async def _call(self, name: str, hints: EnrichHints) -> EnrichResult:
        request = self.client.enrich_account(
            name=name,
            company_linkedin_url=hints.company_linkedin_url,
            domain=hints.domain,
            country=self.country,
        )
        try:
            if self.timeout is None:
                payload = await request
            else:
                payload = await asyncio.wait_for(request, timeout=self.timeout)
        except (asyncio.TimeoutError, ProntoTimeoutError):
            logger.info("enrichment.timeout", company=name, timeout_seconds=self.timeout)
            return EnrichFailure(error="Timeout", timed_out=True)
        except ProntoError as e:
            logger.warning("enrichment.failed", company=name, status_code=e.status_code, error=e.message)
            return EnrichFailure(error=e.message, payload=e.payload)
        except Exception as e:
            logger.error("enrichment.error", company=name, error=str(e), error_type=type(e).__name__)
            return EnrichFailure(error=str(e) or type(e).__name__)
        return EnrichSuccess(payload=payload)

    async def enrich_lead(self, item: Mapping[str, Any]) -> Optional[Any]:
        """Enrichment value to attach to ``item``, or None when nothing should be attached."""
        result = await self.enrich(company_name(item), hints_for(item))
        return enrichment_output(result)


def enrichment_output(result: Optional[EnrichResult]) -> Optional[Any]:
    if result is None:
        return None
    if isinstance(result, EnrichSuccess):
        return result.payload
    if result.timed_out:
        return None
    return {"error": result.payload if result.payload is not None else result.error}
