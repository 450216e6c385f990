# prosperian/services/fanout.py
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from prosperian.clients.pronto import ProntoTimeoutError
from prosperian.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

K = TypeVar("K")
T = TypeVar("T")


@dataclass(frozen=True)
class FetchOutcome(Generic[K, T]):
    key: K
    value: Optional[T] = None
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


async def fan_out(
    keys: Sequence[K],
    fetch: Callable[[K], Awaitable[T]],
    *,
    timeout: Optional[float] = None,
    max_concurrency: int = 0,
    label: str = "fanout",
) -> List[FetchOutcome[K, T]]:
    """
    Run ``fetch`` for every key concurrently and return outcomes aligned with ``keys``.

    A failed or timed-out call yields an outcome carrying the error instead of
    aborting the batch. ``timeout`` (seconds) is a per-call deadline measured
    from the moment the call starts, not from when it was queued.
    ``max_concurrency`` of 0 leaves the fan-out unbounded; 1 makes it sequential.
    """
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
    start_time = time.monotonic()

    async def _call(key: K) -> T:
        if timeout is None:
            return await fetch(key)
        return await asyncio.wait_for(fetch(key), timeout=timeout)

    async def _run(key: K) -> FetchOutcome[K, T]:
        try:
            if semaphore is None:
                value = await _call(key)
            else:
                async with semaphore:
                    value = await _call(key)
        except (asyncio.TimeoutError, ProntoTimeoutError):
            logger.warning(f"{label}.timeout", key=str(key), timeout_seconds=timeout)
            return FetchOutcome(key=key, error="Timeout", timed_out=True)
        except Exception as e:
            logger.warning(f"{label}.failed", key=str(key), error=str(e))
            return FetchOutcome(key=key, error=str(e) or type(e).__name__)
        return FetchOutcome(key=key, value=value)

    outcomes = list(await asyncio.gather(*(_run(key) for key in keys)))

    succeeded = sum(1 for outcome in outcomes if outcome.ok)
    logger.info(
        f"{label}.complete",
        requested=len(keys),
        succeeded=succeeded,
        failed=len(outcomes) - succeeded,
        duration_ms=round((time.monotonic() - start_time) * 1000, 2),
    )
    return outcomes

