"""Fixed-window rate limiter backed by the durable key/value store."""

import math
import time
from typing import Callable, Protocol

from ..config import (
    RATE_LIMIT_PER_MINUTE,
    RATE_LIMIT_WINDOW_SECONDS,
    rate_limit_ttl,
)
from ..logging_config import get_logger
from ..models import RateLimitCounter, RateLimitDecision
from ..storage import IStorage

logger = get_logger(__name__)


class IRateLimiter(Protocol):
    """Ingress-side request gate keyed by client identity."""

    async def check(self, client_key: str) -> RateLimitDecision:
        """Count a request and decide whether it may proceed."""
        ...


class RateLimiter:
    """
    Counts requests per client in fixed windows.

    Fails open: when the store is unreachable the request is allowed and the
    decision is marked as not enforced. Counters are read-modify-write with
    no locking, so bursts may over- or under-count slightly.
    """

    def __init__(
        self,
        storage: IStorage,
        limit: int = RATE_LIMIT_PER_MINUTE,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        ttl: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self._limit = limit
        self._window = window
        self._ttl = rate_limit_ttl(window) if ttl is None else ttl
        if self._ttl <= window:
            raise ValueError("Rate limit TTL must be longer than the window")
        self._clock = clock

    @property
    def limit(self) -> int:
        return self._limit

    async def check(self, client_key: str) -> RateLimitDecision:
        """Count a request and decide whether it may proceed."""
        key = f"ratelimit:{client_key}"
        now = self._clock()

        try:
            raw = await self._storage.get(key)
            counter = (
                RateLimitCounter.from_dict(raw)
                if raw
                else RateLimitCounter(count=0, reset_at=now + self._window)
            )

            if now > counter.reset_at:
                counter = RateLimitCounter(count=0, reset_at=now + self._window)

            if counter.count >= self._limit:
                retry_after = math.ceil(counter.reset_at - now)
                logger.info(
                    "Rate limit exceeded for %s, retry after %ss",
                    client_key,
                    retry_after,
                )
                return RateLimitDecision(
                    allowed=False,
                    limit=self._limit,
                    remaining=0,
                    reset_at=counter.reset_at,
                    retry_after=retry_after,
                )

            counter.count += 1
            await self._storage.put(key, counter.to_dict(), ttl=self._ttl)
        except Exception as e:
            logger.warning("Rate limiter failing open for %s: %s", client_key, e)
            return RateLimitDecision(allowed=True, limit=self._limit, enforced=False)

        return RateLimitDecision(
            allowed=True,
            limit=self._limit,
            remaining=self._limit - counter.count,
            reset_at=counter.reset_at,
        )
