"""Recommendation coordinator — one AI round trip per event at a time.

Sits between route handlers and the AI service client:

    cache hit            → return the stored result, no bookkeeping
    event in flight      → queue behind the in-flight round trip
    otherwise            → wait for the global rate limit, submit the profile,
                           fetch recommendations, cache, fan out to the queue

All map mutations happen between awaits on a single event loop, so no locks
are needed. A check and its matching mutation must never be split by an await.

Queued callers receive the in-flight caller's result even when they asked for
a different attendee of the same event.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from app.schemas.recommendation import RecommendationRequest, RecommendationsResponse
from app.services.ai_client import AIServiceClient, validate_request
from app.services.errors import RecommendationError, RecommendationTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 5 * 60.0
DEFAULT_RATE_LIMIT = 1.0
DEFAULT_PENDING_TIMEOUT = 30.0


@dataclass
class _CacheEntry:
    result: RecommendationsResponse
    stored_at: float


@dataclass
class _Waiter:
    cache_key: str
    future: asyncio.Future
    created_at: float


@dataclass
class _InFlight:
    """The single upstream round trip running for an event and its queue."""
    event_id: str
    waiters: list[_Waiter] = field(default_factory=list)


class RecommendationCoordinator:
    """Deduplicates, rate-limits and caches AI recommendation requests.

    Build exactly one per process (see app.main lifespan) and inject it
    where needed.
    """

    def __init__(
        self,
        client: AIServiceClient,
        *,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        rate_limit: float = DEFAULT_RATE_LIMIT,
        pending_timeout: float = DEFAULT_PENDING_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._cache_ttl = cache_ttl
        self._rate_limit = rate_limit
        self._pending_timeout = pending_timeout
        self._clock = clock
        self._sleep = sleep

        self._cache: dict[str, _CacheEntry] = {}
        self._in_flight: dict[str, _InFlight] = {}
        self._last_call_at: float | None = None

    async def get_recommendations(self, request: RecommendationRequest) -> RecommendationsResponse:
        # Rejected before any cache or queue bookkeeping
        validate_request(request)

        event_id = request.event_id
        cache_key = request.cache_key

        cached = self._cache.get(cache_key)
        if cached and self._clock() - cached.stored_at < self._cache_ttl:
            logger.info(f"Returning cached recommendations for {cache_key}")
            return cached.result

        in_flight = self._in_flight.get(event_id)
        if in_flight is not None:
            logger.info(f"Event {event_id} already being processed, queuing {cache_key}")
            future = asyncio.get_running_loop().create_future()
            in_flight.waiters.append(_Waiter(cache_key, future, self._clock()))
            return await future

        in_flight = _InFlight(event_id=event_id)
        self._in_flight[event_id] = in_flight
        try:
            await self._wait_for_rate_limit()
            logger.info(f"Processing AI request for event {event_id} ({cache_key})")
            await self._client.submit_profile(request)
            result = await self._client.fetch_recommendations(request)
        except Exception as e:
            logger.error(f"AI processing failed for event {event_id}: {e}")
            self._settle(in_flight, error=e)
            raise
        else:
            self._cache[cache_key] = _CacheEntry(result=result, stored_at=self._clock())
            self._settle(in_flight, result=result)
            self._last_call_at = max(self._last_call_at or 0.0, self._clock())
            return result
        finally:
            if self._in_flight.get(event_id) is in_flight:
                del self._in_flight[event_id]
            if in_flight.waiters:
                # Round trip was cancelled; queued callers are no longer reachable by cleanup().
                self._settle(
                    in_flight,
                    error=RecommendationError(f"AI request for event {event_id} was cancelled"),
                )

    async def _wait_for_rate_limit(self):
        """Reserve the next upstream slot, then sleep until it opens.

        The reservation is taken before sleeping so concurrent round trips for
        different events start at least rate_limit seconds apart, in arrival
        order.
        """
        now = self._clock()
        start_at = now
        if self._last_call_at is not None:
            start_at = max(now, self._last_call_at + self._rate_limit)
        self._last_call_at = start_at
        delay = start_at - now
        if delay > 0:
            logger.debug(f"Rate limit: waiting {delay:.3f}s before AI call")
            await self._sleep(delay)

    def _settle(
        self,
        in_flight: _InFlight,
        result: RecommendationsResponse | None = None,
        error: BaseException | None = None,
    ):
        waiters, in_flight.waiters = in_flight.waiters, []
        for waiter in waiters:
            if waiter.future.done():
                continue
            if error is not None:
                waiter.future.set_exception(error)
            else:
                waiter.future.set_result(result)
        if waiters:
            outcome = "rejected" if error is not None else "resolved"
            logger.info(f"{len(waiters)} queued request(s) {outcome} for event {in_flight.event_id}")

    def cleanup(self) -> dict:
        """Evict expired cache entries and time out stale queued callers."""
        now = self._clock()

        expired = [
            key for key, entry in self._cache.items()
            if now - entry.stored_at >= self._cache_ttl
        ]
        for key in expired:
            del self._cache[key]

        timed_out = 0
        for in_flight in self._in_flight.values():
            remaining = []
            for waiter in in_flight.waiters:
                if waiter.future.done():
                    continue
                if now - waiter.created_at > self._pending_timeout:
                    waiter.future.set_exception(
                        RecommendationTimeoutError(f"Request timeout for {waiter.cache_key}")
                    )
                    timed_out += 1
                else:
                    remaining.append(waiter)
            in_flight.waiters = remaining

        if expired or timed_out:
            logger.info(
                f"Coordinator cleanup: {len(expired)} cache entries evicted, "
                f"{timed_out} pending requests timed out"
            )
        return {"evicted": len(expired), "timed_out": timed_out}

    def is_processing(self, event_id: str) -> bool:
        return event_id in self._in_flight

    def pending_count(self, event_id: str | None = None) -> int:
        if event_id is not None:
            in_flight = self._in_flight.get(event_id)
            return len(in_flight.waiters) if in_flight else 0
        return sum(len(f.waiters) for f in self._in_flight.values())

    def stats(self) -> dict:
        return {
            "cached_results": len(self._cache),
            "in_flight_events": len(self._in_flight),
            "pending_requests": self.pending_count(),
        }

    def clear(self):
        self._cache.clear()

    async def close(self):
        await self._client.close()
