"""
Rate limiter for Discogs API calls.

Hey future me – das ist der ZENTRALE Rate Limiter für alle Discogs-Calls!
Discogs erlaubt 60 requests/minute (authenticated). Wir bleiben bei 55.

WHY A QUEUE AND NOT A TOKEN BUCKET?
- Discogs counts per rolling minute, bursts included
- With a queue + single drain loop there is exactly ONE call in flight from
  the limiter's point of view, so we can never overshoot the window
- 429s can be retried in-place (requeue at the FRONT) without losing order

ALGORITHM:
- enqueue() parks the caller on a Future and appends a QueuedCall
- One drain task pops calls FIFO, awaits each one to completion
- Window budget exhausted → sleep until the window resets, then continue
- RateLimitError (429) → requeue at front with retry_count+1, back off
  base * 2^retry_count (capped); after max_retries → RateLimitExceeded
- Any other error → rejected right away, we are NOT a generic retry framework
- Fixed small gap between dispatches so we never fire back-to-back

USAGE:
    limiter = RateLimiter(RateLimiterConfig(capacity_per_window=55))
    release = await limiter.enqueue(lambda: client.fetch("/releases/1"))
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from cratescope.domain.exceptions import RateLimitError, RateLimitExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RateLimiterConfig:
    """Configuration for rate limiter.

    Hey future me – die Standard-Werte sind für Discogs!
    Discogs: 60 req/min authenticated, 25 req/min unauthenticated.
    55/min lässt Puffer für Handshake-Calls die nicht durch den Limiter gehen.
    """

    capacity_per_window: int = 55
    window_seconds: float = 60.0
    min_spacing_seconds: float = 0.05  # Gap between any two dispatches
    backoff_base_seconds: float = 2.0  # First 429 wait
    max_backoff_seconds: float = 60.0
    max_retries: int = 3


@dataclass
class RateBudget:
    """Dispatch count for the current window. Only the drain loop mutates this."""

    requests_this_window: int
    window_reset_at: float
    capacity_per_window: int

    @property
    def remaining(self) -> int:
        """Dispatches left in this window."""
        return max(0, self.capacity_per_window - self.requests_this_window)


@dataclass
class QueuedCall:
    """One pending operation plus the Future its caller is awaiting."""

    operation: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    retry_count: int = 0


@dataclass
class RateLimiter:
    """Single-flight FIFO admission queue with a per-window budget.

    Hey future me – EINE Instanz pro Prozess, erstellt im lifespan und über
    app.state geteilt! Two limiters = two budgets = 429s.

    Attributes:
        config: Rate limiter configuration
        clock: Monotonic time source (injectable for tests)
        sleep: Async sleep (injectable for tests)
    """

    config: RateLimiterConfig = field(default_factory=RateLimiterConfig)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    # Internal state (not in __init__ signature)
    _queue: deque[QueuedCall] = field(default_factory=deque, init=False)
    _budget: RateBudget = field(init=False)
    _drain_task: asyncio.Task[None] | None = field(default=None, init=False)
    _dispatched: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        """Open the first window."""
        self._budget = RateBudget(
            requests_this_window=0,
            window_reset_at=self.clock() + self.config.window_seconds,
            capacity_per_window=self.config.capacity_per_window,
        )

    async def enqueue(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run an operation once the budget allows it.

        Args:
            operation: Zero-arg callable returning an awaitable. It is called
                again on every retry, so build the request INSIDE it.

        Returns:
            Whatever the operation returns

        Raises:
            RateLimitExceeded: Operation kept raising RateLimitError after all retries
            Exception: Any other error from the operation, unchanged
        """
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._queue.append(QueuedCall(operation=operation, future=future))
        self._ensure_draining()
        return await future

    def _ensure_draining(self) -> None:
        """Start the drain task unless one is already running."""
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self._drain())

    # Yo future me, this is THE CORE loop. It awaits each operation to completion before
    # touching the next one, so "one in flight" holds even if 20 callers enqueue at once.
    # The loop exits when the queue is empty; the next enqueue() starts a fresh one.
    # Callers that abandon their Future don't cancel anything: the call still runs,
    # we just don't deliver the result.
    async def _drain(self) -> None:
        while self._queue:
            await self._wait_for_budget()

            call = self._queue.popleft()
            self._budget.requests_this_window += 1
            self._dispatched += 1

            try:
                result = await call.operation()
            except RateLimitError as e:
                await self._handle_rate_limited(call, e)
            except Exception as e:
                self._settle(call, exception=e)
            else:
                self._settle(call, result=result)

            await self.sleep(self.config.min_spacing_seconds)

    async def _wait_for_budget(self) -> None:
        """Roll the window if it expired; sleep until reset if it's used up."""
        now = self.clock()
        if now >= self._budget.window_reset_at:
            self._reset_window(now)
            return

        if self._budget.requests_this_window >= self._budget.capacity_per_window:
            wait_time = max(0.0, self._budget.window_reset_at - now)
            logger.info(
                "RateLimiter: window budget of %d used, waiting %.2fs for reset",
                self._budget.capacity_per_window,
                wait_time,
            )
            await self.sleep(wait_time)
            self._reset_window(self.clock())

    def _reset_window(self, now: float) -> None:
        self._budget.requests_this_window = 0
        self._budget.window_reset_at = now + self.config.window_seconds

    async def _handle_rate_limited(self, call: QueuedCall, error: RateLimitError) -> None:
        """Requeue at the front with backoff, or give up after max_retries."""
        if call.retry_count >= self.config.max_retries:
            logger.warning(
                "RateLimiter: giving up after %d attempts (429 every time)",
                call.retry_count + 1,
            )
            self._settle(
                call,
                exception=RateLimitExceeded(
                    attempts=call.retry_count + 1, retry_after=error.retry_after
                ),
            )
            return

        delay = self.backoff_delay(call.retry_count)
        logger.warning(
            "RateLimiter: 429 from Discogs, retry %d/%d after %.1fs",
            call.retry_count + 1,
            self.config.max_retries,
            delay,
        )
        # Front of the queue: a retried call goes before anything enqueued after it
        self._queue.appendleft(replace(call, retry_count=call.retry_count + 1))
        await self.sleep(delay)

    def backoff_delay(self, retry_count: int) -> float:
        """Exponential backoff: base * 2^retry_count, capped."""
        return min(
            self.config.backoff_base_seconds * (2**retry_count),
            self.config.max_backoff_seconds,
        )

    @staticmethod
    def _settle(
        call: QueuedCall,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        # Caller may have given up on the future (timeout/cancel) - nothing to deliver then
        if call.future.done():
            return
        if exception is not None:
            call.future.set_exception(exception)
        else:
            call.future.set_result(result)

    @property
    def budget(self) -> RateBudget:
        """Copy of the current budget (for health checks/debugging)."""
        return replace(self._budget)

    @property
    def pending(self) -> int:
        """Calls waiting in the queue (not counting the one in flight)."""
        return len(self._queue)

    @property
    def dispatched(self) -> int:
        """Total dispatches since creation, retries included."""
        return self._dispatched

    def get_stats(self) -> dict[str, Any]:
        """Snapshot for health endpoints."""
        return {
            "capacity_per_window": self._budget.capacity_per_window,
            "requests_this_window": self._budget.requests_this_window,
            "remaining": self._budget.remaining,
            "pending": self.pending,
            "dispatched": self._dispatched,
        }


__all__ = [
    "QueuedCall",
    "RateBudget",
    "RateLimiter",
    "RateLimiterConfig",
]
