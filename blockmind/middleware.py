"""
Middleware Pipeline.

Each middleware wraps the next handler in the chain through a single
`process(ctx, text, next_handler)` method. `build_pipeline` composes a
list of middleware around the real handler once at startup; the first
middleware in the list is the outermost.

The standard chain, outermost first:
    LoggingMiddleware -> RateLimitMiddleware -> TimeoutMiddleware -> handler
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from functools import partial
from typing import List, Optional, Sequence, Set

from .context import RequestContext, resolve_identity
from .message_builder import MessageBuilder
from .rate_limiter import RateLimiter
from .registry import Handler

logger = logging.getLogger(__name__)


class IdentityAdapter(logging.LoggerAdapter):
    """Prefix log records with the request identity."""

    def process(self, msg, kwargs):
        kwargs.setdefault("extra", {}).update(self.extra)
        return f"[{self.extra['identity']}] {msg}", kwargs


class Middleware(ABC):
    """A handler-wrapping step of the pipeline."""

    @abstractmethod
    async def process(
        self, ctx: RequestContext, text: str, next_handler: Handler
    ) -> str:
        """Handle a request, usually by awaiting `next_handler(ctx, text)`."""


class LoggingMiddleware(Middleware):
    """Log each request with its duration or error, without altering the result."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    async def process(self, ctx, text, next_handler):
        log = IdentityAdapter(self.log, {"identity": resolve_identity(ctx)})
        start = time.monotonic()

        log.debug(f"Processing command: {text!r}")

        try:
            result = await next_handler(ctx, text)
        except Exception as e:
            log.error(f"Error processing command {text!r}: {type(e).__name__}: {e}")
            raise

        duration = time.monotonic() - start
        log.info(f"Command completed in {duration:.3f}s: {text!r}")
        return result


class RateLimitMiddleware(Middleware):
    """Refuse requests from identities that exceed the rate limit."""

    def __init__(self, limiter: RateLimiter):
        self.limiter = limiter

    async def process(self, ctx, text, next_handler):
        identity = resolve_identity(ctx)

        if not self.limiter.is_allowed(identity):
            logger.info(f"Rate limited identity {identity}")
            return MessageBuilder.build_rate_limited()

        return await next_handler(ctx, text)


class TimeoutMiddleware(Middleware):
    """
    Bound the time a request may take.

    The inner handler runs as its own task. When the deadline passes first,
    the timeout message is returned and the task is left running; whatever
    it produces later is discarded. The task is not cancelled.
    """

    def __init__(self, timeout: float):
        self.timeout = timeout
        self._abandoned: Set[asyncio.Task] = set()

    @property
    def abandoned(self) -> int:
        """Number of timed-out tasks that are still running."""
        return len(self._abandoned)

    async def process(self, ctx, text, next_handler):
        bounded = ctx.with_timeout(self.timeout)

        task = asyncio.ensure_future(next_handler(bounded, text))
        done, _ = await asyncio.wait({task}, timeout=bounded.remaining())

        if task in done:
            return task.result()

        logger.warning(f"Request timed out after {self.timeout}s: {text!r}")
        self._abandoned.add(task)
        task.add_done_callback(self._discard)
        return MessageBuilder.build_timed_out()

    def _discard(self, task: asyncio.Task) -> None:
        """Drop a finished abandoned task, logging what it produced."""
        self._abandoned.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"Abandoned request failed after timeout: {error}")
        else:
            logger.debug("Abandoned request finished after timeout")


def build_pipeline(handler: Handler, middlewares: Sequence[Middleware]) -> Handler:
    """
    Compose middleware around a handler.

    Args:
        handler: The real handler, e.g. CommandRegistry.execute
        middlewares: Middleware ordered outermost first

    Returns:
        A single handler running the whole chain
    """
    chained = handler
    for middleware in reversed(middlewares):
        chained = partial(middleware.process, next_handler=chained)
    return chained


def default_middlewares(
    limiter: RateLimiter, command_timeout: float
) -> List[Middleware]:
    """The standard chain: logging, then rate limiting, then timeout."""
    return [
        LoggingMiddleware(),
        RateLimitMiddleware(limiter),
        TimeoutMiddleware(command_timeout),
    ]
