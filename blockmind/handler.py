"""
Message Handler - top-level orchestrator.

Receives (text, sender_id) from a transport, runs it through the
middleware-wrapped command registry and returns (or sends) the reply.
Any error that escapes the pipeline is logged and replaced by a generic
apology; the user never sees the error text.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from .coingecko import CoinGeckoClient
from .commands import register_default_commands
from .config import Config
from .context import RequestContext
from .huggingface import HuggingFaceClient
from .message_builder import MessageBuilder
from .middleware import Middleware, build_pipeline, default_middlewares
from .rate_limiter import RateLimiter
from .registry import CommandRegistry

logger = logging.getLogger(__name__)

SendMessage = Callable[[str, str], Awaitable[object]]


class MessageHandler:
    """
    Process inbound messages.

    Args:
        config: Application configuration
        registry: Pre-built registry; built from config when omitted
        send_message: Coroutine (recipient_id, text) used by on_message
        limiter: Rate limiter service; built from config when omitted
        middlewares: Middleware chain, outermost first; the standard
            logging -> rate limit -> timeout chain when omitted
    """

    def __init__(
        self,
        config: Config,
        registry: Optional[CommandRegistry] = None,
        send_message: Optional[SendMessage] = None,
        limiter: Optional[RateLimiter] = None,
        middlewares: Optional[List[Middleware]] = None,
    ):
        self.config = config
        self.send_message = send_message
        self.coingecko: Optional[CoinGeckoClient] = None
        self.ai: Optional[HuggingFaceClient] = None

        if registry is None:
            registry = self._build_registry()
        self.registry = registry

        self.limiter = limiter or RateLimiter(
            max_requests=config.rate_limit,
            window_seconds=config.rate_limit_period,
        )

        if middlewares is None:
            middlewares = default_middlewares(self.limiter, config.command_timeout)
        self.middlewares = list(middlewares)

        # Built once; never changed afterwards
        self._chain = build_pipeline(self.registry.execute, self.middlewares)

    def _build_registry(self) -> CommandRegistry:
        """Create the service clients and register the standard commands."""
        self.coingecko = CoinGeckoClient(
            self.config.coingecko_base_url, self.config.coingecko_api_key
        )
        self.ai = HuggingFaceClient(
            self.config.huggingface_api_url,
            self.config.huggingface_api_key,
            self.config.huggingface_model,
            temperature=self.config.ai_temperature,
            max_tokens=self.config.ai_max_tokens,
            timeout=self.config.ai_timeout,
        )

        async def ask_question(ctx: RequestContext, text: str) -> str:
            timeout = ctx.remaining()
            if timeout is None or timeout > self.config.ai_timeout:
                timeout = self.config.ai_timeout
            return await self.ai.ask_question(text, timeout=timeout)

        registry = CommandRegistry(default_handler=ask_question)
        return register_default_commands(
            registry, self.coingecko, self.ai, timeout=self.config.ai_timeout
        )

    async def handle_message(
        self, text: Optional[str], sender_id: Optional[str], **values: str
    ) -> Optional[str]:
        """
        Produce the reply for one message.

        Args:
            text: Message text; empty or missing text is ignored
            sender_id: Transport sender id
            **values: Secondary identity hints (remote_addr, user_agent, session_id)

        Returns:
            Reply text, or None if the message was ignored
        """
        if not text:
            return None

        ctx = RequestContext.create(
            sender_id=sender_id, timeout=self.config.command_timeout, **values
        )

        try:
            return await self._chain(ctx, text)
        except Exception as e:
            logger.error(
                f"Error processing message from {sender_id}: {type(e).__name__}: {e}"
            )
            return MessageBuilder.build_error()

    async def on_message(self, text: Optional[str], sender_id: str) -> None:
        """Handle a message and send the reply back to the sender."""
        response = await self.handle_message(text, sender_id)
        if not response:
            return

        if self.send_message is None:
            logger.warning(f"No send_message configured; dropping reply to {sender_id}")
            return

        try:
            await self.send_message(sender_id, response)
        except Exception as e:
            logger.error(f"Failed to send message to {sender_id}: {type(e).__name__}: {e}")

    async def close(self) -> None:
        """Close service clients created by this handler."""
        if self.coingecko is not None:
            await self.coingecko.close()
        if self.ai is not None:
            await self.ai.close()
