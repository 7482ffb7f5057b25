"""
Bot commands.

    /help       - list commands (aliases: /h, /ayuda)
    /price      - spot price of a coin (aliases: /p, /precio)
    /recommend  - market summary plus AI recommendation (aliases: /r, /recomendar)
"""

import logging
from typing import List, Optional

from .coingecko import CoinGeckoClient
from .context import RequestContext
from .errors import ServiceError
from .huggingface import HuggingFaceClient
from .message_builder import MessageBuilder
from .registry import Command, CommandRegistry

logger = logging.getLogger(__name__)

# Words that separate the coin from the target currency: "/price btc in eur"
CURRENCY_SEPARATORS = frozenset(["in", "to", "en"])


def call_timeout(ctx: RequestContext, limit: float) -> float:
    """Timeout for an outbound call: the request's remaining time, capped at `limit`."""
    remaining = ctx.remaining()
    if remaining is None:
        return limit
    return min(limit, remaining)


def split_currency(args: List[str]) -> tuple[str, str]:
    """
    Split price arguments into coin name and target currency.

    - ["bitcoin"] -> ("bitcoin", "")
    - ["bitcoin", "cash", "in", "eur"] -> ("bitcoin cash", "eur")
    """
    if len(args) >= 2 and args[-2].lower() in CURRENCY_SEPARATORS:
        return " ".join(args[:-2]), args[-1]
    return " ".join(args), ""


class HelpCommand(Command):
    """List registered commands; needs the registry it is registered in."""

    def __init__(self, registry: CommandRegistry):
        self._registry = registry

    @property
    def name(self) -> str:
        return "help"

    @property
    def aliases(self):
        return ("h", "ayuda")

    @property
    def description(self) -> str:
        return "Shows available commands and usage information"

    async def execute(self, ctx, args):
        return MessageBuilder.build_help(self._registry.unique_commands())


class PriceCommand(Command):
    def __init__(self, coingecko: CoinGeckoClient, timeout: float = 20.0):
        self._coingecko = coingecko
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "price"

    @property
    def aliases(self):
        return ("p", "precio")

    @property
    def description(self) -> str:
        return "Get the price of a cryptocurrency"

    async def execute(self, ctx, args):
        if not args:
            return MessageBuilder.PRICE_USAGE

        coin, currency = split_currency(args)
        price = await self._coingecko.get_price(
            coin, currency, timeout=call_timeout(ctx, self._timeout)
        )
        return MessageBuilder.build_price(coin.lower(), price, currency or "usd")


class RecommendCommand(Command):
    """Market summary, sentiment and an AI-written recommendation for a coin."""

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        ai: HuggingFaceClient,
        timeout: float = 20.0,
    ):
        self._coingecko = coingecko
        self._ai = ai
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "recommend"

    @property
    def aliases(self):
        return ("r", "recomendar")

    @property
    def description(self) -> str:
        return "Get a recommendation for a cryptocurrency"

    async def execute(self, ctx, args):
        if not args:
            return MessageBuilder.RECOMMEND_USAGE

        coin = " ".join(args)
        summary = await self._coingecko.get_market_summary(
            coin, timeout=call_timeout(ctx, self._timeout)
        )

        try:
            summary = await self._coingecko.get_sentiment_and_history(
                summary, coin, timeout=call_timeout(ctx, self._timeout)
            )
        except ServiceError as e:
            logger.warning(f"Sentiment data unavailable for {coin}: {e}")

        recommendation = await self._ai.get_investment_recommendation(
            coin, summary, timeout=call_timeout(ctx, self._timeout)
        )
        return MessageBuilder.build_recommendation(recommendation)


def register_default_commands(
    registry: CommandRegistry,
    coingecko: CoinGeckoClient,
    ai: HuggingFaceClient,
    timeout: float = 20.0,
    commands: Optional[List[Command]] = None,
) -> CommandRegistry:
    """Register /price, /recommend, any extra commands, then /help."""
    registry.register(PriceCommand(coingecko, timeout))
    registry.register(RecommendCommand(coingecko, ai, timeout))
    for command in commands or []:
        registry.register(command)
    registry.register(HelpCommand(registry))
    return registry
