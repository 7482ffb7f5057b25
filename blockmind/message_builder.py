"""
Message Builder for Chat Bot Replies.

Holds every fixed user-facing string and builds the formatted replies
(help listing, price line, recommendation footer) with consistent styling.
"""

from typing import Iterable

from .sanitizer import SCRIPT_WARNING, SQL_WARNING


class MessageBuilder:
    """
    Build formatted messages for the chat bot.

    Soft failures (unknown command, rate limited, timed out) are plain
    replies built here, never exceptions.
    """

    USAGE_HINT = "Send a command like '/price Bitcoin' or ask a question."

    UNKNOWN_COMMAND = "Unknown command. Type /help for a list of commands."

    FALLBACK_MESSAGE = "I don't understand that. Try typing /help for assistance."

    RATE_LIMITED_MESSAGE = "You're sending messages too quickly. Please wait a moment."

    TIMED_OUT_MESSAGE = "Request timed out. Please try again later."

    ERROR_MESSAGE = "Sorry, I encountered an error while processing your request."

    UNREADABLE_ANSWER = "I couldn't understand the response from the AI service."

    DISCLAIMER = "*This is not financial advice. Always do your own research.*"

    PRICE_USAGE = "Please specify a cryptocurrency (e.g., /price Bitcoin)"

    RECOMMEND_USAGE = "Please specify a cryptocurrency (e.g., /recommend Bitcoin)"

    SCRIPT_WARNING = SCRIPT_WARNING

    SQL_WARNING = SQL_WARNING

    @classmethod
    def build_usage_hint(cls) -> str:
        """Build the reply for an empty message."""
        return cls.USAGE_HINT

    @classmethod
    def build_unknown_command(cls) -> str:
        """Build the reply for an unregistered command."""
        return cls.UNKNOWN_COMMAND

    @classmethod
    def build_fallback(cls) -> str:
        """Build the reply for a question when no default handler exists."""
        return cls.FALLBACK_MESSAGE

    @classmethod
    def build_rate_limited(cls) -> str:
        """Build rate limited message."""
        return cls.RATE_LIMITED_MESSAGE

    @classmethod
    def build_timed_out(cls) -> str:
        """Build timeout message."""
        return cls.TIMED_OUT_MESSAGE

    @classmethod
    def build_error(cls) -> str:
        """Build the generic apology for a failed request."""
        return cls.ERROR_MESSAGE

    @classmethod
    def build_help(cls, commands: Iterable) -> str:
        """
        Build the help listing.

        Args:
            commands: Canonical commands, already sorted by name

        Returns:
            Formatted help text
        """
        lines = ["*Available Commands:*", ""]

        for command in commands:
            lines.append(f"/{command.name} - {command.description}")
            if command.aliases:
                lines.append(f"  Aliases: /{', /'.join(command.aliases)}")
            lines.append("")

        lines.append("You can also ask me questions directly!")
        return "\n".join(lines)

    @classmethod
    def build_price(cls, coin: str, price: float, currency: str) -> str:
        """Build a single price line, e.g. 'bitcoin -> 65000.1234 USD'."""
        return f"{coin} -> {price:.4f} {currency.upper()}"

    @classmethod
    def build_recommendation(cls, recommendation: str) -> str:
        """Append the financial-advice disclaimer to a recommendation."""
        return f"{recommendation}\n\n{cls.DISCLAIMER}"

    @classmethod
    def build_market_header(cls, name: str, symbol: str) -> str:
        """Build the heading of a market summary."""
        return f"*{name} ({symbol.upper()})*\n\n"

    @classmethod
    def build_bullet(cls, label: str, value: str) -> str:
        """Build one bullet line of a market summary."""
        return f"• {label}: {value}\n"
