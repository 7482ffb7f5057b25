"""
Command Registry and Dispatch.

Commands are registered under their canonical name and every alias.
`CommandRegistry.execute` is the innermost handler of the middleware
pipeline: it sanitizes and tokenizes the message, then either runs the
matching command or forwards the text to the default (question) handler.

Usage:
    registry = CommandRegistry(default_handler=ask_question)
    registry.register(PriceCommand(coingecko))
    reply = await registry.execute(ctx, "/price btc in usd")
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from .command_parser import is_command_token, strip_prefix, tokenize
from .context import RequestContext
from .message_builder import MessageBuilder
from .sanitizer import is_warning, sanitize_command, sanitize_input

logger = logging.getLogger(__name__)

Handler = Callable[[RequestContext, str], Awaitable[str]]


class Command(ABC):
    """A user-invocable command triggered by a /-prefixed first token."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Canonical command name without the prefix, e.g. "price"."""

    @property
    def aliases(self) -> Sequence[str]:
        """Alternative names for the command."""
        return ()

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description shown by /help."""

    @abstractmethod
    async def execute(self, ctx: RequestContext, args: List[str]) -> str:
        """
        Run the command.

        Args:
            ctx: Request context (identity, deadline)
            args: Sanitized arguments following the command name

        Returns:
            Reply text. Failures are raised, not returned.
        """


class CommandRegistry:
    """Maps command names and aliases to commands and dispatches messages."""

    def __init__(self, default_handler: Optional[Handler] = None):
        self._commands: Dict[str, Command] = {}
        self.default_handler = default_handler

    def register(self, command: Command) -> None:
        """
        Register a command under its name and all of its aliases.

        A name already taken by another command is overwritten; the last
        registration wins.
        """
        for key in [command.name, *command.aliases]:
            key = key.strip().lower()
            existing = self._commands.get(key)
            if existing is not None and existing is not command:
                logger.warning(
                    f"Command name '{key}' of /{existing.name} "
                    f"overwritten by /{command.name}"
                )
            self._commands[key] = command

    def get(self, name: str) -> Optional[Command]:
        """Look up a command by name or alias (case-insensitive)."""
        return self._commands.get(name.strip().lower())

    @property
    def commands(self) -> Dict[str, Command]:
        """Return a copy of the name/alias -> command mapping."""
        return dict(self._commands)

    def unique_commands(self) -> List[Command]:
        """Return each command reachable by its canonical name, sorted by name."""
        unique = {
            key: command
            for key, command in self._commands.items()
            if key == command.name.lower()
        }
        return [unique[key] for key in sorted(unique)]

    async def execute(self, ctx: RequestContext, raw_input: str) -> str:
        """
        Dispatch a raw message.

        Args:
            ctx: Request context
            raw_input: Message text as received

        Returns:
            Reply text. Errors raised by a command propagate unchanged.
        """
        text = sanitize_input(raw_input)
        if is_warning(text):
            return text

        tokens = tokenize(text)
        if not tokens:
            return MessageBuilder.build_usage_hint()

        first, args = tokens[0], tokens[1:]

        if is_command_token(first):
            name, args = sanitize_command(strip_prefix(first), args)

            command = self._commands.get(name)
            if command is None:
                logger.debug(f"Unknown command: /{name}")
                return MessageBuilder.build_unknown_command()

            return await command.execute(ctx, args)

        if self.default_handler is not None:
            return await self.default_handler(ctx, text)

        return MessageBuilder.build_fallback()
