"""
BlockMind Bot - Source modules.

This package contains the core of the bot:
- command_parser: Tokenize messages and recognize commands
- sanitizer: Clean user input before dispatch
- context: Request context and identity resolution
- rate_limiter: Per-identity rate limiting
- middleware: Logging, rate limit and timeout middleware
- registry: Command registration and dispatch
- commands: /help, /price, /recommend
- handler: Top-level message handler
"""

from .command_parser import parse_command, tokenize, CommandResult
from .config import Config, load_config
from .context import RequestContext, resolve_identity
from .handler import MessageHandler
from .message_builder import MessageBuilder
from .rate_limiter import RateLimiter
from .registry import Command, CommandRegistry
from .sanitizer import sanitize_command, sanitize_input

__all__ = [
    "parse_command",
    "tokenize",
    "CommandResult",
    "Config",
    "load_config",
    "RequestContext",
    "resolve_identity",
    "MessageHandler",
    "MessageBuilder",
    "RateLimiter",
    "Command",
    "CommandRegistry",
    "sanitize_command",
    "sanitize_input",
]
