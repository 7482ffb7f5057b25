"""
Command Parser for Chat Bot Messages.

Splits incoming message text into tokens and recognizes slash-commands:
- Whitespace-delimited tokens: /price btc in usd
- Quoted arguments kept together: /price "bitcoin cash"
- Bot mention suffix: /price@BlockMindBot btc
- Case-insensitive command names
"""

from dataclasses import dataclass, field
from typing import List, Optional

COMMAND_PREFIX = "/"
QUOTE_CHAR = '"'


@dataclass
class CommandResult:
    """Result of parsing a message."""

    command: Optional[str]
    args: List[str] = field(default_factory=list)
    is_command: bool = False
    raw_text: str = ""

    @property
    def has_args(self) -> bool:
        """Check if command has arguments."""
        return bool(self.args)


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split text into whitespace-delimited tokens, honoring double quotes.

    Quote characters are dropped from the output. While a quote is open,
    whitespace does not split. An unterminated quote is closed implicitly
    at the end of input. Empty tokens are never produced.

    - "/price btc in usd" -> ["/price", "btc", "in", "usd"]
    - 'a "b c" d' -> ["a", "b c", "d"]
    - 'a "b' -> ["a", "b"]

    Args:
        text: The text to split

    Returns:
        Ordered list of tokens
    """
    if not text:
        return []

    tokens: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in text:
        if char == QUOTE_CHAR:
            in_quotes = not in_quotes
        elif char.isspace() and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    if current:
        tokens.append("".join(current))

    return tokens


def is_command_token(token: Optional[str]) -> bool:
    """Check if a token carries the command prefix."""
    return bool(token) and token.startswith(COMMAND_PREFIX)


def strip_prefix(token: str) -> str:
    """Remove the command prefix and any @botname suffix from a token."""
    name = token[len(COMMAND_PREFIX):] if is_command_token(token) else token

    # Handle @botname suffix (e.g., /price@BlockMindBot)
    if "@" in name:
        name = name.split("@")[0]

    return name


def parse_command(text: Optional[str]) -> CommandResult:
    """
    Parse message text to extract a command and its arguments.

    Handles various input formats:
    - /price btc -> CommandResult(command="price", args=["btc"])
    - /price@BotName btc -> CommandResult(command="price", args=["btc"])
    - /HELP -> CommandResult(command="help")  # case-insensitive
    - Regular text -> CommandResult(command=None, is_command=False)

    Args:
        text: The message text to parse

    Returns:
        CommandResult with parsed command information
    """
    if text is None:
        return CommandResult(command=None)

    if not isinstance(text, str):
        return CommandResult(command=None, raw_text=str(text))

    tokens = tokenize(text)
    if not tokens or not is_command_token(tokens[0]):
        return CommandResult(command=None, raw_text=text)

    name = strip_prefix(tokens[0]).strip().lower()
    if not name:
        return CommandResult(command=None, raw_text=text)

    return CommandResult(
        command=name,
        args=tokens[1:],
        is_command=True,
        raw_text=text,
    )


def is_command(text: Optional[str]) -> bool:
    """Check if text starts with a bot command."""
    return parse_command(text).is_command


def get_command(text: Optional[str]) -> Optional[str]:
    """Extract command name from text, or None if text is not a command."""
    return parse_command(text).command
