"""
Input Sanitizer for Chat Bot Messages.

Cleans user input before it reaches any command logic:
- Control characters are removed
- Script tags and SQL-shaped text are replaced by a warning
- Overlong input is truncated
- Symbol and unassigned Unicode characters are removed from arguments

These checks are pattern-based heuristics, not a security boundary.
"""

import re
import unicodedata
from typing import List, Sequence, Tuple

MAX_INPUT_LENGTH = 1000
MIN_SQL_LENGTH = 15
TRUNCATION_SUFFIX = "... (truncated)"

SCRIPT_WARNING = "⚠️ Suspicious script detected in input"
SQL_WARNING = "⚠️ Suspicious SQL syntax detected in input"

WARNINGS = frozenset([SCRIPT_WARNING, SQL_WARNING])

CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f\x7f]")

SCRIPT_PATTERN = re.compile(
    r"<\s*script\b[^>]*>(.*?)<\s*/\s*script\s*>",
    re.IGNORECASE | re.DOTALL,
)

SQL_PATTERN = re.compile(
    r"\b(select|insert|update|delete|drop|alter|create|truncate)\b"
    r".*\b(from|into|table|database|schema)\b",
    re.IGNORECASE,
)

# Other-symbol and unassigned code points (homoglyph and emoji tricks)
SUSPICIOUS_CATEGORIES = frozenset(["So", "Cn"])

BLOCKED_DOMAINS = frozenset(["suspicious-domain.com"])


def strip_control_chars(text: str) -> str:
    """Remove ASCII control characters (0x00-0x1F, 0x7F)."""
    return CONTROL_CHARS_PATTERN.sub("", text)


def strip_suspicious_chars(text: str) -> str:
    """Remove characters in the other-symbol or unassigned Unicode categories."""
    return "".join(
        char for char in text if unicodedata.category(char) not in SUSPICIOUS_CATEGORIES
    )


def sanitize_input(text: str) -> str:
    """
    Clean a raw message before it is tokenized.

    Applied in order:
    1. Trim surrounding whitespace
    2. Remove control characters
    3. Script tag -> SCRIPT_WARNING
    4. SQL-shaped text longer than 15 characters -> SQL_WARNING
    5. Truncate to 1000 characters with a marker

    Sanitizing already-sanitized text returns it unchanged.

    Args:
        text: Raw message text

    Returns:
        Sanitized text or a fixed warning string
    """
    if not text:
        return ""

    sanitized = strip_control_chars(text.strip()).strip()

    if SCRIPT_PATTERN.search(sanitized):
        return SCRIPT_WARNING

    if SQL_PATTERN.search(sanitized) and len(sanitized) > MIN_SQL_LENGTH:
        return SQL_WARNING

    if len(sanitized) > MAX_INPUT_LENGTH:
        sanitized = sanitized[:MAX_INPUT_LENGTH] + TRUNCATION_SUFFIX

    return sanitized


def sanitize_command(name: str, args: Sequence[str]) -> Tuple[str, List[str]]:
    """
    Normalize a command name and clean its arguments.

    Args:
        name: Command name without prefix
        args: Command arguments

    Returns:
        Tuple of (lower-cased name, cleaned arguments)
    """
    clean_name = name.strip().lower()

    clean_args = []
    for arg in args:
        arg = strip_control_chars(arg.strip())
        clean_args.append(strip_suspicious_chars(arg))

    return clean_name, clean_args


def is_warning(text: str) -> bool:
    """Check if text is one of the sanitizer warning replies."""
    return text in WARNINGS


def is_safe_url(url: str) -> bool:
    """Check a URL against the list of blocked domains."""
    lowered = url.lower()
    return not any(domain in lowered for domain in BLOCKED_DOMAINS)
