"""
Request Context and Identity Resolution.

Every inbound message is processed with a RequestContext that carries the
sender identity, an optional deadline and any secondary values supplied by
the transport (remote address, user agent, session id). Contexts are
immutable; deriving a tighter deadline returns a new context.
"""

import re
import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional

DEFAULT_IDENTITY = "default-user"
ANONYMOUS_PREFIX = "anon-"

# Secondary context values used to build a pseudo-identity, in order
IDENTITY_HINT_KEYS = ("remote_addr", "user_agent", "session_id")

_DISALLOWED_ID_CHARS = re.compile(r"[^A-Za-z0-9@._-]")


@dataclass(frozen=True)
class RequestContext:
    """Per-request values propagated through every layer."""

    sender_id: Optional[str] = None
    deadline: Optional[float] = None
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def create(
        cls,
        sender_id: Optional[str] = None,
        timeout: Optional[float] = None,
        **values: str,
    ) -> "RequestContext":
        """Build a context, optionally with a deadline `timeout` seconds from now."""
        deadline = time.monotonic() + timeout if timeout is not None else None
        return cls(sender_id=sender_id, deadline=deadline, values=values)

    def with_timeout(self, timeout: float) -> "RequestContext":
        """Return a context whose deadline is at most `timeout` seconds away."""
        deadline = time.monotonic() + timeout
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return replace(self, deadline=deadline)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def expired(self) -> bool:
        """Check if the deadline has passed."""
        return self.deadline is not None and time.monotonic() >= self.deadline

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a secondary value."""
        return self.values.get(key, default)


def sanitize_user_id(user_id: str) -> str:
    """
    Normalize a transport user id into an identity key.

    Keeps letters, digits and '@', '.', '-', '_'. A JID-style id such as
    "5491100000000@s.whatsapp.net" is reduced to the part before '@'.
    """
    user_id = _DISALLOWED_ID_CHARS.sub("", user_id)

    at = user_id.find("@")
    if at > 0:
        return user_id[:at]

    return user_id


def resolve_identity(ctx: Optional[RequestContext]) -> str:
    """
    Resolve the identity used for rate-limit bucketing.

    Falls back to a pseudo-identity built from secondary context values,
    then to DEFAULT_IDENTITY. All unidentified callers share that bucket.

    Args:
        ctx: The request context

    Returns:
        Identity string
    """
    if ctx is None:
        return DEFAULT_IDENTITY

    if ctx.sender_id:
        identity = sanitize_user_id(ctx.sender_id)
        if identity:
            return identity

    hints = [ctx.get(key) for key in IDENTITY_HINT_KEYS]
    hints = [hint for hint in hints if hint]
    if hints:
        return ANONYMOUS_PREFIX + "-".join(hints).encode("utf-8").hex()

    return DEFAULT_IDENTITY
