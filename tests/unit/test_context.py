"""
Unit tests for context module.

Tests cover:
- Deadline handling
- Immutability of derived contexts
- Identity sanitizing and fallbacks
"""

import sys
import os
import time

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from blockmind.context import (
    DEFAULT_IDENTITY,
    RequestContext,
    resolve_identity,
    sanitize_user_id,
)


class TestRequestContext:
    """Tests for RequestContext."""

    def test_no_deadline(self):
        ctx = RequestContext.create(sender_id="42")
        assert ctx.deadline is None
        assert ctx.remaining() is None
        assert ctx.expired is False

    def test_create_with_timeout(self):
        ctx = RequestContext.create(sender_id="42", timeout=10)
        remaining = ctx.remaining()
        assert 9 < remaining <= 10

    def test_with_timeout_tightens_deadline(self):
        ctx = RequestContext.create(timeout=10)
        bounded = ctx.with_timeout(1)
        assert bounded.remaining() <= 1
        # Original is untouched
        assert ctx.remaining() > 1

    def test_with_timeout_keeps_earlier_parent_deadline(self):
        ctx = RequestContext.create(timeout=0.5)
        bounded = ctx.with_timeout(30)
        assert bounded.deadline == ctx.deadline

    def test_with_timeout_keeps_identity_and_values(self):
        ctx = RequestContext.create(sender_id="42", session_id="abc")
        bounded = ctx.with_timeout(5)
        assert bounded.sender_id == "42"
        assert bounded.get("session_id") == "abc"

    def test_expired(self):
        ctx = RequestContext(deadline=time.monotonic() - 1)
        assert ctx.expired is True
        assert ctx.remaining() == 0.0

    def test_values_are_read_only(self):
        ctx = RequestContext.create(remote_addr="10.0.0.1")
        with pytest.raises(TypeError):
            ctx.values["remote_addr"] = "other"

    def test_frozen(self):
        ctx = RequestContext.create(sender_id="42")
        with pytest.raises(AttributeError):
            ctx.sender_id = "43"


class TestSanitizeUserId:
    """Tests for sanitize_user_id."""

    def test_plain_id(self):
        assert sanitize_user_id("123456789") == "123456789"

    def test_jid_is_reduced_to_user_part(self):
        assert sanitize_user_id("5491100000000@s.whatsapp.net") == "5491100000000"

    def test_removes_disallowed_characters(self):
        assert sanitize_user_id("us er;<id>") == "userid"

    def test_leading_at_kept(self):
        assert sanitize_user_id("@handle") == "@handle"


class TestResolveIdentity:
    """Tests for resolve_identity."""

    def test_sender_id(self):
        ctx = RequestContext.create(sender_id="5491100000000@s.whatsapp.net")
        assert resolve_identity(ctx) == "5491100000000"

    def test_pseudo_identity_from_values(self):
        ctx = RequestContext.create(remote_addr="10.0.0.1", session_id="s1")
        expected = "anon-" + "10.0.0.1-s1".encode("utf-8").hex()
        assert resolve_identity(ctx) == expected

    def test_pseudo_identity_is_stable(self):
        a = RequestContext.create(user_agent="curl/8")
        b = RequestContext.create(user_agent="curl/8")
        assert resolve_identity(a) == resolve_identity(b)

    def test_default_identity(self):
        assert resolve_identity(RequestContext()) == DEFAULT_IDENTITY

    def test_none_context(self):
        assert resolve_identity(None) == DEFAULT_IDENTITY

    def test_sender_id_that_sanitizes_to_empty_falls_back(self):
        ctx = RequestContext.create(sender_id="<<>>")
        assert resolve_identity(ctx) == DEFAULT_IDENTITY
