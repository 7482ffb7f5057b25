"""
Test suite for the Telegram entry point.

Tests cover:
- Application wiring
- Forwarding text updates to the bot core
- Sending replies through the Telegram bot
- Startup configuration errors
"""

import os
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram.ext import MessageHandler as TelegramMessageHandler

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bot import build_application, main
from blockmind.errors import ConfigError

TEST_TOKEN = "123456:TEST"


def make_application():
    """Build an application whose bot core is a mock; returns (app, core, send)."""
    core = MagicMock()
    core.on_message = AsyncMock()
    core.close = AsyncMock()
    captured = {}

    def factory(send_message):
        captured["send_message"] = send_message
        return core

    application = build_application(TEST_TOKEN, factory)
    return application, core, captured["send_message"]


class TestBuildApplication:
    """Tests for build_application."""

    def test_registers_text_handler(self):
        application, _, _ = make_application()

        handlers = application.handlers[0]
        assert len(handlers) == 1
        assert isinstance(handlers[0], TelegramMessageHandler)

    @pytest.mark.asyncio
    async def test_forwards_text_with_chat_id(self):
        application, core, _ = make_application()
        callback = application.handlers[0][0].callback

        update = MagicMock()
        update.effective_message.text = "/price btc"
        update.effective_chat.id = 987654

        await callback(update, MagicMock())

        core.on_message.assert_awaited_once_with("/price btc", "987654")

    @pytest.mark.asyncio
    async def test_ignores_update_without_message(self):
        application, core, _ = make_application()
        callback = application.handlers[0][0].callback

        update = MagicMock()
        update.effective_message = None

        await callback(update, MagicMock())

        core.on_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_message_uses_bot(self):
        application, _, send_message = make_application()

        with patch.object(type(application.bot), "send_message", new_callable=AsyncMock) as mock_send:
            await send_message("987654", "bitcoin -> 65000.0000 USD")

        mock_send.assert_awaited_once_with(chat_id=987654, text="bitcoin -> 65000.0000 USD")


class TestMain:
    """Tests for the main entry point."""

    def test_missing_token(self):
        config = MagicMock(telegram_bot_token="", log_level="INFO")

        with patch("bot.load_config", return_value=config), \
                patch("bot.configure_logging"):
            with pytest.raises(ConfigError):
                main()

    def test_starts_polling(self):
        config = MagicMock(telegram_bot_token=TEST_TOKEN, log_level="INFO")
        application = MagicMock()

        with patch("bot.load_config", return_value=config), \
                patch("bot.configure_logging"), \
                patch("bot.build_application", return_value=application) as mock_build:
            main()

        assert mock_build.call_args.args[0] == TEST_TOKEN
        application.run_polling.assert_called_once()
