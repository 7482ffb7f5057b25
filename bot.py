#!/usr/bin/env python3
"""
BlockMind Bot - Interactive Telegram Bot (Polling Mode)

A chat bot that answers cryptocurrency questions. Slash-commands are
dispatched to command handlers; any other text is forwarded to the
question-answering service.

Commands:
    /price <coin> [in <currency>]  - Current price of a coin
    /recommend <coin>              - Market summary and recommendation
    /help                          - Show available commands
"""

from __future__ import annotations

import logging

from telegram import Update
from telegram.ext import Application, ContextTypes, filters
from telegram.ext import MessageHandler as TelegramMessageHandler

from blockmind.config import configure_logging, load_config
from blockmind.errors import ConfigError
from blockmind.handler import MessageHandler

logger = logging.getLogger(__name__)


def build_application(token: str, handler_factory) -> Application:
    """
    Create the Telegram application and wire text messages to the bot core.

    Args:
        token: Telegram bot token
        handler_factory: Callable taking a send_message coroutine and
            returning a blockmind MessageHandler

    Returns:
        Configured Application (not yet running)
    """

    async def shutdown(app: Application) -> None:
        await bot_handler.close()

    application = (
        Application.builder()
        .token(token)
        .concurrent_updates(True)
        .post_shutdown(shutdown)
        .build()
    )

    async def send_message(recipient_id: str, text: str) -> None:
        await application.bot.send_message(chat_id=int(recipient_id), text=text)

    bot_handler: MessageHandler = handler_factory(send_message)

    async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Forward a text message to the bot core."""
        message = update.effective_message
        chat = update.effective_chat
        if message is None or chat is None:
            return
        await bot_handler.on_message(message.text, str(chat.id))

    async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle errors in the bot."""
        logger.error(f"Exception while handling an update: {context.error}")

    application.add_handler(TelegramMessageHandler(filters.TEXT, on_text))
    application.add_error_handler(error_handler)
    return application


def main() -> None:
    """Start the bot in polling mode."""
    config = load_config()
    configure_logging(config.log_level)

    if not config.telegram_bot_token:
        raise ConfigError("TELEGRAM_BOT_TOKEN environment variable not set")

    logger.info(
        f"Starting BlockMind bot (debug={config.debug}, model={config.huggingface_model})"
    )

    application = build_application(
        config.telegram_bot_token,
        lambda send_message: MessageHandler(config, send_message=send_message),
    )

    application.run_polling(
        allowed_updates=Update.ALL_TYPES,
        drop_pending_updates=True,
    )


if __name__ == "__main__":
    main()
