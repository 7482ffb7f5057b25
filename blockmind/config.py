"""
Configuration for BlockMind Bot.

Settings come from environment variables; a `.env` file in the working
directory is loaded first when present. Unparseable numeric values keep
their defaults.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
HUGGINGFACE_API_BASE = "https://router.huggingface.co/hf-inference/models"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@dataclass
class Config:
    """All application settings."""

    # AI service
    huggingface_api_key: str = ""
    huggingface_model: str = ""
    ai_timeout: float = 20.0
    ai_max_tokens: int = 250
    ai_temperature: float = 0.0

    # Market data
    coingecko_api_key: str = ""
    coingecko_base_url: str = DEFAULT_COINGECKO_BASE_URL

    # Transport
    telegram_bot_token: str = ""

    # Rate limiting
    rate_limit: int = 5
    rate_limit_period: float = 60.0

    # General
    command_timeout: float = 25.0
    log_level: str = "INFO"
    debug: bool = False

    @property
    def huggingface_api_url(self) -> str:
        """Chat-completions endpoint for the configured model."""
        return f"{HUGGINGFACE_API_BASE}/{self.huggingface_model}/v1/chat/completions"

    def validate(self) -> None:
        """Raise ConfigError if a required setting is missing."""
        if not self.huggingface_api_key:
            raise ConfigError("missing required environment variable: HUGGINGFACE_API_KEY")
        if not self.huggingface_model:
            raise ConfigError("missing required environment variable: HUGGINGFACE_MODEL")


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(env[key])
    except (KeyError, ValueError):
        return default


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    try:
        return float(env[key])
    except (KeyError, ValueError):
        return default


def load_config(env: Optional[Mapping[str, str]] = None, validate: bool = True) -> Config:
    """
    Load configuration from environment variables.

    Args:
        env: Mapping to read instead of os.environ (no .env loading then)
        validate: Whether to check required settings

    Returns:
        Populated Config

    Raises:
        ConfigError: If validation is requested and a required setting is missing
    """
    if env is None:
        load_dotenv()
        env = os.environ

    defaults = Config()
    debug = env.get("DEBUG", "").lower() == "true"

    config = Config(
        huggingface_api_key=env.get("HUGGINGFACE_API_KEY", ""),
        huggingface_model=env.get("HUGGINGFACE_MODEL", ""),
        ai_timeout=_get_float(env, "AI_TIMEOUT", defaults.ai_timeout),
        ai_max_tokens=_get_int(env, "AI_MAX_TOKENS", defaults.ai_max_tokens),
        ai_temperature=_get_float(env, "AI_TEMPERATURE", defaults.ai_temperature),
        coingecko_api_key=env.get("COINGECKO_API_KEY", ""),
        coingecko_base_url=env.get("COINGECKO_BASE_URL") or defaults.coingecko_base_url,
        telegram_bot_token=env.get("TELEGRAM_BOT_TOKEN", ""),
        rate_limit=_get_int(env, "RATE_LIMIT", defaults.rate_limit),
        rate_limit_period=_get_float(env, "RATE_LIMIT_PERIOD", defaults.rate_limit_period),
        command_timeout=_get_float(env, "COMMAND_TIMEOUT", defaults.command_timeout),
        log_level="DEBUG" if debug else env.get("LOG_LEVEL", defaults.log_level).upper(),
        debug=debug,
    )

    if validate:
        config.validate()

    return config


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging; unknown level names fall back to INFO."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logging.basicConfig(format=LOG_FORMAT, level=numeric)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
