"""Exceptions raised by the bot."""


class BlockMindError(Exception):
    """Base class for bot errors."""


class ConfigError(BlockMindError, ValueError):
    """Required configuration is missing or invalid."""


class ServiceError(BlockMindError):
    """An external service call failed or returned unusable data."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
