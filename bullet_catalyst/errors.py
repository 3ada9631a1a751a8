from __future__ import annotations


class BulletCatalystError(Exception):
    """Base class for errors raised by the screen."""


class ConfigError(BulletCatalystError):
    """Raised when the configuration file is invalid or missing required fields."""


class TotalProviderFailure(BulletCatalystError):
    """Raised when no provider track produced a single result.

    An empty report would read like a quiet news day, so the run aborts instead.
    """

    def __init__(self, status: str = "") -> None:
        message = "All providers returned no results. Check API keys, quotas, or model names."
        if status:
            message = f"{message} [{status}]"
        super().__init__(message)
        self.status = status
