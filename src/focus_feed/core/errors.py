"""Exceptions raised by the aggregation core.

Per-source and per-item failures are reported through result objects;
these exceptions cover configuration mistakes and transport failures that
are caught at the adapter or orchestrator boundary.
"""


class FocusFeedError(Exception):
    """Base class for all package errors."""


class ConfigError(FocusFeedError):
    """Invalid or unreadable configuration."""


class ProfileNotFoundError(ConfigError):
    def __init__(self, profile_id: str) -> None:
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id


class SourceNotFoundError(ConfigError):
    def __init__(self, source_id: str) -> None:
        super().__init__(f"Source not found: {source_id}")
        self.source_id = source_id


class UnsupportedSourceError(ConfigError):
    def __init__(self, source_type: str) -> None:
        super().__init__(f"Source type {source_type} not implemented yet")
        self.source_type = source_type


class SourceFetchError(FocusFeedError):
    """Transport or payload failure while fetching a source."""


class ProviderError(FocusFeedError):
    """AI provider request failed."""


class RateLimitError(ProviderError):
    """AI provider kept reporting too many requests."""


class ProviderNotReadyError(ProviderError):
    """AI provider used before a successful initialize()."""
