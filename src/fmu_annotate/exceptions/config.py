"""Configuration exceptions: settings and simulation layout."""

from typing import Any

from .base import FmuAnnotateError


class ConfigError(FmuAnnotateError):
    """Raised when the simulation or tool configuration is unusable.

    Covers cardinality violations such as a simulation folder that does not
    contain exactly one Stack document. Always fatal.
    """


class InvalidConfigError(ConfigError):
    """Raised when a single setting (file key or environment variable) is invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(f"Invalid configuration for {key}: {value}", reason=reason)
        self.key = key
        self.value = value
        self.reason = reason
