"""Exception hierarchy for fmu-annotate."""

from .base import FmuAnnotateError
from .config import ConfigError, InvalidConfigError
from .documents import (
    DocumentParseError,
    LoadError,
    NotFoundError,
    UnsupportedError,
    WriteError,
)

__all__ = [
    "FmuAnnotateError",
    "ConfigError",
    "InvalidConfigError",
    "DocumentParseError",
    "LoadError",
    "NotFoundError",
    "UnsupportedError",
    "WriteError",
]
