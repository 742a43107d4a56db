"""Document exceptions: parsing, lookup, rule loading and write-back."""

from pathlib import Path
from typing import Optional

from .base import FmuAnnotateError


class DocumentParseError(FmuAnnotateError):
    """Raised when a YAML file cannot be turned into typed documents."""

    def __init__(self, filepath: Path, reason: str):
        super().__init__(f"Failed to parse document file: {filepath}", reason=reason)
        self.filepath = filepath
        self.reason = reason


class LoadError(FmuAnnotateError):
    """Raised when a ruleset cannot be loaded (bad rule table, unknown name)."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Unable to load ruleset: {source}", reason=reason)
        self.source = source
        self.reason = reason


class UnsupportedError(FmuAnnotateError):
    """Raised when an operation is not supported for a document."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Operation not supported for {name}", reason=reason)
        self.name = name
        self.reason = reason


class NotFoundError(FmuAnnotateError):
    """Raised when a lookup (e.g. channel selector resolution) finds nothing."""


class WriteError(FmuAnnotateError):
    """Raised when documents cannot be serialized or written."""

    def __init__(self, filepath: Path, reason: str, kind: Optional[str] = None):
        super().__init__(f"Cannot write file: {filepath}", kind=kind, reason=reason)
        self.filepath = filepath
        self.reason = reason
        self.kind = kind
