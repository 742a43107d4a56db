"""
File operations for fmu-annotate.

Directory walking for document files, plus reads and writes that translate
OS errors into the tool's exception types.
"""

from collections.abc import Generator
from pathlib import Path
from typing import Iterable, Optional

from .exceptions import DocumentParseError, WriteError
from .logging_config import get_logger

logger = get_logger(__name__)


def scan_directory(
    root_dir: Path,
    extensions: Iterable[str],
    exclude_patterns: Optional[list[str]] = None,
    allow_hidden_files: bool = False,
    follow_symlinks: bool = False,
) -> Generator[Path, None, None]:
    """
    Walk a directory for files with one of the given extensions.

    Paths are yielded in sorted order so that repeated scans of the same tree
    index documents identically.

    Args:
        root_dir: Directory to scan
        extensions: File suffixes to accept (e.g. ".yaml")
        exclude_patterns: Glob patterns, matched against the path relative to root_dir
        allow_hidden_files: Include files below hidden directories or named with a leading dot
        follow_symlinks: Whether to yield symbolic links

    Yields:
        Matching file paths
    """
    suffixes = {ext.lower() for ext in extensions}
    exclude_patterns = exclude_patterns or []

    if not root_dir.is_dir():
        logger.warning(f"Scan root is not a directory: {root_dir}")
        return

    for path in sorted(root_dir.rglob("*")):
        if path.suffix.lower() not in suffixes:
            continue
        if path.is_symlink() and not follow_symlinks:
            logger.warning(f"Skipping symlinked file (follow_symlinks is off): {path}")
            continue
        if path.is_dir():
            continue

        relative = path.relative_to(root_dir)
        if not allow_hidden_files and any(part.startswith(".") for part in relative.parts):
            logger.debug(f"Hidden: {relative}")
            continue
        if should_skip_file(relative, exclude_patterns):
            logger.debug(f"Excluded: {relative}")
            continue

        yield path


def read_text(filepath: Path, encoding: str = "utf-8") -> str:
    """
    Read a document file.

    Raises:
        DocumentParseError: If the file cannot be read or decoded
    """
    try:
        with open(filepath, encoding=encoding) as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise DocumentParseError(filepath, f"Encoding error: {e}")
    except OSError as e:
        raise DocumentParseError(filepath, f"OS error: {e}")


def write_text(filepath: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write a file, creating parent directories as needed.

    Raises:
        WriteError: If the file cannot be written
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding=encoding) as f:
            f.write(content)
    except OSError as e:
        raise WriteError(filepath, f"Write failed: {e}")


def should_skip_file(filepath: Path, exclude_patterns: list[str]) -> bool:
    """
    Check if a file should be skipped based on exclusion patterns.

    Args:
        filepath: File to check
        exclude_patterns: List of glob patterns to exclude

    Returns:
        True if file should be skipped
    """
    for pattern in exclude_patterns:
        if filepath.match(pattern):
            return True
    return False
