"""In-memory index over the YAML documents of a simulation folder.

Documents are stored per kind and addressed by ``(kind, position)`` handles.
Each indexed file keeps the ordered list of handles it contributed, which is
what ``save()`` writes back. Rewrites only happen for files explicitly passed
to ``mark_modified()``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..exceptions import DocumentParseError
from ..file_ops import scan_directory
from ..logging_config import get_logger
from .codec import load_file, write_documents
from .models import Document, Kind, Labels

logger = get_logger(__name__)

Handle = Tuple[Kind, int]
PathLike = Union[str, Path]

DEFAULT_EXTENSIONS = (".yml", ".yaml")


class DocumentIndex:
    """Kind-classified store of scanned documents with selective write-back.

    Cardinality rules (e.g. "exactly one Stack") are left to consumers.
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        exclude_patterns: Optional[List[str]] = None,
        allow_hidden_files: bool = False,
        follow_symlinks: bool = False,
    ):
        self.extensions = tuple(extensions)
        self.exclude_patterns = list(exclude_patterns or [])
        self.allow_hidden_files = allow_hidden_files
        self.follow_symlinks = follow_symlinks

        # Slots are set to None when a re-added file replaces its documents.
        self._docs: Dict[Kind, List[Optional[Document]]] = {}
        self._files: Dict[Path, List[Handle]] = {}
        self._modified: Dict[Path, None] = {}

    @classmethod
    def from_config(cls, config) -> DocumentIndex:
        """Build an index using the file filtering settings of an AnnotateConfig."""
        return cls(
            extensions=config.extensions,
            exclude_patterns=config.exclude_patterns,
            allow_hidden_files=config.allow_hidden_files,
            follow_symlinks=config.follow_symlinks,
        )

    # ── Population ─────────────────────────────────────────────

    def scan(self, root: PathLike) -> int:
        """Index every parsable document file below root.

        Files that fail to parse are logged and skipped.

        Returns:
            Number of files indexed by this call
        """
        root = Path(root)
        count = 0
        for path in scan_directory(
            root,
            self.extensions,
            exclude_patterns=self.exclude_patterns,
            allow_hidden_files=self.allow_hidden_files,
            follow_symlinks=self.follow_symlinks,
        ):
            try:
                docs = load_file(path)
            except DocumentParseError as e:
                logger.warning(f"Skipping {path}: {e.reason}")
                continue
            self._index_file(path, docs)
            count += 1
        logger.debug(f"Scanned {root}: {count} files, {len(self)} documents")
        return count

    def add(self, path: PathLike) -> List[Document]:
        """Fold a newly written file into the live index.

        If the file is already indexed its previous documents are replaced.

        Raises:
            DocumentParseError: If the file cannot be parsed
        """
        path = Path(path)
        docs = load_file(path)
        if path in self._files:
            for kind, position in self._files.pop(path):
                self._docs[kind][position] = None
        self._index_file(path, docs)
        return docs

    def _index_file(self, path: Path, docs: List[Document]) -> None:
        handles: List[Handle] = []
        for doc in docs:
            logger.info(f"kind: {doc.kind.value}; name={doc.name} ({path})")
            slots = self._docs.setdefault(doc.kind, [])
            slots.append(doc)
            handles.append((doc.kind, len(slots) - 1))
        self._files[path] = handles

    # ── Lookup ─────────────────────────────────────────────────

    def get(self, handle: Handle) -> Document:
        kind, position = handle
        doc = self._docs[kind][position]
        if doc is None:
            raise KeyError(f"Stale document handle: {handle}")
        return doc

    def documents(self, kind: Kind) -> List[Document]:
        """Live documents of a kind, in index order."""
        return [d for d in self._docs.get(kind, []) if d is not None]

    def file_documents(self, path: PathLike) -> List[Document]:
        """Documents contributed by one file, in file order."""
        return [self.get(h) for h in self._files.get(Path(path), [])]

    def find_by_name(self, kind: Kind, name: str) -> Optional[Document]:
        for doc in self.documents(kind):
            if doc.name == name:
                return doc
        return None

    def find_by_label(self, kind: Kind, labels: Labels) -> Optional[Document]:
        """First document of kind carrying all the given labels (extras allowed)."""
        for doc in self.documents(kind):
            if doc.has_labels(labels):
                return doc
        return None

    @property
    def files(self) -> List[Path]:
        """Indexed files, in the order they were indexed."""
        return list(self._files)

    def __len__(self) -> int:
        return sum(len(self.documents(kind)) for kind in self._docs)

    # ── Write-back ─────────────────────────────────────────────

    def mark_modified(self, path: Optional[PathLike]) -> None:
        """Flag a previously indexed file for rewrite on the next save()."""
        if path is None:
            return
        path = Path(path)
        if path not in self._files:
            logger.debug(f"Not marking unindexed file as modified: {path}")
            return
        self._modified[path] = None

    @property
    def modified(self) -> List[Path]:
        return list(self._modified)

    def save(self) -> List[Path]:
        """Rewrite every flagged file with its documents in original order.

        Files are written one at a time; a failure leaves files already
        written in place.

        Returns:
            The files written

        Raises:
            WriteError: If a document kind cannot be serialized or a write fails
        """
        written: List[Path] = []
        for path in list(self._modified):
            write_documents(path, self.file_documents(path))
            del self._modified[path]
            written.append(path)
            logger.info(f"Saved {path}")
        return written
