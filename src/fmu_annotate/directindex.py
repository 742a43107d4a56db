"""Direct index: fixed byte offsets for every signal, grouped by channel.

The runtime allocates one 24 byte slot per signal, laid out channel after
channel in the order the channels were first seen. A scalar value lives in the
first 8 bytes of its slot, so the offset of signal ``i`` in a channel is::

    channel.offset_units * SLOT_STRIDE + i * SCALAR_WIDTH

where ``offset_units`` counts the signals of all earlier channels. Offsets are
recomputed from scratch by ``calculate_offsets()``, so adding signals between
calculations gives the same final result as a single calculation at the end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .documents import Document, DocumentIndex, Kind, Signal, SignalGroupSpec, write_documents
from .exceptions import NotFoundError
from .logging_config import get_logger
from .resolver import resolve_channel

logger = get_logger(__name__)

SLOT_STRIDE = 24
SCALAR_WIDTH = 8

INDEX_LABEL = "index"
DIRECT_INDEX_LABEL = {INDEX_LABEL: "direct"}
DIRECT_INDEX_ANNOTATION = "direct_index"


@dataclass
class IndexedSignal:
    name: str
    local_index: int = 0
    byte_offset: int = 0


@dataclass
class IndexGroup:
    """The signals of one channel, with the group's position in the map."""

    name: str
    signals: List[IndexedSignal] = field(default_factory=list)
    offset_units: int = 0
    length: int = 0
    _by_name: Dict[str, IndexedSignal] = field(default_factory=dict, repr=False)

    def get(self, name: str) -> Optional[IndexedSignal]:
        return self._by_name.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name


class DirectIndex:
    """Insertion-ordered channel groups with deterministic signal offsets."""

    def __init__(self) -> None:
        self.groups: List[IndexGroup] = []
        self._by_name: Dict[str, IndexGroup] = {}

    def get_or_create_group(self, name: str) -> IndexGroup:
        group = self._by_name.get(name)
        if group is None:
            group = IndexGroup(name=name)
            self.groups.append(group)
            self._by_name[name] = group
        return group

    def group(self, name: str) -> Optional[IndexGroup]:
        return self._by_name.get(name)

    def add_signal(self, group: IndexGroup, name: str) -> IndexedSignal:
        """Append a signal to a group; a name already in the group is a no-op."""
        existing = group.get(name)
        if existing is not None:
            return existing
        signal = IndexedSignal(name=name)
        group.signals.append(signal)
        group._by_name[name] = signal
        return signal

    def calculate_offsets(self) -> None:
        offset_units = 0
        for group in self.groups:
            group.offset_units = offset_units
            group.length = len(group.signals)
            base = offset_units * SLOT_STRIDE
            for i, signal in enumerate(group.signals):
                signal.local_index = i
                signal.byte_offset = base + i * SCALAR_WIDTH
            offset_units += group.length

    def lookup(self, group: str, signal: str) -> Tuple[int, bool]:
        """Byte offset of a signal, and whether it was found."""
        indexed_group = self.group(group)
        if indexed_group is not None:
            indexed = indexed_group.get(signal)
            if indexed is not None:
                return indexed.byte_offset, True
        return 0, False

    # ── Output ─────────────────────────────────────────────────

    def to_documents(self, path: Optional[Path] = None) -> List[Document]:
        """One SignalGroup document per channel group."""
        documents = []
        for group in self.groups:
            signals = [
                Signal(
                    name=s.name,
                    annotations={"index": s.local_index, "offset": s.byte_offset},
                )
                for s in group.signals
            ]
            documents.append(
                Document(
                    kind=Kind.SIGNAL_GROUP,
                    name=group.name,
                    labels=dict(DIRECT_INDEX_LABEL),
                    annotations={
                        DIRECT_INDEX_ANNOTATION: {
                            "offset": group.offset_units,
                            "length": group.length,
                        }
                    },
                    spec=SignalGroupSpec(signals=signals),
                    file=path,
                )
            )
        return documents

    def emit(self, path: Path) -> Path:
        """Write the index as a multi-document YAML file, replacing the file.

        Raises:
            WriteError: If the file cannot be written
        """
        path = Path(path)
        for group in self.groups:
            logger.info(f"Append direct index: {group.name} (file={path})")
        write_documents(path, self.to_documents(path))
        return path


def is_index_document(doc: Document) -> bool:
    """Index artifacts are excluded from indexing and rule application."""
    return INDEX_LABEL in doc.labels


def build_direct_index(index: DocumentIndex, signal_groups: Iterable[Document]) -> DirectIndex:
    """Compile a DirectIndex from SignalGroup documents.

    Groups that cannot be associated with a channel are logged and skipped.

    Raises:
        ConfigError: If the index does not hold exactly one Stack
    """
    direct_index = DirectIndex()
    for doc in signal_groups:
        if is_index_document(doc):
            continue
        try:
            channel = resolve_channel(index, doc)
        except NotFoundError as e:
            logger.warning(
                f"SignalGroup not associated with SimBus channel: {doc.name} (file={doc.file}): {e}"
            )
            continue
        group = direct_index.get_or_create_group(channel)
        for signal in doc.signals:
            direct_index.add_signal(group, signal.name)

    direct_index.calculate_offsets()
    return direct_index
