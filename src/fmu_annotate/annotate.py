"""Annotate SignalGroups and the Stack for the FMU model runtime.

After rules are applied, every signal whose causality is ``input`` or
``output`` receives a value reference (vref), a type and a name. Vrefs come
from a ReferenceAllocator: either a run-wide counter or the byte offsets of a
compiled DirectIndex.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Optional

from .directindex import DirectIndex
from .documents import Document, DocumentIndex, Signal
from .exceptions import NotFoundError
from .logging_config import get_logger
from .resolver import SIMBUS_MODEL, resolve_channel, single_stack
from .rules import Ruleset, apply_rules

logger = get_logger(__name__)

CAUSALITY = "fmi_variable_causality"
VREF = "fmi_variable_vref"
VARIABLE_TYPE = "fmi_variable_type"
VARIABLE_NAME = "fmi_variable_name"
REFERENCE_CAUSALITIES = ("input", "output")
SCALAR_TYPE = "Real"

MODEL_INST_ANNOTATION = "model_runtime__model_inst"
YAML_FILES_ANNOTATION = "model_runtime__yaml_files"

Assign = Callable[[Signal], Optional[int]]


class ReferenceAllocator(ABC):
    """Source of value references for the signals of one SignalGroup."""

    @abstractmethod
    def for_group(self, index: DocumentIndex, doc: Document) -> Assign:
        """Return a function giving the vref of a signal, or None to skip it."""


class CounterAllocator(ReferenceAllocator):
    """Sequential vrefs (1, 2, 3, ...) shared by every group of a run."""

    def __init__(self, start: int = 1):
        self._next = start

    def next(self) -> int:
        vref = self._next
        self._next += 1
        return vref

    @property
    def peek(self) -> int:
        return self._next

    def for_group(self, index: DocumentIndex, doc: Document) -> Assign:
        return lambda signal: self.next()


class DirectIndexAllocator(ReferenceAllocator):
    """Vrefs taken from the byte offsets of a compiled DirectIndex."""

    def __init__(self, direct_index: DirectIndex):
        self.direct_index = direct_index

    def for_group(self, index: DocumentIndex, doc: Document) -> Assign:
        try:
            channel = resolve_channel(index, doc)
        except NotFoundError as e:
            logger.warning(f"No vrefs for SignalGroup {doc.name}: {e}")
            return lambda signal: None

        def assign(signal: Signal) -> Optional[int]:
            offset, found = self.direct_index.lookup(channel, signal.name)
            if not found:
                logger.warning(f"Signal not in direct index: {channel}/{signal.name}")
                return None
            return offset

        return assign


def annotate(
    index: DocumentIndex,
    doc: Document,
    ruleset: Ruleset,
    allocator: ReferenceAllocator,
) -> int:
    """Apply a ruleset to a SignalGroup and allocate vrefs.

    The owning file is marked modified. An empty ruleset leaves the document
    untouched.

    Returns:
        Number of signals that received a vref

    Raises:
        UnsupportedError: For binary vectors (nothing is changed)
    """
    if not ruleset:
        return 0

    apply_rules(doc, ruleset)

    assign = allocator.for_group(index, doc)
    count = 0
    for signal in doc.signals:
        if signal.annotations.get(CAUSALITY) not in REFERENCE_CAUSALITIES:
            continue
        vref = assign(signal)
        if vref is None:
            continue
        signal.annotations[VREF] = vref
        signal.annotations[VARIABLE_TYPE] = SCALAR_TYPE
        signal.annotations[VARIABLE_NAME] = signal.name
        count += 1

    index.mark_modified(doc.file)
    return count


def annotate_stack(index: DocumentIndex, sim_path: Path) -> Document:
    """Record the model instances and YAML files of the simulation on its Stack.

    Raises:
        ConfigError: If the index does not hold exactly one Stack
    """
    stack = single_stack(index)

    names: List[str] = [m.name for m in stack.spec.models if m.name != SIMBUS_MODEL]
    stack.annotations[MODEL_INST_ANNOTATION] = ",".join(names)

    sim_path = Path(sim_path)
    yaml_files = []
    for path in index.files:
        try:
            yaml_files.append(path.relative_to(sim_path).as_posix())
        except ValueError:
            logger.debug(f"File outside simulation folder: {path}")
    stack.annotations[YAML_FILES_ANNOTATION] = sorted(yaml_files)

    index.mark_modified(stack.file)
    return stack
