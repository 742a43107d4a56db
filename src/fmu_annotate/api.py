"""Public API for fmu-annotate.

Example:
    >>> from fmu_annotate import annotate_simulation
    >>>
    >>> result = annotate_simulation("out/sim", ruleset="signal-direction")
    >>> result.annotated
    ['signal']
    >>>
    >>> # Use direct index offsets as value references
    >>> result = annotate_simulation("out/sim", ruleset="signal-direction", build_index=True)
    >>> result.index_path
    PosixPath('out/sim/data/direct_index.yaml')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .annotate import (
    CounterAllocator,
    DirectIndexAllocator,
    ReferenceAllocator,
    annotate,
    annotate_stack,
)
from .config import AnnotateConfig, load_config
from .directindex import DirectIndex, build_direct_index, is_index_document
from .documents import Document, DocumentIndex, Kind, load_file, write_documents
from .exceptions import UnsupportedError
from .logging_config import get_logger
from .resolver import single_stack
from .rules import get_ruleset

logger = get_logger(__name__)


@dataclass
class RunResult:
    """Summary of one annotation run."""

    sim_path: Path
    annotated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    vref_count: int = 0
    index_path: Optional[Path] = None
    direct_index: Optional[DirectIndex] = None
    saved: List[Path] = field(default_factory=list)


def select_signal_groups(index: DocumentIndex, names: List[str]) -> List[Document]:
    """SignalGroups to process: all (or those named), minus index artifacts."""
    groups = []
    for doc in index.documents(Kind.SIGNAL_GROUP):
        if names and doc.name not in names:
            logger.info(f"SignalGroup filtered: {doc.name}")
            continue
        if is_index_document(doc):
            continue
        groups.append(doc)

    found = {doc.name for doc in groups}
    for name in names:
        if name not in found:
            logger.warning(f"SignalGroup not found in simulation: {name}")
    return groups


def run(config: AnnotateConfig) -> RunResult:
    """Scan, optionally compile the direct index, annotate and save.

    Raises:
        ConfigError: If the simulation does not contain exactly one Stack
        LoadError: If the ruleset cannot be loaded
        WriteError: If the direct index or a modified file cannot be written
    """
    sim_path = config.sim_dir
    result = RunResult(sim_path=sim_path)

    index = DocumentIndex.from_config(config)
    index.scan(sim_path)
    single_stack(index)

    ruleset = get_ruleset(config.rule_file, config.ruleset)
    groups = select_signal_groups(index, config.signal_groups)

    allocator: ReferenceAllocator
    if config.build_index:
        logger.info(f"Generating Direct Index: {config.index_path}")
        result.direct_index = build_direct_index(index, groups)
        result.index_path = result.direct_index.emit(config.index_path)
        index.add(result.index_path)
        allocator = DirectIndexAllocator(result.direct_index)
    else:
        allocator = CounterAllocator()

    if not ruleset:
        logger.info("No ruleset given, SignalGroups are not annotated")
    else:
        for doc in groups:
            logger.info(f"Annotate SignalGroup: {doc.name} ({doc.file})")
            try:
                result.vref_count += annotate(index, doc, ruleset, allocator)
            except UnsupportedError as e:
                logger.warning(f"Skipping SignalGroup {doc.name}: {e}")
                result.skipped.append(doc.name)
                continue
            result.annotated.append(doc.name)

    if config.annotate_stack:
        annotate_stack(index, sim_path)

    result.saved = index.save()
    return result


def annotate_simulation(
    sim_path: Optional[str] = None,
    config_file: Optional[Path] = None,
    **overrides,
) -> RunResult:
    """Annotate the SignalGroups and Stack of a simulation folder.

    Args:
        sim_path: Simulation root (overrides the configured sim_path)
        config_file: Optional explicit config file path
        **overrides: Configuration overrides (e.g. ruleset="signal-direction")
    """
    config = load_config(config_file=config_file, sim_path=sim_path, **overrides)
    return run(config)


def annotate_signalgroup_file(
    input_file: Path,
    output_file: Path,
    rule_file: Optional[Path] = None,
    ruleset: Optional[str] = None,
) -> int:
    """Annotate the SignalGroups of a single file and write them to output_file.

    Value references are counted from 1 across all groups of the file.

    Returns:
        Number of signals that received a vref

    Raises:
        DocumentParseError: If input_file cannot be parsed
        LoadError: If the ruleset cannot be loaded
        UnsupportedError: If a SignalGroup is a binary vector
        WriteError: If output_file cannot be written
    """
    rules = get_ruleset(rule_file, ruleset)
    docs = load_file(Path(input_file))

    index = DocumentIndex()
    allocator = CounterAllocator()
    count = 0
    for doc in docs:
        if doc.kind is Kind.SIGNAL_GROUP:
            count += annotate(index, doc, rules, allocator)

    write_documents(Path(output_file), docs)
    return count
