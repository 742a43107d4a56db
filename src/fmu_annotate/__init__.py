"""
fmu-annotate - SignalGroup annotation and direct indexing for FMU model runtimes

Scans a simulation folder of YAML documents, resolves which SimBus channel
each SignalGroup is wired to, compiles the direct index (fixed byte offsets
per signal) and annotates signals with the value references a model
description needs.
"""

__version__ = "0.3.0"

from .api import RunResult, annotate_signalgroup_file, annotate_simulation
from .directindex import DirectIndex
from .documents import DocumentIndex, Kind

__all__ = [
    "annotate_simulation",  # Main entry point
    "annotate_signalgroup_file",
    "RunResult",
    "DirectIndex",
    "DocumentIndex",
    "Kind",
]
