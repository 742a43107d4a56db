"""Simulation documents: typed models, YAML codec and the document index."""

from .codec import (
    WRITABLE_KINDS,
    dump_documents,
    load_file,
    parse_documents,
    write_documents,
)
from .index import DocumentIndex, Handle
from .models import (
    ChannelBinding,
    ChannelDeclaration,
    Document,
    GenericSpec,
    Kind,
    ModelInstance,
    ModelSpec,
    Signal,
    SignalGroupSpec,
    StackSpec,
)

__all__ = [
    "ChannelBinding",
    "ChannelDeclaration",
    "Document",
    "DocumentIndex",
    "GenericSpec",
    "Handle",
    "Kind",
    "ModelInstance",
    "ModelSpec",
    "Signal",
    "SignalGroupSpec",
    "StackSpec",
    "WRITABLE_KINDS",
    "dump_documents",
    "load_file",
    "parse_documents",
    "write_documents",
]
