"""YAML codec for simulation documents.

Parsing rejects unknown kinds up front; serialization is only registered for
the kinds this tool rewrites (Stack, SignalGroup, Model).

Scalars are typed with YAML 1.2 rules, the way the simulation runtime reads
them: `on`, `no` and `y` stay strings, and so do `010` and other
zero-padded numbers, so a rewrite reproduces them unchanged.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import yaml

from ..exceptions import DocumentParseError, WriteError
from ..file_ops import read_text, write_text
from .models import (
    Document,
    GenericSpec,
    Kind,
    ModelSpec,
    SignalGroupSpec,
    Spec,
    StackSpec,
)

SPEC_PARSERS: Dict[Kind, Callable[[Any], Spec]] = {
    Kind.STACK: StackSpec.from_dict,
    Kind.SIGNAL_GROUP: SignalGroupSpec.from_dict,
    Kind.MODEL: ModelSpec.from_dict,
    Kind.RUNNABLE: GenericSpec.from_dict,
    Kind.PARAMETER_SET: GenericSpec.from_dict,
    Kind.PROPAGATOR: GenericSpec.from_dict,
    Kind.MANIFEST: GenericSpec.from_dict,
}

# Kinds with a registered serialization.
WRITABLE_KINDS = frozenset({Kind.STACK, Kind.SIGNAL_GROUP, Kind.MODEL})

# ── Scalar typing ──────────────────────────────────────────────

# PyYAML's YAML 1.1 implicit types replaced below; `value` (the bare `=`)
# has no safe constructor at all.
YAML11_TAGS = frozenset(
    {
        "tag:yaml.org,2002:bool",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:timestamp",
        "tag:yaml.org,2002:value",
    }
)

# (tag, pattern, first characters). Decimal ints with a leading zero are
# left as strings so identifiers such as `010` keep their spelling.
YAML12_RESOLVERS = [
    (
        "tag:yaml.org,2002:bool",
        re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
        "tTfF",
    ),
    (
        "tag:yaml.org,2002:int",
        re.compile(r"^(?:[-+]?(?:0|[1-9][0-9]*)|0o[0-7]+|0x[0-9a-fA-F]+)$"),
        "-+0123456789",
    ),
    (
        "tag:yaml.org,2002:float",
        re.compile(
            r"""^(?:[-+]?(?:\.[0-9]+|[0-9]+\.[0-9]*)(?:[eE][-+]?[0-9]+)?
                |[-+]?[0-9]+[eE][-+]?[0-9]+
                |[-+]?\.(?:inf|Inf|INF)
                |\.(?:nan|NaN|NAN))$""",
            re.X,
        ),
        "-+0123456789.",
    ),
]


def _yaml12_resolvers() -> dict:
    table: dict = {}
    for first, resolvers in yaml.resolver.Resolver.yaml_implicit_resolvers.items():
        kept = [(tag, regexp) for tag, regexp in resolvers if tag not in YAML11_TAGS]
        if kept:
            table[first] = kept
    for tag, regexp, first in YAML12_RESOLVERS:
        for ch in first:
            table.setdefault(ch, []).append((tag, regexp))
    return table


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader typing plain scalars by YAML 1.2 rules."""

    yaml_implicit_resolvers = _yaml12_resolvers()


class DocumentDumper(yaml.SafeDumper):
    """SafeDumper that quotes exactly the strings DocumentLoader would retype."""

    yaml_implicit_resolvers = _yaml12_resolvers()


def parse_document(data: Any, file: Optional[Path] = None) -> Document:
    """Build a typed Document from one decoded YAML mapping.

    Raises:
        ValueError: If the mapping is not a valid document
    """
    if not isinstance(data, dict):
        raise ValueError(f"document must be a mapping, got {type(data).__name__}")

    kind_name = data.get("kind")
    try:
        kind = Kind(kind_name)
    except ValueError:
        raise ValueError(f"unsupported document kind: {kind_name!r}")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValueError("metadata must be a mapping")
    labels = metadata.get("labels") or {}
    annotations = metadata.get("annotations") or {}
    if not isinstance(labels, dict) or not isinstance(annotations, dict):
        raise ValueError("metadata labels and annotations must be mappings")

    return Document(
        kind=kind,
        name=str(metadata.get("name", "")),
        labels=dict(labels),
        annotations=dict(annotations),
        spec=SPEC_PARSERS[kind](data.get("spec")),
        file=file,
        raw=dict(data),
    )


def parse_documents(text: str, file: Optional[Path] = None) -> List[Document]:
    """Parse every document in a multi-document YAML text.

    Empty documents (e.g. a trailing ``---``) are ignored.

    Raises:
        DocumentParseError: On YAML syntax errors or invalid documents
    """
    source = file if file is not None else Path("<string>")
    try:
        loaded = [d for d in yaml.load_all(text, Loader=DocumentLoader) if d is not None]
    except yaml.YAMLError as e:
        raise DocumentParseError(source, f"YAML error: {e}")

    documents = []
    for position, data in enumerate(loaded):
        try:
            documents.append(parse_document(data, file))
        except ValueError as e:
            raise DocumentParseError(source, f"document {position}: {e}")
    return documents


def load_file(path: Path) -> List[Document]:
    """Read and parse a document file."""
    return parse_documents(read_text(path), path)


def document_to_dict(doc: Document) -> dict:
    """Convert a Document back to its YAML mapping.

    Raises:
        WriteError: If the document's kind has no registered serialization
    """
    if doc.kind not in WRITABLE_KINDS:
        raise WriteError(
            doc.file or Path("<unknown>"),
            f"Unsupported doc kind; {doc.kind.value}",
            kind=doc.kind.value,
        )

    metadata = dict(doc.raw.get("metadata") or {})
    metadata["name"] = doc.name
    if doc.labels or "labels" in metadata:
        metadata["labels"] = doc.labels
    if doc.annotations or "annotations" in metadata:
        metadata["annotations"] = doc.annotations

    data = dict(doc.raw)
    data["kind"] = doc.kind.value
    data["metadata"] = metadata
    data["spec"] = doc.spec.to_dict()
    return data


def dump_documents(docs: Iterable[Document]) -> str:
    """Serialize documents as one multi-document YAML text."""
    return yaml.dump_all(
        [document_to_dict(d) for d in docs],
        Dumper=DocumentDumper,
        sort_keys=False,
        default_flow_style=False,
        indent=2,
        allow_unicode=True,
    )


def write_documents(path: Path, docs: Iterable[Document]) -> None:
    """Write documents to path, replacing any existing content.

    Raises:
        WriteError: On unregistered kinds or filesystem errors
    """
    try:
        text = dump_documents(docs)
    except yaml.YAMLError as e:
        raise WriteError(path, f"Error encoding yaml: {e}")
    write_text(path, text)
