"""Conditional annotation rules for SignalGroup signals.

A rule table is a CSV file::

    Annotation,Value,FmiAnnotation,FmiValue
    direction,input,fmi_variable_causality,input

Each row after the header reads: when a signal's ``Annotation`` equals
``Value``, set its ``FmiAnnotation`` to ``FmiValue``.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .documents import Document
from .exceptions import LoadError, UnsupportedError
from .logging_config import get_logger

logger = get_logger(__name__)

RULE_HEADER = ("Annotation", "Value", "FmiAnnotation", "FmiValue")

VECTOR_TYPE_ANNOTATION = "vector_type"
BINARY_VECTOR = "binary"


@dataclass(frozen=True)
class Rule:
    source_key: str
    source_value: str
    target_key: str
    target_value: str

    def applies_to(self, annotations: dict) -> bool:
        return self.source_key in annotations and annotations[self.source_key] == self.source_value


@dataclass
class Ruleset:
    """Ordered rules, kept with the header row they were loaded with."""

    rules: List[Rule] = field(default_factory=list)
    header: tuple = RULE_HEADER
    source: str = ""

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[str]], source: str) -> Ruleset:
        """Build a ruleset from table rows, the first being the header.

        Raises:
            LoadError: If the header or any row is malformed
        """
        rows = [list(r) for r in rows]
        if not rows:
            raise LoadError(source, "rule table is empty")
        header = tuple(cell.strip() for cell in rows[0])
        if header != RULE_HEADER:
            raise LoadError(
                source, f"header must be {','.join(RULE_HEADER)}, got {','.join(header)}"
            )
        rules = []
        for line, row in enumerate(rows[1:], start=2):
            if len(row) != len(RULE_HEADER):
                raise LoadError(source, f"row {line} has {len(row)} columns, expected 4")
            rules.append(Rule(*(cell.strip() for cell in row)))
        return cls(rules=rules, header=header, source=source)

    def __len__(self) -> int:
        return len(self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)


BUILTIN_RULESETS = {
    "signal-direction": [
        RULE_HEADER,
        ("direction", "input", "fmi_variable_causality", "input"),
        ("direction", "output", "fmi_variable_causality", "output"),
    ],
}


def load_ruleset(path: Path) -> Ruleset:
    """Load a rule table from a CSV file.

    Raises:
        LoadError: If the file is unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    except (OSError, csv.Error) as e:
        raise LoadError(str(path), f"Unable to load CSV: {e}")
    return Ruleset.from_rows(rows, str(path))


def builtin_ruleset(name: str) -> Ruleset:
    """Return a built-in ruleset by name.

    Raises:
        LoadError: If the name is not known
    """
    if name not in BUILTIN_RULESETS:
        raise LoadError(
            name, f"Ruleset not supported (available: {', '.join(sorted(BUILTIN_RULESETS))})"
        )
    return Ruleset.from_rows(BUILTIN_RULESETS[name], name)


def get_ruleset(rule_file: Optional[Path] = None, ruleset_name: Optional[str] = None) -> Ruleset:
    """Pick the rule file if given, else the named ruleset, else an empty ruleset."""
    if rule_file:
        return load_ruleset(Path(rule_file))
    if ruleset_name:
        return builtin_ruleset(ruleset_name)
    return Ruleset()


def check_binary(doc: Document) -> None:
    """Reject binary signal vectors.

    Raises:
        UnsupportedError: If the SignalGroup is annotated as a binary vector
    """
    if doc.annotations.get(VECTOR_TYPE_ANNOTATION) == BINARY_VECTOR:
        raise UnsupportedError(doc.name, "Binary not supported")


def apply_rules(doc: Document, ruleset: Ruleset) -> int:
    """Apply every rule to every signal of a SignalGroup.

    Returns:
        The number of annotations written

    Raises:
        UnsupportedError: For binary vectors; the document is left unchanged
    """
    check_binary(doc)

    applied = 0
    for signal in doc.signals:
        for rule in ruleset.rules:
            if rule.applies_to(signal.annotations):
                signal.annotations[rule.target_key] = rule.target_value
                applied += 1
    logger.debug(f"Applied {applied} rule annotations to {doc.name}")
    return applied
