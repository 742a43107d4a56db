"""Typed simulation documents.

Each YAML document has the shape::

    kind: SignalGroup
    metadata:
      name: signal
      labels: {channel: signal_vector}
      annotations: {vector_type: binary}
    spec: {...}

``kind`` selects the spec type. Only the fields this tool reads or writes are
modelled; everything else is carried in ``raw`` and written back unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

Labels = Dict[str, Any]
Annotations = Dict[str, Any]


class Kind(Enum):
    """Document kinds known to the index.

    Stack, SignalGroup and Model are fully typed and can be written back.
    The remaining kinds are carried so that a simulation folder scans
    cleanly, but a file holding one of them cannot be rewritten.
    """

    STACK = "Stack"
    SIGNAL_GROUP = "SignalGroup"
    MODEL = "Model"
    RUNNABLE = "Runnable"
    PARAMETER_SET = "ParameterSet"
    PROPAGATOR = "Propagator"
    MANIFEST = "Manifest"


def _mapping(value: Any, where: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{where} must be a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, where: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{where} must be a list, got {type(value).__name__}")
    return value


def _selectors(value: Any, where: str) -> Optional[Labels]:
    if value is None:
        return None
    return dict(_mapping(value, where))


# ── SignalGroup ─────────────────────────────────────────────────


@dataclass
class Signal:
    """A named leaf value within a SignalGroup."""

    name: str
    annotations: Annotations = field(default_factory=dict)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> Signal:
        data = _mapping(data, "spec.signals[]")
        if "signal" not in data:
            raise ValueError("spec.signals[] entry has no 'signal' name")
        return cls(
            name=str(data["signal"]),
            annotations=dict(_mapping(data.get("annotations"), "signal annotations")),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        data["signal"] = self.name
        if self.annotations or "annotations" in data:
            data["annotations"] = self.annotations
        return data


@dataclass
class SignalGroupSpec:
    signals: List[Signal] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> SignalGroupSpec:
        data = _mapping(data, "spec")
        signals = [Signal.from_dict(s) for s in _sequence(data.get("signals"), "spec.signals")]
        return cls(signals=signals, raw=dict(data))

    def to_dict(self) -> dict:
        data = dict(self.raw)
        data["signals"] = [s.to_dict() for s in self.signals]
        return data


# ── Stack ───────────────────────────────────────────────────────


@dataclass
class ChannelBinding:
    """A model instance's connection to a named channel."""

    name: Optional[str]
    alias: Optional[str]
    selectors: Optional[Labels] = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> ChannelBinding:
        data = _mapping(data, "spec.models[].channels[]")
        return cls(
            name=data.get("name"),
            alias=data.get("alias"),
            selectors=_selectors(data.get("selectors"), "channel selectors"),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        if self.name is not None:
            data["name"] = self.name
        if self.alias is not None:
            data["alias"] = self.alias
        if self.selectors is not None:
            data["selectors"] = self.selectors
        return data


@dataclass
class ModelInstance:
    """An instance of a Model definition, as listed by a Stack."""

    name: str
    model: Optional[str]
    channels: List[ChannelBinding] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> ModelInstance:
        data = _mapping(data, "spec.models[]")
        model = _mapping(data.get("model"), "spec.models[].model")
        channels = _sequence(data.get("channels"), "spec.models[].channels")
        return cls(
            name=str(data.get("name", "")),
            model=model.get("name"),
            channels=[ChannelBinding.from_dict(c) for c in channels],
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        data["name"] = self.name
        if self.model is not None:
            model = dict(_mapping(data.get("model"), "spec.models[].model"))
            model["name"] = self.model
            data["model"] = model
        if self.channels or "channels" in data:
            data["channels"] = [c.to_dict() for c in self.channels]
        return data


@dataclass
class StackSpec:
    models: List[ModelInstance] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> StackSpec:
        data = _mapping(data, "spec")
        models = _sequence(data.get("models"), "spec.models")
        return cls(models=[ModelInstance.from_dict(m) for m in models], raw=dict(data))

    def to_dict(self) -> dict:
        data = dict(self.raw)
        if self.models or "models" in data:
            data["models"] = [m.to_dict() for m in self.models]
        return data


# ── Model ───────────────────────────────────────────────────────


@dataclass
class ChannelDeclaration:
    """A channel declared on a Model definition."""

    alias: Optional[str]
    selectors: Optional[Labels] = None
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> ChannelDeclaration:
        data = _mapping(data, "spec.channels[]")
        return cls(
            alias=data.get("alias"),
            selectors=_selectors(data.get("selectors"), "channel selectors"),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        if self.alias is not None:
            data["alias"] = self.alias
        if self.selectors is not None:
            data["selectors"] = self.selectors
        return data


@dataclass
class ModelSpec:
    channels: List[ChannelDeclaration] = field(default_factory=list)
    raw: dict = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> ModelSpec:
        data = _mapping(data, "spec")
        channels = _sequence(data.get("channels"), "spec.channels")
        return cls(channels=[ChannelDeclaration.from_dict(c) for c in channels], raw=dict(data))

    def to_dict(self) -> dict:
        data = dict(self.raw)
        if self.channels or "channels" in data:
            data["channels"] = [c.to_dict() for c in self.channels]
        return data


# ── Carried kinds ───────────────────────────────────────────────


@dataclass
class GenericSpec:
    """Spec of a kind this tool carries but does not interpret."""

    raw: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> GenericSpec:
        return cls(raw=dict(_mapping(data, "spec")))

    def to_dict(self) -> dict:
        return dict(self.raw)


Spec = Union[SignalGroupSpec, StackSpec, ModelSpec, GenericSpec]


# ── Document ────────────────────────────────────────────────────


@dataclass
class Document:
    """A parsed document together with the file it came from."""

    kind: Kind
    name: str
    labels: Labels = field(default_factory=dict)
    annotations: Annotations = field(default_factory=dict)
    spec: Spec = field(default_factory=GenericSpec)
    file: Optional[Path] = None
    raw: dict = field(default_factory=dict, repr=False)

    @property
    def signals(self) -> List[Signal]:
        """Signals of a SignalGroup document."""
        if not isinstance(self.spec, SignalGroupSpec):
            raise TypeError(f"{self.kind.value} document '{self.name}' has no signals")
        return self.spec.signals

    def has_labels(self, required: Labels) -> bool:
        """True if every required label is present with an equal value."""
        return all(k in self.labels and self.labels[k] == v for k, v in required.items())
