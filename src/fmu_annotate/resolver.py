"""Resolve the SimBus channel a SignalGroup is wired to.

A Stack lists model instances, each binding channels by alias. A binding
matches a SignalGroup when its selector set is a subset of the group's labels.
A binding without selectors falls back to the selectors declared for the same
alias on the instance's Model definition.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from .documents import ChannelBinding, Document, DocumentIndex, Kind, ModelInstance, StackSpec
from .documents.models import Labels
from .exceptions import ConfigError, NotFoundError
from .logging_config import get_logger

logger = get_logger(__name__)

# The bus itself appears in the Stack as a model instance; it carries no channels to match.
SIMBUS_MODEL = "simbus"

SelectorSource = Callable[[DocumentIndex, ModelInstance, ChannelBinding], Optional[Labels]]


def single_stack(index: DocumentIndex) -> Document:
    """Return the one Stack document of the index.

    Raises:
        ConfigError: If the index holds zero or several Stacks
    """
    stacks = index.documents(Kind.STACK)
    if len(stacks) != 1:
        raise ConfigError(f"simulation folder contains {len(stacks)} Stacks, expected 1")
    return stacks[0]


def binding_selectors(
    index: DocumentIndex, instance: ModelInstance, binding: ChannelBinding
) -> Optional[Labels]:
    """The binding's own selectors; an empty set counts as absent."""
    return binding.selectors or None


def model_selectors(
    index: DocumentIndex, instance: ModelInstance, binding: ChannelBinding
) -> Optional[Labels]:
    """Selectors of the same-aliased channel on the instance's Model definition."""
    if instance.model is None:
        return None
    model = index.find_by_name(Kind.MODEL, instance.model)
    if model is None:
        logger.debug(f"  model definition not found: {instance.model}")
        return None
    selectors = None
    for declared in model.spec.channels:
        if declared.alias == binding.alias and declared.selectors:
            selectors = declared.selectors
    if selectors is None:
        logger.debug(f"  model.channel missing selectors: alias={binding.alias}")
    return selectors


SELECTOR_CHAIN: tuple[SelectorSource, ...] = (binding_selectors, model_selectors)


def effective_selectors(
    index: DocumentIndex,
    instance: ModelInstance,
    binding: ChannelBinding,
    chain: Iterable[SelectorSource] = SELECTOR_CHAIN,
) -> Optional[Labels]:
    """First non-empty selector set along the resolution chain, or None.

    An explicit empty set (``selectors: {}``) is treated like a missing one:
    resolution falls through to the next source instead of selecting every
    SignalGroup.
    """
    for source in chain:
        selectors = source(index, instance, binding)
        if selectors:
            return selectors
    return None


def selectors_match(selectors: Labels, labels: Labels) -> bool:
    """True when every selector is present in labels with an equal value."""
    for key, value in selectors.items():
        if key not in labels:
            logger.debug(f"  selector not found: label={key}")
            return False
        if labels[key] != value:
            logger.debug(f"  selector value mismatch: {value} != {labels[key]} ({key})")
            return False
    return True


def resolve_channel(index: DocumentIndex, signal_group: Document) -> str:
    """Find the name of the channel the SignalGroup is bound to.

    Instances are scanned in Stack order, then their channel bindings in
    declared order; the first matching binding wins.

    Raises:
        ConfigError: If the index does not hold exactly one Stack
        NotFoundError: If no channel selects the SignalGroup
    """
    stack = single_stack(index)
    spec = stack.spec
    if not isinstance(spec, StackSpec) or not spec.models:
        raise NotFoundError(f"Stack '{stack.name}' contains no models")

    for instance in spec.models:
        if instance.name == SIMBUS_MODEL:
            continue
        for binding in instance.channels:
            selectors = effective_selectors(index, instance, binding)
            if selectors is None:
                logger.debug(f"  channel without selectors skipped: alias={binding.alias}")
                continue
            if selectors_match(selectors, signal_group.labels):
                logger.info(f"SimBus channel found: name={binding.name} alias={binding.alias}")
                if binding.name is None:
                    raise NotFoundError(
                        f"Matching channel (alias={binding.alias}) on '{instance.name}' has no name"
                    )
                return binding.name

    raise NotFoundError(
        f"Stack contains no Model:Channel with selectors matching SignalGroup '{signal_group.name}'"
    )
