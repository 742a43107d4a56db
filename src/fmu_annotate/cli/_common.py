"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import AnnotateConfig, load_config

console = Console()


def split_names(value: Optional[str]) -> Optional[list[str]]:
    """Parse a comma-separated list option; None when the option is unset."""
    if value is None:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def resolve_config(
    config: Optional[Path] = None,
    sim: Optional[Path] = None,
    signal_groups: Optional[str] = None,
    rule: Optional[Path] = None,
    ruleset: Optional[str] = None,
    build_index: Optional[bool] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> AnnotateConfig:
    """Build an AnnotateConfig from CLI options."""
    overrides = {
        "sim_path": str(sim) if sim is not None else None,
        "signal_groups": split_names(signal_groups),
        "rule_file": str(rule) if rule is not None else None,
        "ruleset": ruleset,
        "build_index": build_index,
    }
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    return load_config(config_file=config, **overrides)
