"""Configuration loading and management for fmu-annotate.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnnotateConfig)
    2. Global config (~/.fmu-annotate.toml)
    3. Project config (./fmu-annotate.toml)
    4. Explicit config file
    5. Environment variables (FMU_ANNOTATE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(sim_path="out/sim", build_index=True)
    >>> config.index_path
    PosixPath('out/sim/data/direct_index.yaml')
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "FMU_ANNOTATE_"
CONFIG_FILE_NAME = "fmu-annotate.toml"


@dataclass
class AnnotateConfig:
    """Settings for one annotation run over a simulation folder.

    Attributes:
        Simulation layout:
            sim_path: Root of the simulation (Simer layout)
            index_file: Direct index output, relative to sim_path
            extensions: File extensions holding YAML documents

        Annotation:
            signal_groups: SignalGroup names to process (empty = all)
            rule_file: CSV rule table (takes precedence over ruleset)
            ruleset: Name of a built-in ruleset (e.g. 'signal-direction')
            build_index: Compile a direct index and use offsets as vrefs
            annotate_stack: Write model_runtime__* annotations on the Stack

        File filtering:
            exclude_patterns: Glob patterns to exclude from the scan
            allow_hidden_files: Include hidden files (starting with .)
            follow_symlinks: Follow symbolic links during scanning

        Output control:
            verbosity: Logging verbosity level
            log_file: Optional file receiving a copy of the log
    """

    # Simulation layout
    sim_path: str = "/sim"
    index_file: str = "data/direct_index.yaml"
    extensions: list[str] = field(default_factory=lambda: [".yml", ".yaml"])

    # Annotation
    signal_groups: list[str] = field(default_factory=list)
    rule_file: Optional[str] = None
    ruleset: Optional[str] = None
    build_index: bool = False
    annotate_stack: bool = True

    # File filtering
    exclude_patterns: list[str] = field(default_factory=list)
    allow_hidden_files: bool = False
    follow_symlinks: bool = False

    # Output control
    verbosity: Verbosity = "normal"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.sim_path:
            raise ValueError("sim_path must not be empty")
        if not self.index_file:
            raise ValueError("index_file must not be empty")
        if Path(self.index_file).is_absolute():
            raise ValueError("index_file must be relative to sim_path")
        if not self.extensions:
            raise ValueError("extensions must list at least one extension")
        for ext in self.extensions:
            if not ext.startswith("."):
                raise ValueError(f"extension must start with '.': {ext}")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError(f"verbosity must be quiet, normal or verbose: {self.verbosity}")

    @property
    def sim_dir(self) -> Path:
        """Simulation root as a Path."""
        return Path(self.sim_path)

    @property
    def index_path(self) -> Path:
        """Absolute location of the direct index file."""
        return self.sim_dir / self.index_file


def config_files(config_file: Optional[Path] = None) -> list[tuple[str, Path]]:
    """Config files to merge, lowest priority first.

    Raises:
        ConfigError: If an explicit config_file does not exist
    """
    discovered = [
        ("global config", Path.home() / f".{CONFIG_FILE_NAME}"),
        ("project config", Path.cwd() / CONFIG_FILE_NAME),
    ]
    files = [(label, path) for label, path in discovered if path.exists()]
    if config_file is not None:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")
        files.append(("config file", config_file))
    return files


def load_config(config_file: Optional[Path] = None, **overrides) -> AnnotateConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask file values.
            ``verbose``/``quiet`` booleans set ``verbosity``.

    Returns:
        Validated AnnotateConfig instance

    Raises:
        ConfigError: If a config file is missing or invalid
    """
    merged: dict = {}
    for label, path in config_files(config_file):
        try:
            merged.update(_load_toml_file(path))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Invalid {label} '{path}': {e}")

    merged.update(_load_env_vars())

    for flag in ("verbose", "quiet"):
        if overrides.pop(flag, False):
            overrides["verbosity"] = flag
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return AnnotateConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from FMU_ANNOTATE_* environment variables.

    List fields (signal_groups, extensions, exclude_patterns) are given as
    comma-separated strings, e.g. ``FMU_ANNOTATE_SIGNAL_GROUPS=in,out``.
    """
    type_hints = get_type_hints(AnnotateConfig)

    result: dict[str, Any] = {}

    for field_name in AnnotateConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list or type_hint is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigError: If no TOML parser is available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
