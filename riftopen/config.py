"""
Configuration management for the rift encoder.

Handles loading, saving, validating and displaying the pruning and
streaming parameters, with ``RIFTOPEN_*`` environment overrides.
"""

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from .errors import ConfigError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# field name -> parser applied to file values, environment overrides and CLI input
FIELD_PARSERS = {
    "prune_threshold": float,
    "prune_streak": int,
    "streak_buckets": int,
    "chunk_size": int,
    "output_capacity": int,
    "hex_dump_limit": int,
    "log_level": str,
}


def _coerce(name: str, value: Any) -> Any:
    """Convert a loaded value with the field's parser, or raise ConfigError."""
    parse = FIELD_PARSERS[name]
    error = ConfigError(f"Invalid value for {name}: {value!r}", field_name=name, value=value)

    # bool is an int subclass, and int() silently truncates floats
    if parse is not str and isinstance(value, bool):
        raise error
    if parse is int and isinstance(value, float) and not value.is_integer():
        raise error
    try:
        return parse(value)
    except (TypeError, ValueError) as e:
        raise error from e


@dataclass
class RiftConfig:
    """Configuration for the encoder, the index and the CLI."""

    # Pruning policy
    prune_threshold: float = 0.5  # Measurements below this confidence qualify
    prune_streak: int = 1  # Qualifying measurements per bucket before pruning
    streak_buckets: int = 256  # Keys are bucketed modulo this

    # Streaming
    chunk_size: int = 4096  # Bytes read from the source per chunk
    output_capacity: int = 1 << 20  # Maximum output bytes per file

    # Presentation
    hex_dump_limit: int = 64
    log_level: str = "WARNING"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RiftConfig':
        """
        Create from dictionary.

        Values are coerced to the field's type, so ``chunk_size: "512"``
        loads as 512.

        Raises:
            ConfigError: on keys that are not configuration fields, or
                values that cannot be converted to the field's type
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}",
                              field_name=unknown[0])
        return cls(**{name: _coerce(name, value) for name, value in data.items()})

    def errors(self) -> List[str]:
        """Return a list of validation problems (empty when valid)."""
        errors = []

        if not 0.0 <= self.prune_threshold <= 1.0:
            errors.append(f"prune_threshold must be between 0.0 and 1.0, got {self.prune_threshold}")

        if self.prune_streak < 1:
            errors.append(f"prune_streak must be at least 1, got {self.prune_streak}")

        if self.streak_buckets < 1:
            errors.append(f"streak_buckets must be at least 1, got {self.streak_buckets}")

        if self.chunk_size < 2:
            errors.append(f"chunk_size must be at least 2, got {self.chunk_size}")

        if self.output_capacity < 0:
            errors.append(f"output_capacity must be non-negative, got {self.output_capacity}")

        if self.hex_dump_limit < 0:
            errors.append(f"hex_dump_limit must be non-negative, got {self.hex_dump_limit}")

        if str(self.log_level).upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level}")

        return errors

    def validate(self) -> bool:
        """Validate configuration parameters, printing any problems."""
        errors = self.errors()

        if errors:
            console = Console()
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")

        return not errors

    def require_valid(self) -> 'RiftConfig':
        """Raise ConfigError unless the configuration is valid."""
        errors = self.errors()
        if errors:
            raise ConfigError(errors[0], details={'errors': errors})
        return self


class ConfigManager:
    """Manages rift encoder configuration."""

    DEFAULT_CONFIG_FILE = ".riftopen.yml"
    ENV_PREFIX = "RIFTOPEN_"
    ENV_CONFIG_PATH = "RIFTOPEN_CONFIG"

    ENV_FIELDS = FIELD_PARSERS

    def __init__(self, config_path: Optional[Path] = None, console: Optional[Console] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to configuration file
            console: Console for status messages (stderr by default)
        """
        self.console = console or Console(stderr=True)
        env_path = os.getenv(self.ENV_CONFIG_PATH)
        if config_path is not None:
            self.config_path = Path(config_path)
        elif env_path:
            self.config_path = Path(env_path)
        else:
            self.config_path = Path(self.DEFAULT_CONFIG_FILE)
        self._config: Optional[RiftConfig] = None

    def load(self) -> RiftConfig:
        """
        Load configuration from file or create default.

        Raises:
            ConfigError: the file exists but cannot be parsed
        """
        if self._config is not None:
            return self._config

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigError(f"Error loading config {self.config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"Config {self.config_path} must be a mapping")
            self._config = RiftConfig.from_dict(data)
        else:
            self._config = RiftConfig()

        self._apply_env_overrides()

        return self._config

    def save(self, config: Optional[RiftConfig] = None) -> bool:
        """
        Save configuration to file.

        Returns:
            True if successful
        """
        config = config or self._config or RiftConfig()

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            self.console.print(f"[red]Error saving config: {e}[/red]")
            return False

        self._config = config
        self.console.print(f"[green]Saved config to {self.config_path}[/green]")
        return True

    def update(self, **kwargs) -> RiftConfig:
        """
        Update configuration parameters.

        Raises:
            ConfigError: on an unknown parameter name or an unconvertible value
        """
        config = self.load()

        for key, value in kwargs.items():
            if key not in self.ENV_FIELDS:
                raise ConfigError(f"Unknown parameter '{key}'", field_name=key, value=value)
            setattr(config, key, _coerce(key, value))

        return config

    def reset(self) -> RiftConfig:
        """Reset to default configuration."""
        self._config = RiftConfig()
        return self._config

    def display(self, config: Optional[RiftConfig] = None, console: Optional[Console] = None):
        """Display configuration in a formatted panel."""
        config = config or self.load()

        yaml_str = yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False)

        syntax = Syntax(yaml_str, "yaml", theme="monokai", line_numbers=True)
        panel = Panel(
            syntax,
            title="[bold cyan]riftopen configuration[/bold cyan]",
            border_style="cyan"
        )

        (console or self.console).print(panel)

    def _apply_env_overrides(self):
        """Apply RIFTOPEN_<FIELD> environment overrides."""
        if self._config is None:
            return

        for name, parse in self.ENV_FIELDS.items():
            raw = os.getenv(f"{self.ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            try:
                setattr(self._config, name, parse(raw))
            except ValueError as e:
                raise ConfigError(
                    f"Invalid environment value {self.ENV_PREFIX}{name.upper()}={raw}",
                    field_name=name,
                    value=raw
                ) from e


def parse_value(parameter: str, value: str) -> Any:
    """
    Parse a command-line string for ``parameter``.

    Raises:
        ConfigError: unknown parameter or unparseable value
    """
    parse = ConfigManager.ENV_FIELDS.get(parameter)
    if parse is None:
        raise ConfigError(f"Unknown parameter '{parameter}'", field_name=parameter, value=value)
    try:
        return parse(value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for {parameter}: {value}",
                          field_name=parameter, value=value) from e


def get_config(config_path: Optional[Path] = None) -> RiftConfig:
    """Load configuration from ``config_path`` or the default locations."""
    return ConfigManager(config_path).load()


def create_default_config_file(path: Optional[Path] = None) -> bool:
    """
    Create a default configuration file.

    Returns:
        True if successful
    """
    manager = ConfigManager(path or Path(ConfigManager.DEFAULT_CONFIG_FILE))
    return manager.save(RiftConfig())
