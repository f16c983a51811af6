"""
Planner configuration.

Settings can be built in code or loaded from a YAML file such as
``fixplan.yml``:

    fixtures_dir: test/fixtures
    associations: tmp/models.json
    reverse_closure: any_foreign_key
    exclude_tables: [action_text_rich_texts]
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from fixplan.errors import ConfigError


class ReverseClosure(str, Enum):
    """Which back-referencing fixtures the collector pulls into a plan."""

    ANY_FOREIGN_KEY = "any_foreign_key"
    """Any fixture whose foreign key points at a planned fixture (Rails 'load all' semantics)."""

    HAS_ONE = "has_one"
    """Only children of a has_one association declared on the parent's table."""

    NONE = "none"
    """Forward references only."""


class LogFormat(str, Enum):
    """Log renderer used by the CLI."""

    CONSOLE = "console"
    JSON = "json"


@dataclass
class PlannerConfig:
    """Configuration for fixture planning."""

    # Collection
    reverse_closure: ReverseClosure = ReverseClosure.ANY_FOREIGN_KEY
    exclude_tables: frozenset[str] = field(default_factory=frozenset)
    max_reverse_passes: int | None = None  # None = run to the fixed point

    # Sources
    fixtures_dir: Path | None = None
    associations_path: Path | None = None

    # Logging
    log_level: str = "WARNING"
    log_format: LogFormat = LogFormat.CONSOLE

    def __post_init__(self) -> None:
        if self.max_reverse_passes is not None and self.max_reverse_passes < 1:
            raise ValueError("max_reverse_passes must be at least 1")
        self.exclude_tables = frozenset(self.exclude_tables)


class ConfigLoader:
    """Load and validate planner configurations from YAML files."""

    @classmethod
    def from_yaml(cls, path: str | Path) -> PlannerConfig:
        """
        Load configuration from a YAML file.

        Relative source paths are resolved against the file's directory.

        Args:
            path: Path to YAML configuration file

        Returns:
            PlannerConfig loaded from file

        Raises:
            ConfigError: If the file is missing or invalid
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(path, "configuration file not found")

        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(path, str(e)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(path, "expected a mapping at the top level")

        return cls._parse_config(data, source=path, base_dir=path.parent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlannerConfig:
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            PlannerConfig from dictionary
        """
        return cls._parse_config(data, source="<dict>", base_dir=None)

    @classmethod
    def _parse_config(
        cls, data: dict[str, Any], source: str | Path, base_dir: Path | None
    ) -> PlannerConfig:
        """Parse configuration dictionary into PlannerConfig."""

        def _path(value: Any) -> Path | None:
            if not value:
                return None
            p = Path(str(value))
            if base_dir is not None and not p.is_absolute():
                p = base_dir / p
            return p

        exclude = data.get("exclude_tables", [])
        if not isinstance(exclude, list):
            raise ConfigError(source, "'exclude_tables' must be a list")

        try:
            return PlannerConfig(
                reverse_closure=ReverseClosure(
                    data.get("reverse_closure", ReverseClosure.ANY_FOREIGN_KEY.value)
                ),
                exclude_tables=frozenset(str(t) for t in exclude),
                max_reverse_passes=data.get("max_reverse_passes"),
                fixtures_dir=_path(data.get("fixtures_dir")),
                associations_path=_path(data.get("associations")),
                log_level=str(data.get("log_level", "WARNING")),
                log_format=LogFormat(data.get("log_format", LogFormat.CONSOLE.value)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(source, str(e)) from e

    @classmethod
    def generate_sample_config(cls) -> str:
        """
        Generate a sample YAML configuration file.

        Returns:
            YAML string for sample configuration
        """
        sample = {
            "fixtures_dir": "test/fixtures",
            "associations": "tmp/fixplan/models.json",
            "reverse_closure": ReverseClosure.ANY_FOREIGN_KEY.value,
            "exclude_tables": [],
            "max_reverse_passes": None,
            "log_level": "WARNING",
            "log_format": LogFormat.CONSOLE.value,
        }
        return yaml.dump(sample, default_flow_style=False, sort_keys=False)
