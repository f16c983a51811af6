"""
Fixture store loading from Rails-style YAML files.

Reads one YAML file per table. A handful of well-known ERB expressions are
evaluated before parsing (fixture identities and the current date/time);
every other ERB tag is blanked rather than evaluated. Files that fail to
parse are skipped and reported without aborting the load.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from fixplan.errors import SourceParseError
from fixplan.fixtures.identity import identify_integer, identify_uuid
from fixplan.fixtures.models import FixtureRecord, FixtureStore
from fixplan.logging import get_logger

logger = get_logger(__name__)

FIXTURE_SUFFIXES = (".yml", ".yaml")

# Labels Rails reserves inside fixture files
RESERVED_LABELS = frozenset({"DEFAULTS", "_fixture"})

_IDENTIFY_UUID = re.compile(
    r"""<%=\s*ActiveRecord::FixtureSet\.identify\(\s*["']([^"']+)["']\s*,\s*:uuid\s*\)\s*-?%>"""
)
_IDENTIFY_INTEGER = re.compile(
    r"""<%=\s*ActiveRecord::FixtureSet\.identify\(\s*["']([^"']+)["']\s*\)\s*-?%>"""
)
_CURRENT_DATE = re.compile(r"<%=\s*Date\.(?:current|today)\.iso8601\s*-?%>")
_CURRENT_TIME = re.compile(r"<%=\s*Time\.(?:now|current)\.iso8601\s*-?%>")
_ANY_ERB = re.compile(r"<%.*?%>")


@dataclass
class LoadResult:
    """Outcome of loading a fixture directory: a partial store plus skipped files."""

    store: FixtureStore
    errors: list[SourceParseError] = field(default_factory=list)
    files_loaded: int = 0

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def warnings(self) -> list[str]:
        return [str(error) for error in self.errors]


class FixtureLoader:
    """Load fixture tables from YAML sources.

    Example:
        >>> loader = FixtureLoader()
        >>> result = loader.load_directory("test/fixtures")
        >>> result.store.has_fixture("accounts", "37s")
        True
    """

    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        """Initialize the loader.

        Args:
            now: Clock used for the current date/time expressions. Defaults to
                UTC wall-clock time.
        """
        self._now = now or (lambda: datetime.now(UTC))

    def evaluate_erb(self, content: str) -> str:
        """Substitute the supported ERB expressions and blank the rest."""
        now = self._now()
        content = _IDENTIFY_UUID.sub(lambda m: identify_uuid(m.group(1)), content)
        content = _IDENTIFY_INTEGER.sub(lambda m: str(identify_integer(m.group(1))), content)
        content = _CURRENT_DATE.sub(now.date().isoformat(), content)
        content = _CURRENT_TIME.sub(now.replace(microsecond=0).isoformat(), content)
        return _ANY_ERB.sub('""', content)

    def parse_table(self, table: str, content: str) -> dict[str, FixtureRecord]:
        """Parse the text of one fixture file into records.

        Raises:
            yaml.YAMLError: If the text is not valid YAML after ERB evaluation.
            ValueError: If the document is not a mapping of fixtures.
        """
        data = yaml.safe_load(self.evaluate_erb(content))
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"expected a mapping of fixtures, got {type(data).__name__}")

        records: dict[str, FixtureRecord] = {}
        for name, fields in data.items():
            name = str(name)
            if fields is None:
                # "acme:" with no columns is still a fixture
                fields = {}
            if name in RESERVED_LABELS or not isinstance(fields, dict):
                continue
            records[name] = FixtureRecord(table=table, name=name, fields=fields)
        return records

    def load_string(self, table: str, content: str) -> LoadResult:
        """Load a single table from fixture text."""
        return self._load_sources([(table, f"<{table}>", lambda: content)])

    def load_directory(self, directory: str | Path) -> LoadResult:
        """Load every fixture file in a directory.

        Args:
            directory: Directory holding one ``<table>.yml`` file per table.

        Returns:
            LoadResult with the loaded store and any per-file parse errors.
        """
        path = Path(directory)
        if not path.is_dir():
            logger.debug("fixture_directory_missing", path=str(path))
            return LoadResult(store=FixtureStore())

        files = sorted(
            f
            for f in path.iterdir()
            if f.is_file() and f.suffix in FIXTURE_SUFFIXES and not f.name.startswith("._")
        )
        return self._load_sources(
            [(f.stem, str(f), lambda f=f: f.read_text(encoding="utf-8")) for f in files]
        )

    def _load_sources(self, sources: list[tuple[str, str, Callable[[], str]]]) -> LoadResult:
        tables: dict[str, dict[str, FixtureRecord]] = {}
        errors: list[SourceParseError] = []

        for table, origin, read in sources:
            try:
                tables[table] = self.parse_table(table, read())
            except (OSError, UnicodeDecodeError, yaml.YAMLError, ValueError) as e:
                error = SourceParseError(origin, str(e))
                errors.append(error)
                logger.warning("fixture_file_skipped", path=origin, table=table, error=str(e))

        return LoadResult(
            store=FixtureStore(tables),
            errors=errors,
            files_loaded=len(tables),
        )


def load_fixtures(directory: str | Path, **kwargs: Any) -> LoadResult:
    """Load a fixture directory with a default loader."""
    return FixtureLoader(**kwargs).load_directory(directory)
