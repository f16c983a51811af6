"""
Error types raised or collected while planning fixtures.

Most conditions degrade gracefully: unparsable fixture files are skipped and
reported, unresolvable references become literals, and cyclic tables fall
back to a deterministic order. Only configuration problems are raised.
"""

from pathlib import Path


class FixplanError(Exception):
    """Base class for fixplan errors."""


class SourceParseError(FixplanError):
    """A fixture file could not be read or parsed.

    Collected by the loader rather than raised; the offending table is
    skipped and the rest of the store still loads.
    """

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to parse fixture file {self.path}: {reason}")


class ConfigError(FixplanError, ValueError):
    """Raised when a configuration or association metadata file is invalid."""

    def __init__(self, source: str | Path, reason: str) -> None:
        self.source = str(source)
        self.reason = reason
        super().__init__(f"Invalid configuration in {self.source}: {reason}")
