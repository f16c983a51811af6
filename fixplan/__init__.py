"""
fixplan - Fixture dependency planner for Ruby-to-JavaScript test transpilation.

Resolves Rails-style YAML fixtures into an insertion-ordered plan with
reproducible identifiers, so translated tests can materialize their data.

Usage:
    fixplan plan <fixtures_dir> --seed accounts:37s   # Plan for explicit fixtures
    fixplan plan <fixtures_dir> --all                 # Plan every fixture
    fixplan identify <label> --uuid                   # Reproduce a fixture id
    fixplan replacements <fixtures_dir>               # Label replacement map
"""

__version__ = "0.1.0"
