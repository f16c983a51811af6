"""
fixplan CLI - Command-line interface for fixture planning.

Provides commands for building fixture plans, reproducing fixture ids and
printing label replacement maps.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from fixplan.config import ConfigLoader, LogFormat, PlannerConfig, ReverseClosure
from fixplan.errors import ConfigError
from fixplan.fixtures.identity import identify_integer, identify_uuid
from fixplan.fixtures.loader import FixtureLoader
from fixplan.fixtures.models import (
    FixtureLabel,
    FixturePlan,
    ForeignKeyLiteral,
    SiblingReference,
)
from fixplan.logging import configure_logging
from fixplan.planning.pipeline import FixturePlanner
from fixplan.planning.seeds import parse_current_attributes

app = typer.Typer(
    name="fixplan",
    help="Fixture dependency planner for Ruby-to-JavaScript test transpilation",
    add_completion=False,
)

console = Console()
# Diagnostics stay off stdout so JSON output remains parseable
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        from fixplan import __version__

        console.print(f"[bold blue]fixplan[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """fixplan - Fixture dependency planner."""
    pass


@app.command()
def plan(
    fixtures_dir: str = typer.Argument(None, help="Directory with one <table>.yml per table"),
    associations: str = typer.Option(
        None, "--associations", "-a", help="Model association metadata (JSON or YAML)"
    ),
    seed: list[str] = typer.Option(
        None, "--seed", "-s", help="Seed fixture as table:name (repeatable)"
    ),
    source: str = typer.Option(None, "--source", help="Ruby test file to scan for fixture calls"),
    helper: str = typer.Option(
        None, "--helper", help="Test helper with Current.<attr> = <fixture> assignments"
    ),
    load_all: bool = typer.Option(False, "--all", help="Plan every fixture in the store"),
    reverse: ReverseClosure = typer.Option(
        None, "--reverse", "-r", help="Reverse closure: any_foreign_key, has_one, none"
    ),
    exclude: list[str] = typer.Option(
        None, "--exclude", "-x", help="Table to leave out of the plan (repeatable)"
    ),
    config_path: str = typer.Option(None, "--config", "-c", help="fixplan YAML configuration"),
    format_: str = typer.Option("console", "--format", "-f", help="Output format: console, json"),
    output: str = typer.Option(None, "--output", "-o", help="Output file for plan JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Verbose output"),
) -> None:
    """
    Build a fixture plan.

    Seeds come from --seed labels and from fixture calls in a --source test
    file (both are merged), or from every fixture with --all.
    """
    config = _load_config(config_path)
    if reverse is not None:
        config.reverse_closure = reverse
    if exclude:
        config.exclude_tables = config.exclude_tables | frozenset(exclude)
    if verbose:
        config.log_level = "DEBUG"
    configure_logging(level=config.log_level, json_format=config.log_format == LogFormat.JSON)

    target_dir = Path(fixtures_dir) if fixtures_dir else config.fixtures_dir
    if target_dir is None or not target_dir.is_dir():
        console.print(f"[red]Error:[/red] Fixture directory not found: {target_dir}")
        raise typer.Exit(1)

    assoc_path = Path(associations) if associations else config.associations_path
    try:
        planner = FixturePlanner.from_paths(target_dir, assoc_path, config)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if helper:
        helper_path = Path(helper)
        if not helper_path.is_file():
            console.print(f"[red]Error:[/red] Test helper not found: {helper}")
            raise typer.Exit(1)
        planner.current_attributes = parse_current_attributes(helper_path.read_text())

    try:
        labels = [FixtureLabel.parse(ref) for ref in seed or []]
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if source:
        source_path = Path(source)
        if not source_path.is_file():
            console.print(f"[red]Error:[/red] Test source not found: {source}")
            raise typer.Exit(1)
        result = planner.plan_for_source(source_path.read_text(), load_all=load_all, seeds=labels)
    elif labels:
        result = planner.plan_for_labels(labels)
    elif load_all:
        result = planner.plan_all()
    else:
        console.print("[red]Error:[/red] Provide --seed, --source or --all")
        raise typer.Exit(1)

    if format_ == "json" or output:
        json_output = json.dumps(result.to_dict(), indent=2, default=str)
        if output:
            Path(output).write_text(json_output)
            console.print(f"[green]✓[/green] Plan written to {output}")
        else:
            typer.echo(json_output)
    else:
        console.print(
            Panel(
                f"[bold]Fixtures:[/bold] {target_dir}\n"
                f"[dim]Reverse closure: {config.reverse_closure.value}[/dim]",
                title="fixplan",
                border_style="blue",
            )
        )
        _display_plan(result, verbose)

    for warning in planner.warnings:
        err_console.print(f"[yellow]⚠[/yellow] {escape(warning)}", soft_wrap=True)


@app.command()
def identify(
    label: str = typer.Argument(..., help="Fixture label"),
    uuid: bool = typer.Option(False, "--uuid", "-u", help="Print the UUID form"),
) -> None:
    """Print the id Rails assigns to a fixture label."""
    if uuid:
        console.print(identify_uuid(label))
    else:
        console.print(str(identify_integer(label)))


@app.command()
def replacements(
    fixtures_dir: str = typer.Argument(..., help="Directory with one <table>.yml per table"),
) -> None:
    """Print the "table:name" -> "table_name" map for every fixture."""
    configure_logging()
    target_dir = Path(fixtures_dir)
    if not target_dir.is_dir():
        console.print(f"[red]Error:[/red] Fixture directory not found: {fixtures_dir}")
        raise typer.Exit(1)

    result = FixtureLoader().load_directory(target_dir)
    typer.echo(json.dumps(result.store.replacements(), indent=2))
    for warning in result.warnings:
        err_console.print(f"[yellow]⚠[/yellow] {escape(warning)}", soft_wrap=True)


@app.command("init")
def init_config(
    output: str = typer.Option("fixplan.yml", "--output", "-o", help="Config file to write"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a sample configuration file."""
    path = Path(output)
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {output} already exists (use --force)")
        raise typer.Exit(1)
    path.write_text(ConfigLoader.generate_sample_config())
    console.print(f"[green]✓[/green] Sample configuration written to {output}")


def _load_config(config_path: str | None) -> PlannerConfig:
    if not config_path:
        return PlannerConfig()
    try:
        return ConfigLoader.from_yaml(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


def _display_plan(result: FixturePlan, verbose: bool) -> None:
    """Display a fixture plan in console format."""
    if result.is_empty:
        console.print("[dim]No fixtures referenced; no setup needed.[/dim]")
        return

    table = Table(title=f"Fixture Plan ({len(result.fixtures)} fixtures)", show_header=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Fixture", style="cyan")
    table.add_column("Model")
    table.add_column("References")

    for position, fixture in enumerate(result.fixtures, start=1):
        refs = []
        for field in fixture.fields:
            if isinstance(field, SiblingReference):
                refs.append(f"{field.column} → {field.target.ref}")
            elif isinstance(field, ForeignKeyLiteral):
                refs.append(f"[yellow]{field.column} = {field.identifier}[/yellow]")
        table.add_row(str(position), fixture.label.ref, fixture.model_name, "\n".join(refs))

    console.print(table)

    if result.back_references:
        console.print("\n[bold]Back references:[/bold]")
        for ref in result.back_references:
            console.print(f"  {ref.parent.ref}.{ref.association} = {ref.child.ref}")

    if result.current_attributes:
        console.print("\n[bold]Current attributes:[/bold]")
        for attr in result.current_attributes:
            console.print(f"  Current.{attr.attribute} = {attr.label.ref}")

    if verbose:
        console.print("\n[bold]Replacements:[/bold]")
        for ref, key in result.replacements.items():
            console.print(f"  [dim]{ref}[/dim] → {key}")

    if result.defer_foreign_keys:
        console.print("\n[dim]Foreign-key enforcement is deferred around the inserts.[/dim]")


if __name__ == "__main__":
    app()
