"""
Hush CLI
========

The main entry point for the Hush CLI.
Runs a recorded diagnostic stream through the suppression engine and
validates filter configuration files.
"""

import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from hush import __version__
from hush.shared.domain.exceptions import ConfigurationError, HushError
from hush.shared.infrastructure.logging import configure_logging, get_logger
from hush.suppression import (
    CollectingSink,
    ConsoleSink,
    DirectiveCollector,
    FilterConfig,
    Outcome,
    Severity,
    SuppressionEngine,
    load_filter_config,
)

app = typer.Typer(
    name="hush",
    help="Suppress host tool diagnostics and find stale suppression directives",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Hush - diagnostic suppression engine."""
    configure_logging(level="DEBUG" if verbose else None)


@app.command()
def version():
    """Show Hush version info."""
    table = Table(show_header=False, box=None)
    table.add_row("Hush", f"[bold green]v{__version__}[/bold green]")
    table.add_row("Python", sys.version.split()[0])
    table.add_row("Platform", sys.platform)

    console.print(Panel(table, title="[bold blue]Hush[/bold blue]", expand=False))


def _load_stream(stream_file: Path) -> list[dict[str, Any]]:
    """Read a recorded diagnostic stream file."""
    try:
        data = json.loads(stream_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {stream_file}: {e}", context={"path": str(stream_file)}) from e

    units = data.get("units") if isinstance(data, dict) else None
    if not isinstance(units, list):
        raise ConfigurationError(f"Expected a 'units' list in {stream_file}", context={"path": str(stream_file)})
    return units


def _position(value: Any) -> Any:
    """JSON positions are offsets or [line, column] pairs."""
    if isinstance(value, list):
        return tuple(value)
    return value


def run_stream(units: list[dict[str, Any]], config: FilterConfig) -> tuple[CollectingSink, dict[Outcome, int]]:
    """
    Replay a recorded stream of units through a fresh engine.

    Each unit carries its directives (collected first) and its diagnostics
    (intercepted in order). Unused directives are reported per unit when
    the configuration enables it.

    Returns:
        The sink holding everything that got through, and outcome counts
    """
    sink = CollectingSink()
    engine = SuppressionEngine(sink, config)
    counts = {outcome: 0 for outcome in Outcome}

    for unit_data in units:
        path = unit_data["path"]

        collector = DirectiveCollector(engine, path)
        for directive in unit_data.get("directives", []):
            spans = directive.get("spans") or [[directive["start"], directive["end"]]]
            collector.add(
                anchor=_position(directive["anchor"]),
                spans=[(_position(s), _position(e)) for s, e in spans],
                raw_pattern=directive.get("pattern"),
                in_macro_expansion=directive.get("inMacroExpansion", False),
            )
        collector.finish()

        for diag in unit_data.get("diagnostics", []):
            outcome = engine.intercept(
                path,
                _position(diag.get("position")),
                Severity.parse(diag.get("severity", "warning")),
                diag["message"],
            )
            counts[outcome] += 1

        engine.report_unused(path)

    for _ in engine.flush_all():
        counts[Outcome.FORWARDED] += 1

    return sink, counts


@app.command("filter")
def filter_stream(
    stream_file: Path = typer.Argument(..., help="Recorded diagnostic stream (JSON)"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Filter configuration (YAML)"),
    check_unused: bool = typer.Option(False, "--check-unused", help="Report unused suppression directives"),
    as_json: bool = typer.Option(False, "--json", help="Print forwarded diagnostics as JSON"),
):
    """
    Run a recorded diagnostic stream through the suppression engine.

    Exits with code 1 if any error reaches the output.

    Example:
        hush filter diagnostics.json --config .hush/suppressions.yaml --check-unused
    """
    if not stream_file.exists():
        console.print(f"[red]Error:[/red] File not found: {stream_file}")
        raise typer.Exit(code=1)

    try:
        config = load_filter_config(config_path=config_file) if config_file else FilterConfig()
        if check_unused and not config.check_unused:
            config = dataclasses.replace(config, check_unused=True)
        units = _load_stream(stream_file)
        sink, counts = run_stream(units, config)
    except HushError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    except (KeyError, TypeError, ValueError) as e:
        console.print(f"[red]Malformed stream:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    if as_json:
        console.print_json(data=[d.to_json() for d in sink.diagnostics])
    else:
        printer = ConsoleSink(console)
        for diagnostic in sink.diagnostics:
            printer.report(diagnostic)

        console.print(
            f"[dim]suppressed:[/dim] {counts[Outcome.SUPPRESSED]}  "
            f"[dim]forwarded:[/dim] {counts[Outcome.FORWARDED]}"
        )

    if sink.count(Severity.ERROR) > 0:
        raise typer.Exit(code=1)


@app.command("check-config")
def check_config(
    config_file: Path = typer.Argument(..., help="Path to filter configuration file"),
):
    """
    Validate a filter configuration file.

    Checks YAML syntax, regex validity, and source roots.

    Example:
        hush check-config .hush/suppressions.yaml
    """
    if not config_file.exists():
        console.print(f"[red]Error:[/red] File not found: {config_file}")
        raise typer.Exit(code=1)

    try:
        config = load_filter_config(config_path=config_file)
    except ConfigurationError as e:
        console.print(f"\n[red]Configuration Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    table = Table(title="Configuration Summary", box=box.ROUNDED, show_header=False)
    table.add_column("Check", style="cyan bold", width=30)
    table.add_column("Value", style="white")

    table.add_row("Global Filters", escape(", ".join(f.text for f in config.global_filters)) or "[dim]none[/dim]")
    table.add_row("Path Filters", escape(", ".join(f.text for f in config.path_filters)) or "[dim]none[/dim]")
    table.add_row("Source Roots", escape(", ".join(str(r) for r in config.source_roots)) or "[dim]none[/dim]")
    table.add_row("Check Unused", "[green]✓ on[/green]" if config.check_unused else "[dim]off[/dim]")
    table.add_row(
        "Severities",
        ", ".join(s.name.lower() for s in sorted(config.suppressible_severities, key=lambda s: s.value)),
    )

    console.print(table)
    console.print("[green]✓ Configuration is valid[/green]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
