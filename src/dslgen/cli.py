"""CLI interface for dslgen - widget attribute DSL generator."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import GeneratorConfig, find_config_file, load_config
from .errors import DslGenError
from .generator import Generator
from .models import Analysis

app = typer.Typer(
    name="dslgen",
    help="Generate a typed attribute DSL from a widget class library.",
    no_args_is_help=True,
)

console = Console()


def _build_config(
    config_file: Path | None,
    archives: list[Path] | None,
    dependencies: list[Path] | None,
    root: str | None,
    package: str | None,
    class_name: str | None,
    output: Path | None,
    quirks_module: str | None,
) -> GeneratorConfig:
    """Load the config file (explicit or discovered) and apply CLI overrides."""
    try:
        if config_file is None:
            config_file = find_config_file(Path.cwd())
        return load_config(
            config_file,
            archives=archives,
            dependencies=dependencies,
            root=root,
            package=package,
            class_name=class_name,
            output_dir=output,
            quirks_module=quirks_module,
        )
    except DslGenError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


_CONFIG_OPTION = typer.Option(
    None, "--config", "-c",
    help="Config file (dslgen.toml or pyproject.toml). Discovered in the current directory by default.",
    exists=True, dir_okay=False,
)
_ARCHIVE_OPTION = typer.Option(
    None, "--archive", "-a",
    help="Descriptor archive to scan (repeatable).",
    exists=True, dir_okay=False,
)
_DEPENDENCY_OPTION = typer.Option(
    None, "--dependency", "-d",
    help="Descriptor archive used only for resolution (repeatable).",
    exists=True, dir_okay=False,
)
_ROOT_OPTION = typer.Option(None, "--root", help="Binary name of the root widget type.")
_PACKAGE_OPTION = typer.Option(None, "--package", help="Package of the generated class.")
_CLASS_NAME_OPTION = typer.Option(None, "--class-name", help="Name of the generated class.")
_QUIRKS_OPTION = typer.Option(
    None, "--quirks-module",
    help="Python quirks table as 'package.module:NAME'.",
)


@app.command("generate")
def generate_command(
    config_file: Optional[Path] = _CONFIG_OPTION,
    archives: Optional[List[Path]] = _ARCHIVE_OPTION,
    dependencies: Optional[List[Path]] = _DEPENDENCY_OPTION,
    root: Optional[str] = _ROOT_OPTION,
    package: Optional[str] = _PACKAGE_OPTION,
    class_name: Optional[str] = _CLASS_NAME_OPTION,
    output: Optional[Path] = typer.Option(
        None, "--output", "-o",
        help="Output source directory.",
    ),
    quirks_module: Optional[str] = _QUIRKS_OPTION,
    stdout: bool = typer.Option(
        False, "--stdout",
        help="Print the generated source instead of writing it.",
    ),
) -> None:
    """Generate the DSL source file."""
    config = _build_config(
        config_file, archives, dependencies, root, package, class_name, output, quirks_module,
    )

    try:
        result = Generator(config).run(write=not stdout)
    except DslGenError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if stdout:
        print(result.source, end="")
        return

    _print_warnings(result.analysis)
    console.print("\n[green]Generated successfully![/green]")
    console.print(f"  Output: {result.output_path}")
    console.print(f"  Classes: {len(result.unit.factories)}")
    console.print(f"  Attributes: {len(result.unit.cases)}")
    console.print(f"  Wrappers: {len(result.unit.wrappers)}")


@app.command("inspect")
def inspect_command(
    config_file: Optional[Path] = _CONFIG_OPTION,
    archives: Optional[List[Path]] = _ARCHIVE_OPTION,
    dependencies: Optional[List[Path]] = _DEPENDENCY_OPTION,
    root: Optional[str] = _ROOT_OPTION,
    quirks_module: Optional[str] = _QUIRKS_OPTION,
    json_output: bool = typer.Option(
        False, "--json",
        help="Output as JSON instead of formatted text.",
    ),
) -> None:
    """Show catalog classes and their attributes (dry run)."""
    # package/class name only matter for output; inspect needs placeholders
    config = _build_config(
        config_file, archives, dependencies, root, "dslgen.inspect", "Inspect", None, quirks_module,
    )

    try:
        analysis = Generator(config).analyze()
    except DslGenError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(analysis.to_dict(), indent=2))
    else:
        _print_analysis(analysis)


def _print_analysis(analysis: Analysis) -> None:
    """Pretty print the catalog and attribute groups."""
    console.print(Panel.fit(
        f"[bold]Catalog[/bold]\n"
        f"Root: {analysis.root.canonical_name}\n"
        f"Classes: {len(analysis.classes)}",
        title="dslgen",
    ))

    if not analysis.classes:
        console.print("\n[yellow]No eligible widget classes found.[/yellow]")
        _print_warnings(analysis)
        return

    tree = Tree("[bold]Widget Classes[/bold]")
    excluded = set(analysis.excluded_classes)
    for cls in analysis.classes:
        label = f"[cyan]{cls.canonical_name}[/cyan]"
        if cls.is_abstract:
            label += " [dim](abstract)[/dim]"
        if cls.canonical_name in excluded:
            label += " [yellow]excluded by quirks[/yellow]"
        branch = tree.add(label)
        for candidate in analysis.candidates_for(cls):
            color = "magenta" if candidate.is_listener else "green"
            node = f"[{color}]{candidate.name}[/{color}]({candidate.value_type.simple_name})"
            if candidate.is_nullable:
                node += " [dim]nullable[/dim]"
            branch.add(node)
    console.print(tree)

    console.print()
    table = Table(title="Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green")
    table.add_row("Classes", str(len(analysis.classes)))
    table.add_row("Attributes", str(len(analysis.groups)))
    table.add_row("Branches", str(sum(len(g.candidates) for g in analysis.groups)))
    table.add_row("  listeners", str(sum(
        1 for g in analysis.groups for c in g.candidates if c.is_listener
    )))
    table.add_row("Eliminated overrides", str(sum(len(g.eliminated) for g in analysis.groups)))
    console.print(table)

    _print_warnings(analysis)


def _print_warnings(analysis: Analysis) -> None:
    if not analysis.warnings:
        return
    console.print()
    console.print("[yellow]Warnings:[/yellow]")
    for warning in analysis.warnings:
        loc = warning.class_name or "-"
        console.print(f"  [{warning.code}] {loc}: {warning.message}", markup=False)


@app.command("version")
def version_command() -> None:
    """Show version information."""
    console.print(f"dslgen version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
