"""
metaforge command line.

Operates on a project directory containing metaforge.toml:

    metaforge validate [PATH]        resolve every batch, report errors/warnings
    metaforge build [PATH]           resolve and append documents to the output file
    metaforge inspect CLASS [PATH]   show the effective properties of a class
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from metaforge._version import get_version
from metaforge.core.emitter import JsonLinesSink
from metaforge.core.errors import BatchError, MetaforgeError
from metaforge.core.loader import ProjectBuild, build_project
from metaforge.core.manifest import MANIFEST_FILE, ProjectManifest, load_manifest

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(
    help="""metaforge - declarative domain-model composition

Project commands operate on a directory containing metaforge.toml
(current directory by default).
""",
    no_args_is_help=True,
)

console = Console()

# Set by the main callback; overrides the manifest's [logging] level
_log_level_override: str | None = None


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"metaforge version {get_version()}")
        typer.echo(f"  Python:    {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:  {platform.system()} {platform.release()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            envvar="METAFORGE_LOG_LEVEL",
            help="Logging level (overrides [logging] level in metaforge.toml)",
        ),
    ] = None,
) -> None:
    """metaforge CLI main callback for global options."""
    global _log_level_override
    _log_level_override = log_level.upper() if log_level else None


def _configure_logging(manifest: ProjectManifest | None) -> None:
    level_name = _log_level_override or (manifest.logging.level if manifest else "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=LOG_FORMAT,
    )


def _load_project(path: Path) -> ProjectBuild:
    """Load the manifest, configure logging, and build every batch."""
    root = path.resolve()
    manifest = load_manifest(root / MANIFEST_FILE)
    _configure_logging(manifest)
    return build_project(root)


def _print_batch_error(error: BatchError) -> None:
    typer.echo("Validation failed:\n", err=True)
    for err in error.errors:
        typer.echo(f"ERROR: [{err.code}] {err}", err=True)


def _print_warnings(warnings: list[str]) -> None:
    if warnings:
        typer.echo("Validation warnings:\n")
        for warn in warnings:
            typer.echo(f"WARNING: {warn}")


@app.command()
def validate(
    path: Annotated[Path, typer.Argument(help="Project directory")] = Path("."),
) -> None:
    """
    Resolve every schema batch of the project without writing anything.
    """
    try:
        project = _load_project(path)
    except BatchError as e:
        _print_batch_error(e)
        raise typer.Exit(code=1)
    except MetaforgeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    _print_warnings(project.warnings)
    typer.echo(
        f"OK: {len(project.results)} batch(es), {len(project.documents)} document(s) resolved."
    )


@app.command()
def build(
    path: Annotated[Path, typer.Argument(help="Project directory")] = Path("."),
    out: Annotated[
        Path | None,
        typer.Option("--out", "-o", help="Output file (default: [output] path in metaforge.toml)"),
    ] = None,
    clean: Annotated[
        bool, typer.Option("--clean", help="Remove the output file before writing")
    ] = False,
) -> None:
    """
    Resolve every schema batch and append the documents to a JSON Lines file.

    Documents already present in the output are not written again.
    """
    try:
        project = _load_project(path)
    except BatchError as e:
        _print_batch_error(e)
        raise typer.Exit(code=1)
    except MetaforgeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    output = out if out is not None else project.manifest.output_path
    if clean and output.exists():
        output.unlink()

    sink = JsonLinesSink(output)
    try:
        # Every batch must fit before any of them is written
        sink.check(project.documents)
        written = sum(result.commit(sink) for result in project.results)
    except MetaforgeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    _print_warnings(project.warnings)
    typer.echo(f"Wrote {written} document(s) to {output}")


@app.command()
def inspect(
    class_id: Annotated[str, typer.Argument(help="Class or mixin id")],
    path: Annotated[Path, typer.Argument(help="Project directory")] = Path("."),
) -> None:
    """
    Show the effective properties of a class, with the class that declares each.
    """
    try:
        project = _load_project(path)
    except BatchError as e:
        _print_batch_error(e)
        raise typer.Exit(code=1)
    except MetaforgeError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    model = project.model
    graph = model.graph if model is not None else None
    if graph is None or class_id not in graph:
        typer.echo(f"Class not found: {class_id}", err=True)
        raise typer.Exit(code=1)

    table = Table(title=class_id)
    table.add_column("Property")
    table.add_column("Type")
    table.add_column("Declared on", style="dim")
    table.add_column("Flags")

    for name, prop in graph.effective_properties(class_id).items():
        type_text = prop.type.kind.value
        if prop.type.of:
            type_text += f" -> {prop.type.of}"
        flags = [
            flag
            for flag, enabled in (
                ("indexed", prop.is_indexed),
                ("read-only", prop.read_only),
                ("hidden", prop.hidden),
            )
            if enabled
        ]
        table.add_row(name, type_text, graph.property_owner(class_id, name) or "", ", ".join(flags))

    console.print(table)
    console.print(f"\n[dim]Ancestors: {' -> '.join(graph.ancestors(class_id))}[/dim]")


def main() -> None:
    app(standalone_mode=True)


if __name__ == "__main__":
    main()
