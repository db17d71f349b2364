"""Command line interface for docsidecar."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.pretty import Pretty
from rich.table import Table

from docsidecar.config import PlacementMode, SidecarConfig
from docsidecar.sidecar.paths import (
    doc_sidecar_file,
    file_from_history,
    history_path,
    name_from_history,
    path_from_history,
    sidecar_dir,
    sidecar_file,
)
from docsidecar.sidecar.session import open_doc_settings, update_location
from docsidecar.utils import lualiteral
from docsidecar.utils.files import is_dir, is_file


console = Console()
app = typer.Typer(help="docsidecar - per-document settings stored next to your books")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(mode: PlacementMode, home: Optional[Path]) -> SidecarConfig:
    return SidecarConfig(placement_mode=mode, data_dir=home)


def _parse_value(value: str):
    try:
        return lualiteral.loads("return " + value)
    except lualiteral.LuaLiteralError:
        # anything that is not a literal is taken as a plain string
        return value


@app.command()
def paths(
    document: Path = typer.Argument(..., help="Document path", resolve_path=True),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show where the settings of a document may live."""
    _setup_logging(verbose)
    config = _build_config(mode, home)
    doc_path = str(document)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Location")
    table.add_column("Path")
    table.add_column("Exists")

    rows = [
        ("doc folder dir", sidecar_dir(doc_path, PlacementMode.DOC_FOLDER, config), is_dir),
        ("doc folder file", sidecar_file(doc_path, PlacementMode.DOC_FOLDER, config), is_file),
        ("central dir", sidecar_dir(doc_path, PlacementMode.CENTRAL_DIR, config), is_dir),
        ("central file", sidecar_file(doc_path, PlacementMode.CENTRAL_DIR, config), is_file),
        ("history file", history_path(doc_path, config), is_file),
    ]
    for label, path, probe in rows:
        table.add_row(label, escape(path), "yes" if probe(path) else "no")
    console.print(table)

    current = doc_sidecar_file(doc_path, config)
    console.print(f"Settings file: [bold]{escape(current or 'none')}[/bold]")


@app.command()
def show(
    document: Path = typer.Argument(..., help="Document path", resolve_path=True),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the settings of a document."""
    _setup_logging(verbose)
    doc_settings = open_doc_settings(str(document), _build_config(mode, home))
    if doc_settings.source_candidate is None:
        console.print("[yellow]No settings found.[/yellow]")
    else:
        console.print(f"Read from [bold]{escape(doc_settings.source_candidate)}[/bold]")
    console.print(Pretty(doc_settings.data))


@app.command("set")
def set_setting(
    document: Path = typer.Argument(..., help="Document path", resolve_path=True),
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="Lua literal, or a plain string"),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Change one setting of a document and save it."""
    _setup_logging(verbose)
    doc_settings = open_doc_settings(str(document), _build_config(mode, home))
    doc_settings.save_setting(key, _parse_value(value))
    directory = doc_settings.flush()
    if directory is None:
        console.print("[red]Settings could not be saved.[/red]")
        raise typer.Exit(code=1)
    console.print(f"Saved to [bold]{escape(directory)}[/bold]")


@app.command()
def purge(
    document: Path = typer.Argument(..., help="Document path", resolve_path=True),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Remove all settings and custom assets of a document."""
    _setup_logging(verbose)
    doc_settings = open_doc_settings(str(document), _build_config(mode, home))
    removed = len(doc_settings.candidates)
    doc_settings.purge()
    console.print(f"Purged {removed} settings files.")


@app.command()
def move(
    document: Path = typer.Argument(..., help="Current document path", resolve_path=True),
    new_document: Path = typer.Argument(..., help="New document path", resolve_path=True),
    copy: bool = typer.Option(False, "--copy", help="Keep the settings of the original"),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Carry settings and custom assets over to a renamed or copied document."""
    _setup_logging(verbose)
    directory = update_location(str(document), str(new_document), _build_config(mode, home), copy=copy)
    if directory is None:
        console.print("[yellow]Nothing to move.[/yellow]")
        return
    console.print(f"Settings now in [bold]{escape(directory)}[/bold]")


@app.command()
def forget(
    document: Path = typer.Argument(..., help="Deleted document path", resolve_path=True),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Drop everything stored for a deleted document."""
    _setup_logging(verbose)
    update_location(str(document), None, _build_config(mode, home))
    console.print("Done.")


@app.command()
def cover(
    document: Path = typer.Argument(..., help="Document path", resolve_path=True),
    image: Path = typer.Argument(..., help="Cover image", exists=True, dir_okay=False, resolve_path=True),
    mode: PlacementMode = typer.Option(PlacementMode.DOC_FOLDER, "--mode", help="Where sidecar directories are created"),
    home: Optional[Path] = typer.Option(None, "--home", help="Data directory holding docsettings/ and history/"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Install a custom cover image for a document."""
    _setup_logging(verbose)
    doc_settings = open_doc_settings(str(document), _build_config(mode, home))
    if not doc_settings.flush_custom_cover(str(image)):
        console.print("[red]Cover could not be saved.[/red]")
        raise typer.Exit(code=1)
    console.print(f"Cover saved as [bold]{escape(doc_settings.cover_file() or '')}[/bold]")


@app.command()
def history(
    name: str = typer.Argument(..., help="Legacy history file name"),
) -> None:
    """Decode a legacy history file name."""
    document = file_from_history(name)
    if document is None:
        raise typer.BadParameter(f"Not a history file name: {name}")
    console.print(f"Directory: {escape(path_from_history(name))}")
    console.print(f"Name: {escape(name_from_history(name))}")
    console.print(f"Document: [bold]{escape(document)}[/bold]")
