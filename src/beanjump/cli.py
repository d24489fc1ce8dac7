import asyncio
import json
import logging

from dataclasses import asdict
from pathlib import Path
from rich.console import Console
from typing import Optional

import typer

from beanjump import __version__
from beanjump.indexer import ProjectIndexer
from beanjump.models import Candidate, UseSite

app = typer.Typer(
    help="beanjump - navigate from Spring injection points to bean definitions",
    no_args_is_help=True,
)

console = Console()


def _load_project(root: Path) -> ProjectIndexer:
    if not root.is_dir():
        raise FileNotFoundError(f"Project root not found: {root}")
    indexer = ProjectIndexer(root)
    indexer.build()
    return indexer


def _parse_location(location: str) -> tuple[Path, int]:
    """Split "path/File.java:LINE" (1-indexed line) into a path and 0-indexed line."""
    if ":" not in location:
        raise ValueError(f"Expected FILE:LINE, got '{location}'")
    file_path, line_text = location.rsplit(":", 1)
    try:
        line = int(line_text)
    except ValueError:
        raise ValueError(f"Invalid line number: '{line_text}'")
    if line < 1:
        raise ValueError(f"Line numbers start at 1, got {line}")
    return Path(file_path), line - 1


def _use_site_output(use_site: UseSite, candidates: list[Candidate]) -> dict:
    return {
        "use_site": asdict(use_site),
        "candidates": [
            {
                "name": c.declaration.name,
                "type": c.declaration.type,
                "score": c.score,
                "reason": c.reason.value,
                "label": c.display_label,
                "detail": c.display_detail,
                "location": asdict(c.declaration.location),
            }
            for c in candidates
        ],
    }


@app.command()
def index(root: Path = typer.Argument(Path("."), help="Project root to index")):
    """Index a project and print declaration, use-site and file counts."""
    try:
        indexer = _load_project(root)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    typer.echo(json.dumps(asdict(indexer.index.stats()), indent=2))


@app.command()
def beans(
    root: Path = typer.Argument(Path("."), help="Project root to index"),
    type_name: Optional[str] = typer.Option(None, "--type", "-t", help="Only beans of this type"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only the bean with this name"),
):
    """List bean declarations, optionally filtered by type or name."""
    try:
        indexer = _load_project(root)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    if name is not None:
        found = indexer.index.by_name(name)
        declarations = [found] if found is not None else []
    elif type_name is not None:
        declarations = indexer.index.by_type(type_name)
    else:
        declarations = indexer.index.declarations()

    if name is not None and type_name is not None:
        declarations = [d for d in declarations if indexer.resolver.is_compatible(d, type_name)]

    typer.echo(json.dumps([asdict(d) for d in declarations], indent=2))


@app.command()
def resolve(
    location: str = typer.Argument(..., help="FILE:LINE of an injection point (line is 1-indexed)"),
    root: Path = typer.Option(Path("."), "--root", "-r", help="Project root"),
):
    """Resolve the injection points on a source line to candidate beans.

    Examples:
        beanjump resolve src/main/java/com/example/web/UserController.java:18
    """
    try:
        file_path, line = _parse_location(location)
        indexer = _load_project(root)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    if not file_path.is_absolute():
        file_path = indexer.root / file_path

    results = indexer.resolve_at(file_path, line)
    if not results:
        typer.echo(f"Error: No injection point at {location}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps([_use_site_output(u, c) for u, c in results], indent=2))


@app.command()
def dump(root: Path = typer.Argument(Path("."), help="Project root to index")):
    """Print the serialized index payload."""
    try:
        indexer = _load_project(root)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=2)

    typer.echo(json.dumps(indexer.index.serialize(), indent=2))


@app.command()
def mcp_server():
    """Start the MCP server exposing bean navigation tools.

    The server wraps the beanjump CLI and talks JSON-RPC over stdio.
    """
    from beanjump.mcp_server import main

    asyncio.run(main())


def _version_callback(value: bool):
    """Show version and exit."""
    if value:
        console.print(f"beanjump version {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log indexing progress to stderr"),
):
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
