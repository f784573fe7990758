"""Command line interface for the requirements analyzer.

Commands:

* ``init-db`` -- create the SQLite schema.
* ``tree`` -- print the stored hierarchy.
* ``reset`` -- delete every stored process, subprocess and use case.
* ``serve`` -- run the HTTP API under uvicorn.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from src.analyzer.storage.hierarchy_store import HierarchyStore
from src.shared.config import AnalyzerConfig
from src.shared.constants import ANALYZER_SERVICE_NAME, VERSION
from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import init_analyzer_db
from src.shared.errors import PersistenceError
from src.shared.models.hierarchy import UseCaseKind

app = typer.Typer(name=ANALYZER_SERVICE_NAME, no_args_is_help=True)
_console = Console()

_DB_OPTION = typer.Option(None, "--db", help="SQLite database path (defaults to DATABASE_PATH).")


def _version_callback(value: bool) -> None:
    if value:
        _console.print(f"{ANALYZER_SERVICE_NAME} {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Decompose specifications into processes, subprocesses and use cases."""


def _open_pool(db: Optional[Path]) -> ConnectionPool:
    path = db if db is not None else Path(AnalyzerConfig().database_path)
    pool = ConnectionPool(path)
    init_analyzer_db(pool)
    return pool


@app.command("init-db")
def init_db(db: Optional[Path] = _DB_OPTION) -> None:
    """Create the database schema if it does not exist."""
    pool = _open_pool(db)
    try:
        _console.print(f"[green]SQLite database initialized at[/green] {pool.db_path}")
    finally:
        pool.close()


@app.command("tree")
def show_tree(db: Optional[Path] = _DB_OPTION) -> None:
    """Print the stored hierarchy."""
    pool = _open_pool(db)
    try:
        processes = HierarchyStore(pool).read_all()
    finally:
        pool.close()

    if not processes:
        _console.print("[yellow]No processes stored.[/yellow]")
        return

    root = Tree("[bold]Processes[/bold]")
    for process in processes:
        process_branch = root.add(f"[bold]{process.id}[/bold] {escape(process.name)}")
        for subprocess in process.subprocesses:
            sub_branch = process_branch.add(f"{subprocess.id} {escape(subprocess.name)}")
            for use_case in subprocess.use_cases:
                kind = UseCaseKind(use_case.kind).name.lower()
                sub_branch.add(f"{use_case.id} {escape(use_case.name)} [dim]({kind})[/dim]")
    _console.print(root)


@app.command("reset")
def reset(
    db: Optional[Path] = _DB_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete every stored process, subprocess and use case."""
    if not yes:
        typer.confirm("Delete the whole hierarchy?", abort=True)
    pool = _open_pool(db)
    try:
        HierarchyStore(pool).reset_all()
    except PersistenceError as exc:
        _console.print(f"[red]Reset failed:[/red] {exc.detail}")
        raise typer.Exit(code=1) from exc
    finally:
        pool.close()
    _console.print("[green]Hierarchy deleted.[/green]")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, help="Port (defaults to PORT)."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "src.analyzer.main:app",
        host=host,
        port=port if port is not None else AnalyzerConfig().port,
    )


if __name__ == "__main__":
    app()
