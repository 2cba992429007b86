"""CLI interface for localstore."""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from localstore.consts import DEFAULT_CAPACITY
from localstore.errors import StoreError
from localstore.store import LocalStore

app = typer.Typer(
    name="localstore",
    help="localstore - embedded filesystem key-value store",
)

console = Console()

PathOption = typer.Option(None, "--path", "-p", help="Store directory (default: ~/localDataStore)")
CapacityOption = typer.Option(DEFAULT_CAPACITY, "--capacity", help="Store quota in bytes")


def _format_bytes(size: int) -> str:
    """Human-readable byte count."""
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def _open_store(path: Path | None, capacity: int) -> LocalStore:
    try:
        return LocalStore(path=path, capacity=capacity)
    except StoreError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@app.command()
def put(
    key: str = typer.Argument(..., help="Key (1-32 bytes)"),
    value: str = typer.Argument(..., help="JSON document"),
    path: Path = PathOption,
    capacity: int = CapacityOption,
) -> None:
    """Store a JSON document under a new key."""
    try:
        document = json.loads(value)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Value is not valid JSON: {escape(str(e))}")
        raise typer.Exit(1)

    with _open_store(path, capacity) as store:
        try:
            store.create(key, document)
        except StoreError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    console.print(f"[green]Stored[/green] {escape(key)}")


@app.command()
def get(
    key: str = typer.Argument(..., help="Key to read"),
    path: Path = PathOption,
    capacity: int = CapacityOption,
) -> None:
    """Print the document stored under a key."""
    with _open_store(path, capacity) as store:
        try:
            document = store.read(key)
        except StoreError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    console.print_json(data=document)


@app.command()
def delete(
    key: str = typer.Argument(..., help="Key to delete"),
    path: Path = PathOption,
    capacity: int = CapacityOption,
) -> None:
    """Delete the entry stored under a key."""
    with _open_store(path, capacity) as store:
        try:
            store.delete(key)
        except StoreError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    console.print(f"[green]Deleted[/green] {escape(key)}")


@app.command()
def exists(
    key: str = typer.Argument(..., help="Key to look up"),
    path: Path = PathOption,
    capacity: int = CapacityOption,
) -> None:
    """Check whether a key exists. Exits with 1 if it does not."""
    with _open_store(path, capacity) as store:
        found = store.exists(key)

    if found:
        console.print(f"{escape(key)}: [green]present[/green]")
    else:
        console.print(f"{escape(key)}: [yellow]absent[/yellow]")
        raise typer.Exit(1)


@app.command()
def info(
    path: Path = PathOption,
    capacity: int = CapacityOption,
) -> None:
    """Show store location and usage."""
    with _open_store(path, capacity) as store:
        stats = store.stats()
        keys = store.storage.keys()

    table = Table(title="Store Summary")
    table.add_column("Property", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Path", stats.path)
    table.add_row("Entries", str(stats.entry_count))
    table.add_row("Used", _format_bytes(stats.used_bytes))
    table.add_row("Capacity", _format_bytes(stats.capacity))

    usage_color = "green" if stats.usage_percent < 70 else "yellow" if stats.usage_percent < 90 else "red"
    table.add_row("Usage", f"[{usage_color}]{stats.usage_percent:.2f}%[/{usage_color}]")
    console.print(table)

    if keys:
        shown = ", ".join(escape(k) for k in keys[:10])
        more = f" [dim]... and {len(keys) - 10} more[/dim]" if len(keys) > 10 else ""
        console.print(f"\nKeys: {shown}{more}")


if __name__ == "__main__":
    app()
