"""Console helpers shared by CLI commands."""

from rich.console import Console
from rich.markup import escape

console = Console()


def success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {escape(message)}")


def info(message: str) -> None:
    console.print(f"[cyan]•[/cyan] {escape(message)}")


def error(message: str) -> None:
    console.print(f"[bold red]✗[/bold red] {escape(message)}")
