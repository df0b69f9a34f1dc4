"""Console output helpers shared by every stage.

Rich decides whether the stream is a terminal and drops the color codes when
it is not (and when NO_COLOR is set), so callers never branch on it.
"""
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def step(msg: str) -> None:
    console.print()
    console.print(Rule(f"[bold magenta]==>[/] [bold]{escape(msg)}[/]", style="magenta", align="left"))


def info(msg: str) -> None:
    console.print(f"[cyan]\\[*][/] {escape(msg)}")


def ok(msg: str) -> None:
    console.print(f"[green]\\[✓][/] {escape(msg)}")


def warn(msg: str) -> None:
    console.print(f"[yellow]\\[!][/] {escape(msg)}")


def error(msg: str) -> None:
    err_console.print(f"[bold red]\\[x][/] {escape(msg)}")


def dry(msg: str) -> None:
    console.print(f"  [dim]DRY-RUN:[/] {escape(msg)}")


def running(msg: str) -> None:
    console.print(f"  [cyan]→[/] [dim]{escape(msg)}[/]")
