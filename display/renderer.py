"""
Rich-based terminal renderer: status line, resource table, help, messages.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Iterable

import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

if TYPE_CHECKING:
    from engine.accrual import GameView, PurchaseResult

from config import PRIMARY_RESOURCE

# Reconfigure stdout for UTF-8 so Rich box-drawing chars work on Windows
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")

console = Console(legacy_windows=False)

HELP_LINES = [
    ("bc <number|all>", "Buy more camps. This will increase the rate at which you create villagers!"),
    ("bt <number|all>", "Buy more towns. This will increase the rate at which you create villagers!"),
    ("buy <name> <number|all>", "Buy any producer by name."),
    ("resources, r", "See your current resource counts and what you can afford."),
    ("reset", "Throw away your civilization and start over."),
    ("exit, e", "Save and cleanly exit the game."),
    ("help, h", "Display this help message."),
]


class Renderer:
    def __init__(self, console_: Console = None):
        self._console = console_ or console

    @property
    def console(self) -> Console:
        return self._console

    def welcome(self) -> None:
        self._console.print("[bold cyan]Welcome to Cividler![/bold cyan] The CLI based idle game.")
        self._console.print('Type [bold]"help"[/bold] to see available commands.')

    def status(self, view: "GameView") -> None:
        parts = [
            f"{name.capitalize()}s: [bold]{count}[/bold]"
            for name, count in view.counts.items()
        ]
        rate = f"[green]+{_fmt_rate(view.production_rate)} {PRIMARY_RESOURCE}s/s[/green]"
        self._console.print("  ".join(parts) + f"  ({rate})")

    def resources(self, view: "GameView", descriptions: Dict[str, str]) -> None:
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("Resource")
        table.add_column("Count", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("Can buy", justify="right")
        table.add_column("Description", style="dim")

        for name, count in view.counts.items():
            cost = view.costs.get(name)
            if cost is None:
                cost_str, buy_str = "-", "-"
            elif not view.unlocked.get(name, True):
                cost_str, buy_str = str(cost), "[red]locked[/red]"
            else:
                cost_str, buy_str = str(cost), str(view.affordable.get(name, 0))
            table.add_row(name, str(count), cost_str, buy_str, descriptions.get(name, ""))

        self._console.print(Panel(
            table,
            title="[bold yellow]Resources[/bold yellow]",
            border_style="yellow",
        ))
        for name, n in view.affordable.items():
            if n > 0 and view.unlocked.get(name, True):
                self._console.print(
                    f"You can buy {n} {name}(s) for a total cost of "
                    f"{n * view.costs[name]} {PRIMARY_RESOURCE}s."
                )

    def help(self) -> None:
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Command", style="bold")
        table.add_column("Effect")
        for cmd, text in HELP_LINES:
            table.add_row(cmd, text)
        self._console.print(Panel(table, title="[bold]Commands[/bold]", border_style="cyan"))

    def purchased(self, result: "PurchaseResult") -> None:
        self._console.print(
            f"[green]You bought {result.quantity} new {result.name}(s)[/green] for "
            f"{result.cost} {result.cost_resource}s. You now have {result.count}, and your "
            f"civilization produces {_fmt_rate(result.production_rate)} {PRIMARY_RESOURCE}s per second."
        )

    def caught_up(self, gains: Dict[str, int], seconds: float) -> None:
        if not gains:
            return
        gained = ", ".join(f"{n} {name}s" for name, n in gains.items())
        self._console.print(
            f"[cyan]While you were away ({_fmt_duration(seconds)}) your civilization gained {gained}.[/cyan]"
        )

    def notices(self, messages: Iterable[str]) -> None:
        for msg in messages:
            self._console.print(f"[bold magenta]{escape(msg)}[/bold magenta]")

    def error(self, msg: str) -> None:
        self._console.print(f"[bold red]{escape(msg)}[/bold red]")

    def warning(self, msg: str) -> None:
        self._console.print(f"[yellow]{escape(msg)}[/yellow]")

    def info(self, msg: str) -> None:
        self._console.print(escape(msg))


def _fmt_rate(rate: float) -> str:
    return str(int(rate)) if float(rate).is_integer() else f"{rate:.2f}"


def _fmt_duration(seconds: float) -> str:
    seconds = int(seconds)
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
