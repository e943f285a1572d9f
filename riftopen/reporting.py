"""
Terminal reporting for encoded output and the position index.

Hex dumps follow the classic ``0C 4E ...`` layout; index summaries are
rendered as rich tables.
"""

from typing import Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core.entry import Polarity
from .core.index import BalancedIndex
from .pipeline import TransformResult


def hex_dump(data: Iterable[int], limit: Optional[int] = 64) -> str:
    """Upper-case, space separated hex of the first ``limit`` bytes."""
    view = bytes(data)
    if limit is not None:
        view = view[:limit]
    return " ".join(f"{b:02X}" for b in view)


def hex_rows(data: bytes, width: int = 16, limit: Optional[int] = None) -> List[str]:
    """Split a hex dump into rows of ``width`` bytes prefixed with the offset."""
    view = data if limit is None else data[:limit]
    rows = []
    for offset in range(0, len(view), width):
        rows.append(f"{offset:08X}  {hex_dump(view[offset:offset + width], None)}")
    return rows


class HexDumpRenderer:
    """Prints a transform result the way the command-line encoder does."""

    def __init__(self, console: Optional[Console] = None, limit: int = 64):
        self.console = console or Console()
        self.limit = limit

    def summary_line(self, result: TransformResult) -> str:
        return f"Encoded {result.produced} bytes (polarity {result.polarity.pass_name})"

    def render(self, result: TransformResult, panel: bool = False) -> None:
        self.console.print(self.summary_line(result), highlight=False)
        if not panel:
            self.console.print(hex_dump(result.output, self.limit), highlight=False)
            return

        body = Text("\n".join(hex_rows(result.output, limit=self.limit)) or "(empty)")
        title = f"[bold cyan]first {min(self.limit, result.produced)} bytes[/bold cyan]"
        self.console.print(Panel(body, title=title, border_style="cyan"))


class IndexReport:
    """Summary of a position index."""

    def __init__(self, index: BalancedIndex, console: Optional[Console] = None):
        self.index = index
        self.console = console or Console()

    def summary_table(self) -> Table:
        stats = self.index.stats()
        table = Table(title="Position index", show_header=True, header_style="bold cyan")
        table.add_column("Metric")
        table.add_column("Value", justify="right")

        table.add_row("Entries", str(stats.size))
        table.add_row("Height", str(stats.height))
        table.add_row("Root key", "-" if stats.root_key is None else str(stats.root_key))
        table.add_row("Positive", str(stats.positive))
        table.add_row("Negative", str(stats.negative))
        table.add_row("Pruned", f"[red]{stats.pruned}[/red]" if stats.pruned else "0")
        table.add_row("Active streaks", str(stats.active_streaks))
        return table

    def entries_table(self, limit: int = 16) -> Table:
        table = Table(title=f"First {limit} entries", header_style="bold cyan")
        table.add_column("Key", justify="right")
        table.add_column("Value")
        table.add_column("Polarity", justify="center")
        table.add_column("Confidence", justify="right")

        for i, entry in enumerate(self.index):
            if i >= limit:
                break
            style = "dim" if entry.pruned else None
            polarity = entry.polarity.symbol
            if entry.polarity is Polarity.NEGATIVE:
                polarity = f"[yellow]{polarity}[/yellow]"
            table.add_row(
                str(entry.key),
                f"{entry.value:02X}",
                polarity,
                f"{entry.confidence:.2f}",
                style=style,
            )
        return table

    def render(self, entries: int = 0) -> None:
        self.console.print(self.summary_table())
        if entries > 0:
            self.console.print(self.entries_table(entries))
