#!/usr/bin/env python3
"""
Roulette Stats - Console

Interactive terminal view of the statistics engine: type the numbers as
they come up and the console redraws the number heat table and the
betting-group table with hits per window, absences, streaks and status.

Usage:
    python stats_console.py [numbers most recent first...]
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from roulette_stats.classification import Status, Temperature
from roulette_stats.engine import SpinSession, StatsEngine, StatsSnapshot
from roulette_stats.models import Color, PROPERTIES, StatsConfig


TEMPERATURE_STYLES = {
    Temperature.VERY_HOT: "bold red",
    Temperature.HOT: "red",
    Temperature.NORMAL: "dim",
    Temperature.COLD: "blue",
    Temperature.VERY_COLD: "bold blue",
}

STATUS_STYLES = {
    Status.ALERT: "bold yellow",
    Status.HOT: "red",
    Status.COLD: "blue",
    Status.NORM: "dim",
}

COLOR_STYLES = {
    Color.RED: "red",
    Color.BLACK: "white on black",
    Color.GREEN: "black on green",
}


class StatsConsole:
    """Terminal front-end for a SpinSession."""

    def __init__(self, config: StatsConfig, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()
        self.session = SpinSession(engine=StatsEngine(config))
        self.logger = logging.getLogger(self.__class__.__name__)

    def load(self, numbers: List[str]) -> bool:
        """Load initial history (most recent first)."""
        result = self.session.add_spins(numbers)
        if not result['success']:
            self.console.print(f"[red]ERRO: {result['error']}[/red]")
            return False
        self.console.print(f"[green]✓ {result['message']}[/green]")
        return True

    def process(self, num_input: str) -> None:
        """Handle one line typed by the user."""
        command = num_input.strip().upper()

        if command == "DESFAZER":
            result = self.session.undo()
        else:
            result = self.session.add_spin(command)

        if not result['success']:
            self.console.print(f"[red]ERRO: {result['error']}[/red]")
            self.logger.warning(result['error'])
            return

        self.render(self.session.snapshot())

    def render(self, snapshot: StatsSnapshot) -> None:
        """Draw the header, the number table and the group table."""
        self._display_header(snapshot)
        self.console.print(self.number_table(snapshot))
        self.console.print(self.group_table(snapshot))

    def _display_header(self, snapshot: StatsSnapshot) -> None:
        header = Text()
        header.append(f"Giros: {snapshot.spins} ", style="bold")
        for outcome in self.session.history[:20]:
            style = COLOR_STYLES[outcome.properties.color]
            header.append(f" {outcome.number} ", style=style)
        self.console.print(header)
        for anomaly in snapshot.anomalies:
            style = "bold red" if anomaly.severity == "critical" else "yellow"
            self.console.print(f"[{style}]⚠ {anomaly.description}[/{style}]")
        self.console.print("─" * 70)

    def number_table(self, snapshot: StatsSnapshot) -> Table:
        table = Table(title="Números", box=None, padding=(0, 1))
        table.add_column("Nº", justify="right")
        for window in self.config.windows:
            table.add_column(f"L{window}", justify="right")
        table.add_column("Ausência", justify="right")
        table.add_column("Máx", justify="right")
        table.add_column("Seq", justify="right")
        table.add_column("Desvio", justify="right")
        table.add_column("Temp.")

        for n in sorted(snapshot.numbers):
            record = snapshot.numbers[n]
            number_style = COLOR_STYLES[PROPERTIES[n].color]
            label = f"[{number_style}]{n:>2}[/{number_style}]"
            if record.just_hit:
                label += " ●"
            table.add_row(
                label,
                *(str(record.hit_count(w)) for w in self.config.windows),
                str(record.absence_now),
                str(record.absence_max),
                str(record.consecutive_now),
                f"{record.deviation:+.1f}",
                f"[{TEMPERATURE_STYLES[record.temperature]}]{record.temperature.value}"
                f"[/{TEMPERATURE_STYLES[record.temperature]}]"
            )
        return table

    def group_table(self, snapshot: StatsSnapshot) -> Table:
        table = Table(title="Grupos", box=None, padding=(0, 1))
        table.add_column("Grupo")
        table.add_column("Seq", justify="right")
        table.add_column("Máx", justify="right")
        table.add_column("Ausência", justify="right")
        table.add_column("Máx", justify="right")
        for window in self.config.windows:
            table.add_column(f"L{window}", justify="right")
        table.add_column("Real%", justify="right")
        table.add_column("Esp%", justify="right")
        table.add_column("Desvio", justify="right")
        table.add_column("Status")

        for record in snapshot.groups:
            style = STATUS_STYLES[record.status]
            table.add_row(
                record.label,
                str(record.consecutive_now),
                str(record.consecutive_max),
                str(record.absence_now),
                str(record.absence_max),
                *(str(record.hit_count(w)) for w in self.config.windows),
                f"{record.actual_percent:.1f}",
                f"{record.expected_percent:.1f}",
                f"{record.deviation:+.1f}",
                f"[{style}]{record.status.value}[/{style}]"
            )
        return table

    def run(self) -> None:
        """Run the main interactive loop."""
        self.console.print(Panel.fit(
            "[bold cyan]Roulette Stats[/bold cyan]\n"
            "[dim]Digite os números conforme caem, 'DESFAZER' para remover o último ou 'SAIR' para encerrar[/dim]",
            border_style="cyan"
        ))

        while True:
            try:
                num_input = self.console.input("[bold]Próximo número: [/bold]")
            except (KeyboardInterrupt, EOFError):
                self.console.print("\n[yellow]Encerrado.[/yellow]")
                break

            if num_input.strip().upper() == "SAIR":
                break
            self.process(num_input)


def setup_logging(level: int = logging.INFO) -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)]
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    setup_logging(logging.WARNING)
    argv = sys.argv[1:] if argv is None else argv

    config_path = Path("roulette_stats.json")
    config = StatsConfig.from_file(config_path) if config_path.exists() else StatsConfig()

    app = StatsConsole(config)
    if argv:
        if not app.load(argv):
            return 1
        app.render(app.session.snapshot())
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
