"""Rich terminal formatting helpers."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel

from pomocycle.models import Phase, SessionConfig, SessionReport, format_duration

console = Console()

_PHASE_STYLE: dict[Phase, str] = {
    Phase.FOCUS: "bold cyan",
    Phase.SHORT_BREAK: "green",
    Phase.LONG_BREAK: "bold green",
}

COMMAND_HELP = "p: pause, r: resume, s: show stats, q: quit"


def print_config(config: SessionConfig) -> None:
    """Print the settings a session will run with."""
    unit = config.unit.value
    lines: list[str] = [
        f"Rounds per cycle: {config.rounds}",
        f"Focus: {config.focus} {unit}",
        f"Short break: {config.short} {unit}",
        f"Long break: {config.long} {unit}",
        f"Auto progress: {'on' if config.auto else 'off'}",
    ]
    console.print(Panel("\n".join(lines), title="Pomodoro", border_style="blue"))


def print_report(report: SessionReport, title: str = "Session Stats") -> None:
    """Print the statistics report in a panel."""
    lines = report.lines()
    if not report.ended and not report.paused:
        lines.append(f"Time left in phase: {format_duration(report.phase_remaining)}")
    console.print(Panel("\n".join(lines), title=title, border_style="green"))


def print_phase(phase: Phase) -> None:
    """Announce the phase that just started."""
    style = _PHASE_STYLE[phase]
    console.print(f"[{style}]{phase.label} started.[/{style}]")


def print_prompt(message: str) -> None:
    """Print a prompt the user is expected to answer."""
    console.print(f"[bold]{message}[/bold]")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")
