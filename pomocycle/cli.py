"""pomocycle CLI -- a Pomodoro focus timer for the terminal."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from pomocycle import config as cfg
from pomocycle import display
from pomocycle.driver import Driver
from pomocycle.models import Command, TimeUnit
from pomocycle.session import Session

log = logging.getLogger(__name__)

app = typer.Typer(
    name="pomocycle",
    help="Cycle through focus and break intervals, one round at a time.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    """Send debug logs to stderr when --verbose is given."""
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(name)s: %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "value"
    return f"Invalid {field}: {first['msg']}"


def _end_unstarted(session: Session) -> None:
    """Finalize a session that never began and print its (empty) report."""
    session.end_session()
    display.print_report(session.report())


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------


@app.command()
def start(
    rounds: Optional[int] = typer.Option(None, "--rounds", help="Focus rounds per cycle/long break"),
    short: Optional[int] = typer.Option(None, "--short", help="Short break length"),
    long: Optional[int] = typer.Option(None, "--long", help="Long break length"),
    focus: Optional[int] = typer.Option(None, "--focus", help="Focus session length"),
    auto: bool = typer.Option(False, "--auto", help="Move on to the next phase without waiting for enter"),
    seconds: bool = typer.Option(False, "--seconds", help="Count durations in seconds instead of minutes"),
    tick: Optional[float] = typer.Option(None, "--tick", help="Seconds between clock checks"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Start a focus session."""
    _configure_logging(verbose)
    try:
        settings = cfg.with_overrides(
            cfg.load_config(),
            rounds=rounds,
            short=short,
            long=long,
            focus=focus,
            auto=auto or None,
            seconds=seconds or None,
            tick_interval=tick,
        )
        session_config = cfg.session_config(settings)
    except ValidationError as exc:
        display.print_warning(_validation_message(exc))
        raise typer.Exit(2)

    display.print_config(session_config)
    session = Session()
    display.print_prompt("Press enter to begin...")
    line = sys.stdin.readline()
    if not line:
        display.print_warning("Input closed before the session started.")
        _end_unstarted(session)
        raise typer.Exit(1)
    if line.strip().lower() == Command.QUIT.value:
        _end_unstarted(session)
        raise typer.Exit(0)

    session.init(session_config)
    driver = Driver(session, tick_interval=settings.tick_interval)
    exit_code = driver.run(sys.stdin.readline)
    log.debug("Session finished with exit code %d", exit_code)
    if exit_code:
        raise typer.Exit(exit_code)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@app.command()
def config(
    rounds: Optional[int] = typer.Option(None, "--rounds", help="Default focus rounds per cycle"),
    short: Optional[int] = typer.Option(None, "--short", help="Default short break length"),
    long: Optional[int] = typer.Option(None, "--long", help="Default long break length"),
    focus: Optional[int] = typer.Option(None, "--focus", help="Default focus length"),
    auto: bool = typer.Option(False, "--auto", help="Auto progress by default"),
    manual: bool = typer.Option(False, "--manual", help="Wait for enter between phases by default"),
    unit: Optional[TimeUnit] = typer.Option(None, "--unit", help="Default time unit"),
    tick: Optional[float] = typer.Option(None, "--tick", help="Default seconds between clock checks"),
    reset: bool = typer.Option(False, "--reset", help="Reset to the built-in defaults"),
    show: bool = typer.Option(False, "--show", help="Show current defaults"),
) -> None:
    """Save default settings for ``start``."""
    changes = {
        "rounds": rounds,
        "short": short,
        "long": long,
        "focus": focus,
        "auto": True if auto else (False if manual else None),
        "seconds": None if unit is None else unit is TimeUnit.SECONDS,
        "tick_interval": tick,
    }
    if reset:
        cfg.reset_config()
        display.print_success("Reset to default settings.")
    elif any(value is not None for value in changes.values()):
        try:
            updated = cfg.update_config(**changes)
        except ValidationError as exc:
            display.print_warning(_validation_message(exc))
            raise typer.Exit(2)
        display.print_success("Saved defaults.")
        display.print_config(cfg.session_config(updated))
    elif show:
        current = cfg.load_config()
        display.print_config(cfg.session_config(current))
        display.print_info(f"Clock check every {current.tick_interval:g}s")
    else:
        display.print_info("Use --show, --reset, or pass the settings to save.")
