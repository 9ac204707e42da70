"""Single-threaded event loop that owns the session.

Clock ticks and lines typed by the user are both posted to one queue and
handled in arrival order by :meth:`Driver.run`, so the session is only ever
touched from one thread. Waiting for the user to confirm the next phase is a
flag on the driver rather than a blocking call, which lets quitting (or a
closed input stream) cancel it.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from rich.markup import escape

from pomocycle import display
from pomocycle.clock import Ticker
from pomocycle.models import Command
from pomocycle.session import InvalidStateError, Session

log = logging.getLogger(__name__)


class EventKind(str, enum.Enum):
    """Kinds of messages delivered to the driver."""

    TICK = "tick"
    INPUT = "input"
    INPUT_CLOSED = "input_closed"


@dataclass(frozen=True)
class Event:
    kind: EventKind
    line: str = ""
    error: Optional[BaseException] = None


class Driver:
    """Route ticks and commands to a :class:`Session`."""

    def __init__(self, session: Session, tick_interval: float = 1.0) -> None:
        self.session = session
        self.tick_interval = tick_interval
        self.events: queue.Queue[Event] = queue.Queue()
        self.awaiting_confirmation = False
        self.exit_code = 0
        self.reader: Optional[threading.Thread] = None
        self._stopped = threading.Event()

    def post(self, event: Event) -> None:
        """Queue an event. Safe to call from any thread."""
        self.events.put(event)

    # ------------------------------------------------------------------
    # Event handling (driver thread only)
    # ------------------------------------------------------------------

    def dispatch(self, event: Event) -> bool:
        """Handle one event. Returns False when the loop should stop."""
        if event.kind is EventKind.TICK:
            self.handle_tick()
            return True
        if event.kind is EventKind.INPUT:
            return self.handle_line(event.line)

        if event.error is not None:
            display.print_warning(f"Could not read input: {escape(str(event.error))}")
        else:
            display.print_warning("Input closed.")
        self.exit_code = 1
        return False

    def handle_tick(self) -> None:
        session = self.session
        if session.is_paused() or self.awaiting_confirmation:
            return
        if not session.is_round_over():
            return

        display.print_info(f"{session.phase.label} is over.")
        if session.should_auto_progress():
            self._advance()
        else:
            self.awaiting_confirmation = True
            display.print_prompt("Press enter to proceed.")

    def handle_line(self, line: str) -> bool:
        """Handle one line of user input. Returns False on quit."""
        try:
            command = Command.parse(line)
        except ValueError:
            display.print_warning(f"Sorry, I don't know what to do with {escape(repr(line.strip()))}")
            display.print_prompt(display.COMMAND_HELP)
            return True

        log.debug("Command: %r", command.value)
        if command is Command.QUIT:
            return False

        if command is Command.PROCEED:
            self._proceed()
        elif command is Command.PAUSE:
            self._pause()
        elif command is Command.RESUME:
            self._resume()
        elif command is Command.STATS:
            display.print_report(self.session.report())
        display.print_prompt(display.COMMAND_HELP)
        return True

    def _proceed(self) -> None:
        if not self.awaiting_confirmation:
            return
        if self.session.is_paused():
            display.print_warning("Resume before moving on to the next phase.")
            return
        display.print_info("Proceeding...")
        self._advance()

    def _pause(self) -> None:
        try:
            self.session.pause()
        except InvalidStateError as exc:
            display.print_warning(str(exc))
            return
        display.print_warning("Paused...")

    def _resume(self) -> None:
        try:
            self.session.unpause()
        except InvalidStateError as exc:
            display.print_warning(str(exc))
            return
        display.print_success("Resuming...")

    def _advance(self) -> None:
        phase = self.session.go_to_next_state()
        self.awaiting_confirmation = False
        display.print_phase(phase)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self, readline: Callable[[], str]) -> int:
        """Run until the user quits or input fails. Returns the exit code."""
        ticker = Ticker(self.tick_interval, lambda: self.post(Event(EventKind.TICK)))
        self.reader = threading.Thread(
            target=self._read_input, args=(readline,), name="pomocycle-input", daemon=True
        )
        display.print_phase(self.session.phase)
        display.print_prompt(display.COMMAND_HELP)
        ticker.start()
        self.reader.start()
        try:
            while self.dispatch(self.events.get()):
                pass
        finally:
            # No tick may reach the session once it has been finalized.
            ticker.stop()
            self._stopped.set()
            self.finish()
        log.debug("Driver exiting with code %d", self.exit_code)
        return self.exit_code

    def finish(self) -> None:
        """Finalize the session and print the closing report."""
        self.awaiting_confirmation = False
        if not self.session.ended:
            self.session.end_session()
        display.print_report(self.session.report())

    def _read_input(self, readline: Callable[[], str]) -> None:
        # A blocked readline() cannot be interrupted; the thread is a daemon and
        # exits at its next line once the loop has stopped.
        while not self._stopped.is_set():
            try:
                line = readline()
            except (OSError, ValueError) as exc:
                if not self._stopped.is_set():
                    self.post(Event(EventKind.INPUT_CLOSED, error=exc))
                return
            if self._stopped.is_set():
                return
            if not line:
                self.post(Event(EventKind.INPUT_CLOSED))
                return
            self.post(Event(EventKind.INPUT, line=line.rstrip("\r\n")))
