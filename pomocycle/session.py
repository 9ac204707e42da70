"""Session state machine and pause-exclusive time accounting.

A :class:`Session` is owned by exactly one caller (the driver). All times are
read from an injectable monotonic clock so tests can advance time by hand.

Phase start times are shifted forward on resume, so "elapsed in phase" never
includes time spent paused.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Optional

from pomocycle.clock import monotonic
from pomocycle.models import Phase, SessionConfig, SessionReport, SessionStats

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class SessionError(RuntimeError):
    """Base class for misuse of the session state machine."""


class InvalidStateError(SessionError):
    """The operation is not allowed in the session's current state."""


class SessionNotStartedError(SessionError):
    """The session was used before ``init``."""


class SessionEndedError(SessionError):
    """The session has already been finalized."""


class Session:
    """Source of truth for the phase, pause state and statistics of a run."""

    def __init__(self, clock: Clock = monotonic) -> None:
        self._clock = clock
        self.config: Optional[SessionConfig] = None
        self.stats = SessionStats()
        self.phase = Phase.FOCUS
        self.phase_started_at = 0.0
        self.paused = False
        self.pause_started_at: Optional[float] = None
        self.ended_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, config: SessionConfig) -> None:
        """Start a fresh session in the Focus phase."""
        now = self._clock()
        self.config = config
        self.stats = SessionStats(started_at=now)
        self.phase = Phase.FOCUS
        self.phase_started_at = now
        self.paused = False
        self.pause_started_at = None
        self.ended_at = None
        log.debug("Session started: %s", config)

    @property
    def ended(self) -> bool:
        return self.ended_at is not None

    def end_session(self) -> None:
        """Flush pause and phase time into the totals. Callable once.

        Ending a session that was never initialised records an empty session.
        """
        if self.ended:
            raise SessionEndedError("Session has already ended.")
        now = self._clock()
        if self.config is None:
            self.stats = SessionStats(started_at=now)
            self.phase_started_at = now
            self.ended_at = now
            log.debug("Session ended before it started")
            return
        if self.paused:
            self._resume_at(now)
        self._accumulate(self.phase, now - self.phase_started_at)
        self.ended_at = now
        log.debug("Session ended after %d round(s)", self.stats.completed_rounds)

    # ------------------------------------------------------------------
    # Pause / resume
    # ------------------------------------------------------------------

    def is_paused(self) -> bool:
        return self.paused

    def pause(self) -> None:
        self._require_active()
        if self.paused:
            raise InvalidStateError("Session is already paused.")
        self.pause_started_at = self._clock()
        self.paused = True
        log.debug("Paused during %s", self.phase.value)

    def unpause(self) -> None:
        self._require_active()
        if not self.paused:
            raise InvalidStateError("Session is not paused.")
        self._resume_at(self._clock())

    def _resume_at(self, now: float) -> None:
        assert self.pause_started_at is not None
        paused_for = now - self.pause_started_at
        self.stats.paused_time += paused_for
        self.phase_started_at += paused_for
        self.paused = False
        self.pause_started_at = None
        log.debug("Resumed after %.2fs paused", paused_for)

    # ------------------------------------------------------------------
    # Phase progress
    # ------------------------------------------------------------------

    def phase_duration(self) -> float:
        """Configured length of the current phase in seconds."""
        self._require_started()
        assert self.config is not None
        return self.config.duration_for(self.phase)

    def phase_elapsed(self) -> float:
        """Seconds spent in the current phase, excluding pauses."""
        self._require_started()
        return self._reference_time() - self.phase_started_at

    def is_round_over(self) -> bool:
        # Strictly greater: a tick landing exactly on the boundary is not over.
        return self.phase_elapsed() > self.phase_duration()

    def go_to_next_state(self) -> Phase:
        """Leave the finished phase and enter the next one."""
        self._require_active()
        assert self.config is not None
        if self.paused:
            raise InvalidStateError("Cannot advance while paused.")
        if not self.is_round_over():
            raise InvalidStateError(f"The {self.phase.label.lower()} phase is not over yet.")

        now = self._clock()
        leaving = self.phase
        self._accumulate(leaving, now - self.phase_started_at)
        if leaving is Phase.FOCUS:
            self.stats.completed_rounds += 1
            if self.stats.completed_rounds % self.config.rounds == 0:
                self.phase = Phase.LONG_BREAK
            else:
                self.phase = Phase.SHORT_BREAK
        else:
            self.phase = Phase.FOCUS
        self.phase_started_at = now
        log.debug(
            "%s -> %s (completed rounds: %d)",
            leaving.value,
            self.phase.value,
            self.stats.completed_rounds,
        )
        return self.phase

    def should_auto_progress(self) -> bool:
        self._require_started()
        assert self.config is not None
        return self.config.auto

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def report(self) -> SessionReport:
        """Snapshot the statistics without changing anything."""
        if not self.ended:
            self._require_started()
        if self.ended_at is not None:
            now = elapsed_until = self.ended_at
        else:
            now = self._clock()
            elapsed_until = self._reference_time()
        elapsed = elapsed_until - self.phase_started_at
        remaining = 0.0 if self.ended else max(0.0, self.phase_duration() - elapsed)
        return SessionReport(
            focus_time=timedelta(seconds=self.stats.focus_time),
            paused_time=timedelta(seconds=self.stats.paused_time),
            break_time=timedelta(seconds=self.stats.break_time),
            total_time=timedelta(seconds=now - self.stats.started_at),
            completed_rounds=self.stats.completed_rounds,
            phase=self.phase,
            phase_elapsed=timedelta(seconds=max(0.0, elapsed)),
            phase_remaining=timedelta(seconds=remaining),
            paused=self.paused,
            ended=self.ended,
        )

    def __str__(self) -> str:
        return str(self.report())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reference_time(self) -> float:
        """Now, or the moment the pause began while paused."""
        if self.paused and self.pause_started_at is not None:
            return self.pause_started_at
        return self._clock()

    def _accumulate(self, phase: Phase, seconds: float) -> None:
        if phase.is_break:
            self.stats.break_time += seconds
        else:
            self.stats.focus_time += seconds

    def _require_started(self) -> None:
        if self.config is None:
            raise SessionNotStartedError("Session has not been initialised.")

    def _require_active(self) -> None:
        if self.ended:
            raise SessionEndedError("Session has already ended.")
        self._require_started()
