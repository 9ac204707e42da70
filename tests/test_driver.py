"""Tests for the event loop that owns the session."""

from __future__ import annotations

import threading
from typing import Callable, Iterable

import pytest

from pomocycle.driver import Driver, Event, EventKind
from pomocycle.models import Phase, SessionConfig, TimeUnit
from pomocycle.session import Session


def _driver(clock, **overrides) -> Driver:
    settings = dict(rounds=2, focus=10, short=2, long=4, unit=TimeUnit.SECONDS)
    settings.update(overrides)
    session = Session(clock=clock)
    session.init(SessionConfig(**settings))
    return Driver(session, tick_interval=0.01)


def _lines(lines: Iterable[str]) -> Callable[[], str]:
    """A readline() that replays *lines* and then reports end of input."""
    remaining = list(lines)

    def readline() -> str:
        return remaining.pop(0) if remaining else ""

    return readline


class TestTicks:
    def test_nothing_happens_before_round_is_over(self, clock) -> None:
        driver = _driver(clock)
        clock.advance(5)
        driver.handle_tick()
        assert driver.session.phase == Phase.FOCUS
        assert not driver.awaiting_confirmation

    def test_auto_progress_advances_on_tick(self, clock) -> None:
        driver = _driver(clock, auto=True)
        clock.advance(10.5)
        driver.handle_tick()
        assert driver.session.phase == Phase.SHORT_BREAK
        assert not driver.awaiting_confirmation

    def test_manual_progress_waits_for_confirmation(self, clock, capsys) -> None:
        driver = _driver(clock)
        clock.advance(10.5)
        driver.handle_tick()
        assert driver.awaiting_confirmation
        assert driver.session.phase == Phase.FOCUS
        assert "Press enter to proceed" in capsys.readouterr().out

        clock.advance(3)
        driver.handle_tick()
        assert "Press enter to proceed" not in capsys.readouterr().out

        assert driver.handle_line("")
        assert driver.session.phase == Phase.SHORT_BREAK
        assert not driver.awaiting_confirmation
        assert driver.session.stats.focus_time == 13.5

    def test_ticks_ignored_while_paused(self, clock) -> None:
        driver = _driver(clock, auto=True)
        clock.advance(9)
        driver.handle_line("p")
        clock.advance(30)
        driver.handle_tick()
        assert driver.session.phase == Phase.FOCUS

    def test_long_break_after_full_cycle(self, clock) -> None:
        driver = _driver(clock, auto=True, rounds=2)
        seen = []
        for _ in range(4):
            clock.advance(driver.session.phase_duration() + 0.5)
            driver.handle_tick()
            seen.append(driver.session.phase)
        assert seen == [Phase.SHORT_BREAK, Phase.FOCUS, Phase.LONG_BREAK, Phase.FOCUS]


class TestCommands:
    def test_proceed_without_pending_round_is_ignored(self, clock) -> None:
        driver = _driver(clock)
        clock.advance(10.5)
        assert driver.handle_line("")
        assert driver.session.phase == Phase.FOCUS

    def test_proceed_while_paused_keeps_waiting(self, clock, capsys) -> None:
        driver = _driver(clock)
        clock.advance(10.5)
        driver.handle_tick()
        driver.handle_line("p")
        driver.handle_line("")
        assert driver.awaiting_confirmation
        assert driver.session.phase == Phase.FOCUS
        assert "Resume before" in capsys.readouterr().out

        driver.handle_line("r")
        driver.handle_line("")
        assert driver.session.phase == Phase.SHORT_BREAK

    def test_pause_and_resume(self, clock, capsys) -> None:
        driver = _driver(clock)
        driver.handle_line("p")
        assert driver.session.is_paused()
        clock.advance(5)
        driver.handle_line("R")
        assert not driver.session.is_paused()
        assert driver.session.stats.paused_time == 5
        out = capsys.readouterr().out
        assert "Paused..." in out
        assert "Resuming..." in out

    def test_double_pause_is_reported(self, clock, capsys) -> None:
        driver = _driver(clock)
        driver.handle_line("p")
        clock.advance(2)
        assert driver.handle_line("p")
        assert "already paused" in capsys.readouterr().out
        clock.advance(3)
        driver.handle_line("r")
        assert driver.session.stats.paused_time == 5

    def test_resume_when_running_is_reported(self, clock, capsys) -> None:
        driver = _driver(clock)
        assert driver.handle_line("r")
        assert "not paused" in capsys.readouterr().out
        assert driver.session.stats.paused_time == 0

    def test_stats_has_no_side_effects(self, clock, capsys) -> None:
        driver = _driver(clock)
        clock.advance(4)
        before = driver.session.stats.model_copy()
        assert driver.handle_line("s")
        assert driver.session.stats == before
        assert "Completed rounds: 0" in capsys.readouterr().out

    def test_unknown_command(self, clock, capsys) -> None:
        driver = _driver(clock)
        assert driver.handle_line("pause please")
        assert "don't know what to do" in capsys.readouterr().out
        assert not driver.session.is_paused()

    @pytest.mark.parametrize("line", ["q", "Q", "  q  "])
    def test_quit(self, clock, line: str) -> None:
        assert _driver(clock).handle_line(line) is False


class TestDispatch:
    def test_tick_event(self, clock) -> None:
        driver = _driver(clock, auto=True)
        clock.advance(11)
        assert driver.dispatch(Event(EventKind.TICK))
        assert driver.session.phase == Phase.SHORT_BREAK

    def test_input_closed_is_fatal(self, clock) -> None:
        driver = _driver(clock)
        assert driver.dispatch(Event(EventKind.INPUT_CLOSED)) is False
        assert driver.exit_code == 1

    def test_read_error_is_reported(self, clock, capsys) -> None:
        driver = _driver(clock)
        assert driver.dispatch(Event(EventKind.INPUT_CLOSED, error=OSError("broken pipe"))) is False
        assert "broken pipe" in capsys.readouterr().out


class TestRun:
    def test_quit_finalizes_session(self, clock, capsys) -> None:
        driver = _driver(clock)
        code = driver.run(_lines(["p\n", "r\n", "s\n", "q\n"]))
        assert code == 0
        assert driver.session.ended
        assert not driver.session.is_paused()
        assert "Session Stats" in capsys.readouterr().out

    def test_quit_while_paused_flushes_pause(self, clock) -> None:
        driver = _driver(clock)
        driver.session.pause()
        clock.advance(7)
        assert driver.run(_lines(["q\n"])) == 0
        assert driver.session.stats.paused_time == 7

    def test_end_of_input_exits_with_error(self, clock) -> None:
        driver = _driver(clock)
        assert driver.run(_lines([])) == 1
        assert driver.session.ended

    def test_read_failure_exits_with_error(self, clock) -> None:
        driver = _driver(clock)

        def broken() -> str:
            raise OSError("stdin went away")

        assert driver.run(broken) == 1
        assert driver.session.ended

    def test_reader_stops_posting_after_loop_ends(self, clock) -> None:
        release = threading.Event()
        calls: list[int] = []

        def readline() -> str:
            calls.append(1)
            if len(calls) == 1:
                return "q\n"
            release.wait(timeout=5)
            return "s\n"

        driver = _driver(clock)
        assert driver.run(readline) == 0
        release.set()
        assert driver.reader is not None
        driver.reader.join(timeout=5)
        assert not driver.reader.is_alive()
        while not driver.events.empty():
            assert driver.events.get_nowait().kind is EventKind.TICK
