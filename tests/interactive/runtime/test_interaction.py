"""対話ループ（`pictix.interactive.runtime.interaction`）のテスト。"""

from __future__ import annotations

import pytest

from pictix.core.color import red
from pictix.core.events import (
    Close,
    KeyDown,
    MouseButtonDown,
    MouseMotion,
    TimerTick,
)
from pictix.core.picture import make
from pictix.core.tree import filled_rectangle
from pictix.interactive.runtime.event_source import RecordingDisplay, ScriptedEventSource
from pictix.interactive.runtime.interaction import (
    InteractionLoop,
    Running,
    Terminated,
    render_loop,
)


def _draw_counter(state: int):
    return make(filled_rectangle(red, state + 1, 1))


def _loop(events, react, *, initial=0, interval=None, clock=None):
    source = ScriptedEventSource(events)
    display = RecordingDisplay()
    loop = InteractionLoop(
        _draw_counter,
        react,
        initial,
        source=source,
        display=display,
        interval=interval,
        clock=clock,
    )
    return loop, source, display


def test_react_returning_none_never_redraws() -> None:
    events = [KeyDown(1), MouseButtonDown(1.0, 2.0), MouseMotion(3.0, 4.0, 1.0, 1.0)] * 20
    loop, _, display = _loop(events, lambda s, e: None)

    assert loop.run() == 0
    assert len(display.shown) == 1
    assert loop.redraw_count == 1


def test_draws_once_before_first_event_and_after_each_transition() -> None:
    seen = []

    def react(state: int, event):
        seen.append((state, event))
        return state + 1

    loop, _, display = _loop([KeyDown(10), KeyDown(11)], react)
    assert loop.run() == 2
    assert seen == [(0, KeyDown(10)), (1, KeyDown(11))]
    assert [p.rectangle.x2 for p in display.shown] == [1.0, 2.0, 3.0]


def test_only_accepted_events_cause_redraws() -> None:
    def react(state: int, event):
        if isinstance(event, KeyDown) and event.code == 32:
            return state + 1
        return None

    events = [KeyDown(1), KeyDown(32), MouseButtonDown(0, 0), KeyDown(32)]
    loop, _, display = _loop(events, react)
    assert loop.run() == 2
    assert len(display.shown) == 3


def test_close_terminates_without_further_callbacks() -> None:
    calls = []

    def react(state, event):
        calls.append(event)
        return state

    loop, source, _ = _loop([KeyDown(1), Close(), KeyDown(2), KeyDown(3)], react)
    loop.run()
    assert calls == [KeyDown(1)]
    assert source.remaining == 2
    assert isinstance(loop.status, Terminated)
    assert loop.terminated


def test_status_starts_running_with_initial_state() -> None:
    loop, _, _ = _loop([], lambda s, e: None, initial=7)
    assert loop.status == Running(7)
    assert loop.state == 7


def test_no_timer_ticks_without_interval() -> None:
    received = []
    loop, source, _ = _loop([None, None, KeyDown(1)], lambda s, e: received.append(e))
    loop.run()
    assert received == [KeyDown(1)]
    assert all(t is None for t in source.timeouts)


def test_elapsed_waits_become_timer_ticks_with_interval() -> None:
    now = [0.0]
    received = []

    def react(state, event):
        received.append(event)
        return state + 1 if isinstance(event, TimerTick) else None

    loop, source, display = _loop(
        [None, KeyDown(5), None], react, interval=100_000, clock=lambda: now[0]
    )
    assert loop.run() == 2
    assert received == [TimerTick(), KeyDown(5), TimerTick()]
    assert len(display.shown) == 3
    assert source.timeouts[0] == pytest.approx(0.1)


def test_overdue_timer_ticks_before_waiting_for_input() -> None:
    now = [0.0]
    received = []

    def react(state, event):
        received.append(event)
        if isinstance(event, KeyDown):
            # 入力の処理に 0.25 秒かかったことにする。
            now[0] += 0.25
        return None

    loop, _, _ = _loop([KeyDown(1), KeyDown(2)], react, interval=100_000, clock=lambda: now[0])
    loop.run()
    assert received == [KeyDown(1), TimerTick(), KeyDown(2), TimerTick()]


def test_callback_errors_propagate_and_terminate() -> None:
    def react(state, event):
        raise ZeroDivisionError("boom")

    loop, _, _ = _loop([KeyDown(1)], react)
    with pytest.raises(ZeroDivisionError):
        loop.run()
    assert loop.terminated


def test_draw_must_return_a_picture() -> None:
    loop = InteractionLoop(
        lambda s: filled_rectangle(red, 1, 1),
        lambda s, e: None,
        0,
        source=ScriptedEventSource([]),
        display=RecordingDisplay(),
    )
    with pytest.raises(TypeError):
        loop.run()


def test_terminated_loop_cannot_be_rerun() -> None:
    loop, _, _ = _loop([], lambda s, e: None)
    loop.run()
    with pytest.raises(RuntimeError):
        loop.run()
    with pytest.raises(RuntimeError):
        loop.step(KeyDown(1))


def test_render_loop_draws_once_and_waits_for_close() -> None:
    calls = []

    def draw():
        calls.append(1)
        return make(filled_rectangle(red, 1, 1))

    display = RecordingDisplay()
    render_loop(draw, source=ScriptedEventSource([KeyDown(1), None, KeyDown(2)]), display=display)
    assert calls == [1]
    assert len(display.shown) == 1
