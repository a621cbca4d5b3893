# どこで: `src/pictix/interactive/runtime/interaction.py`。
# 何を: `interact` / `render` を駆動する状態機械（Running / Terminated）を提供する。
# なぜ: 「draw → 入力待ち → react → 再描画」の順序をウィンドウ系と独立に固定し、テスト可能にするため。

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from pictix.core.events import Close, Event, TimerTick
from pictix.core.picture import Picture
from pictix.interactive.runtime.event_source import Display, EventSource
from pictix.interactive.runtime.frame_clock import TimerClock

_logger = logging.getLogger(__name__)

S = TypeVar("S")


@dataclass(frozen=True, slots=True)
class Running(Generic[S]):
    """現在のユーザー状態を保持する実行中状態。"""

    state: S


@dataclass(frozen=True, slots=True)
class Terminated(Generic[S]):
    """Close 受信後の終了状態。最後のユーザー状態を保持する。"""

    state: S


class InteractionLoop(Generic[S]):
    """ユーザーの draw/react をイベント列で駆動するループ。

    Parameters
    ----------
    draw : Callable[[S], Picture]
        状態から Picture を作る関数。最初のイベントの前に 1 回、以後は状態遷移ごとに呼ぶ。
    react : Callable[[S, Event], S | None]
        イベントに対する次状態を返す関数。None は「遷移なし（再描画もしない）」。
    initial_state : S
        初期状態。
    source : EventSource
        入力の供給元。
    display : Display
        Picture の表示先。
    interval : int or None, optional
        TimerTick の周期（マイクロ秒）。None の場合 TimerTick は発生しない。
    clock : Callable[[], float] or None, optional
        TimerClock に渡す時刻関数（秒）。None の場合は既定の時計を使う。

    Notes
    -----
    単一スレッドで逐次実行する。draw/react が送出した例外はループを終了させ、そのまま呼び出し側へ伝播する。
    """

    def __init__(
        self,
        draw: Callable[[S], Picture],
        react: Callable[[S, Event], S | None],
        initial_state: S,
        *,
        source: EventSource,
        display: Display,
        interval: int | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._draw = draw
        self._react = react
        self._source = source
        self._display = display
        self._status: Running[S] | Terminated[S] = Running(initial_state)
        self._interval = None if interval is None else int(interval)
        self._clock_fn = clock
        self.redraw_count = 0

    @property
    def status(self) -> Running[S] | Terminated[S]:
        """現在の状態機械の状態を返す。"""

        return self._status

    @property
    def state(self) -> S:
        """現在のユーザー状態を返す。"""

        return self._status.state

    @property
    def terminated(self) -> bool:
        return isinstance(self._status, Terminated)

    def _redraw(self, state: S) -> None:
        picture = self._draw(state)
        if not isinstance(picture, Picture):
            raise TypeError(f"draw は Picture を返す必要がある: got={type(picture)!r}")
        self._display.show(picture)
        self.redraw_count += 1

    def _make_timer(self) -> TimerClock | None:
        if self._interval is None:
            return None
        if self._clock_fn is None:
            return TimerClock(self._interval)
        return TimerClock(self._interval, clock=self._clock_fn)

    def _next_input(self, timer: TimerClock | None) -> Event | Close | None:
        if timer is None:
            return self._source.next(None)
        # 入力が途切れなくても tick が飢えないよう、期限切れなら先に tick を出す。
        if timer.due():
            timer.advance()
            return TimerTick()
        item = self._source.next(timer.timeout())
        if item is None:
            timer.advance()
            return TimerTick()
        return item

    def step(self, event: Event) -> bool:
        """1 イベントを処理し、再描画したら True を返す。"""

        status = self._status
        if isinstance(status, Terminated):
            raise RuntimeError("終了済みのループにイベントは渡せない")
        new_state = self._react(status.state, event)
        if new_state is None:
            return False
        self._status = Running(new_state)
        self._redraw(new_state)
        return True

    def run(self) -> S:
        """Close を受け取るまでループを実行し、最後のユーザー状態を返す。"""

        status = self._status
        if isinstance(status, Terminated):
            raise RuntimeError("終了済みのループは再実行できない")

        timer = self._make_timer()
        try:
            self._redraw(status.state)
            while True:
                item = self._next_input(timer)
                if item is None:
                    # interval 無しで待ちが切れた場合は何も起きていない。
                    continue
                if isinstance(item, Close):
                    _logger.debug("Close received; terminating interaction loop")
                    break
                self.step(item)
        finally:
            self._status = Terminated(self._status.state)
        return self._status.state


def render_loop(
    draw: Callable[[], Picture],
    *,
    source: EventSource,
    display: Display,
) -> None:
    """`draw()` を 1 回だけ描き、Close を受け取るまで待つ。"""

    def _draw(_state: Any) -> Picture:
        return draw()

    def _react(_state: Any, _event: Event) -> None:
        return None

    InteractionLoop(_draw, _react, None, source=source, display=display).run()


__all__ = ["InteractionLoop", "Running", "Terminated", "render_loop"]
