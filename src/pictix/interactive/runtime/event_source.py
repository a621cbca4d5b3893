# どこで: `src/pictix/interactive/runtime/event_source.py`。
# 何を: 対話ループの協調者（入力を返す EventSource / Picture を映す Display）の境界と、台本再生用の実装を定義する。
# なぜ: ループ本体を pyglet から切り離し、実ウィンドウ無しでも順序保証をテストできるようにするため。

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Iterable, Protocol

from pictix.core.events import Close, Event

if TYPE_CHECKING:
    from pictix.core.picture import Picture


class EventSource(Protocol):
    """入力イベントを 1 つずつ返す協調者。"""

    def next(self, timeout: float | None) -> Event | Close | None:
        """次の入力を返す。

        Parameters
        ----------
        timeout : float or None
            最大待ち時間（秒）。None の場合は入力か Close が来るまで待つ。

        Returns
        -------
        Event or Close or None
            None は「timeout 秒が経過し入力が無かった」ことを表す。
        """
        ...


class Display(Protocol):
    """確定済み Picture を画面へ映す協調者。"""

    def show(self, picture: Picture) -> None: ...


class ScriptedEventSource:
    """あらかじめ与えた列を順に返す EventSource。

    Notes
    -----
    列中の None は「待ち時間が経過した」ことを表す。列を使い切った後は常に Close を返す。
    """

    def __init__(self, events: Iterable[Event | Close | None]) -> None:
        self._pending: deque[Event | Close | None] = deque(events)
        self.timeouts: list[float | None] = []

    @property
    def remaining(self) -> int:
        return len(self._pending)

    def next(self, timeout: float | None) -> Event | Close | None:
        self.timeouts.append(timeout)
        if not self._pending:
            return Close()
        return self._pending.popleft()


class RecordingDisplay:
    """受け取った Picture を順に記録するだけの Display。"""

    def __init__(self) -> None:
        self.shown: list[Picture] = []

    def show(self, picture: Picture) -> None:
        self.shown.append(picture)


__all__ = ["Display", "EventSource", "RecordingDisplay", "ScriptedEventSource"]
