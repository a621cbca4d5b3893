# どこで: `src/pictix/interactive/runtime/frame_clock.py`。
# 何を: 対話ループが TimerTick を合成するためのタイマー時計を提供する。
# なぜ: 「次の入力をどれだけ待つか」と「tick を出す時刻か」の判定をループ本体から分離するため。

from __future__ import annotations

import time
from typing import Callable

from pictix.core.errors import InvalidArgument


class TimerClock:
    """固定周期のタイマー時計。

    Parameters
    ----------
    interval_us : int
        tick の周期（マイクロ秒）。正の値。
    clock : Callable[[], float], optional
        現在時刻（秒）を返す関数。既定は `time.perf_counter`。テストでは差し替える。

    Notes
    -----
    期限は `start + k * interval` に固定し、処理遅延で周期がずれないようにする。
    大きく遅れた場合も tick は 1 回だけ出し、期限を現在時刻の先へ進める。
    """

    def __init__(
        self, interval_us: int, *, clock: Callable[[], float] = time.perf_counter
    ) -> None:
        _interval = int(interval_us)
        if _interval <= 0:
            raise InvalidArgument(f"interval は正の値（マイクロ秒）である必要がある: got={interval_us!r}")
        self._interval_s = float(_interval) / 1_000_000.0
        self._clock = clock
        self._deadline = float(clock()) + self._interval_s

    @property
    def interval_s(self) -> float:
        """周期（秒）を返す。"""

        return float(self._interval_s)

    def timeout(self) -> float:
        """次の期限までの残り秒数（0 以上）を返す。"""

        return max(0.0, self._deadline - float(self._clock()))

    def due(self) -> bool:
        """期限に達していれば True。"""

        return float(self._clock()) >= self._deadline

    def advance(self) -> None:
        """期限を現在時刻より先の次の周期境界へ進める。"""

        now = float(self._clock())
        self._deadline += self._interval_s
        while self._deadline <= now:
            self._deadline += self._interval_s
