# どこで: `src/pictix/core/events.py`。
# 何を: 対話ループが受け取る入力イベントと終了シグナルの値型を定義する。
# なぜ: ウィンドウ系（pyglet）とループ本体を切り離し、スクリプト化したイベント列でもループを駆動できるようにするため。

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class KeyDown:
    """キー押下。`code` はウィンドウ系のキーシンボル値。"""

    code: int


@dataclass(frozen=True, slots=True)
class TimerTick:
    """`interval` ごとにループ自身が合成するタイマーイベント。"""


@dataclass(frozen=True, slots=True)
class MouseButtonDown:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class MouseButtonUp:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class MouseMotion:
    x: float
    y: float
    dx: float
    dy: float


@dataclass(frozen=True, slots=True)
class Close:
    """ウィンドウが閉じられたことを表す終了シグナル。"""


Event: TypeAlias = KeyDown | TimerTick | MouseButtonDown | MouseButtonUp | MouseMotion

__all__ = [
    "Close",
    "Event",
    "KeyDown",
    "MouseButtonDown",
    "MouseButtonUp",
    "MouseMotion",
    "TimerTick",
]
