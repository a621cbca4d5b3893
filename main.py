"""
どこで: リポジトリ直下 `main.py`。
何を: 図形の組み立てと対話ループを使った簡単なスケッチを定義し、interact でプレビュー表示する。
なぜ: 動作確認用の最小エントリポイントとして利用するため。
"""

import sys

sys.path.append("src")

import math

from pyglet.window import key

from pictix import (
    Center,
    KeyDown,
    TimerTick,
    blue,
    explain,
    filled_circle,
    filled_rectangle,
    hcat,
    interact,
    lightgrey,
    make,
    onto,
    red,
    rotate,
    translate,
    yellow,
)

CANVAS_WIDTH = 400
CANVAS_HEIGHT = 300
INTERVAL_US = 33_000


def draw(state: tuple[int, bool]):
    frame, annotate = state
    angle = frame * math.pi / 60.0
    row = hcat(
        [
            filled_rectangle(red, 40, 40),
            rotate(20, 20, angle, filled_rectangle(blue, 40, 40)),
            translate(20, 20, filled_circle(yellow, 20)),
        ],
        Center,
    )
    scene = onto(translate(60, 120, row), filled_rectangle(lightgrey, CANVAS_WIDTH, CANVAS_HEIGHT))
    return explain(scene) if annotate else make(scene)


def react(state: tuple[int, bool], event):
    frame, annotate = state
    if isinstance(event, TimerTick):
        return frame + 1, annotate
    if isinstance(event, KeyDown) and event.code == key.E:
        return frame, not annotate
    return None


if __name__ == "__main__":
    interact(
        draw,
        react,
        (0, False),
        width=CANVAS_WIDTH,
        height=CANVAS_HEIGHT,
        interval=INTERVAL_US,
        caption="pictix sketch",
    )
