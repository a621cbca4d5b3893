"""
どこで: `src/pictix/core/color.py`。
何を: RGBA 色の値型と、そのコンストラクタ・名前付き定数を定義する。
なぜ: 葉プリミティブ・ラスタライザ・SVG 出力で同じ色表現を共有するため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, cast

CHANNEL_MIN = 0
CHANNEL_MAX = 255


def _clamp_channel(value: object) -> int:
    """チャンネル値を 0..255 の int に丸めて返す。

    Notes
    -----
    範囲外は例外にせず clamp する（API を全域関数に保つ）。
    NaN は 0 として扱う。
    """
    fv = float(cast(Any, value))
    if math.isnan(fv):
        return CHANNEL_MIN
    iv = int(round(fv)) if math.isfinite(fv) else (CHANNEL_MAX if fv > 0 else CHANNEL_MIN)
    return CHANNEL_MIN if iv < CHANNEL_MIN else CHANNEL_MAX if iv > CHANNEL_MAX else iv


@dataclass(frozen=True, slots=True)
class Color:
    """0..255 の RGBA 4 チャンネルで表す不変の色。

    Notes
    -----
    直接生成せず `from_rgba` / `from_rgb` を使う。等価性は構造的。
    """

    r: int
    g: int
    b: int
    a: int = CHANNEL_MAX

    @property
    def rgba(self) -> tuple[int, int, int, int]:
        return (self.r, self.g, self.b, self.a)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return (self.r, self.g, self.b)

    @property
    def opacity(self) -> float:
        """alpha を 0..1 の float で返す。"""
        return float(self.a) / float(CHANNEL_MAX)

    @property
    def is_opaque(self) -> bool:
        return self.a == CHANNEL_MAX

    def to_hex(self) -> str:
        """#RRGGBB 形式の文字列を返す（alpha は含めない）。"""
        return f"#{self.r:02X}{self.g:02X}{self.b:02X}"


def from_rgba(r: float, g: float, b: float, a: float) -> Color:
    """RGBA（各 0..255）から Color を生成する。範囲外は clamp する。"""
    return Color(
        _clamp_channel(r),
        _clamp_channel(g),
        _clamp_channel(b),
        _clamp_channel(a),
    )


def from_rgb(r: float, g: float, b: float) -> Color:
    """不透明の Color を生成する。"""
    return from_rgba(r, g, b, CHANNEL_MAX)


def coerce_color(value: object) -> Color:
    """Color または 3/4 要素シーケンスを Color に正規化して返す。

    Raises
    ------
    ValueError
        長さ 3/4 のシーケンスでない場合。
    """
    if isinstance(value, Color):
        return value
    try:
        items = list(cast(Any, value))
    except TypeError as exc:
        raise ValueError(f"color は長さ 3 または 4 のシーケンスである必要がある: {value!r}") from exc
    if len(items) == 3:
        return from_rgb(*items)
    if len(items) == 4:
        return from_rgba(*items)
    raise ValueError(f"color は長さ 3 または 4 のシーケンスである必要がある: {value!r}")


red = from_rgb(255, 0, 0)
green = from_rgb(0, 255, 0)
blue = from_rgb(0, 0, 255)
yellow = from_rgb(255, 255, 0)
lightgrey = from_rgb(211, 211, 211)
white = from_rgb(255, 255, 255)
black = from_rgb(0, 0, 0)

__all__ = [
    "Color",
    "black",
    "blue",
    "coerce_color",
    "from_rgb",
    "from_rgba",
    "green",
    "lightgrey",
    "red",
    "white",
    "yellow",
]
