"""
どこで: `src/pictix/export/svg.py`。
何を: フラット化済みの DrawCommand 列を SVG として保存する関数を提供する。
なぜ: ラスタライザを通さないベクタ出力を用意し、解像度に依存しない保存経路を持つため。
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import numpy as np

from pictix.core.color import Color, white
from pictix.core.errors import InvalidArgument
from pictix.core.geometry import Transform
from pictix.core.pipeline import DrawCommand
from pictix.core.tree import Ellipse, Path as PathLeaf, Polygon, Rect, Text
from pictix.render.glyphs import text_contours

_SVG_NS = "http://www.w3.org/2000/svg"
_FLOAT_DECIMALS = 3


def _fmt(value: float, *, decimals: int = _FLOAT_DECIMALS) -> str:
    """SVG 出力向けに float を決定的な文字列へ変換して返す。"""
    text = f"{float(value):.{int(decimals)}f}"
    if text.startswith("-0") and float(text) == 0.0:
        return text[1:]
    return text


def _points_attr(points: np.ndarray | Sequence[tuple[float, float]]) -> str:
    return " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in points)


def _contours_to_d(contours: Sequence[np.ndarray]) -> str:
    parts: list[str] = []
    for c in contours:
        if c.shape[0] < 2:
            continue
        parts.append(f"M {_fmt(c[0, 0])} {_fmt(c[0, 1])}")
        for x, y in c[1:]:
            parts.append(f"L {_fmt(x)} {_fmt(y)}")
        parts.append("Z")
    return " ".join(parts)


def _transform_attr(t: Transform) -> str:
    if t.is_identity:
        return ""
    coeffs = " ".join(_fmt(v, decimals=6) for v in t.to_tuple())
    return f' transform="matrix({coeffs})"'


def _paint_attrs(color: Color, *, filled: bool, stroke_width: float) -> str:
    if filled:
        attrs = f'fill="{color.to_hex()}" stroke="none"'
        if not color.is_opaque:
            attrs += f' fill-opacity="{_fmt(color.opacity)}"'
        return attrs
    attrs = (
        f'fill="none" stroke="{color.to_hex()}" stroke-width="{_fmt(stroke_width)}" '
        f'stroke-linecap="round" stroke-linejoin="round"'
    )
    if not color.is_opaque:
        attrs += f' stroke-opacity="{_fmt(color.opacity)}"'
    return attrs


def command_to_element(cmd: DrawCommand) -> str | None:
    """1 コマンドを SVG 要素文字列に変換する。未対応の葉は None。"""
    leaf = cmd.primitive
    tf = _transform_attr(cmd.transform)

    if isinstance(leaf, Rect):
        paint = _paint_attrs(leaf.color, filled=leaf.filled, stroke_width=leaf.stroke_width)
        return (
            f'<rect x="0" y="0" width="{_fmt(leaf.width)}" height="{_fmt(leaf.height)}" '
            f"{paint}{tf} />"
        )
    if isinstance(leaf, Ellipse):
        paint = _paint_attrs(leaf.color, filled=leaf.filled, stroke_width=leaf.stroke_width)
        return (
            f'<ellipse cx="0" cy="0" rx="{_fmt(leaf.rx)}" ry="{_fmt(leaf.ry)}" '
            f"{paint}{tf} />"
        )
    if isinstance(leaf, Polygon):
        paint = _paint_attrs(leaf.color, filled=leaf.filled, stroke_width=leaf.stroke_width)
        return f'<polygon points="{_points_attr(leaf.points)}" {paint}{tf} />'
    if isinstance(leaf, PathLeaf):
        paint = _paint_attrs(leaf.color, filled=False, stroke_width=leaf.stroke_width)
        return f'<polyline points="{_points_attr(leaf.points)}" {paint}{tf} />'
    if isinstance(leaf, Text):
        d = _contours_to_d(text_contours(leaf))
        if not d:
            return None
        paint = _paint_attrs(leaf.color, filled=leaf.filled, stroke_width=leaf.stroke_width)
        return f'<path d="{d}" fill-rule="evenodd" {paint}{tf} />'
    return None


def export_svg(
    commands: Sequence[DrawCommand],
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
    background: Color | None = white,
) -> Path:
    """DrawCommand 列を SVG として保存する。

    Parameters
    ----------
    commands : Sequence[DrawCommand]
        `make` / `explain` 済み Picture のコマンド列。
    path : str or Path
        出力先パス。
    canvas_size : tuple[int, int]
        キャンバス寸法（viewBox と width/height）。
    background : Color or None, optional
        背景色。None の場合は背景を描かない。

    Returns
    -------
    Path
        保存先パス。

    Raises
    ------
    InvalidArgument
        canvas_size が正の値でない場合。
    OSError
        書き込みに失敗した場合。
    """
    _path = Path(path)
    canvas_w, canvas_h = canvas_size
    if int(canvas_w) <= 0 or int(canvas_h) <= 0:
        raise InvalidArgument(f"canvas_size は正の値である必要がある: got={canvas_size!r}")

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        (
            f'<svg xmlns="{_SVG_NS}" viewBox="0 0 {int(canvas_w)} {int(canvas_h)}" '
            f'width="{int(canvas_w)}" height="{int(canvas_h)}">'
        )
    )
    if background is not None:
        lines.append(
            f'  <rect x="0" y="0" width="{int(canvas_w)}" height="{int(canvas_h)}" '
            f"{_paint_attrs(background, filled=True, stroke_width=0.0)} />"
        )

    for cmd in commands:
        element = command_to_element(cmd)
        if element is not None:
            lines.append(f"  {element}")

    lines.append("</svg>")

    _path.parent.mkdir(parents=True, exist_ok=True)
    with _path.open("w", encoding="utf-8", newline="\n") as f:
        f.write("\n".join(lines) + "\n")

    return _path


__all__ = ["command_to_element", "export_svg"]
