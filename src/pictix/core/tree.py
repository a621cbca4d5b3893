"""
どこで: `src/pictix/core/tree.py`。
何を: 不変シーングラフ（PrimitiveTree）の葉・内部ノードと、変換・重ね合わせ・整列の代数を定義する。
なぜ: 図形の組み立てを純粋な値の合成として表し、bbox を変換の入れ子に対して一貫して導出するため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Iterable, Sequence, TypeAlias

import numpy as np

from pictix.core.color import Color
from pictix.core.errors import InvalidArgument
from pictix.core.fonts import Font, measure_text
from pictix.core.geometry import Point, Rectangle, Transform

# 整列位置（交差軸方向の比率）。範囲外の値も外挿として許容する。
Top = 0.0
Center = 0.5
Bottom = 1.0
Left = 0.0
Right = 1.0

ELLIPSE_SEGMENTS = 72


class Axis(Enum):
    """Place ノードの並べ方向。"""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class Node:
    """PrimitiveTree ノードの基底クラス。

    Notes
    -----
    サブクラスは frozen dataclass。bbox は `rectangle` で初回参照時に 1 度だけ計算して保持する。
    """

    @cached_property
    def rectangle(self) -> Rectangle:
        """ノードのローカル座標系での bbox。"""
        return self._bounds()

    def _bounds(self) -> Rectangle:
        raise NotImplementedError

    @property
    def children(self) -> tuple["Node", ...]:
        return ()

    @property
    def is_leaf(self) -> bool:
        return not self.children


PrimitiveTree: TypeAlias = Node


# --- 葉 ---------------------------------------------------------------------


@dataclass(frozen=True, eq=True)
class Empty(Node):
    """大きさを持たない唯一の葉。Overlay / Place の中立元。"""

    def _bounds(self) -> Rectangle:
        return Rectangle.empty()


@dataclass(frozen=True, eq=True)
class Text(Node):
    """テキスト列。bbox は構築時に計測した (width, height) で `(0, 0, width, height)`。"""

    color: Color
    stroke_width: float
    font: Font
    string: str
    width: float
    height: float

    @property
    def filled(self) -> bool:
        return self.stroke_width == 0.0

    def _bounds(self) -> Rectangle:
        return Rectangle(0.0, 0.0, self.width, self.height)


@dataclass(frozen=True, eq=True)
class Polygon(Node):
    """閉じた多角形。塗り/線を明示的に持つ。"""

    color: Color
    points: tuple[Point, ...]
    filled: bool
    stroke_width: float

    def _bounds(self) -> Rectangle:
        return Rectangle.from_points(self.points)


@dataclass(frozen=True, eq=True)
class Path(Node):
    """区分アフィンの開いた折れ線。常に線で描く。"""

    color: Color
    stroke_width: float
    points: tuple[Point, ...]

    @property
    def filled(self) -> bool:
        return False

    def _bounds(self) -> Rectangle:
        return Rectangle.from_points(self.points)


@dataclass(frozen=True, eq=True)
class Rect(Node):
    """原点を左上とする矩形。`stroke_width == 0` で塗り。"""

    color: Color
    stroke_width: float
    width: float
    height: float

    @property
    def filled(self) -> bool:
        return self.stroke_width == 0.0

    def outline(self) -> np.ndarray:
        return Rectangle(0.0, 0.0, self.width, self.height).corners()

    def _bounds(self) -> Rectangle:
        return Rectangle(0.0, 0.0, self.width, self.height)


@dataclass(frozen=True, eq=True)
class Ellipse(Node):
    """原点を中心とする楕円。`stroke_width == 0` で塗り。半径 0 は空 bbox。"""

    color: Color
    stroke_width: float
    rx: float
    ry: float

    @property
    def filled(self) -> bool:
        return self.stroke_width == 0.0

    @property
    def is_degenerate(self) -> bool:
        return self.rx == 0.0 or self.ry == 0.0

    def outline(self, segments: int = ELLIPSE_SEGMENTS) -> np.ndarray:
        """楕円周を近似する閉じていない点列（shape (segments, 2)）を返す。"""
        angles = np.linspace(0.0, 2.0 * math.pi, num=int(segments), endpoint=False)
        return np.stack([self.rx * np.cos(angles), self.ry * np.sin(angles)], axis=1)

    def _bounds(self) -> Rectangle:
        if self.is_degenerate:
            return Rectangle.empty()
        return Rectangle(-self.rx, -self.ry, self.rx, self.ry)


# --- 内部ノード ---------------------------------------------------------------


@dataclass(frozen=True, eq=True)
class TransformNode(Node):
    """子をアフィン変換して配置する。"""

    transform: Transform
    child: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.child,)

    def _bounds(self) -> Rectangle:
        return self.child.rectangle.transformed(self.transform)


@dataclass(frozen=True, eq=True)
class Overlay(Node):
    """`top` を `bottom` の上に重ねる。両者は同じローカル原点を共有する。"""

    top: Node
    bottom: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.bottom, self.top)

    def _bounds(self) -> Rectangle:
        return self.top.rectangle.union(self.bottom.rectangle)


@dataclass(frozen=True, eq=True)
class Place(Node):
    """`first` の隣（横: 右 / 縦: 下）へ `second` を並べ、交差軸を `pos` の比率で揃える。"""

    axis: Axis
    pos: float
    first: Node
    second: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.first, self.second)

    @cached_property
    def offsets(self) -> tuple[Point, Point]:
        """各子に適用する平行移動量 `((dx1, dy1), (dx2, dy2))` を返す。

        Notes
        -----
        `first` は動かさず、`second` を隣接位置へ移す。どちらかが空なら移動しない。
        """
        ra = self.first.rectangle
        rb = self.second.rectangle
        if ra.is_empty or rb.is_empty:
            return ((0.0, 0.0), (0.0, 0.0))

        pos = float(self.pos)
        if self.axis is Axis.HORIZONTAL:
            dx = ra.x2 - rb.x1
            dy = (ra.y1 + pos * ra.height) - (rb.y1 + pos * rb.height)
        else:
            dy = ra.y2 - rb.y1
            dx = (ra.x1 + pos * ra.width) - (rb.x1 + pos * rb.width)
        return ((0.0, 0.0), (float(dx), float(dy)))

    def _bounds(self) -> Rectangle:
        (dx1, dy1), (dx2, dy2) = self.offsets
        return self.first.rectangle.translated(dx1, dy1).union(
            self.second.rectangle.translated(dx2, dy2)
        )


empty_tree = Empty()


# --- 引数検証 -----------------------------------------------------------------


def _finite(value: float, *, name: str) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} は数値である必要がある: got={value!r}") from exc
    if not math.isfinite(v):
        raise InvalidArgument(f"{name} は有限値である必要がある: got={value!r}")
    return v


def _stroke_width(value: float) -> float:
    w = _finite(value, name="stroke_width")
    if w < 0.0:
        raise InvalidArgument(f"stroke_width は 0 以上である必要がある: got={value!r}")
    return w


def _positive(value: float, *, name: str) -> float:
    v = _finite(value, name=name)
    if v <= 0.0:
        raise InvalidArgument(f"{name} は正の値である必要がある: got={value!r}")
    return v


def _points(points: Iterable[Sequence[float]], *, minimum: int, kind: str) -> tuple[Point, ...]:
    """頂点列を検証し (x, y) タプル列に正規化する。0 点は空図形として許容する。"""
    out: list[Point] = []
    for p in points:
        try:
            x, y = p
        except (TypeError, ValueError) as exc:
            raise InvalidArgument(f"{kind} の頂点は (x, y) である必要がある: got={p!r}") from exc
        out.append((_finite(x, name=f"{kind} の頂点"), _finite(y, name=f"{kind} の頂点")))
    if 0 < len(out) < minimum:
        raise InvalidArgument(
            f"{kind} には少なくとも {minimum} 点が必要: got={len(out)}"
        )
    return tuple(out)


def _check_color(color: object) -> Color:
    if not isinstance(color, Color):
        raise InvalidArgument(f"color は Color である必要がある: got={type(color)!r}")
    return color


# --- 葉コンストラクタ ---------------------------------------------------------


def text(color: Color, font: Font, string: str, *, stroke_width: float = 0.0) -> Text:
    """テキスト葉を生成する。bbox はフォント計測で確定する。"""
    if not isinstance(font, Font):
        raise InvalidArgument(f"font は Font である必要がある: got={type(font)!r}")
    s = str(string)
    width, height = measure_text(font, s)
    return Text(
        color=_check_color(color),
        stroke_width=_stroke_width(stroke_width),
        font=font,
        string=s,
        width=width,
        height=height,
    )


def polygon(
    color: Color,
    points: Iterable[Sequence[float]],
    *,
    filled: bool = False,
    stroke_width: float = 1.0,
) -> Polygon:
    """閉じた多角形の葉を生成する（既定は線）。3 点未満（0 点を除く）は InvalidArgument。"""
    w = _stroke_width(stroke_width)
    if not filled and w == 0.0:
        raise InvalidArgument("線の多角形には正の stroke_width が必要")
    return Polygon(
        color=_check_color(color),
        points=_points(points, minimum=3, kind="polygon"),
        filled=bool(filled),
        stroke_width=0.0 if filled else w,
    )


def filled_polygon(color: Color, points: Iterable[Sequence[float]]) -> Polygon:
    return polygon(color, points, filled=True)


def piecewise_affine(
    color: Color, stroke_width: float, points: Iterable[Sequence[float]]
) -> Path:
    """開いた折れ線の葉を生成する。塗りは無いため stroke_width は正の値が必要。"""
    return Path(
        color=_check_color(color),
        stroke_width=_positive(stroke_width, name="stroke_width"),
        points=_points(points, minimum=2, kind="piecewise_affine"),
    )


def rectangle(color: Color, stroke_width: float, width: float, height: float) -> Rect:
    return Rect(
        color=_check_color(color),
        stroke_width=_stroke_width(stroke_width),
        width=_positive(width, name="width"),
        height=_positive(height, name="height"),
    )


def filled_rectangle(color: Color, width: float, height: float) -> Rect:
    return rectangle(color, 0.0, width, height)


def ellipse(color: Color, stroke_width: float, rx: float, ry: float) -> Ellipse:
    rx_f = _finite(rx, name="rx")
    ry_f = _finite(ry, name="ry")
    if rx_f < 0.0 or ry_f < 0.0:
        raise InvalidArgument(f"楕円の半径は 0 以上である必要がある: got=({rx!r}, {ry!r})")
    return Ellipse(
        color=_check_color(color),
        stroke_width=_stroke_width(stroke_width),
        rx=rx_f,
        ry=ry_f,
    )


def filled_ellipse(color: Color, rx: float, ry: float) -> Ellipse:
    return ellipse(color, 0.0, rx, ry)


def circle(color: Color, stroke_width: float, r: float) -> Ellipse:
    return ellipse(color, stroke_width, r, r)


def filled_circle(color: Color, r: float) -> Ellipse:
    return ellipse(color, 0.0, r, r)


# --- 変換 ---------------------------------------------------------------------


def transform(t: Transform, tree: Node) -> Node:
    """tree に変換 t を後から適用する。

    Notes
    -----
    根が既に TransformNode なら行列を 1 つに合成し、入れ子を増やさない。
    恒等変換と空木はそのまま返す。
    """
    if isinstance(tree, Empty) or t.is_identity:
        return tree
    if isinstance(tree, TransformNode):
        merged = tree.transform.then(t)
        if merged.is_identity:
            return tree.child
        return TransformNode(merged, tree.child)
    return TransformNode(t, tree)


def translate(dx: float, dy: float, tree: Node) -> Node:
    return transform(
        Transform.translation(_finite(dx, name="dx"), _finite(dy, name="dy")), tree
    )


def scale(sx: float, sy: float, tree: Node) -> Node:
    return transform(
        Transform.scaling(_finite(sx, name="sx"), _finite(sy, name="sy")), tree
    )


def rotate(x: float, y: float, rad: float, tree: Node) -> Node:
    """点 (x, y) まわりに rad ラジアン回転する。"""
    return transform(
        Transform.rotation_about(
            _finite(x, name="x"), _finite(y, name="y"), _finite(rad, name="rad")
        ),
        tree,
    )


# --- 合成・整列 -----------------------------------------------------------------


def onto(top: Node, bottom: Node) -> Node:
    """top を bottom の上に重ねる。位置合わせはしない。"""
    if isinstance(bottom, Empty):
        return top
    if isinstance(top, Empty):
        return bottom
    return Overlay(top, bottom)


def _place(axis: Axis, first: Node, pos: float, second: Node) -> Node:
    p = _finite(pos, name="pos")
    if isinstance(second, Empty):
        return first
    if isinstance(first, Empty):
        return second
    return Place(axis, p, first, second)


def alignh(first: Node, pos: float, second: Node) -> Node:
    """first の右に second を隣接させ、高さの比率 pos で縦位置を揃える（Top/Center/Bottom）。"""
    return _place(Axis.HORIZONTAL, first, pos, second)


def alignv(first: Node, pos: float, second: Node) -> Node:
    """first の下に second を隣接させ、幅の比率 pos で横位置を揃える（Left/Center/Right）。"""
    return _place(Axis.VERTICAL, first, pos, second)


def hcat(items: Iterable[Node], pos: float = Top) -> Node:
    """alignh を左から畳み込む。"""
    out: Node = empty_tree
    for item in items:
        out = alignh(out, pos, item)
        # 深い左畳み込みでも再帰が浅く済むよう、bbox を構築順に確定させておく。
        _ = out.rectangle
    return out


def vcat(items: Iterable[Node], pos: float = Left) -> Node:
    """alignv を上から畳み込む。"""
    out: Node = empty_tree
    for item in items:
        out = alignv(out, pos, item)
        _ = out.rectangle
    return out


def overlay_all(items: Iterable[Node]) -> Node:
    """先頭を最前面として onto を畳み込む。"""
    nodes = list(items)
    out: Node = empty_tree
    for item in reversed(nodes):
        out = onto(item, out)
        _ = out.rectangle
    return out


def get_rectangle(tree: Node) -> Rectangle:
    """tree のローカル座標系での bbox を返す。"""
    if not isinstance(tree, Node):
        raise InvalidArgument(f"PrimitiveTree ではない値: {type(tree)!r}")
    return tree.rectangle


__all__ = [
    "Axis",
    "Bottom",
    "Center",
    "Ellipse",
    "Empty",
    "Left",
    "Node",
    "Overlay",
    "Path",
    "Place",
    "Polygon",
    "PrimitiveTree",
    "Rect",
    "Right",
    "Text",
    "Top",
    "TransformNode",
    "alignh",
    "alignv",
    "circle",
    "ellipse",
    "empty_tree",
    "filled_circle",
    "filled_ellipse",
    "filled_polygon",
    "filled_rectangle",
    "get_rectangle",
    "hcat",
    "onto",
    "overlay_all",
    "piecewise_affine",
    "polygon",
    "rectangle",
    "rotate",
    "scale",
    "text",
    "transform",
    "translate",
    "vcat",
]
