"""
どこで: `src/pictix/core/picture.py`。
何を: PrimitiveTree を確定済みの描画スナップショット Picture に凍結する `make` / `explain` を提供する。
なぜ: 出力・対話実行の入力を「これ以上変化しない値」に限定し、フラット化を 1 度で済ませるため。
"""

from __future__ import annotations

from dataclasses import dataclass

from pictix.core.color import Color
from pictix.core.geometry import Rectangle
from pictix.core.pipeline import DrawCommand, flatten
from pictix.core.runtime_config import runtime_config
from pictix.core.tree import (
    Node,
    Overlay,
    Place,
    Polygon,
    TransformNode,
)


@dataclass(frozen=True, slots=True)
class Picture:
    """凍結済みの描画スナップショット。

    Notes
    -----
    生成は `make` / `explain` のみを想定する。変更操作は持たない。
    """

    tree: Node
    commands: tuple[DrawCommand, ...]
    annotated: bool = False

    @property
    def rectangle(self) -> Rectangle:
        return self.tree.rectangle


def make(tree: Node) -> Picture:
    """tree をそのまま Picture に凍結する。"""

    return Picture(tree=tree, commands=flatten(tree), annotated=False)


def _outline(rect: Rectangle, *, color: Color, stroke_width: float) -> Polygon:
    corners = rect.corners()
    points = tuple((float(x), float(y)) for x, y in corners)
    return Polygon(color=color, points=points, filled=False, stroke_width=stroke_width)


def _rebuild(node: Node, done: dict[int, Node]) -> Node:
    if isinstance(node, TransformNode):
        return TransformNode(node.transform, done[id(node.child)])
    if isinstance(node, Overlay):
        return Overlay(done[id(node.top)], done[id(node.bottom)])
    if isinstance(node, Place):
        return Place(node.axis, node.pos, done[id(node.first)], done[id(node.second)])
    return node


def annotate_bounds(
    tree: Node,
    *,
    color: Color,
    stroke_width: float,
) -> Node:
    """各ノードの bbox 枠線を、そのノードの内容より手前に重ねた木を返す。

    Notes
    -----
    枠線の bbox は元ノードの bbox と一致するため、どのノードの bbox も変わらない。
    共有された部分木は 1 度だけ注釈し、結果も共有する。
    """

    done: dict[int, Node] = {}
    stack: list[tuple[Node, bool]] = [(tree, False)]
    while stack:
        node, expanded = stack.pop()
        if id(node) in done:
            continue
        if not expanded and node.children:
            stack.append((node, True))
            for child in node.children:
                stack.append((child, False))
            continue

        rebuilt = _rebuild(node, done)
        rect = node.rectangle
        if rect.is_empty:
            done[id(node)] = rebuilt
        else:
            done[id(node)] = Overlay(
                _outline(rect, color=color, stroke_width=stroke_width), rebuilt
            )

    return done[id(tree)]


def explain(tree: Node) -> Picture:
    """bbox 注釈を挿入した Picture を返す。

    Notes
    -----
    注釈の色・線幅は runtime config の `explain.color` / `explain.stroke_width`。
    """

    cfg = runtime_config()
    annotated = annotate_bounds(
        tree,
        color=cfg.explain_color,
        stroke_width=cfg.explain_stroke_width,
    )
    return Picture(tree=annotated, commands=flatten(annotated), annotated=True)


__all__ = ["Picture", "annotate_bounds", "explain", "make"]
