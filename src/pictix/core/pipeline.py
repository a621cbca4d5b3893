"""
どこで: `src/pictix/core/pipeline.py`。
何を: PrimitiveTree を「葉 + 絶対変換」の描画コマンド列へフラット化する。
なぜ: ラスタライザ・SVG 出力・ライブ描画が同じ解決済みコマンド列を共有できるようにするため。
"""

from __future__ import annotations

from dataclasses import dataclass

from pictix.core.geometry import Rectangle, Transform
from pictix.core.tree import Empty, Node, Overlay, Place, TransformNode


@dataclass(frozen=True, slots=True)
class DrawCommand:
    """1 つの葉と、そのローカル座標からキャンバス座標への絶対変換。"""

    primitive: Node
    transform: Transform

    @property
    def rectangle(self) -> Rectangle:
        """キャンバス座標での bbox。"""
        return self.primitive.rectangle.transformed(self.transform)


def flatten(tree: Node) -> tuple[DrawCommand, ...]:
    """tree を描画順（奥 → 手前）の DrawCommand 列に変換する。

    Parameters
    ----------
    tree : Node
        フラット化する PrimitiveTree。

    Returns
    -------
    tuple[DrawCommand, ...]
        空の葉・退化した葉（空 bbox）を除いたコマンド列。

    Notes
    -----
    深い木でも再帰上限に当たらないよう、明示スタックで走査する。
    Overlay は bottom → top、Place は first → second の順に描く。
    """

    out: list[DrawCommand] = []
    stack: list[tuple[Node, Transform]] = [(tree, Transform.identity())]
    while stack:
        node, parent = stack.pop()

        if isinstance(node, Empty):
            continue

        if isinstance(node, TransformNode):
            stack.append((node.child, node.transform.then(parent)))
            continue

        if isinstance(node, Overlay):
            # 後に積んだものが先に取り出される。
            stack.append((node.top, parent))
            stack.append((node.bottom, parent))
            continue

        if isinstance(node, Place):
            (dx1, dy1), (dx2, dy2) = node.offsets
            stack.append((node.second, Transform.translation(dx2, dy2).then(parent)))
            stack.append((node.first, Transform.translation(dx1, dy1).then(parent)))
            continue

        if node.rectangle.is_empty:
            continue
        out.append(DrawCommand(primitive=node, transform=parent))

    return tuple(out)


__all__ = ["DrawCommand", "flatten"]
