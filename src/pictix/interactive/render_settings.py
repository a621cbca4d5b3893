# どこで: `src/pictix/interactive/render_settings.py`。
# 何を: ライブウィンドウ描画の設定の束を表すデータクラスを定義する。
# なぜ: `interact` / `render` の引数を簡潔に保ちつつ、ウィンドウ側の設定を一元管理するため。

from __future__ import annotations

from dataclasses import dataclass

from pictix.core.color import Color, white
from pictix.core.errors import InvalidArgument


@dataclass(frozen=True, slots=True)
class RenderSettings:
    """ライブウィンドウに用いる設定値の集合。"""

    canvas_size: tuple[int, int] = (640, 480)
    caption: str = "pictix"
    background: Color = white
    position: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        w, h = self.canvas_size
        if int(w) <= 0 or int(h) <= 0:
            raise InvalidArgument(f"canvas_size は正の値である必要がある: got={self.canvas_size!r}")
