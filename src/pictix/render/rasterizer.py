"""
どこで: `src/pictix/render/rasterizer.py`。
何を: 解決済み DrawCommand 列を Pillow でピクセル（RGBA 画像）に描くラスタライザを提供する。
なぜ: ファイル出力とライブウィンドウ表示で同じ塗り規則を共有するため。
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import numpy as np
from PIL import Image, ImageChops, ImageDraw

from pictix.core.color import Color, white
from pictix.core.errors import InvalidArgument
from pictix.core.geometry import Transform
from pictix.core.pipeline import DrawCommand
from pictix.core.tree import Ellipse, Node, Path, Polygon, Rect, Text
from pictix.render.glyphs import text_contours

_logger = logging.getLogger(__name__)


class Rasterizer(Protocol):
    """描画コマンド列を viewport サイズのラスタ面へ描く協調者。"""

    def render(
        self,
        commands: Sequence[DrawCommand],
        viewport: tuple[int, int],
        *,
        background: Color = white,
    ) -> Image.Image: ...


def check_viewport(viewport: tuple[int, int]) -> tuple[int, int]:
    """viewport を正の (width, height) に正規化して返す。"""
    try:
        w, h = viewport
        w_i, h_i = int(w), int(h)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"viewport は (width, height) である必要がある: got={viewport!r}") from exc
    if w_i <= 0 or h_i <= 0:
        raise InvalidArgument(f"viewport は正の (width, height) である必要がある: got={viewport!r}")
    return w_i, h_i


def _xy(points: np.ndarray) -> list[tuple[float, float]]:
    return [(float(x), float(y)) for x, y in points]


class PillowRasterizer:
    """Pillow の ImageDraw による既定ラスタライザ。

    Parameters
    ----------
    supersample : int, optional
        内部解像度の倍率。2 以上でアンチエイリアス目的に拡大描画して縮小する。
    """

    def __init__(self, *, supersample: int = 1) -> None:
        s = int(supersample)
        if s < 1:
            raise InvalidArgument(f"supersample は 1 以上である必要がある: got={supersample!r}")
        self.supersample = s

    def render(
        self,
        commands: Sequence[DrawCommand],
        viewport: tuple[int, int],
        *,
        background: Color = white,
    ) -> Image.Image:
        """コマンド列を描いた RGBA 画像を返す。"""
        width, height = check_viewport(viewport)
        s = self.supersample
        canvas = Image.new("RGBA", (width * s, height * s), background.rgba)
        to_device = Transform.scaling(s, s)

        for cmd in commands:
            self._paint(canvas, cmd.primitive, cmd.transform.then(to_device))

        if s != 1:
            canvas = canvas.resize((width, height), Image.Resampling.LANCZOS)
        return canvas

    def _paint(self, canvas: Image.Image, primitive: Node, t: Transform) -> None:
        color = getattr(primitive, "color", None)
        if color is None:
            return

        # 半透明色は別レイヤーへ描いてから合成し、下地とブレンドする。
        target = canvas if color.is_opaque else Image.new("RGBA", canvas.size, (0, 0, 0, 0))

        if isinstance(primitive, Text):
            self._paint_text(target, primitive, t)
        else:
            draw = ImageDraw.Draw(target)
            if isinstance(primitive, Rect):
                self._paint_shape(draw, primitive.outline(), t, color, primitive.filled, primitive.stroke_width)
            elif isinstance(primitive, Ellipse):
                self._paint_shape(draw, primitive.outline(), t, color, primitive.filled, primitive.stroke_width)
            elif isinstance(primitive, Polygon):
                pts = np.asarray(primitive.points, dtype=np.float64)
                self._paint_shape(draw, pts, t, color, primitive.filled, primitive.stroke_width)
            elif isinstance(primitive, Path):
                pts = t.apply_points(np.asarray(primitive.points, dtype=np.float64))
                draw.line(_xy(pts), fill=color.rgba, width=self._line_width(primitive.stroke_width, t), joint="curve")
            else:
                _logger.debug("Skipping unsupported primitive: %r", type(primitive))
                return

        if target is not canvas:
            canvas.alpha_composite(target)

    @staticmethod
    def _line_width(stroke_width: float, t: Transform) -> int:
        return max(1, int(round(float(stroke_width) * t.stroke_scale)))

    def _paint_shape(
        self,
        draw: ImageDraw.ImageDraw,
        local_points: np.ndarray,
        t: Transform,
        color: Color,
        filled: bool,
        stroke_width: float,
    ) -> None:
        pts = _xy(t.apply_points(local_points))
        if filled:
            draw.polygon(pts, fill=color.rgba)
            return
        draw.line(pts + pts[:1], fill=color.rgba, width=self._line_width(stroke_width, t), joint="curve")

    def _paint_text(self, target: Image.Image, leaf: Text, t: Transform) -> None:
        contours = [t.apply_points(c) for c in text_contours(leaf)]
        if not contours:
            return

        if not leaf.filled:
            draw = ImageDraw.Draw(target)
            width = self._line_width(leaf.stroke_width, t)
            for c in contours:
                pts = _xy(c)
                draw.line(pts + pts[:1], fill=leaf.color.rgba, width=width, joint="curve")
            return

        # 偶奇規則: 輪郭ごとのマスクを XOR で重ね、カウンタ（穴）を抜く。
        mask = Image.new("1", target.size, 0)
        for c in contours:
            if c.shape[0] < 3:
                continue
            piece = Image.new("1", target.size, 0)
            ImageDraw.Draw(piece).polygon(_xy(c), fill=1)
            mask = ImageChops.logical_xor(mask, piece)
        target.paste(leaf.color.rgba, (0, 0), mask)


_DEFAULT_RASTERIZER: PillowRasterizer | None = None


def default_rasterizer() -> PillowRasterizer:
    """共有の既定ラスタライザを返す。"""
    global _DEFAULT_RASTERIZER
    if _DEFAULT_RASTERIZER is None:
        _DEFAULT_RASTERIZER = PillowRasterizer()
    return _DEFAULT_RASTERIZER


__all__ = ["PillowRasterizer", "Rasterizer", "check_viewport", "default_rasterizer"]
