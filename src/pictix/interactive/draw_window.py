# どこで: `src/pictix/interactive/draw_window.py`。
# 何を: ライブ描画用の pyglet ウィンドウ生成を行う。
# なぜ: interactive 依存をこの層に閉じ込め、core/export をヘッドレスに保つため。

from __future__ import annotations

import pyglet
from pyglet.gl import Config
from pyglet.window import Window

from pictix.interactive.render_settings import RenderSettings


def create_draw_window(settings: RenderSettings) -> Window:
    """設定に基づき描画ウィンドウを生成する。"""
    config = Config(double_buffer=True)  # type: ignore[abstract]
    canvas_w, canvas_h = settings.canvas_size
    window = pyglet.window.Window(  # type: ignore[abstract]
        width=int(canvas_w),
        height=int(canvas_h),
        resizable=False,
        caption=str(settings.caption),
        config=config,
    )
    if settings.position is not None:
        x, y = settings.position
        window.set_location(int(x), int(y))
    return window
