# どこで: `src/pictix/interactive/runtime/window_system.py`。
# 何を: pyglet ウィンドウを EventSource（入力の取り出し）と Display（Picture の表示）として振る舞わせる。
# なぜ: 対話ループを pull 型のまま保ち、プラットフォームのイベント配送をこの層に閉じ込めるため。

from __future__ import annotations

import logging
import time
from collections import deque

import pyglet
from PIL import Image

from pictix.core.events import (
    Close,
    Event,
    KeyDown,
    MouseButtonDown,
    MouseButtonUp,
    MouseMotion,
)
from pictix.core.picture import Picture
from pictix.interactive.draw_window import create_draw_window
from pictix.interactive.render_settings import RenderSettings
from pictix.render.rasterizer import Rasterizer, default_rasterizer

_logger = logging.getLogger(__name__)

# 入力が無いときの 1 回あたりの待ち時間（秒）。
_POLL_INTERVAL_S = 0.005


class PygletWindowSystem:
    """ライブウィンドウのサブシステム。

    Notes
    -----
    座標は pyglet（左下原点・y 上向き）からキャンバス座標（左上原点・y 下向き）へ変換して渡す。
    """

    def __init__(
        self,
        settings: RenderSettings,
        *,
        rasterizer: Rasterizer | None = None,
    ) -> None:
        self._settings = settings
        self._rasterizer = rasterizer if rasterizer is not None else default_rasterizer()
        self._queue: deque[Event | Close] = deque()
        self._image: pyglet.image.ImageData | None = None
        self._closed = False

        self.window = create_draw_window(settings)
        self.window.push_handlers(
            on_key_press=self._on_key_press,
            on_mouse_press=self._on_mouse_press,
            on_mouse_release=self._on_mouse_release,
            on_mouse_motion=self._on_mouse_motion,
            on_mouse_drag=self._on_mouse_drag,
            on_close=self._on_close,
            on_expose=self._paint,
        )

    # --- 入力 -----------------------------------------------------------------

    def _canvas_y(self, y: float) -> float:
        return float(self.window.height) - float(y)

    def _on_key_press(self, symbol: int, _modifiers: int) -> None:
        self._queue.append(KeyDown(code=int(symbol)))

    def _on_mouse_press(self, x: int, y: int, _button: int, _modifiers: int) -> None:
        self._queue.append(MouseButtonDown(x=float(x), y=self._canvas_y(y)))

    def _on_mouse_release(self, x: int, y: int, _button: int, _modifiers: int) -> None:
        self._queue.append(MouseButtonUp(x=float(x), y=self._canvas_y(y)))

    def _on_mouse_motion(self, x: int, y: int, dx: int, dy: int) -> None:
        self._queue.append(
            MouseMotion(x=float(x), y=self._canvas_y(y), dx=float(dx), dy=-float(dy))
        )

    def _on_mouse_drag(
        self, x: int, y: int, dx: int, dy: int, _buttons: int, _modifiers: int
    ) -> None:
        self._on_mouse_motion(x, y, dx, dy)

    def _on_close(self) -> bool:
        self._queue.append(Close())
        # ウィンドウの破棄はループ終了後の close() で行う。
        return pyglet.event.EVENT_HANDLED

    def next(self, timeout: float | None) -> Event | Close | None:
        """次の入力を返す。timeout 秒内に入力が無ければ None。"""

        if self._closed:
            return Close()
        deadline = None if timeout is None else time.perf_counter() + float(timeout)
        while True:
            if self._queue:
                return self._queue.popleft()
            pyglet.clock.tick()
            self.window.dispatch_events()
            if self._queue:
                continue
            if deadline is None:
                time.sleep(_POLL_INTERVAL_S)
                continue
            remaining = deadline - time.perf_counter()
            if remaining <= 0.0:
                return None
            time.sleep(min(_POLL_INTERVAL_S, remaining))

    # --- 表示 -----------------------------------------------------------------

    def show(self, picture: Picture) -> None:
        """Picture をラスタライズしてウィンドウへ表示する。"""

        if self._closed:
            return
        w, h = self._settings.canvas_size
        raster = self._rasterizer.render(
            picture.commands, (int(w), int(h)), background=self._settings.background
        )
        # pyglet の画像は下の行から並ぶため、上下を反転して渡す。
        flipped = raster.convert("RGBA").transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        self._image = pyglet.image.ImageData(
            int(w), int(h), "RGBA", flipped.tobytes(), pitch=int(w) * 4
        )
        self._paint()

    def _paint(self) -> None:
        image = self._image
        if image is None or self._closed:
            return
        self.window.switch_to()
        self.window.clear()
        image.blit(0, 0)
        self.window.flip()

    def close(self) -> None:
        """ウィンドウ資源を解放する。"""

        if self._closed:
            return
        self._closed = True
        self._image = None
        try:
            self.window.close()
        except Exception:
            _logger.exception("Failed to close window")


__all__ = ["PygletWindowSystem"]
