"""
どこで: `src/pictix/api/run.py`。公開 API のランナー実装。
何を: ユーザーの draw/react を pyglet ウィンドウ（または差し替えた EventSource/Display）で駆動する `interact` / `render` を提供する。
なぜ: ループ本体・ウィンドウ系・設定解決の配線をここに集め、ユーザーコードからは 1 関数で起動できるようにするため。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from pictix.core.color import Color, white
from pictix.core.events import Event
from pictix.core.picture import Picture
from pictix.core.runtime_config import runtime_config, set_config_path
from pictix.interactive.runtime.event_source import Display, EventSource
from pictix.interactive.runtime.interaction import InteractionLoop, render_loop

_logger = logging.getLogger(__name__)

S = TypeVar("S")


def _open_window(
    *,
    width: int | None,
    height: int | None,
    caption: str | None,
    background: Color,
) -> Any:
    # pyglet は実ウィンドウが必要なときだけ import する。
    from pictix.interactive.render_settings import RenderSettings
    from pictix.interactive.runtime.window_system import PygletWindowSystem

    cfg = runtime_config()
    cfg_w, cfg_h = cfg.window_size
    settings = RenderSettings(
        canvas_size=(int(width if width is not None else cfg_w), int(height if height is not None else cfg_h)),
        caption=str(caption if caption is not None else cfg.window_caption),
        background=background,
        position=cfg.window_position,
    )
    return PygletWindowSystem(settings)


def _wire(
    *,
    width: int | None,
    height: int | None,
    caption: str | None,
    background: Color,
    source: EventSource | None,
    display: Display | None,
) -> tuple[EventSource, Display, Any]:
    """source/display を確定し、自前で開いたウィンドウ（無ければ None）と一緒に返す。"""

    if source is not None and display is not None:
        return source, display, None
    window = _open_window(width=width, height=height, caption=caption, background=background)
    return (
        source if source is not None else window,
        display if display is not None else window,
        window,
    )


def interact(
    draw: Callable[[S], Picture],
    react: Callable[[S, Event], S | None],
    initial_state: S,
    *,
    width: int | None = None,
    height: int | None = None,
    interval: int | None = None,
    caption: str | None = None,
    background: Color = white,
    source: EventSource | None = None,
    display: Display | None = None,
    config_path: str | Path | None = None,
) -> S:
    """状態 `initial_state` から対話ループを実行し、ウィンドウが閉じられたときの状態を返す。

    Parameters
    ----------
    draw : Callable[[S], Picture]
        状態から表示する Picture を返すコールバック。
    react : Callable[[S, Event], S | None]
        イベントに対する次状態を返すコールバック。None は「変化なし（再描画しない）」。
    initial_state : S
        初期状態。
    width, height : int or None
        ウィンドウの寸法（ピクセル）。None の場合は config の `window.size`。
    interval : int or None
        TimerTick の周期（マイクロ秒）。None の場合 TimerTick は発生しない。
    caption : str or None
        ウィンドウタイトル。None の場合は config の `window.caption`。
    background : Color
        背景色。既定は白。
    source, display : EventSource / Display or None
        入力源と表示先。どちらかが None の場合は pyglet ウィンドウを生成して補う。
    config_path : str | Path | None
        設定ファイル（config.yaml）のパス。指定した場合は探索より優先する。

    Returns
    -------
    S
        終了時のユーザー状態。

    Raises
    ------
    Exception
        draw/react が送出した例外はそのまま伝播する（ウィンドウは閉じる）。
    """

    if config_path is not None:
        set_config_path(config_path)

    src, dst, window = _wire(
        width=width,
        height=height,
        caption=caption,
        background=background,
        source=source,
        display=display,
    )
    loop = InteractionLoop(draw, react, initial_state, source=src, display=dst, interval=interval)
    try:
        return loop.run()
    finally:
        if window is not None:
            window.close()
        _logger.debug("interact finished (redraws=%d)", loop.redraw_count)


def render(
    draw: Callable[[], Picture],
    *,
    width: int | None = None,
    height: int | None = None,
    caption: str | None = None,
    background: Color = white,
    source: EventSource | None = None,
    display: Display | None = None,
    config_path: str | Path | None = None,
) -> None:
    """`draw()` の Picture を 1 回表示し、ウィンドウが閉じられるまで待つ。

    Notes
    -----
    引数の意味は `interact` と同じ。
    """

    if config_path is not None:
        set_config_path(config_path)

    src, dst, window = _wire(
        width=width,
        height=height,
        caption=caption,
        background=background,
        source=source,
        display=display,
    )
    try:
        render_loop(draw, source=src, display=dst)
    finally:
        if window is not None:
            window.close()


__all__ = ["interact", "render"]
