"""
どこで: `src/pictix/export/gif.py`。
何を: Picture 列を 1 フレームずつラスタ化し、アニメーション GIF として保存する関数を提供する。
なぜ: 対話ウィンドウを使わずにアニメーションを書き出す導線を用意するため。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence

from PIL import GifImagePlugin, Image

from pictix.core.color import Color
from pictix.core.errors import IOFailure, InvalidArgument
from pictix.core.picture import Picture
from pictix.core.runtime_config import runtime_config
from pictix.export.image import remove_partial
from pictix.render.rasterizer import Rasterizer, check_viewport, default_rasterizer

_logger = logging.getLogger(__name__)


class GifEncoder(Protocol):
    """ラスタ画像列をアニメーション GIF として書き出す協調者。"""

    def encode(
        self,
        frames: Sequence[Image.Image],
        path: Path,
        *,
        frame_delay: int,
        repeat_count: int,
    ) -> None: ...


class PillowGifEncoder:
    """Pillow の GIF フレームエンコーダで 1 画像 1 フレームを書き出す GIF エンコーダ。

    Notes
    -----
    `frame_delay` は GIF 本来の単位（1/100 秒）で受け取り、Pillow の duration（ミリ秒）へ換算する。
    `repeat_count == 0` は無限ループ。
    `save_all` は直前と同一ピクセルのフレームを畳み込むため使わず、
    `GifImagePlugin.getheader` / `getdata` でフレームを個別に書き出す。
    各フレームはローカルカラーテーブルを持つので、入力と同数のフレームが順に残る。
    """

    def encode(
        self,
        frames: Sequence[Image.Image],
        path: Path,
        *,
        frame_delay: int,
        repeat_count: int,
    ) -> None:
        if not frames:
            raise InvalidArgument("GIF には少なくとも 1 フレームが必要")
        paletted = [frame.convert("RGB").quantize(colors=256) for frame in frames]
        header, _ = GifImagePlugin.getheader(paletted[0], info={"loop": int(repeat_count)})
        params = {
            "duration": int(frame_delay) * 10,
            "disposal": 1,
            "include_color_table": True,
        }
        with open(path, "wb") as f:
            for chunk in header:
                f.write(chunk)
            for frame in paletted:
                for chunk in GifImagePlugin.getdata(frame, **params):
                    f.write(chunk)
            f.write(b";")


def _non_negative_int(value: int, *, name: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"{name} は整数である必要がある: got={value!r}") from exc
    if v < 0:
        raise InvalidArgument(f"{name} は 0 以上である必要がある: got={value!r}")
    return v


def animate_to_file(
    pictures: Sequence[Picture],
    path: str | Path,
    width: int,
    height: int,
    frame_delay: int,
    repeat_count: int = 0,
    *,
    background: Color | None = None,
    rasterizer: Rasterizer | None = None,
    encoder: GifEncoder | None = None,
) -> Path:
    """Picture 列をアニメーション GIF として保存する。

    Parameters
    ----------
    pictures : Sequence[Picture]
        1 要素 1 フレームとして、この順に書き出す。
    path : str or Path
        出力先パス。
    width, height : int
        フレームのピクセル寸法。
    frame_delay : int
        フレーム間隔（1/100 秒）。
    repeat_count : int, optional
        繰り返し回数。0 は無限ループ。
    background : Color or None, optional
        各フレームの背景色。None の場合は runtime config の `export.background`。
    rasterizer : Rasterizer or None, optional
        ラスタ化に使う協調者。None の場合は既定ラスタライザ。
    encoder : GifEncoder or None, optional
        GIF エンコーダ。None の場合は `PillowGifEncoder`。

    Returns
    -------
    Path
        保存先パス。

    Raises
    ------
    InvalidArgument
        pictures が空、寸法が正でない、または frame_delay / repeat_count が負の場合。
    IOFailure
        書き込みに失敗した場合。
    """
    _path = Path(path)
    frames_in = list(pictures)
    if not frames_in:
        raise InvalidArgument("pictures は空であってはならない")
    size = check_viewport((width, height))
    delay = _non_negative_int(frame_delay, name="frame_delay")
    repeat = _non_negative_int(repeat_count, name="repeat_count")

    r = rasterizer if rasterizer is not None else default_rasterizer()
    bg = background if background is not None else runtime_config().export_background
    frames = [r.render(p.commands, size, background=bg) for p in frames_in]
    enc = encoder if encoder is not None else PillowGifEncoder()

    existed = _path.exists()
    try:
        _path.parent.mkdir(parents=True, exist_ok=True)
        enc.encode(frames, _path, frame_delay=delay, repeat_count=repeat)
    except OSError as exc:
        remove_partial(_path, existed=existed)
        raise IOFailure(f"GIF の書き込みに失敗した: {str(_path)!r}") from exc

    _logger.debug("Saved GIF: %s (%d frames)", _path, len(frames))
    return _path


__all__ = ["GifEncoder", "PillowGifEncoder", "animate_to_file"]
