"""
どこで: `src/pictix/export/image.py`。
何を: 確定済み Picture を 1 枚の画像ファイル（SVG またはラスタ画像）として保存する関数を提供する。
なぜ: 出力形式を拡張子で選ぶ単一の導線を用意し、ラスタ化はラスタライザ協調者に委ねるため。
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from pictix.core.color import Color
from pictix.core.errors import IOFailure, InvalidArgument
from pictix.core.picture import Picture
from pictix.core.runtime_config import runtime_config
from pictix.export.svg import export_svg
from pictix.render.rasterizer import Rasterizer, check_viewport, default_rasterizer

_logger = logging.getLogger(__name__)

# アルファを保存できないため RGB に落として保存する形式。
_OPAQUE_FORMATS = frozenset({"JPEG", "PPM", "PCX", "EPS"})


def raster_format(path: Path) -> str:
    """拡張子から Pillow の保存フォーマット名を返す。

    Raises
    ------
    InvalidArgument
        拡張子が無い、または Pillow が書き込めない形式の場合。
    """
    suffix = path.suffix.lower()
    if not suffix:
        raise InvalidArgument(f"出力パスに拡張子が無い: {str(path)!r}")
    fmt = Image.registered_extensions().get(suffix)
    if fmt is None or fmt not in Image.SAVE:
        raise InvalidArgument(f"未対応の画像フォーマット: {suffix!r}")
    return fmt


def remove_partial(path: Path, *, existed: bool) -> None:
    """書き込み途中で失敗したファイルを可能な範囲で削除する。"""
    if existed or not path.is_file():
        return
    try:
        path.unlink()
    except OSError:
        _logger.debug("Failed to remove partial file: %s", path, exc_info=True)


def render_to_file(
    picture: Picture,
    path: str | Path,
    width: int,
    height: int,
    *,
    background: Color | None = None,
    rasterizer: Rasterizer | None = None,
) -> Path:
    """Picture を `width×height` の画像として保存する。

    Parameters
    ----------
    picture : Picture
        `make` / `explain` で確定した Picture。
    path : str or Path
        出力先パス。`.svg` はベクタ、それ以外は Pillow が書ける拡張子でラスタ保存する。
    width, height : int
        出力のピクセル寸法（SVG ではキャンバス寸法）。
    background : Color or None, optional
        背景色。None の場合は runtime config の `export.background`。
    rasterizer : Rasterizer or None, optional
        ラスタ化に使う協調者。None の場合は既定ラスタライザ。

    Returns
    -------
    Path
        保存先パス。

    Raises
    ------
    InvalidArgument
        寸法が正でない、または拡張子が未対応の場合。
    IOFailure
        書き込みに失敗した場合。
    """
    _path = Path(path)
    size = check_viewport((width, height))
    suffix = _path.suffix.lower()
    fmt = None if suffix == ".svg" else raster_format(_path)
    bg = background if background is not None else runtime_config().export_background

    existed = _path.exists()
    try:
        if fmt is None:
            export_svg(picture.commands, _path, canvas_size=size, background=bg)
        else:
            r = rasterizer if rasterizer is not None else default_rasterizer()
            image = r.render(picture.commands, size, background=bg)
            if fmt in _OPAQUE_FORMATS:
                image = image.convert("RGB")
            _path.parent.mkdir(parents=True, exist_ok=True)
            image.save(_path, format=fmt)
    except OSError as exc:
        remove_partial(_path, existed=existed)
        raise IOFailure(f"画像の書き込みに失敗した: {str(_path)!r}") from exc

    _logger.debug("Saved image: %s (%dx%d)", _path, size[0], size[1])
    return _path


__all__ = ["raster_format", "remove_partial", "render_to_file"]
