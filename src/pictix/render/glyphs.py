"""
どこで: `src/pictix/render/glyphs.py`。Text 葉のアウトライン生成。
何を: フォントのグリフアウトラインを平坦化し、Text 葉のローカル座標（左上原点・y 下向き）の輪郭列を返す。
なぜ: ラスタライザと SVG 出力が、任意のアフィン変換下でも同じ形でテキストを描けるようにするため。
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Iterable

import numpy as np

from pictix.core.fonts import FontFace, advance_units, line_metrics, load_tt_font
from pictix.core.tree import Text

logger = logging.getLogger(__name__)

# 平坦化の目標セグメント長（em 比）。
FLAT_SEGMENT_EM = 0.01


class _LRU:
    """単純な上限付き LRU キャッシュ（キー: str）。"""

    def __init__(self, maxsize: int = 4096) -> None:
        self.maxsize = int(maxsize)
        self._od: "OrderedDict[str, Any]" = OrderedDict()

    def get(self, key: str) -> Any | None:
        value = self._od.get(key)
        if value is not None:
            self._od.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._od[key] = value
        self._od.move_to_end(key)
        if len(self._od) > self.maxsize:
            self._od.popitem(last=False)


_glyph_cache = _LRU(maxsize=4096)


def glyph_commands(*, char: str, face: FontFace, flat_seg_len_units: float) -> tuple:
    """平坦化済みのグリフコマンド（`RecordingPen.value` 互換タプル）を返す。"""
    from fontPens.flattenPen import FlattenPen  # type: ignore[import-untyped]
    from fontTools.pens.recordingPen import (  # type: ignore[import-untyped]
        DecomposingRecordingPen,
        RecordingPen,
    )

    resolved = face.path.resolve()
    key = f"{resolved}|{int(face.index)}|{char}|{round(float(flat_seg_len_units), 6)}"
    cached = _glyph_cache.get(key)
    if cached is not None:
        return cached

    tt_font = load_tt_font(face)
    cmap = tt_font.getBestCmap() or {}
    glyph_name = cmap.get(ord(char))
    if glyph_name is None:
        logger.warning(
            "Character '%s' (U+%04X) not found in font '%s'",
            char,
            ord(char),
            str(resolved),
        )
        _glyph_cache.set(key, tuple())
        return tuple()

    glyph_set = tt_font.getGlyphSet()
    glyph = glyph_set.get(glyph_name)
    if glyph is None:
        logger.warning("Glyph '%s' not found in font '%s'", glyph_name, str(resolved))
        _glyph_cache.set(key, tuple())
        return tuple()

    rec = DecomposingRecordingPen(glyph_set, reverseFlipped=True)
    try:
        glyph.draw(rec)
    except rec.MissingComponentError:  # type: ignore[attr-defined]
        logger.warning(
            "Glyph '%s' has missing components in font '%s'",
            glyph_name,
            str(resolved),
        )
        _glyph_cache.set(key, tuple())
        return tuple()

    flat = RecordingPen()
    flatten_pen = FlattenPen(
        flat,
        approximateSegmentLength=float(flat_seg_len_units),
        segmentLines=True,
    )
    rec.replay(flatten_pen)

    result = tuple(flat.value)
    _glyph_cache.set(key, result)
    return result


def _commands_to_contours(
    commands: Iterable,
    *,
    x_units: float,
    baseline_units: float,
    scale: float,
) -> list[np.ndarray]:
    """RecordingPen.value を Text ローカル座標の閉輪郭列（各 shape (N,2)）へ変換する。"""
    contours: list[np.ndarray] = []
    current: list[tuple[float, float]] = []

    def flush() -> None:
        nonlocal current
        if len(current) >= 2:
            arr = np.asarray(current, dtype=np.float64)
            # フォント座標（Y+上, baseline=0）を描画座標（Y+下, 左上原点）へ反転
            arr[:, 0] = (arr[:, 0] + x_units) * scale
            arr[:, 1] = (baseline_units - arr[:, 1]) * scale
            contours.append(arr)
        current = []

    for cmd_type, cmd_values in commands:
        if cmd_type == "moveTo":
            flush()
            x, y = cmd_values[0]
            current.append((float(x), float(y)))
        elif cmd_type == "lineTo":
            x, y = cmd_values[0]
            current.append((float(x), float(y)))
        elif cmd_type in ("closePath", "endPath"):
            flush()

    flush()
    return contours


def text_contours(leaf: Text) -> list[np.ndarray]:
    """Text 葉の輪郭列をローカル座標で返す。

    Notes
    -----
    1 行目のベースラインは上端から ascent の位置。改行ごとに
    `(ascent - descent) + lineGap` だけ下げる（`measure_tt_text` と同じ規則）。
    """
    face = leaf.font.face
    tt_font = load_tt_font(face)
    lm = line_metrics(tt_font)
    scale = float(leaf.font.size) / lm.units_per_em
    seg_len_units = max(1.0, FLAT_SEGMENT_EM * lm.units_per_em)

    contours: list[np.ndarray] = []
    baseline = lm.ascent
    for line in leaf.string.split("\n"):
        x_units = 0.0
        for ch in line:
            if not ch.isspace():
                cmds = glyph_commands(char=ch, face=face, flat_seg_len_units=seg_len_units)
                if cmds:
                    contours.extend(
                        _commands_to_contours(
                            cmds, x_units=x_units, baseline_units=baseline, scale=scale
                        )
                    )
            x_units += advance_units(ch, tt_font)
        baseline += lm.line_height + lm.line_gap
    return contours


__all__ = ["glyph_commands", "text_contours"]
