# どこで: `src/pictix/core/fonts.py`。
# 何を: フォントファミリーの探索・解決、Font ハンドルの生成、テキスト計測を提供する。
# なぜ: `text` 葉が構築時に自身の bbox を確定できるよう、フォントメトリクスの窓口を 1 つにまとめるため。

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence

from pictix.core.errors import FontFamilyNotFound, InvalidArgument
from pictix.core.runtime_config import runtime_config

_logger = logging.getLogger(__name__)

_FONT_EXTENSIONS = (".ttf", ".otf", ".ttc")
DEFAULT_STYLE = "Regular"


@dataclass(frozen=True, slots=True)
class FontFace:
    """ファミリー内の 1 スタイル（フォントファイル + `.ttc` の subfont 番号）。"""

    style: str
    path: Path
    index: int = 0


@dataclass(frozen=True, slots=True)
class FontFamily:
    """名前付きのスタイル集合。"""

    name: str
    faces: tuple[FontFace, ...]

    @property
    def style_names(self) -> tuple[str, ...]:
        return tuple(face.style for face in self.faces)

    def face(self, style: str | None = None) -> FontFace:
        """スタイル名に対応する FontFace を返す。

        Notes
        -----
        `style=None` は "Regular" を優先し、無ければ先頭の face を返す。

        Raises
        ------
        InvalidArgument
            ファミリーに face が無い、または指定スタイルが存在しない場合。
        """
        if not self.faces:
            raise InvalidArgument(f"フォントファミリーにスタイルがありません: {self.name!r}")
        if style is None:
            for face in self.faces:
                if face.style.lower() == DEFAULT_STYLE.lower():
                    return face
            return self.faces[0]
        key = str(style).strip().lower()
        for face in self.faces:
            if face.style.lower() == key:
                return face
        raise InvalidArgument(
            f"未知のスタイル: {style!r}（family={self.name!r}, styles={list(self.style_names)}）"
        )


@dataclass(frozen=True, slots=True)
class Font:
    """(ファミリー, サイズ, スタイル) の不変ハンドル。`size` は em をキャンバス単位で表す。"""

    family: FontFamily
    size: float
    style: str

    @property
    def face(self) -> FontFace:
        return self.family.face(self.style)


class FontBackend(Protocol):
    """フォントメトリクス協調者のインタフェース。"""

    def list_families(self) -> Sequence[str]: ...

    def resolve(self, name: str) -> FontFamily | None: ...

    def measure(self, font: Font, text: str) -> tuple[float, float]: ...


_TT_FONTS: dict[tuple[str, int], Any] = {}


def load_tt_font(face: FontFace) -> Any:
    """TTFont を取得する（キャッシュ）。"""
    from fontTools.ttLib import TTFont  # type: ignore[import-untyped]

    resolved = face.path.resolve()
    idx = max(0, int(face.index))
    cache_key = (str(resolved), idx)
    cached = _TT_FONTS.get(cache_key)
    if cached is not None:
        return cached

    if resolved.suffix.lower() == ".ttc":
        font = TTFont(resolved, fontNumber=idx, lazy=True)
    else:
        font = TTFont(resolved, lazy=True)
    _TT_FONTS[cache_key] = font
    return font


def advance_units(char: str, tt_font: Any) -> float:
    """1 文字の advance 幅（font units）を返す。cmap に無い文字は .notdef の幅。"""
    metrics = tt_font["hmtx"].metrics
    cmap = tt_font.getBestCmap() or {}
    glyph_name = cmap.get(ord(char))
    if glyph_name is None:
        glyph_name = ".notdef"
    entry = metrics.get(glyph_name)
    if entry is None:
        return 0.0
    return float(entry[0])


@dataclass(frozen=True, slots=True)
class LineMetrics:
    """font units 単位の縦方向メトリクス。"""

    units_per_em: float
    ascent: float
    descent: float
    line_gap: float

    @property
    def line_height(self) -> float:
        return self.ascent - self.descent


def line_metrics(tt_font: Any) -> LineMetrics:
    hhea = tt_font["hhea"]
    return LineMetrics(
        units_per_em=float(tt_font["head"].unitsPerEm),
        ascent=float(hhea.ascent),
        descent=float(hhea.descent),
        line_gap=float(hhea.lineGap),
    )


def measure_tt_text(tt_font: Any, size: float, text: str) -> tuple[float, float]:
    """TTFont でテキストを計測し、キャンバス単位の (幅, 高さ) を返す。

    Notes
    -----
    複数行は最も広い行の幅と、`1 行の高さ + (行数-1) * (行の高さ + lineGap)` の高さを返す。
    """
    lm = line_metrics(tt_font)
    scale = float(size) / lm.units_per_em
    lines = str(text).split("\n")
    width_units = max(sum(advance_units(ch, tt_font) for ch in line) for line in lines)
    height_units = lm.line_height + (len(lines) - 1) * (lm.line_height + lm.line_gap)
    return float(width_units * scale), float(height_units * scale)


class FontToolsBackend:
    """fontTools でフォントディレクトリを走査し、ファミリー解決と計測を行う既定実装。"""

    def __init__(self, dirs: Sequence[str | Path] | None = None) -> None:
        self._dirs: tuple[Path, ...] | None = (
            None if dirs is None else tuple(Path(d).expanduser() for d in dirs)
        )
        self._families: dict[str, FontFamily] | None = None

    def _search_dirs(self) -> tuple[Path, ...]:
        if self._dirs is not None:
            return self._dirs
        return runtime_config().font_dirs

    def _list_font_files(self) -> tuple[Path, ...]:
        seen: set[Path] = set()
        for root in self._search_dirs():
            if not root.is_dir():
                continue
            for ext in _FONT_EXTENSIONS:
                for fp in root.glob(f"**/*{ext}"):
                    if fp.is_file():
                        seen.add(fp.resolve())
        return tuple(sorted(seen))

    def _read_faces(self, path: Path) -> list[tuple[str, FontFace]]:
        from fontTools.ttLib import TTCollection, TTFont  # type: ignore[import-untyped]

        if path.suffix.lower() == ".ttc":
            collection = TTCollection(path, lazy=True)
            fonts = list(enumerate(collection.fonts))
        else:
            fonts = [(0, TTFont(path, lazy=True))]

        out: list[tuple[str, FontFace]] = []
        for index, tt in fonts:
            name_table = tt["name"]
            family = name_table.getBestFamilyName()
            style = name_table.getBestSubFamilyName() or DEFAULT_STYLE
            if not family:
                continue
            out.append((str(family), FontFace(style=str(style), path=path, index=int(index))))
        return out

    def _scan(self) -> dict[str, FontFamily]:
        if self._families is not None:
            return self._families

        grouped: dict[str, list[FontFace]] = {}
        for fp in self._list_font_files():
            try:
                faces = self._read_faces(fp)
            except Exception:
                _logger.warning("Failed to read font file: %s", fp, exc_info=True)
                continue
            for family, face in faces:
                bucket = grouped.setdefault(family, [])
                # 同名スタイルは最初に見つかったファイルを優先する。
                if any(f.style == face.style for f in bucket):
                    continue
                bucket.append(face)

        families = {
            name: FontFamily(name=name, faces=tuple(sorted(faces, key=lambda f: f.style)))
            for name, faces in grouped.items()
        }
        _logger.debug("Scanned %d font families", len(families))
        self._families = families
        return families

    def list_families(self) -> Sequence[str]:
        return tuple(sorted(self._scan().keys()))

    def resolve(self, name: str) -> FontFamily | None:
        return self._scan().get(str(name))

    def measure(self, font: Font, text: str) -> tuple[float, float]:
        tt_font = load_tt_font(font.face)
        return measure_tt_text(tt_font, font.size, text)


_BACKEND: FontBackend | None = None


def font_backend() -> FontBackend:
    """現在のフォントメトリクス協調者を返す（未設定なら FontToolsBackend を生成）。"""

    global _BACKEND
    if _BACKEND is None:
        _BACKEND = FontToolsBackend()
    return _BACKEND


def set_font_backend(backend: FontBackend | None) -> None:
    """フォントメトリクス協調者を差し替える。None で既定実装に戻す。"""

    global _BACKEND
    _BACKEND = backend


def system_font_names() -> tuple[str, ...]:
    """利用可能なフォントファミリー名を順序付きで返す。"""

    return tuple(font_backend().list_families())


def get_family(name: str) -> FontFamily:
    """ファミリー名を FontFamily に解決する。

    Raises
    ------
    FontFamilyNotFound
        `name` が `system_font_names()` に含まれない場合。
    """

    backend = font_backend()
    key = str(name)
    if key not in backend.list_families():
        raise FontFamilyNotFound(f"フォントファミリーが見つかりません: {key!r}")
    family = backend.resolve(key)
    if family is None:
        raise FontFamilyNotFound(f"フォントファミリーが見つかりません: {key!r}")
    return family


def make_font(family: str | FontFamily, size: float, style: str | None = None) -> Font:
    """Font ハンドルを生成する。

    Parameters
    ----------
    family : str or FontFamily
        ファミリー名、または `get_family` で得た FontFamily。
    size : float
        em サイズ（キャンバス単位）。正の有限値。
    style : str or None, optional
        スタイル名。None は "Regular"（無ければ先頭）。

    Raises
    ------
    FontFamilyNotFound
        ファミリーが既知の一覧に無い場合。
    InvalidArgument
        size が正の有限値でない、またはスタイルが存在しない場合。
    """

    name = family.name if isinstance(family, FontFamily) else str(family)
    fam = get_family(name)

    try:
        size_f = float(size)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"フォントサイズは数値である必要がある: got={size!r}") from exc
    if not math.isfinite(size_f) or size_f <= 0.0:
        raise InvalidArgument(f"フォントサイズは正の値である必要がある: got={size!r}")

    face = fam.face(style)
    return Font(family=fam, size=size_f, style=face.style)


def measure_text(font: Font, txt: str) -> tuple[float, float]:
    """テキストの (幅, 高さ) をキャンバス単位で返す。"""

    width, height = font_backend().measure(font, str(txt))
    return float(width), float(height)


__all__ = [
    "DEFAULT_STYLE",
    "Font",
    "FontBackend",
    "FontFace",
    "FontFamily",
    "FontToolsBackend",
    "LineMetrics",
    "advance_units",
    "font_backend",
    "get_family",
    "line_metrics",
    "load_tt_font",
    "make_font",
    "measure_text",
    "measure_tt_text",
    "set_font_backend",
    "system_font_names",
]
