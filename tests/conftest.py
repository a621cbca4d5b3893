from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from pictix.core.fonts import (
    Font,
    FontFace,
    FontFamily,
    FontToolsBackend,
    make_font,
    set_font_backend,
)
from pictix.core.runtime_config import set_config_path

TEST_FAMILY = "PictixTest"


@pytest.fixture(autouse=True)
def _isolate_globals(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # 実行環境の config.yaml を拾わないよう、探索先を tmp に寄せる。
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    set_config_path(None)
    set_font_backend(None)
    yield
    set_config_path(None)
    set_font_backend(None)


def _box(pen, x0: float, y0: float, x1: float, y1: float, *, clockwise: bool = True) -> None:
    pts = [(x0, y0), (x0, y1), (x1, y1), (x1, y0)]
    if not clockwise:
        pts.reverse()
    pen.moveTo(pts[0])
    for p in pts[1:]:
        pen.lineTo(p)
    pen.closePath()


def build_test_font(path: Path) -> Path:
    """"A"（穴あきの四角）と空白だけを持つ最小の TrueType フォントを書き出す。

    unitsPerEm=1000, ascent=800, descent=-200, lineGap=0。
    advance: .notdef=500, space=250, A=600。
    """
    from fontTools.fontBuilder import FontBuilder
    from fontTools.pens.ttGlyphPen import TTGlyphPen

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", "space", "A"])
    fb.setupCharacterMap({32: "space", 65: "A"})

    notdef = TTGlyphPen(None)
    _box(notdef, 50, 0, 450, 700)
    space = TTGlyphPen(None)
    letter = TTGlyphPen(None)
    _box(letter, 100, 0, 500, 700)
    _box(letter, 200, 200, 400, 500, clockwise=False)

    fb.setupGlyf({".notdef": notdef.glyph(), "space": space.glyph(), "A": letter.glyph()})
    fb.setupHorizontalMetrics({".notdef": (500, 50), "space": (250, 0), "A": (600, 100)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": TEST_FAMILY, "styleName": "Regular"})
    fb.setupOS2(sTypoAscender=800, sTypoDescender=-200, usWinAscent=800, usWinDescent=200)
    fb.setupPost()
    path.parent.mkdir(parents=True, exist_ok=True)
    fb.save(str(path))
    return path


@pytest.fixture
def font_dir(tmp_path: Path) -> Path:
    d = tmp_path / "fonts"
    build_test_font(d / "pictix-test.ttf")
    return d


@pytest.fixture
def tt_backend(font_dir: Path) -> FontToolsBackend:
    backend = FontToolsBackend(dirs=[font_dir])
    set_font_backend(backend)
    return backend


@pytest.fixture
def tiny_font(tt_backend: FontToolsBackend) -> Font:
    return make_font(TEST_FAMILY, 10.0)


class FakeFontBackend:
    """固定幅で計測する FontBackend（フォントファイル不要）。

    1 文字 = size * 0.5、1 行 = size。
    """

    def __init__(self, names: Sequence[str] = ("Fake Sans", "Fake Serif")) -> None:
        self._families = {
            name: FontFamily(
                name=name,
                faces=(
                    FontFace(style="Bold", path=Path(f"{name}-Bold.ttf")),
                    FontFace(style="Regular", path=Path(f"{name}-Regular.ttf")),
                ),
            )
            for name in names
        }
        self.measured: list[tuple[Font, str]] = []

    def list_families(self) -> Sequence[str]:
        return tuple(self._families)

    def resolve(self, name: str) -> FontFamily | None:
        return self._families.get(name)

    def measure(self, font: Font, text: str) -> tuple[float, float]:
        self.measured.append((font, text))
        lines = text.split("\n")
        return max(len(line) for line in lines) * font.size * 0.5, len(lines) * font.size


@pytest.fixture
def fake_backend() -> FakeFontBackend:
    backend = FakeFontBackend()
    set_font_backend(backend)
    return backend
