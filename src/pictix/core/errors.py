# どこで: `src/pictix/core/errors.py`。
# 何を: pictix が送出する例外階層を定義する。
# なぜ: 呼び出し側が「フォント解決」「引数検証」「幾何不整合」「出力失敗」を区別して捕捉できるようにするため。

from __future__ import annotations


class PictixError(Exception):
    """pictix の全例外の基底クラス。"""


class FontFamilyNotFound(PictixError, LookupError):
    """フォントファミリー名が既知のファミリー一覧に存在しない。"""


class InvalidArgument(PictixError, ValueError):
    """サイズ・線幅・頂点列などの引数が不正。"""


class InvalidGeometry(PictixError, ValueError):
    """矩形の不変条件（x1 <= x2, y1 <= y2, 有限値）が破れている。"""


class IOFailure(PictixError, OSError):
    """ファイル書き出し・エンコードに失敗した。"""


__all__ = [
    "FontFamilyNotFound",
    "IOFailure",
    "InvalidArgument",
    "InvalidGeometry",
    "PictixError",
]
