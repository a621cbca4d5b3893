# どこで: `src/pictix/api/__init__.py`。
# 何を: 公開 API パッケージのエントリポイントとして interact/render と書き出し関数を再エクスポートする。
# なぜ: ユーザーコードからシンプルに API を import できるようにするため。

from __future__ import annotations

from pictix.export.gif import animate_to_file
from pictix.export.image import render_to_file

from .run import interact, render

__all__ = ["animate_to_file", "interact", "render", "render_to_file"]
