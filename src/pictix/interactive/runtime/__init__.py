# どこで: `src/pictix/interactive/runtime/__init__.py`。
# 何を: 対話実行時の「ループ/イベント源/表示先」実装をまとめるパッケージ定義。
# なぜ: `src/pictix/api/run.py` を配線に寄せ、ウィンドウ系の差し替えを容易にするため。

from __future__ import annotations

__all__ = []
