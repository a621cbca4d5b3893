# どこで: `src/pictix/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: フォント探索先・ウィンドウ既定値・explain 注釈の見た目をユーザーが上書きできるようにするため。

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

from pictix.core.color import Color, coerce_color


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """pictix の実行時設定。"""

    config_path: Path | None
    font_dirs: tuple[Path, ...]
    window_size: tuple[int, int]
    window_caption: str
    window_position: tuple[int, int] | None
    explain_color: Color
    explain_stroke_width: float
    export_background: Color


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する。

    Notes
    -----
    `path` を None にすると明示指定を解除し、既定の探索に戻る。
    どちらの場合もキャッシュは破棄される。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    if path is None:
        _EXPLICIT_CONFIG_PATH = None
        _CONFIG_CACHE = None
        return
    _EXPLICIT_CONFIG_PATH = Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    cwd = Path.cwd()
    home = Path.home()
    return (
        cwd / ".pictix" / "config.yaml",
        home / ".config" / "pictix" / "config.yaml",
    )


def _expand_path_text(text: str) -> str:
    return os.path.expandvars(os.path.expanduser(str(text)))


def _as_optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(_expand_path_text(s))


def _as_path_list(value: Any, *, key: str) -> list[Path]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = [p for p in value.strip().split(os.pathsep) if p]
        return [Path(_expand_path_text(p)) for p in parts]
    if not isinstance(value, (list, tuple)):
        raise RuntimeError(f"{key} はパスの配列である必要があります: got={value!r}")

    out: list[Path] = []
    for item in value:
        p = _as_optional_path(item)
        if p is not None:
            out.append(p)
    return out


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_int_pair(value: Any, *, key: str) -> tuple[int, int] | None:
    if value is None:
        return None
    try:
        seq = list(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}")
    try:
        x = int(seq[0])
        y = int(seq[1])
    except Exception as exc:
        raise RuntimeError(f"{key} は [x, y] の整数配列である必要があります: got={value!r}") from exc
    return (x, y)


def _as_float(value: Any, *, key: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_color(value: Any, *, key: str) -> Color | None:
    if value is None:
        return None
    try:
        return coerce_color(value)
    except ValueError as exc:
        raise RuntimeError(f"{key} は [r, g, b] または [r, g, b, a] である必要があります: got={value!r}") from exc


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")

    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    return _load_yaml_text(text, source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱デフォルト config をロードして dict を返す。"""

    try:
        blob = (
            resources.files("pictix")
            .joinpath("resource", "default_config.yaml")
            .read_text(encoding="utf-8")
        )
    except OSError as exc:  # pragma: no cover
        raise RuntimeError(
            "同梱 default_config.yaml の読み込みに失敗しました"
            "（パッケージ配布物の package-data を確認してください）"
        ) from exc

    return _load_yaml_text(blob, source="pictix/resource/default_config.yaml")


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """mapping を 1 段ずつ再帰的に後勝ちでマージする。"""

    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    上書き順（後勝ち）:
    1) 同梱 default_config.yaml
    2) `./.pictix/config.yaml` / `~/.config/pictix/config.yaml`
    3) `set_config_path(...)` で指定したパス
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload = _merge(payload, _load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload = _merge(payload, _load_yaml_config(explicit_path))

    version = payload.get("version")
    if version is None:
        raise RuntimeError(
            "config.yaml の version が未設定です（同梱 default_config.yaml を確認してください）"
        )
    try:
        version_i = int(version)
    except Exception as exc:
        raise RuntimeError(f"config.yaml の version は整数である必要があります: got={version!r}") from exc
    if version_i != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version_i}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    font_dirs = _as_path_list(paths.get("font_dirs"), key="paths.font_dirs")

    window = _as_mapping(payload.get("window"), key="window")
    window_size = _as_int_pair(window.get("size"), key="window.size")
    if window_size is None:
        raise RuntimeError(
            "window.size が未設定です（同梱 default_config.yaml を確認してください）"
        )
    if window_size[0] <= 0 or window_size[1] <= 0:
        raise RuntimeError(f"window.size は正の値である必要があります: got={window_size}")
    window_caption = str(window.get("caption") or "pictix")
    window_position = _as_int_pair(window.get("position"), key="window.position")

    explain = _as_mapping(payload.get("explain"), key="explain")
    explain_color = _as_color(explain.get("color"), key="explain.color")
    if explain_color is None:
        raise RuntimeError(
            "explain.color が未設定です（同梱 default_config.yaml を確認してください）"
        )
    explain_stroke_width = _as_float(explain.get("stroke_width"), key="explain.stroke_width")
    if explain_stroke_width is None or explain_stroke_width <= 0:
        raise RuntimeError(
            f"explain.stroke_width は正の値である必要があります: got={explain_stroke_width!r}"
        )

    export = _as_mapping(payload.get("export"), key="export")
    export_background = _as_color(export.get("background"), key="export.background")
    if export_background is None:
        raise RuntimeError(
            "export.background が未設定です（同梱 default_config.yaml を確認してください）"
        )

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        font_dirs=tuple(font_dirs),
        window_size=window_size,
        window_caption=window_caption,
        window_position=window_position,
        explain_color=explain_color,
        explain_stroke_width=float(explain_stroke_width),
        export_background=export_background,
    )
    _CONFIG_CACHE = cfg
    return cfg


__all__ = ["RuntimeConfig", "runtime_config", "set_config_path"]
