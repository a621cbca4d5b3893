# src/pictix/core/geometry.py
# 2D アフィン変換と軸並行矩形（バウンディングボックス）の代数を定義する。
# シーングラフの bbox 導出・レイアウト解決・フラット化の全てがこの型を共有する。

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from pictix.core.errors import InvalidGeometry

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class Transform:
    """不変の 2D アフィン変換。

    Parameters
    ----------
    a, b, c, d : float
        線形部分。`x' = a*x + c*y + e`, `y' = b*x + d*y + f`。
    e, f : float
        平行移動部分。

    Notes
    -----
    既定値は恒等変換。`t1.then(t2)` は「t1 を適用した後に t2 を適用する」変換を返す。
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    @classmethod
    def translation(cls, dx: float, dy: float) -> "Transform":
        return cls(e=float(dx), f=float(dy))

    @classmethod
    def scaling(cls, sx: float, sy: float) -> "Transform":
        return cls(a=float(sx), d=float(sy))

    @classmethod
    def rotation(cls, rad: float) -> "Transform":
        """原点まわりの回転を返す（y 下向き座標系では時計回りに見える）。"""
        cos_t = math.cos(float(rad))
        sin_t = math.sin(float(rad))
        return cls(a=cos_t, b=sin_t, c=-sin_t, d=cos_t)

    @classmethod
    def rotation_about(cls, x: float, y: float, rad: float) -> "Transform":
        """点 (x, y) まわりの回転を返す。

        `translate(x, y) ∘ rotate(rad) ∘ translate(-x, -y)` と等価。
        """
        return (
            cls.translation(-x, -y)
            .then(cls.rotation(rad))
            .then(cls.translation(x, y))
        )

    @classmethod
    def from_matrix(cls, matrix: np.ndarray) -> "Transform":
        m = np.asarray(matrix, dtype=np.float64)
        if m.shape != (3, 3):
            raise ValueError("matrix は shape (3,3) である必要がある")
        return cls(
            a=float(m[0, 0]),
            b=float(m[1, 0]),
            c=float(m[0, 1]),
            d=float(m[1, 1]),
            e=float(m[0, 2]),
            f=float(m[1, 2]),
        )

    @property
    def matrix(self) -> np.ndarray:
        """同次座標の 3x3 行列を返す。"""
        return np.array(
            [
                [self.a, self.c, self.e],
                [self.b, self.d, self.f],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )

    @property
    def determinant(self) -> float:
        return float(self.a * self.d - self.b * self.c)

    @property
    def is_identity(self) -> bool:
        return self == _IDENTITY

    @property
    def stroke_scale(self) -> float:
        """線幅に掛ける等方スケール（面積倍率の平方根）を返す。"""
        return math.sqrt(abs(self.determinant))

    def then(self, other: "Transform") -> "Transform":
        """self を適用した後に other を適用する合成変換を返す。"""
        if self.is_identity:
            return other
        if other.is_identity:
            return self
        return Transform.from_matrix(other.matrix @ self.matrix)

    def __matmul__(self, other: object) -> "Transform":
        """`t2 @ t1` を数学的な合成 `t2 ∘ t1`（t1 が先）として扱う。"""
        if not isinstance(other, Transform):
            return NotImplemented
        return other.then(self)

    def apply(self, x: float, y: float) -> Point:
        return (
            float(self.a * x + self.c * y + self.e),
            float(self.b * x + self.d * y + self.f),
        )

    def apply_points(self, points: np.ndarray | Sequence[Point]) -> np.ndarray:
        """shape (N,2) の点列に変換を適用した float64 配列を返す。"""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if pts.shape[0] == 0 or self.is_identity:
            return pts.copy()
        linear = np.array([[self.a, self.c], [self.b, self.d]], dtype=np.float64)
        return pts @ linear.T + np.array([self.e, self.f], dtype=np.float64)

    def to_tuple(self) -> tuple[float, float, float, float, float, float]:
        return (self.a, self.b, self.c, self.d, self.e, self.f)


_IDENTITY = Transform()


@dataclass(frozen=True, slots=True)
class Rectangle:
    """ノードのローカル座標系における軸並行バウンディングボックス。

    Notes
    -----
    空矩形は `(inf, inf, -inf, -inf)` で表し、`union` に対して中立元となる。
    空矩形は数値演算（変換・サイズ計算）に入れず、個別に分岐して扱う。
    """

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def empty(cls) -> "Rectangle":
        return _EMPTY_RECT

    @classmethod
    def from_points(cls, points: np.ndarray | Sequence[Point]) -> "Rectangle":
        """点列を囲む矩形を返す。点が無い場合は空矩形。"""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if pts.shape[0] == 0:
            return _EMPTY_RECT
        mins = pts.min(axis=0)
        maxs = pts.max(axis=0)
        return cls(float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))

    @property
    def is_empty(self) -> bool:
        return (
            self.x1 == math.inf
            and self.y1 == math.inf
            and self.x2 == -math.inf
            and self.y2 == -math.inf
        )

    @property
    def width(self) -> float:
        return 0.0 if self.is_empty else float(self.x2 - self.x1)

    @property
    def height(self) -> float:
        return 0.0 if self.is_empty else float(self.y2 - self.y1)

    def corners(self) -> np.ndarray:
        """四隅を (x1,y1), (x2,y1), (x2,y2), (x1,y2) の順で返す。"""
        return np.array(
            [
                [self.x1, self.y1],
                [self.x2, self.y1],
                [self.x2, self.y2],
                [self.x1, self.y2],
            ],
            dtype=np.float64,
        )

    def union(self, other: "Rectangle") -> "Rectangle":
        if self.is_empty:
            return other
        if other.is_empty:
            return self
        return Rectangle(
            min(self.x1, other.x1),
            min(self.y1, other.y1),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    def translated(self, dx: float, dy: float) -> "Rectangle":
        if self.is_empty:
            return self
        return Rectangle(self.x1 + dx, self.y1 + dy, self.x2 + dx, self.y2 + dy)

    def transformed(self, transform: Transform) -> "Rectangle":
        """四隅を変換した点列の軸並行バウンディングボックスを返す。"""
        if self.is_empty:
            return self
        if transform.is_identity:
            return self
        return Rectangle.from_points(transform.apply_points(self.corners()))

    def is_valid(self) -> bool:
        if self.is_empty:
            return True
        values = (self.x1, self.y1, self.x2, self.y2)
        if not all(math.isfinite(v) for v in values):
            return False
        return self.x2 > self.x1 and self.y2 > self.y1


_EMPTY_RECT = Rectangle(math.inf, math.inf, -math.inf, -math.inf)


def union_all(rects: Iterable[Rectangle]) -> Rectangle:
    out = _EMPTY_RECT
    for r in rects:
        out = out.union(r)
    return out


def ensure_valid_rectangle(rect: object) -> Rectangle:
    """外部から受け取った矩形を検証して返す。

    Raises
    ------
    InvalidGeometry
        Rectangle でない、非有限値を含む、または x2 <= x1 / y2 <= y1 の場合。

    Notes
    -----
    幅または高さが 0 の矩形（水平線の外接矩形など）も不変条件違反として扱う。
    レイアウト計算は `width` / `height` を直接使うため、この検証を通らない。
    """
    if not isinstance(rect, Rectangle):
        raise InvalidGeometry(f"Rectangle ではない値: {type(rect)!r}")
    if not rect.is_valid():
        raise InvalidGeometry(
            f"矩形の不変条件が破れている: ({rect.x1}, {rect.y1}, {rect.x2}, {rect.y2})"
        )
    return rect


def get_size(rect: Rectangle) -> tuple[float, float]:
    """矩形の (幅, 高さ) を返す。空矩形は (0.0, 0.0)。"""
    r = ensure_valid_rectangle(rect)
    return r.width, r.height


__all__ = [
    "Point",
    "Rectangle",
    "Transform",
    "ensure_valid_rectangle",
    "get_size",
    "union_all",
]
