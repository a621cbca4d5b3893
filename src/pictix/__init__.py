# どこで: `src/pictix/__init__.py`。
# 何を: ルート `pictix` パッケージを定義し、図形の組み立て・確定・表示・書き出しの公開 API を再エクスポートする。
# なぜ: import 起点を `pictix` に統一するため。

from __future__ import annotations

from pictix.api import animate_to_file, interact, render, render_to_file
from pictix.core.color import (
    Color,
    black,
    blue,
    from_rgb,
    from_rgba,
    green,
    lightgrey,
    red,
    white,
    yellow,
)
from pictix.core.errors import (
    FontFamilyNotFound,
    InvalidArgument,
    InvalidGeometry,
    IOFailure,
    PictixError,
)
from pictix.core.events import (
    Close,
    Event,
    KeyDown,
    MouseButtonDown,
    MouseButtonUp,
    MouseMotion,
    TimerTick,
)
from pictix.core.fonts import (
    Font,
    FontFamily,
    get_family,
    make_font,
    measure_text,
    system_font_names,
)
from pictix.core.geometry import Rectangle, Transform, get_size
from pictix.core.picture import Picture, explain, make
from pictix.core.tree import (
    Bottom,
    Center,
    Left,
    PrimitiveTree,
    Right,
    Top,
    alignh,
    alignv,
    circle,
    ellipse,
    empty_tree,
    filled_circle,
    filled_ellipse,
    filled_polygon,
    filled_rectangle,
    get_rectangle,
    hcat,
    onto,
    overlay_all,
    piecewise_affine,
    polygon,
    rectangle,
    rotate,
    scale,
    text,
    transform,
    translate,
    vcat,
)

__all__ = [
    "Bottom",
    "Center",
    "Close",
    "Color",
    "Event",
    "Font",
    "FontFamily",
    "FontFamilyNotFound",
    "IOFailure",
    "InvalidArgument",
    "InvalidGeometry",
    "KeyDown",
    "Left",
    "MouseButtonDown",
    "MouseButtonUp",
    "MouseMotion",
    "Picture",
    "PictixError",
    "PrimitiveTree",
    "Rectangle",
    "Right",
    "TimerTick",
    "Top",
    "Transform",
    "alignh",
    "alignv",
    "animate_to_file",
    "black",
    "blue",
    "circle",
    "ellipse",
    "empty_tree",
    "explain",
    "filled_circle",
    "filled_ellipse",
    "filled_polygon",
    "filled_rectangle",
    "from_rgb",
    "from_rgba",
    "get_family",
    "get_rectangle",
    "get_size",
    "green",
    "hcat",
    "interact",
    "lightgrey",
    "make",
    "make_font",
    "measure_text",
    "onto",
    "overlay_all",
    "piecewise_affine",
    "polygon",
    "rectangle",
    "red",
    "render",
    "render_to_file",
    "rotate",
    "scale",
    "system_font_names",
    "text",
    "transform",
    "translate",
    "vcat",
    "white",
    "yellow",
]
