"""PrimitiveTree の葉・変換・整列代数（`pictix.core.tree`）のテスト。"""

from __future__ import annotations

import math

import pytest

from pictix.core.color import blue, green, red
from pictix.core.errors import InvalidArgument, InvalidGeometry
from pictix.core.fonts import make_font
from pictix.core.geometry import Rectangle, get_size
from pictix.core.tree import (
    Bottom,
    Center,
    Empty,
    Left,
    Overlay,
    Place,
    Right,
    Top,
    TransformNode,
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
    translate,
    vcat,
)


def _box(tree) -> tuple[float, float, float, float]:
    r = get_rectangle(tree)
    return (r.x1, r.y1, r.x2, r.y2)


def _approx(expected):
    return pytest.approx(expected, abs=1e-9)


# --- 葉 -----------------------------------------------------------------------


def test_filled_rectangle_box_starts_at_origin() -> None:
    assert _box(filled_rectangle(red, 10, 20)) == (0.0, 0.0, 10.0, 20.0)


def test_rectangle_stroke_width_decides_fill() -> None:
    assert filled_rectangle(red, 1, 1).filled
    assert not rectangle(red, 2.0, 1, 1).filled


def test_ellipse_is_centred_on_origin() -> None:
    assert _box(filled_ellipse(red, 5, 3)) == (-5.0, -3.0, 5.0, 3.0)
    assert _box(circle(red, 1.0, 4)) == (-4.0, -4.0, 4.0, 4.0)


def test_zero_radius_yields_empty_box() -> None:
    assert get_rectangle(filled_circle(red, 0)).is_empty
    assert get_rectangle(ellipse(red, 1.0, 3, 0)).is_empty


def test_polygon_box_and_fill_flag() -> None:
    tri = polygon(red, [(0, 0), (4, 0), (2, 3)])
    assert _box(tri) == (0.0, 0.0, 4.0, 3.0)
    assert not tri.filled
    assert filled_polygon(red, [(0, 0), (4, 0), (2, 3)]).filled


def test_zero_vertices_yield_empty_leaves() -> None:
    assert get_rectangle(polygon(red, [])).is_empty
    assert get_rectangle(piecewise_affine(red, 1.0, [])).is_empty


def test_too_few_vertices_are_rejected() -> None:
    with pytest.raises(InvalidArgument):
        polygon(red, [(0, 0), (1, 1)])
    with pytest.raises(InvalidArgument):
        piecewise_affine(red, 1.0, [(0, 0)])


def test_piecewise_affine_box() -> None:
    path = piecewise_affine(red, 1.0, [(0, 5), (3, -1), (6, 2)])
    assert _box(path) == (0.0, -1.0, 6.0, 5.0)


@pytest.mark.parametrize(
    "build",
    [
        lambda: filled_rectangle(red, 0, 5),
        lambda: filled_rectangle(red, 5, -1),
        lambda: rectangle(red, -1.0, 5, 5),
        lambda: filled_ellipse(red, -1, 2),
        lambda: piecewise_affine(red, 0.0, [(0, 0), (1, 1)]),
        lambda: polygon(red, [(0, 0), (1, 0), (math.nan, 1)]),
        lambda: polygon(red, [(0, 0), (1, 0), (0, 1)], stroke_width=0.0),
    ],
)
def test_invalid_leaf_arguments_raise(build) -> None:
    with pytest.raises(InvalidArgument):
        build()


def test_non_empty_leaves_have_positive_size(fake_backend) -> None:
    font = make_font("Fake Sans", 12)
    leaves = [
        filled_rectangle(red, 3, 4),
        rectangle(red, 1.0, 3, 4),
        filled_ellipse(red, 2, 1),
        circle(red, 1.0, 2),
        polygon(red, [(0, 0), (4, 0), (2, 3)]),
        piecewise_affine(red, 1.0, [(0, 0), (3, 2)]),
        text(red, font, "hi"),
    ]
    for leaf in leaves:
        w, h = get_size(get_rectangle(leaf))
        assert w > 0 and h > 0


def test_text_box_comes_from_font_measurement(fake_backend) -> None:
    font = make_font("Fake Sans", 10)
    leaf = text(red, font, "abcd")
    assert _box(leaf) == (0.0, 0.0, 20.0, 10.0)
    assert fake_backend.measured == [(font, "abcd")]
    # 計測は構築時の 1 回だけ。
    _ = get_rectangle(alignh(leaf, Top, leaf))
    assert len(fake_backend.measured) == 1


# --- 変換 ---------------------------------------------------------------------


def test_translate_zero_is_noop() -> None:
    p = filled_rectangle(red, 10, 20)
    assert translate(0, 0, p) is p
    assert get_rectangle(translate(0, 0, p)) == get_rectangle(p)


@pytest.mark.parametrize("dx,dy", [(5.0, -3.0), (-0.5, 100.0), (0.0, 7.0)])
def test_translate_shifts_box(dx: float, dy: float) -> None:
    p = filled_ellipse(red, 4, 2)
    r = get_rectangle(p)
    assert _box(translate(dx, dy, p)) == _approx((r.x1 + dx, r.y1 + dy, r.x2 + dx, r.y2 + dy))


def test_nested_translations_compose_into_one_node() -> None:
    p = filled_rectangle(red, 10, 20)
    nested = translate(3, 4, translate(1, 2, p))
    single = translate(4, 6, p)
    assert isinstance(nested, TransformNode)
    assert nested.child is p
    assert nested.transform.to_tuple() == _approx(single.transform.to_tuple())
    assert _box(nested) == _approx(_box(single))


def test_inverse_transforms_collapse_to_child() -> None:
    p = filled_rectangle(red, 10, 20)
    assert translate(-1, -2, translate(1, 2, p)) is p


def test_scale_box() -> None:
    assert _box(scale(2, 3, filled_rectangle(red, 10, 20))) == (0.0, 0.0, 20.0, 60.0)


def test_rotate_about_centre_of_square_keeps_box() -> None:
    sq = filled_rectangle(red, 10, 10)
    assert _box(rotate(5, 5, math.pi / 2, sq)) == _approx((0.0, 0.0, 10.0, 10.0))


def test_transforms_leave_empty_tree_alone() -> None:
    assert translate(5, 5, empty_tree) is empty_tree
    assert get_rectangle(scale(2, 2, empty_tree)).is_empty


# --- 重ね合わせ・整列 -----------------------------------------------------------


def test_onto_with_empty_tree_is_identity_on_box() -> None:
    p = filled_rectangle(red, 10, 20)
    assert get_rectangle(onto(p, empty_tree)) == get_rectangle(p)
    assert get_rectangle(onto(empty_tree, p)) == get_rectangle(p)


def test_onto_unions_without_shifting() -> None:
    a = filled_rectangle(red, 10, 10)
    b = translate(5, 5, filled_rectangle(blue, 10, 10))
    node = onto(a, b)
    assert isinstance(node, Overlay)
    assert node.top is a and node.bottom is b
    assert _box(node) == (0.0, 0.0, 15.0, 15.0)


def test_alignh_top_scenario() -> None:
    tree = alignh(filled_rectangle(red, 10, 10), Top, filled_rectangle(blue, 10, 10))
    assert _box(tree) == (0.0, 0.0, 20.0, 10.0)


def test_alignh_center_aligns_vertical_centres() -> None:
    p1 = filled_rectangle(red, 10, 40)
    p2 = translate(100, 100, filled_ellipse(blue, 3, 5))
    node = alignh(p1, Center, p2)
    assert isinstance(node, Place)
    (dx1, dy1), (dx2, dy2) = node.offsets
    r1 = get_rectangle(p1).translated(dx1, dy1)
    r2 = get_rectangle(p2).translated(dx2, dy2)
    assert r1.x2 == pytest.approx(r2.x1)
    assert (r1.y1 + r1.y2) / 2 == pytest.approx((r2.y1 + r2.y2) / 2)
    # 先頭側は動かない。
    assert (dx1, dy1) == (0.0, 0.0)


def test_alignh_bottom_aligns_bottom_edges() -> None:
    tree = alignh(filled_rectangle(red, 10, 30), Bottom, filled_rectangle(blue, 5, 10))
    assert _box(tree) == (0.0, 0.0, 15.0, 30.0)
    (_, _), (dx2, dy2) = tree.offsets
    assert (dx2, dy2) == (10.0, 20.0)


def test_alignv_left_right_center() -> None:
    a = filled_rectangle(red, 20, 10)
    b = filled_rectangle(blue, 10, 5)
    assert alignv(a, Left, b).offsets[1] == (0.0, 10.0)
    assert alignv(a, Right, b).offsets[1] == (10.0, 10.0)
    assert alignv(a, Center, b).offsets[1] == (5.0, 10.0)
    assert _box(alignv(a, Center, b)) == (0.0, 0.0, 20.0, 15.0)


def test_alignment_fraction_outside_unit_range_extrapolates() -> None:
    a = filled_rectangle(red, 10, 10)
    b = filled_rectangle(blue, 10, 20)
    # pos=2: a の y=20 と b の y=40 が揃う -> b は 20 上へ動く。
    node = alignh(a, 2.0, b)
    assert node.offsets[1] == (10.0, -20.0)
    assert _box(node) == (0.0, -20.0, 20.0, 10.0)


def test_alignment_rejects_non_finite_fraction() -> None:
    a = filled_rectangle(red, 1, 1)
    with pytest.raises(InvalidArgument):
        alignh(a, math.nan, a)


def test_align_with_empty_tree_returns_other_side() -> None:
    p = filled_rectangle(red, 10, 20)
    assert alignh(p, Center, empty_tree) is p
    assert alignv(empty_tree, Left, p) is p


def test_hcat_and_vcat_fold_in_order() -> None:
    items = [filled_rectangle(red, 10, 10), filled_rectangle(green, 20, 5), filled_rectangle(blue, 5, 30)]
    assert _box(hcat(items)) == (0.0, 0.0, 35.0, 30.0)
    assert _box(vcat(items)) == (0.0, 0.0, 20.0, 45.0)
    assert isinstance(hcat([]), Empty)


def test_deep_hcat_does_not_hit_recursion_limit() -> None:
    items = [filled_rectangle(red, 1, 1) for _ in range(5000)]
    assert _box(hcat(items)) == (0.0, 0.0, 5000.0, 1.0)


def test_overlay_all_puts_first_item_on_top() -> None:
    a = filled_rectangle(red, 1, 1)
    b = filled_rectangle(green, 2, 2)
    c = filled_rectangle(blue, 3, 3)
    node = overlay_all([a, b, c])
    assert isinstance(node, Overlay)
    assert node.top is a
    assert node.bottom.top is b and node.bottom.bottom is c
    assert _box(node) == (0.0, 0.0, 3.0, 3.0)
    assert overlay_all([]) is empty_tree


def test_trees_share_structure_without_mutation() -> None:
    shared = filled_rectangle(red, 10, 10)
    left = alignh(shared, Top, shared)
    right = onto(translate(3, 3, shared), shared)
    assert _box(left) == (0.0, 0.0, 20.0, 10.0)
    assert _box(right) == (0.0, 0.0, 13.0, 13.0)
    assert _box(shared) == (0.0, 0.0, 10.0, 10.0)


def test_get_rectangle_rejects_non_tree() -> None:
    with pytest.raises(InvalidArgument):
        get_rectangle(Rectangle(0, 0, 1, 1))  # type: ignore[arg-type]


def test_flat_path_box_lays_out_but_fails_size_check() -> None:
    line = piecewise_affine(red, 1.0, [(0, 0), (10, 0)])
    assert get_rectangle(line) == Rectangle(0.0, 0.0, 10.0, 0.0)
    row = alignh(line, Top, filled_rectangle(blue, 4, 4))
    assert get_rectangle(row) == Rectangle(0.0, 0.0, 14.0, 4.0)
    with pytest.raises(InvalidGeometry):
        get_size(get_rectangle(line))
