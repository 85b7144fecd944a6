from __future__ import annotations

import unittest

import pytest

from planner.layout.engine import compute_bounds, distribute_equal, distribute_flex
from planner.layout.nodes import (
    Bounds,
    LayoutError,
    TextNode,
    box,
    columns,
    grid,
    rows,
    section,
)


class ContainerTests(unittest.TestCase):
    def test_fixed_then_flex_children(self) -> None:
        page = section("page", direction="vertical")
        header = page.add_child(box("header", height=10))
        small = page.add_child(box("small", flex=1))
        large = page.add_child(box("large", flex=2))

        compute_bounds(page, Bounds(0, 0, 40, 55))

        self.assertEqual([header.computed_bounds.height, small.computed_bounds.height,
                          large.computed_bounds.height], [10, 15, 30])
        self.assertEqual([header.computed_bounds.row, small.computed_bounds.row,
                          large.computed_bounds.row], [0, 10, 25])
        for child in page.children:
            self.assertEqual(child.computed_bounds.width, 40)

    def test_gap_only_between_children(self) -> None:
        page = section("page", direction="vertical", gap=1)
        a = page.add_child(box(height=10))
        b = page.add_child(box(flex=1))
        c = page.add_child(box(flex=2))

        compute_bounds(page, Bounds(0, 0, 40, 55))

        self.assertEqual([a.computed_bounds.row, b.computed_bounds.row, c.computed_bounds.row], [0, 11, 26])
        self.assertEqual([b.computed_bounds.height, c.computed_bounds.height], [14, 29])
        self.assertEqual(c.computed_bounds.bottom, 55)

    def test_horizontal_container_uses_columns(self) -> None:
        bar = section("bar", direction="horizontal")
        left = bar.add_child(box(width=3))
        middle = bar.add_child(box(flex=1))
        right = bar.add_child(box(width=5))

        compute_bounds(bar, Bounds(2, 4, 20, 2))

        self.assertEqual(left.computed_bounds, Bounds(2, 4, 3, 2))
        self.assertEqual(middle.computed_bounds, Bounds(5, 4, 12, 2))
        self.assertEqual(right.computed_bounds, Bounds(17, 4, 5, 2))

    def test_child_without_size_or_flex_gets_nothing(self) -> None:
        page = section("page")
        idle = page.add_child(box("idle"))
        rest = page.add_child(box("rest", flex=1))

        compute_bounds(page, Bounds(0, 0, 10, 20))

        self.assertEqual(idle.computed_bounds.height, 0)
        self.assertEqual(rest.computed_bounds, Bounds(0, 0, 10, 20))

    def test_zero_children_keeps_own_bounds(self) -> None:
        page = section("page")
        result = compute_bounds(page, Bounds(1, 2, 3, 4))
        self.assertEqual(result, Bounds(1, 2, 3, 4))
        self.assertEqual(page.computed_bounds, Bounds(1, 2, 3, 4))

    def test_fixed_children_fill_exactly(self) -> None:
        page = section("page", direction="horizontal", gap=2)
        sizes = [3, 7, 1, 4]
        for size in sizes:
            page.add_child(box(width=size))

        compute_bounds(page, Bounds(0, 0, 50, 5))

        offsets = [child.computed_bounds.col for child in page.children]
        self.assertEqual(offsets, sorted(set(offsets)))
        last = page.children[-1].computed_bounds
        self.assertEqual(last.right - page.computed_bounds.col, sum(sizes) + 2 * (len(sizes) - 1))

    def test_bounds_none_before_compute(self) -> None:
        page = section("page")
        child = page.add_child(box(flex=1))
        self.assertIsNone(page.computed_bounds)
        self.assertIsNone(child.computed_bounds)


class BoxRuleTests(unittest.TestCase):
    def test_fixed_size_is_used_verbatim(self) -> None:
        node = box(width=50, height=3)
        self.assertEqual(compute_bounds(node, Bounds(0, 0, 10, 10)), Bounds(0, 0, 50, 3))

    def test_min_max_clamp_available(self) -> None:
        node = box(max_width=6, min_height=12)
        self.assertEqual(compute_bounds(node, Bounds(1, 1, 10, 10)), Bounds(1, 1, 6, 12))

    def test_fills_available_by_default(self) -> None:
        node = box()
        self.assertEqual(compute_bounds(node, Bounds(3, 4, 5, 6)), Bounds(3, 4, 5, 6))

    def test_unknown_constraint_rejected(self) -> None:
        with self.assertRaises(LayoutError):
            box(colour="red")


class ColumnsRowsGridTests(unittest.TestCase):
    def test_seven_columns_over_37(self) -> None:
        node = columns("week", count=7)
        compute_bounds(node, Bounds(0, 0, 37, 10))
        self.assertEqual([node.column_bounds(i).width for i in range(7)], [5, 5, 5, 5, 5, 5, 7])
        self.assertEqual([b.col for _, b in node.each_column()], [0, 5, 10, 15, 20, 25, 30])
        self.assertIsNone(node.column_bounds(7))

    def test_columns_with_gap(self) -> None:
        node = columns(count=3, gap=1)
        compute_bounds(node, Bounds(0, 0, 20, 4))
        self.assertEqual([(b.col, b.width) for _, b in node.each_column()], [(0, 6), (7, 6), (14, 6)])

    def test_explicit_widths_use_running_offset(self) -> None:
        node = columns(widths=[3, 4, 5])
        compute_bounds(node, Bounds(2, 0, 30, 4))
        self.assertEqual([(b.col, b.width) for _, b in node.each_column()], [(2, 3), (5, 4), (9, 5)])

    def test_rows_split_height(self) -> None:
        node = rows(count=4)
        compute_bounds(node, Bounds(0, 3, 10, 22))
        self.assertEqual([(b.row, b.height) for _, b in node.each_row()], [(3, 5), (8, 5), (13, 5), (18, 7)])
        self.assertEqual(node.row_count, 4)

    def test_children_laid_out_per_slice(self) -> None:
        node = columns(count=3)
        labels = [node.add_child(TextNode(content=day)) for day in ("Mon", "Tue", "Wed")]
        compute_bounds(node, Bounds(0, 0, 9, 2))
        self.assertEqual([label.computed_bounds for label in labels],
                         [Bounds(0, 0, 3, 2), Bounds(3, 0, 3, 2), Bounds(6, 0, 3, 2)])

    def test_too_many_children(self) -> None:
        node = rows(count=1)
        node.add_child(box())
        node.add_child(box())
        with self.assertRaises(LayoutError):
            compute_bounds(node, Bounds(0, 0, 5, 5))

    def test_count_or_sizes_required(self) -> None:
        with self.assertRaises(LayoutError):
            columns()
        with self.assertRaises(LayoutError):
            columns(count=2, widths=[1, 2])
        with self.assertRaises(LayoutError):
            rows(count=0)
        with self.assertRaises(LayoutError):
            rows(heights=[])

    def test_grid_cells_are_slice_intersections(self) -> None:
        node = grid("months", cols=3, rows=2, col_gap=1, row_gap=1)
        compute_bounds(node, Bounds(1, 2, 31, 11))

        self.assertEqual(node.cell_bounds(1, 2), Bounds(21, 8, 11, 5))
        for r in range(2):
            for c in range(3):
                expected = node.row_slices[r].intersect(node.col_slices[c])
                self.assertEqual(node.cell_bounds(r, c), expected)
        self.assertIsNone(node.cell_bounds(2, 0))

    def test_grid_iterates_row_major(self) -> None:
        node = grid(cols=2, rows=2)
        cells = [child for child in (node.add_child(box()) for _ in range(4))]
        compute_bounds(node, Bounds(0, 0, 10, 10))
        self.assertEqual([(r, c) for r, c, _ in node.each_cell()], [(0, 0), (0, 1), (1, 0), (1, 1)])
        self.assertEqual(cells[1].computed_bounds, Bounds(5, 0, 5, 5))
        self.assertEqual(cells[2].computed_bounds, Bounds(0, 5, 5, 5))

    def test_grid_requires_positive_size(self) -> None:
        with self.assertRaises(LayoutError):
            grid(cols=0, rows=3)

    def test_content_node_rejects_children(self) -> None:
        with self.assertRaises(LayoutError):
            TextNode(content="x").add_child(box())


@pytest.mark.parametrize("total", range(1, 61))
def test_equal_division_sums_to_total(total: int) -> None:
    for count in range(1, total + 1):
        sizes = distribute_equal(total, count)
        assert sum(sizes) == total
        assert all(size == total // count for size in sizes[:-1])


def test_equal_division_rejects_zero_count() -> None:
    with pytest.raises(LayoutError):
        distribute_equal(10, 0)


@pytest.mark.parametrize("weights", [[1], [1, 1], [1, 2], [3, 1, 1], [1, 1, 1, 1, 1, 1, 1], [2, 5, 3]])
def test_flex_shares_sum_exactly(weights) -> None:
    for remaining in range(0, 50):
        shares = distribute_flex(remaining, weights)
        assert sum(shares) == remaining
        total = sum(weights)
        assert shares[:-1] == [remaining * w // total for w in weights[:-1]]


def test_nested_children_stay_inside_parent() -> None:
    page = section("page", gap=1)
    header = page.add_child(section("header", direction="horizontal", height=4))
    header.add_child(box(width=5))
    header.add_child(box(flex=1))
    body = page.add_child(columns("body", count=3, gap=1, flex=1))
    for _ in range(3):
        body.add_child(box())

    compute_bounds(page, Bounds(2, 2, 40, 53))

    for node in page.walk():
        for child in node.children:
            assert node.computed_bounds.contains(child.computed_bounds)
