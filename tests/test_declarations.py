from __future__ import annotations

from datetime import date
from enum import Enum
import unittest

import pytest

from planner.document.context import DeclarationContext
from planner.document.declarations import (
    DeclarationError,
    DocumentMetadata,
    PageDeclaration,
    destination_key_for,
)
from planner.document.page_set import PageSet, PageSetFinalizedError, SetContext


class Quarter(Enum):
    Q1 = "q1"


class DestinationKeyTests(unittest.TestCase):
    def test_no_params(self) -> None:
        self.assertEqual(destination_key_for("seasonal", {}), "seasonal")

    def test_params_sorted_by_name(self) -> None:
        self.assertEqual(destination_key_for("monthly", {"year": 2025, "month": 3}), "monthly_month_3_year_2025")
        self.assertEqual(destination_key_for("weekly", {"week_num": 1}), "weekly_week_num_1")

    def test_value_formats(self) -> None:
        self.assertEqual(destination_key_for("daily", {"date": date(2025, 1, 6)}), "daily_date_20250106")
        self.assertEqual(destination_key_for("x", {"flag": True, "empty": None}), "x_empty_nil_flag_true")
        self.assertEqual(destination_key_for("plan", {"quarter": Quarter.Q1}), "plan_quarter_q1")
        self.assertEqual(destination_key_for("note", {"topic": "Foo Bar"}), "note_topic_Foo Bar")

    def test_id_overrides_derived_key(self) -> None:
        decl = PageDeclaration("weekly", id="week_1", params={"week_num": 1})
        self.assertEqual(decl.destination_key, "week_1")
        self.assertEqual(PageDeclaration("weekly", params={"week_num": 1}).destination_key, "weekly_week_num_1")

    def test_key_is_stable_across_param_order(self) -> None:
        a = PageDeclaration("monthly", params={"month": 3, "year": 2025})
        b = PageDeclaration("monthly", params={"year": 2025, "month": 3})
        self.assertEqual(a.destination_key, b.destination_key)


class PageDeclarationTests(unittest.TestCase):
    def test_set_context_assigned_once(self) -> None:
        decl = PageDeclaration("index")
        decl.set_context = SetContext(1, 2, "Index 1 of 2", "Index")
        with self.assertRaises(DeclarationError):
            decl.set_context = SetContext(1, 1, None, "Other")

    def test_params_are_copied(self) -> None:
        decl = PageDeclaration("weekly", params={"week_num": 1})
        decl.params["week_num"] = 99
        self.assertEqual(decl.params, {"week_num": 1})

    def test_outline_label_precedence(self) -> None:
        decl = PageDeclaration("index", title="Index", outline_title="Index pages")
        self.assertEqual(decl.outline_label, "Index pages")
        decl.set_context = SetContext(2, 2, "Index 2 of 2", "Index")
        self.assertEqual(decl.outline_label, "Index 2 of 2")
        self.assertEqual(PageDeclaration("reference", title="Reference").outline_label, "Reference")

    def test_matches(self) -> None:
        decl = PageDeclaration("weekly", params={"week_num": 3, "month": 1})
        self.assertTrue(decl.matches("weekly", week_num=3))
        self.assertFalse(decl.matches("weekly", week_num=4))
        self.assertFalse(decl.matches("monthly_review", month=1))

    def test_page_type_required(self) -> None:
        with self.assertRaises(DeclarationError):
            PageDeclaration("")


class PageSetTests(unittest.TestCase):
    def _set(self, count: int, pattern: str = "Index %page of %total") -> PageSet:
        page_set = PageSet("Index", label_pattern=pattern)
        for n in range(count):
            page_set.add(PageDeclaration("index", id=f"index_{n + 1}"))
        return page_set

    def test_finalize_back_fills_positions(self) -> None:
        page_set = self._set(3)
        page_set.finalize()
        contexts = [page.set_context for page in page_set]
        self.assertEqual([c.position for c in contexts], [1, 2, 3])
        self.assertEqual({c.total for c in contexts}, {3})
        self.assertEqual([c.label for c in contexts], ["Index 1 of 3", "Index 2 of 3", "Index 3 of 3"])
        self.assertTrue(contexts[0].first)
        self.assertFalse(contexts[0].last)
        self.assertTrue(contexts[2].last)

    def test_context_unset_until_finalize(self) -> None:
        page_set = self._set(2)
        self.assertIsNone(page_set[0].set_context)
        self.assertFalse(page_set.finalized)

    def test_add_after_finalize(self) -> None:
        page_set = self._set(1)
        page_set.finalize()
        with self.assertRaises(PageSetFinalizedError):
            page_set.add(PageDeclaration("index", id="index_late"))

    def test_finalize_twice(self) -> None:
        page_set = self._set(1)
        page_set.finalize()
        with self.assertRaises(PageSetFinalizedError):
            page_set.finalize()

    def test_single_page_is_first_and_last(self) -> None:
        page_set = self._set(1, pattern="%page/%total")
        page_set.finalize()
        ctx = page_set.first().set_context
        self.assertTrue(ctx.first and ctx.last)
        self.assertEqual(ctx.label, "1/1")

    def test_outline_entry_points_at_first_page(self) -> None:
        page_set = self._set(2)
        entry = page_set.outline_entry()
        self.assertEqual((entry.title, entry.dest), ("Index", "index_1"))
        self.assertIsNone(PageSet("Empty").outline_entry())


@pytest.mark.parametrize("count", [1, 2, 5, 12])
def test_positions_are_contiguous(count: int) -> None:
    page_set = PageSet("Log", label_pattern="Log %page of %total")
    for n in range(count):
        page_set.add(PageDeclaration("log", params={"n": n}))
    page_set.finalize()
    assert [page.set_context.position for page in page_set] == list(range(1, count + 1))
    assert all("%" not in page.set_context.label for page in page_set)


def test_context_collects_pages_groups_and_sets() -> None:
    ctx = DeclarationContext()
    ctx.page("seasonal", id="seasonal")
    with ctx.page_set("Index", label_pattern="Index %page of %total") as index:
        ctx.page("index", id="index_1")
        ctx.page("index", id="index_2")
    with ctx.group("grids", cycle=True) as grids:
        ctx.page("grid_dot", id="grid_dot")
        ctx.page("grid_graph", id="grid_graph")

    assert [p.destination_key for p in ctx.pages] == ["seasonal", "index_1", "index_2", "grid_dot", "grid_graph"]
    assert index.finalized
    assert ctx.pages[2].set_context.label == "Index 2 of 2"
    assert grids.destination_keys == ["grid_dot", "grid_graph"]
    assert ctx.pages[3] is grids.pages[0]


def test_context_nested_outline() -> None:
    ctx = DeclarationContext()
    week = ctx.page("weekly", id="week_1")
    review = ctx.page("monthly_review", id="review_1")
    with ctx.outline("2025"):
        with ctx.outline("January", review):
            ctx.outline_entry("Week 1", week)
    ctx.outline_entry("Loose", "missing")

    top = ctx.outline_entries
    assert [entry.title for entry in top] == ["2025", "Loose"]
    assert top[0].is_section
    assert top[0].children[0].dest == "review_1"
    assert top[0].children[0].children[0].dest == "week_1"


def test_context_rejects_duplicate_group() -> None:
    ctx = DeclarationContext()
    with ctx.group("grids"):
        pass
    with pytest.raises(DeclarationError):
        with ctx.group("grids"):
            pass


def test_context_theme_and_metadata() -> None:
    ctx = DeclarationContext()
    ctx.theme("Earth")
    assert ctx.theme_name == "earth"
    with pytest.raises(ValueError):
        ctx.theme("neon")
    ctx.metadata(title="Planner 2025", author="me")
    with pytest.raises(DeclarationError):
        ctx.metadata(colour="red")
    assert ctx.document_metadata.as_pdf_info()["Title"] == "Planner 2025"


def test_metadata_drops_empty_fields() -> None:
    info = DocumentMetadata(title="T", creator=None).as_pdf_info()
    assert info == {"Title": "T"}


def test_cycling_page_set_navigates_as_group() -> None:
    from planner.document.registry import LinkRegistry

    ctx = DeclarationContext()
    with ctx.page_set("Index", label_pattern="Index %page of %total", cycle=True):
        ctx.page("index", id="index_1")
        ctx.page("index", id="index_2")
    with ctx.page_set("Log"):
        ctx.page("log", id="log_1")

    assert list(ctx.groups) == ["Index"]
    assert ctx.groups["Index"].destination_keys == ["index_1", "index_2"]

    registry = LinkRegistry()
    registry.register_all(ctx.pages, ctx.groups.values())
    assert registry.next_in_cycle("Index", "index_2").destination_key == "index_1"


def test_cycling_page_set_name_clashes_with_group() -> None:
    ctx = DeclarationContext()
    with ctx.group("Index"):
        pass
    with pytest.raises(DeclarationError):
        with ctx.page_set("Index", cycle=True):
            pass
