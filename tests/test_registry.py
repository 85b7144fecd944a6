from __future__ import annotations

import unittest

from planner.document.declarations import GroupDeclaration, PageDeclaration
from planner.document.registry import (
    DuplicateDestinationError,
    LinkRegistry,
    LinkResolver,
    RegistryStateError,
)


def _weeks(count: int) -> list:
    return [PageDeclaration("weekly", id=f"week_{n}", params={"week_num": n, "month": 1}) for n in range(1, count + 1)]


class LinkRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.review = PageDeclaration("monthly_review", params={"year": 2025, "month": 1})
        self.weeks = _weeks(3)
        self.grids = GroupDeclaration("grids", cycle=True)
        for key in ("grid_dot", "grid_graph", "grid_lined"):
            self.grids.add_page(PageDeclaration(key, id=key))
        self.pages = [self.review] + self.weeks + self.grids.pages
        self.registry = LinkRegistry()
        self.registry.register_all(self.pages, [self.grids])

    def test_sequential_page_numbers(self) -> None:
        numbers = [self.registry.resolve_key(p.destination_key).page_number for p in self.pages]
        self.assertEqual(numbers, list(range(1, len(self.pages) + 1)))
        self.assertEqual(self.registry.size, len(self.pages))

    def test_resolve_exact_params(self) -> None:
        info = self.registry.resolve("monthly_review", year=2025, month=1)
        self.assertEqual(info.page_number, 1)
        self.assertEqual(info.destination_key, "monthly_review_month_1_year_2025")

    def test_resolve_differing_param_misses(self) -> None:
        self.assertIsNone(self.registry.resolve("monthly_review", year=2025, month=2))
        self.assertIsNone(self.registry.resolve("monthly_review", year=2024, month=1))
        self.assertIsNone(self.registry.resolve("weekly", week_num=9))
        self.assertIsNone(self.registry.resolve("nope"))

    def test_resolve_by_subset_of_params(self) -> None:
        info = self.registry.resolve("weekly", week_num=2)
        self.assertEqual(info.destination_key, "week_2")
        self.assertEqual(info.page_number, 3)

    def test_key_lookups(self) -> None:
        self.assertTrue(self.registry.key_exists("week_3"))
        self.assertFalse(self.registry.key_exists("week_4"))
        self.assertIsNone(self.registry.resolve_key("week_4"))
        self.assertTrue(self.registry.exists("weekly", week_num=1))

    def test_cycle_wraps(self) -> None:
        nxt = self.registry.next_in_cycle
        self.assertEqual(nxt("grids", "grid_dot").destination_key, "grid_graph")
        self.assertEqual(nxt("grids", "grid_graph").destination_key, "grid_lined")
        self.assertEqual(nxt("grids", "grid_lined").destination_key, "grid_dot")

    def test_cycle_entered_from_outside(self) -> None:
        # tab navigation from a non-member page enters the cycle at its first page
        self.assertEqual(self.registry.next_in_cycle("grids", "week_1").destination_key, "grid_dot")
        self.assertEqual(self.registry.next_in_cycle("grids", None).destination_key, "grid_dot")

    def test_cycle_unknown_or_plain_group(self) -> None:
        self.assertIsNone(self.registry.next_in_cycle("missing", "grid_dot"))
        plain = GroupDeclaration("plain", cycle=False, pages=list(self.weeks))
        registry = LinkRegistry()
        registry.register_all(self.weeks, [plain])
        self.assertIsNone(registry.next_in_cycle("plain", "week_1"))
        self.assertEqual([i.destination_key for i in registry.group("plain")], ["week_1", "week_2", "week_3"])

    def test_destinations_for_type(self) -> None:
        keys = [info.destination_key for info in self.registry.destinations_for_type("weekly")]
        self.assertEqual(keys, ["week_1", "week_2", "week_3"])
        self.assertEqual(self.registry.destinations_for_type("daily"), [])


class RegistryStateTests(unittest.TestCase):
    def test_duplicate_key(self) -> None:
        registry = LinkRegistry()
        registry.register(PageDeclaration("weekly", params={"week_num": 1}), 1)
        with self.assertRaises(DuplicateDestinationError):
            registry.register(PageDeclaration("weekly", params={"week_num": 1}), 2)

    def test_resolve_before_seal(self) -> None:
        registry = LinkRegistry()
        registry.register(PageDeclaration("seasonal"), 1)
        with self.assertRaises(RegistryStateError):
            registry.resolve_key("seasonal")
        with self.assertRaises(RegistryStateError):
            registry.resolve("seasonal")

    def test_register_after_seal(self) -> None:
        registry = LinkRegistry()
        registry.register_all([PageDeclaration("seasonal")])
        with self.assertRaises(RegistryStateError):
            registry.register(PageDeclaration("reference"), 2)
        with self.assertRaises(RegistryStateError):
            registry.register_group(GroupDeclaration("late"))


class LinkResolverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.weeks = _weeks(3)
        self.grids = GroupDeclaration("grids", cycle=True)
        for key in ("grid_dot", "grid_graph"):
            self.grids.add_page(PageDeclaration(key, id=key))
        self.registry = LinkRegistry()
        self.registry.register_all(self.weeks + self.grids.pages, [self.grids])

    def resolver(self, current: PageDeclaration, total_weeks: int = 3) -> LinkResolver:
        return LinkResolver(self.registry, current, total_weeks=total_weeks)

    def test_prev_week_boundary(self) -> None:
        self.assertIsNone(self.resolver(self.weeks[0]).dest_for_prev_week())
        self.assertEqual(self.resolver(self.weeks[1]).dest_for_prev_week().destination_key, "week_1")

    def test_next_week_boundary(self) -> None:
        self.assertIsNone(self.resolver(self.weeks[2]).dest_for_next_week())
        self.assertEqual(self.resolver(self.weeks[0]).dest_for_next_week().destination_key, "week_2")

    def test_explicit_week_num(self) -> None:
        resolver = self.resolver(self.grids.pages[0])
        self.assertIsNone(resolver.dest_for_prev_week())
        self.assertEqual(resolver.dest_for_prev_week(week_num=3).page_number, 2)
        self.assertIsNone(resolver.dest_for_next_week(week_num=3, total_weeks=3))

    def test_default_total_weeks(self) -> None:
        resolver = LinkResolver(self.registry, self.weeks[2])
        self.assertEqual(resolver.total_weeks, 53)
        self.assertIsNone(resolver.dest_for_next_week())

    def test_group_navigation(self) -> None:
        on_dot = self.resolver(self.grids.pages[0])
        self.assertTrue(on_dot.in_group("grids"))
        self.assertEqual(on_dot.next_in_group("grids").destination_key, "grid_graph")
        on_week = self.resolver(self.weeks[0])
        self.assertFalse(on_week.in_group("grids"))
        self.assertEqual(on_week.next_in_group("grids").destination_key, "grid_dot")
        self.assertEqual(len(on_week.group_destinations("grids")), 2)
        self.assertEqual(on_week.group_destinations("missing"), [])

    def test_page_number_for(self) -> None:
        resolver = self.resolver(self.weeks[0])
        self.assertEqual(resolver.page_number_for("grid_graph"), 5)
        self.assertIsNone(resolver.page_number_for("weekly", week_num=10))
