from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, List, Optional

from .document.context import DeclarationContext, define_planner
from .document.declarations import PageDeclaration

GRID_PAGES = (
    ("grid_dot", "Dot Grid"),
    ("grid_graph", "Graph Grid"),
    ("grid_lined", "Lined"),
)

QUARTER_START_MONTHS = (1, 4, 7, 10)


def iso_weeks_in_year(year: int) -> int:
    # Dec 28 always falls in the last ISO week of its year
    return date(year, 12, 28).isocalendar()[1]


def month_for_week(year: int, week_num: int) -> int:
    week = min(week_num, iso_weeks_in_year(year))
    return date.fromisocalendar(year, week, 4).month


@define_planner("standard_planner")
def standard_planner(
    ctx: DeclarationContext,
    year: int,
    theme: Optional[str] = None,
    total_weeks: Optional[int] = None,
    title: Optional[str] = None,
) -> None:
    ctx.metadata(
        title=title or f"Planner {year}",
        author="planner",
        subject=f"Year planner for {year}",
        keywords=f"planner, bullet journal, {year}",
    )
    if theme:
        ctx.theme(theme)

    weeks = total_weeks or iso_weeks_in_year(year)

    seasonal = ctx.page("seasonal", id="seasonal", title="Seasonal Calendar", year=year)

    with ctx.page_set("Index", label_pattern="Index %page of %total", cycle=True) as index:
        for n in range(1, 3):
            ctx.page("index", id=f"index_{n}", title="Index", year=year, index_page=n)

    with ctx.page_set("Future Log", label_pattern="Future Log %page of %total", cycle=True) as future_log:
        for n in range(1, 3):
            ctx.page("future_log", id=f"future_log_{n}", title="Future Log", year=year,
                     future_log_page=n, start_month=(n - 1) * 6 + 1)

    events = ctx.page("year_events", id="year_events", title="Year at a Glance: Events", year=year)
    highlights = ctx.page("year_highlights", id="year_highlights", title="Year at a Glance: Highlights", year=year)

    reviews: Dict[int, PageDeclaration] = {}
    weeks_by_month: Dict[int, List[PageDeclaration]] = {}
    for week_num in range(1, weeks + 1):
        month = month_for_week(year, week_num)
        if month not in reviews:
            if month in QUARTER_START_MONTHS:
                quarter = (month - 1) // 3 + 1
                ctx.page("quarterly_planning", id=f"quarter_{quarter}", title=f"Q{quarter} Planning",
                         year=year, quarter=quarter)
            reviews[month] = ctx.page(
                "monthly_review",
                id=f"review_{month}",
                title=f"{calendar.month_name[month]} Review",
                year=year,
                month=month,
            )
        weeks_by_month.setdefault(month, []).append(
            ctx.page("weekly", id=f"week_{week_num}", title=f"Week {week_num}", year=year, week_num=week_num, month=month)
        )

    with ctx.group("grids", cycle=True) as grids:
        for page_type, label in GRID_PAGES:
            ctx.page(page_type, id=page_type, title=label)

    reference = ctx.page("reference", id="reference", title="Reference")

    with ctx.outline(str(year)):
        ctx.outline_entry("Seasonal Calendar", seasonal)
        ctx.outline_entry("Index", index)
        ctx.outline_entry("Future Log", future_log)
        ctx.outline_entry("Events", events)
        ctx.outline_entry("Highlights", highlights)
    with ctx.outline("Months"):
        for month, review in reviews.items():
            with ctx.outline(calendar.month_name[month], review):
                for page in weeks_by_month.get(month, []):
                    ctx.outline_entry(page.title or page.destination_key, page)
    with ctx.outline("Grids", grids.pages[0]):
        for page in grids.pages:
            ctx.outline_entry(page.title or page.destination_key, page)
    ctx.outline_entry("Reference", reference)
