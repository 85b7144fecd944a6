from __future__ import annotations

import calendar
import logging
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.pdfgen import canvas

from ..config import load_style_preset
from ..document.builder import BuildResult, DocumentBuilder, OutlineNode, PageRenderContext
from ..document.context import PlannerDefinition
from ..document.declarations import DocumentMetadata, PageDeclaration
from ..document.registry import DestinationInfo
from ..layout.builder import LayoutBuilder
from ..layout.grid import Background, GridSystem, PageLayout, PointRect, SidebarPosition
from ..layout.nodes import Bounds, LayoutNode
from ..layout.renderer import LayoutRenderer

logger = logging.getLogger(__name__)

PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "letter": LETTER,
    "a4": A4,
}


def _hex(value: str, default=colors.black) -> colors.Color:
    if not value:
        return default
    try:
        return colors.HexColor("#" + str(value).lstrip("#"))
    except ValueError:
        return default


def _s(style: dict, key: str, default):
    return style.get(key, default)


def _fit_font(canv: canvas.Canvas, text: str, font_name: str, base_size: float, max_width: float,
              min_size: float = 4.0) -> float:
    """Shrink the font until ``text`` fits ``max_width``."""
    size = float(base_size)
    while size > min_size:
        if canv.stringWidth(text, font_name, size) <= max_width:
            return size
        size -= 0.5
    return min_size


def _font_for(style: dict, text_style: str) -> Tuple[str, float]:
    bold = text_style in ("title", "header")
    font = str(_s(style, "font_name_bold" if bold else "font_name", "Helvetica"))
    size = float(_s(style, f"{text_style}_size", _s(style, "body_size", 9)))
    return font, size


class PdfCanvasBackend:
    """Drawing backend for :class:`DocumentBuilder` writing through a reportlab canvas."""

    def __init__(self, output_path: Path, page_size: Tuple[float, float] = LETTER) -> None:
        self.output_path = Path(output_path)
        self.page_size = page_size
        self.canv = canvas.Canvas(str(self.output_path), pagesize=page_size)
        self.current: Optional[PageDeclaration] = None
        self._forms: Set[str] = set()

    def set_metadata(self, metadata: DocumentMetadata) -> None:
        setters = {
            "Title": self.canv.setTitle,
            "Author": self.canv.setAuthor,
            "Subject": self.canv.setSubject,
            "Keywords": self.canv.setKeywords,
            "Creator": self.canv.setCreator,
            "Producer": self.canv.setProducer,
        }
        for key, value in metadata.as_pdf_info().items():
            setters[key](value)

    def begin_page(self, decl: PageDeclaration, page_number: int, anchors: Iterable[str] = ()) -> None:
        self.current = decl
        self.canv.bookmarkPage(decl.destination_key)
        for anchor in anchors:
            self.canv.bookmarkPage(anchor)

    def end_page(self) -> None:
        self.canv.showPage()
        self.current = None

    def link(self, rect: Tuple[float, float, float, float], destination_key: str) -> None:
        self.canv.linkRect("", destination_key, Rect=rect, relative=0, thickness=0)

    def dot_grid_form(self, grid: GridSystem, color: str, radius: float) -> str:
        """Name of a form holding the full-page dot grid, defined on first use."""
        name = f"dot_grid_{color.lstrip('#')}"
        if name in self._forms:
            return name
        canv = self.canv
        canv.beginForm(name)
        canv.setFillColor(_hex(color, colors.lightgrey))
        for row in range(grid.rows + 1):
            for col in range(grid.cols + 1):
                canv.circle(grid.x(col), grid.y(row), radius, stroke=0, fill=1)
        canv.endForm()
        self._forms.add(name)
        return name

    def add_outline(self, nodes: List[OutlineNode], level: int = 0) -> None:
        # reportlab keeps one title per bookmark name, so each entry uses its own anchor
        for node in nodes:
            if node.anchor is None:
                continue
            self.canv.addOutlineEntry(node.title, node.anchor, level=level, closed=level > 0)
            self.add_outline(node.children, level + 1)

    def finish(self) -> None:
        self.canv.save()


# ---------------------------------------------------------------------------
# Leaf handlers: (canv, style, grid, backend, node, rect)
# ---------------------------------------------------------------------------


def _draw_text(canv, style, grid, backend, node, rect: PointRect) -> None:
    if not node.content:
        return
    font, base = _font_for(style, node.style)
    size = _fit_font(canv, node.content, font, base, rect.width)
    canv.setFont(font, size)
    color_key = "header_color" if node.style == "header" else "primary_color"
    canv.setFillColor(_hex(_s(style, color_key, "#000000")))

    if node.valign == "center":
        y = rect.y - rect.height / 2 - size / 3
    elif node.valign == "bottom":
        y = rect.bottom + size / 3
    else:
        y = rect.y - size - 1

    if node.align == "center":
        canv.drawCentredString(rect.x + rect.width / 2, y, node.content)
    elif node.align == "right":
        canv.drawRightString(rect.x + rect.width, y, node.content)
    else:
        canv.drawString(rect.x + 2, y, node.content)


def _draw_field(canv, style, grid, backend, node, rect: PointRect) -> None:
    if node.background == "fill":
        canv.setFillColor(_hex(_s(style, "header_fill", "#F3F4F6")))
        canv.rect(rect.x, rect.bottom, rect.width, rect.height, stroke=0, fill=1)

    top = rect.y
    if node.label:
        font, size = _font_for(style, "footer")
        canv.setFont(font, size)
        canv.setFillColor(_hex(_s(style, "secondary_color", "#888888")))
        canv.drawString(rect.x + 2, rect.y - size - 1, node.label)

    if node.line_style == "none":
        return
    count = node.lines or int(rect.height // grid.dot_spacing)
    if count <= 0:
        return
    step = rect.height / count
    canv.setStrokeColor(_hex(_s(style, "border_color", "#E5E5E5")))
    canv.setLineWidth(float(_s(style, "line_width", 0.25)))
    for i in range(1, count + 1):
        y = top - i * step
        canv.line(rect.x, y, rect.x + rect.width, y)


def _draw_dot_grid(canv, style, grid, backend, node, rect: PointRect) -> None:
    step = grid.dot_spacing * node.spacing
    radius = float(_s(style, "dot_radius", 0.5))
    canv.setFillColor(_hex(_s(style, "grid_color", "#CCCCCC")))
    y = rect.y
    while y >= rect.bottom - 0.01:
        x = rect.x
        while x <= rect.x + rect.width + 0.01:
            canv.circle(x, y, radius, stroke=0, fill=1)
            x += step
        y -= step


def _draw_graph_grid(canv, style, grid, backend, node, rect: PointRect) -> None:
    step = grid.dot_spacing * node.spacing
    canv.setStrokeColor(_hex(_s(style, "grid_color", "#CCCCCC")))
    canv.setLineWidth(float(_s(style, "line_width", 0.25)))
    x = rect.x
    while x <= rect.x + rect.width + 0.01:
        canv.line(x, rect.bottom, x, rect.y)
        x += step
    y = rect.y
    while y >= rect.bottom - 0.01:
        canv.line(rect.x, y, rect.x + rect.width, y)
        y -= step


def _draw_ruled_lines(canv, style, grid, backend, node, rect: PointRect) -> None:
    step = grid.dot_spacing * node.spacing
    canv.saveState()
    canv.setStrokeColor(_hex(_s(style, "grid_color", "#CCCCCC")))
    canv.setLineWidth(float(_s(style, "line_width", 0.25)))
    if node.line_style == "dashed":
        canv.setDash(2, 2)
    y = rect.y - step
    while y >= rect.bottom - 0.01:
        canv.line(rect.x, y, rect.x + rect.width, y)
        y -= step
    canv.restoreState()


def _draw_divider(canv, style, grid, backend, node, rect: PointRect) -> None:
    canv.saveState()
    canv.setStrokeColor(_hex(_s(style, "border_color", "#E5E5E5")))
    canv.setLineWidth(node.thickness)
    if node.line_style == "dashed":
        canv.setDash(2, 2)
    cx, cy = rect.center
    if node.orientation == "vertical":
        canv.line(cx, rect.bottom, cx, rect.y)
    else:
        canv.line(rect.x, cy, rect.x + rect.width, cy)
    canv.restoreState()


def _highlight(canv, style, rect: PointRect) -> None:
    canv.setFillColor(_hex(_s(style, "highlight_fill", "#E5E7EB")))
    canv.rect(rect.x, rect.bottom, rect.width, rect.height, stroke=0, fill=1)


def _draw_nav_link(canv, style, grid, backend, node, rect: PointRect) -> None:
    label = node.label or ""
    if node.current:
        _highlight(canv, style, rect)
    font, base = _font_for(style, "nav")
    size = _fit_font(canv, label, font, base, rect.width)
    canv.setFont(font, size)
    color_key = "primary_color" if node.dest or node.current else "border_color"
    canv.setFillColor(_hex(_s(style, color_key, "#888888")))
    canv.drawCentredString(rect.x + rect.width / 2, rect.y - rect.height / 2 - size / 3, label)
    if node.dest and node.computed_bounds is not None:
        backend.link(grid.link_rect(node.computed_bounds), node.dest)


def _draw_tab(canv, style, grid, backend, node, rect: PointRect) -> None:
    if node.current:
        _highlight(canv, style, rect)
    font, base = _font_for(style, "nav")
    # rotated: the label runs along the rect height
    size = _fit_font(canv, node.label, font, base, rect.height if node.rotation else rect.width)
    cx, cy = rect.center
    canv.saveState()
    canv.translate(cx, cy)
    canv.rotate(node.rotation)
    canv.setFont(font, size)
    canv.setFillColor(_hex(_s(style, "primary_color" if node.current else "secondary_color", "#888888")))
    canv.drawCentredString(0, -size / 3, node.label)
    canv.restoreState()
    if node.dest and node.computed_bounds is not None:
        backend.link(grid.link_rect(node.computed_bounds), node.dest)


def _draw_custom(canv, style, grid, backend, node, rect: PointRect) -> None:
    if node.draw is not None:
        node.draw(canv, rect, style)


LEAF_HANDLERS: Dict[str, Callable[..., None]] = {
    "text": _draw_text,
    "field": _draw_field,
    "dot_grid": _draw_dot_grid,
    "graph_grid": _draw_graph_grid,
    "ruled_lines": _draw_ruled_lines,
    "divider": _draw_divider,
    "nav_link": _draw_nav_link,
    "tab": _draw_tab,
    "custom": _draw_custom,
}


def _renderer(ctx: PageRenderContext) -> LayoutRenderer:
    canv = ctx.backend.canv
    handlers = {
        kind: partial(fn, canv, ctx.style, ctx.grid, ctx.backend)
        for kind, fn in LEAF_HANDLERS.items()
    }
    return LayoutRenderer(ctx.grid, handlers)


def _draw_tree(ctx: PageRenderContext, builder: LayoutBuilder, bounds: Bounds) -> LayoutNode:
    root = builder.compute(bounds)
    _renderer(ctx).render(root)
    return root


# ---------------------------------------------------------------------------
# Page chrome: background, sidebars, header
# ---------------------------------------------------------------------------

YEAR_TABS: Tuple[Tuple[str, str], ...] = (
    ("seasonal", "Seasons"),
    ("index_1", "Index"),
    ("future_log_1", "Future"),
    ("year_events", "Events"),
    ("year_highlights", "Highlights"),
    ("reference", "Reference"),
)


def _page_layout(ctx: PageRenderContext, background: Background = Background.DOT_GRID) -> PageLayout:
    return PageLayout.weekly(
        cols=ctx.grid.cols,
        rows=ctx.grid.rows,
        background=background,
        debug=ctx.debug,
    )


def _draw_background(ctx: PageRenderContext, layout: PageLayout) -> None:
    canv = ctx.backend.canv
    bg = str(_s(ctx.style, "background_color", "#FFFFFF"))
    if bg.upper() != "#FFFFFF":
        canv.setFillColor(_hex(bg, colors.white))
        canv.rect(0, 0, ctx.grid.page_width, ctx.grid.page_height, stroke=0, fill=1)

    if layout.background == Background.DOT_GRID:
        name = ctx.backend.dot_grid_form(
            ctx.grid,
            str(_s(ctx.style, "grid_color", "#CCCCCC")),
            float(_s(ctx.style, "dot_radius", 0.5)),
        )
        canv.doForm(name)
    elif layout.background == Background.RULED:
        b = LayoutBuilder()
        b.ruled_lines("background")
        _draw_tree(ctx, b, layout.content_area)
    logger.debug("Background %s for %s", layout.background.value, ctx.decl.destination_key)


def _draw_debug_regions(ctx: PageRenderContext, layout: PageLayout) -> None:
    canv = ctx.backend.canv
    canv.saveState()
    canv.setStrokeColor(_hex(_s(ctx.style, "debug_color", "#FF0000")))
    canv.setLineWidth(0.5)
    regions = [ctx.grid.page_bounds, layout.content_area] + [bar.bounds for bar in layout.sidebars]
    for bounds in regions:
        rect = ctx.grid.inset(ctx.grid.rect(bounds), 0.1)
        canv.rect(rect.x, rect.bottom, rect.width, rect.height, stroke=1, fill=0)
    canv.restoreState()


def _grids_dest(ctx: PageRenderContext) -> Optional[DestinationInfo]:
    # from outside the group the cycle starts at its first page
    return ctx.resolver.next_in_group("grids")


def _draw_left_sidebar(ctx: PageRenderContext, bounds: Bounds) -> None:
    current = ctx.decl.destination_key
    b = LayoutBuilder()
    with b.section("year_tabs", direction="vertical"):
        b.spacer(height=1)
        for key, label in YEAR_TABS:
            info = ctx.resolver.resolve_key(key)
            b.tab(info.destination_key if info else None, label, current=(key == current), height=4)
        grids = _grids_dest(ctx)
        b.tab(grids.destination_key if grids else None, "Grids", current=ctx.resolver.in_group("grids"), height=4)
        b.spacer(flex=1)
    _draw_tree(ctx, b, bounds)


def _draw_right_sidebar(ctx: PageRenderContext, bounds: Bounds) -> None:
    current_month = ctx.decl.params.get("month")
    b = LayoutBuilder()
    with b.section("month_tabs", direction="vertical"):
        b.spacer(height=2)
        for month in range(1, 13):
            info = ctx.resolver.resolve("monthly_review", month=month)
            b.tab(
                info.destination_key if info else None,
                calendar.month_abbr[month],
                current=(month == current_month),
                height=3,
            )
        b.spacer(flex=1)
    _draw_tree(ctx, b, bounds)


def _draw_header(ctx: PageRenderContext, bounds: Bounds, title: str,
                 prev_dest: Optional[DestinationInfo] = None,
                 next_dest: Optional[DestinationInfo] = None) -> None:
    b = LayoutBuilder()
    with b.header("page_header", height=bounds.height):
        if prev_dest is not None:
            b.nav_link(prev_dest.destination_key, "<", width=2)
        b.text(title, style="title", valign="center", flex=1)
        if ctx.decl.set_context is not None and ctx.decl.set_context.label:
            b.text(ctx.decl.set_context.label, style="footer", align="right", valign="center", width=8)
        else:
            b.text(f"Page {ctx.page_number} of {ctx.total_pages}", style="footer", align="right",
                   valign="center", width=8)
        if next_dest is not None:
            b.nav_link(next_dest.destination_key, ">", width=2)
    _draw_tree(ctx, b, bounds)


def _chrome(ctx: PageRenderContext, title: str, background: Background = Background.DOT_GRID,
            prev_dest: Optional[DestinationInfo] = None,
            next_dest: Optional[DestinationInfo] = None) -> PageLayout:
    layout = _page_layout(ctx, background)
    _draw_background(ctx, layout)
    for bar in layout.sidebars:
        if bar.position == SidebarPosition.LEFT:
            _draw_left_sidebar(ctx, bar.bounds)
        elif bar.position == SidebarPosition.RIGHT:
            _draw_right_sidebar(ctx, bar.bounds)
        elif bar.position == SidebarPosition.TOP:
            _draw_header(ctx, bar.bounds, title, prev_dest, next_dest)
    if layout.debug:
        _draw_debug_regions(ctx, layout)
    return layout


def _title(ctx: PageRenderContext) -> str:
    return ctx.decl.title or ctx.decl.page_type.replace("_", " ").title()


def _labelled_field(b: LayoutBuilder, label: str, name: Optional[str] = None, **constraints: Any) -> None:
    with b.section(name or label, direction="vertical", **constraints):
        b.text(label, style="header", height=2, valign="center")
        b.field(flex=1)


# ---------------------------------------------------------------------------
# Page renderers
# ---------------------------------------------------------------------------

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _page_weekly(ctx: PageRenderContext) -> None:
    layout = _chrome(
        ctx,
        _title(ctx),
        prev_dest=ctx.resolver.dest_for_prev_week(),
        next_dest=ctx.resolver.dest_for_next_week(),
    )
    area = layout.content_area
    b = LayoutBuilder()
    with b.section("week", direction="vertical", gap=1):
        with b.columns("days", count=len(DAY_NAMES), height=area.height // 2):
            for day in DAY_NAMES:
                _labelled_field(b, day)
        with b.columns("notes", count=2, gap=1, flex=1):
            _labelled_field(b, "Notes")
            _labelled_field(b, "Tasks")
    _draw_tree(ctx, b, area)


def _page_monthly_review(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx))
    b = LayoutBuilder()
    with b.rows("prompts", count=3, gap=1):
        _labelled_field(b, "What went well")
        _labelled_field(b, "What got in the way")
        _labelled_field(b, "Focus for next month")
    _draw_tree(ctx, b, layout.content_area)


def _page_quarterly_planning(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx))
    quarter = int(ctx.decl.params.get("quarter", 1))
    first_month = (quarter - 1) * 3 + 1
    b = LayoutBuilder()
    with b.grid("quarter", cols=2, rows=2, col_gap=1, row_gap=1):
        _labelled_field(b, "Quarter goals")
        for month in range(first_month, first_month + 3):
            _labelled_field(b, calendar.month_name[month])
    _draw_tree(ctx, b, layout.content_area)


def _next_in_set(ctx: PageRenderContext) -> Optional[DestinationInfo]:
    set_context = ctx.decl.set_context
    if set_context is None:
        return None
    return ctx.resolver.next_in_group(set_context.set_name)


def _page_index(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx), next_dest=_next_in_set(ctx))
    b = LayoutBuilder()
    with b.columns("index", count=2, gap=1):
        for _ in range(2):
            with b.section(direction="vertical"):
                b.text("Topic / Page", style="header", height=2, valign="center")
                b.field(flex=1)
    _draw_tree(ctx, b, layout.content_area)


def _page_future_log(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx), next_dest=_next_in_set(ctx))
    start = int(ctx.decl.params.get("start_month", 1))
    b = LayoutBuilder()
    with b.grid("months", cols=2, rows=3, col_gap=1, row_gap=1):
        for month in range(start, min(start + 6, 13)):
            _labelled_field(b, calendar.month_name[month])
    _draw_tree(ctx, b, layout.content_area)


SEASONS = (
    ("Winter", (12, 1, 2)),
    ("Spring", (3, 4, 5)),
    ("Summer", (6, 7, 8)),
    ("Fall", (9, 10, 11)),
)


def _page_seasonal(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx))
    b = LayoutBuilder()
    with b.grid("seasons", cols=2, rows=2, col_gap=1, row_gap=1):
        for season, months in SEASONS:
            with b.section(season, direction="vertical"):
                b.text(season, style="header", height=2, valign="center")
                for month in months:
                    info = ctx.resolver.resolve("monthly_review", month=month)
                    b.nav_link(info.destination_key if info else None, calendar.month_name[month], height=2)
                    b.field(lines=3, height=4)
                b.spacer(flex=1)
    _draw_tree(ctx, b, layout.content_area)


def _page_year_overview(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx))
    b = LayoutBuilder()
    with b.grid("year", cols=3, rows=4, col_gap=1, row_gap=1):
        for month in range(1, 13):
            info = ctx.resolver.resolve("monthly_review", month=month)
            with b.section(calendar.month_abbr[month], direction="vertical"):
                b.nav_link(info.destination_key if info else None, calendar.month_name[month], height=2)
                b.field(flex=1)
    _draw_tree(ctx, b, layout.content_area)


def _grid_page(background: Background, leaf: Optional[str] = None) -> Callable[[PageRenderContext], None]:
    def render(ctx: PageRenderContext) -> None:
        layout = _chrome(ctx, _title(ctx), background=background,
                         next_dest=ctx.resolver.next_in_group("grids"))
        if leaf is not None:
            b = LayoutBuilder()
            getattr(b, leaf)("sample")
            _draw_tree(ctx, b, layout.content_area)

    return render


REFERENCE_LINES = (
    ("*", "Task"),
    ("x", "Task complete"),
    (">", "Task migrated"),
    ("<", "Task scheduled"),
    ("o", "Event"),
    ("-", "Note"),
    ("!", "Priority / inspiration"),
)


def _page_reference(ctx: PageRenderContext) -> None:
    layout = _chrome(ctx, _title(ctx))
    b = LayoutBuilder()
    with b.section("reference", direction="vertical", gap=1):
        b.text("Bullet key", style="header", height=2, valign="center")
        for symbol, meaning in REFERENCE_LINES:
            with b.section(direction="horizontal", height=2):
                b.text(symbol, align="center", valign="center", width=2)
                b.text(meaning, valign="center", flex=1)
        b.divider(height=1)
        _labelled_field(b, "Notes", flex=1)
    _draw_tree(ctx, b, layout.content_area)


def _page_generic(ctx: PageRenderContext) -> None:
    _chrome(ctx, _title(ctx))


PAGE_RENDERERS: Dict[str, Callable[[PageRenderContext], None]] = {
    "seasonal": _page_seasonal,
    "index": _page_index,
    "future_log": _page_future_log,
    "year_events": _page_year_overview,
    "year_highlights": _page_year_overview,
    "quarterly_planning": _page_quarterly_planning,
    "monthly_review": _page_monthly_review,
    "weekly": _page_weekly,
    "grid_dot": _grid_page(Background.DOT_GRID),
    "grid_graph": _grid_page(Background.BLANK, "graph_grid"),
    "grid_lined": _grid_page(Background.RULED),
    "reference": _page_reference,
}


def render_planner(definition: PlannerDefinition, output_path: Path,
                   page_size: Tuple[float, float] = LETTER, debug: bool = False, **params: Any) -> BuildResult:
    style = load_style_preset()
    grid = GridSystem.for_page_size(page_size)
    backend = PdfCanvasBackend(output_path, page_size)
    builder = DocumentBuilder(backend, PAGE_RENDERERS, fallback=_page_generic, grid=grid, style=style,
                              debug=debug)
    result = builder.build(definition, **params)
    logger.info("Wrote %s (%d pages)", output_path, result.page_count)
    return result
