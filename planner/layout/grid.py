"""Grid-unit to output-space conversion and page layout regions.

Grid coordinates use a top-left origin (column 0 on the left, row 0 at the
top). Output space follows PDF conventions: origin bottom-left, y upward.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .. import config
from .nodes import Bounds, LayoutError


@dataclass(frozen=True)
class PointRect:
    """Output-space rectangle; ``y`` is the TOP edge in points."""

    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y - self.height

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y - self.height / 2


class GridSystem:
    def __init__(
        self,
        dot_spacing: float = config.DOT_SPACING,
        page_width: float = config.PAGE_WIDTH,
        page_height: float = config.PAGE_HEIGHT,
    ) -> None:
        self.dot_spacing = dot_spacing
        self.page_width = page_width
        self.page_height = page_height
        self.cols = int(page_width // dot_spacing)
        self.rows = int(page_height // dot_spacing)

    @classmethod
    def for_page_size(cls, page_size: Tuple[float, float], dot_spacing: float = config.DOT_SPACING) -> "GridSystem":
        width, height = page_size
        return cls(dot_spacing=dot_spacing, page_width=width, page_height=height)

    @property
    def page_bounds(self) -> Bounds:
        return Bounds(0, 0, self.cols, self.rows)

    def x(self, col: float) -> float:
        return col * self.dot_spacing

    def y(self, row: float) -> float:
        return self.page_height - row * self.dot_spacing

    def width(self, boxes: float) -> float:
        return boxes * self.dot_spacing

    def height(self, boxes: float) -> float:
        return boxes * self.dot_spacing

    def rect(self, bounds: Bounds) -> PointRect:
        return PointRect(
            x=self.x(bounds.col),
            y=self.y(bounds.row),
            width=self.width(bounds.width),
            height=self.height(bounds.height),
        )

    def inset(self, rect: PointRect, padding_boxes: float) -> PointRect:
        pad = self.width(padding_boxes)
        return PointRect(
            x=rect.x + pad,
            y=rect.y - pad,
            width=rect.width - 2 * pad,
            height=rect.height - 2 * pad,
        )

    def link_rect(self, bounds: Bounds) -> Tuple[float, float, float, float]:
        """(left, bottom, right, top) for link annotations."""
        return (
            self.x(bounds.col),
            self.y(bounds.bottom),
            self.x(bounds.right),
            self.y(bounds.row),
        )


class SidebarPosition(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class Background(str, Enum):
    DOT_GRID = "dot_grid"
    RULED = "ruled"
    BLANK = "blank"


@dataclass(frozen=True)
class Sidebar:
    position: SidebarPosition
    bounds: Bounds

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "position", SidebarPosition(self.position))
        except ValueError as exc:
            raise LayoutError(f"Invalid sidebar position: {self.position!r}") from exc


@dataclass(frozen=True)
class PageLayout:
    """Content area plus chrome regions of a page, validated against the grid."""

    name: str
    content_area: Bounds
    sidebars: Tuple[Sidebar, ...] = ()
    background: Background = Background.DOT_GRID
    debug: bool = False
    cols: int = config.GRID_COLS
    rows: int = config.GRID_ROWS

    def __post_init__(self) -> None:
        area = self.content_area
        if not (0 <= area.col < self.cols):
            raise LayoutError(f"Content area col must be 0-{self.cols - 1}, got {area.col}")
        if not (0 <= area.row < self.rows):
            raise LayoutError(f"Content area row must be 0-{self.rows - 1}, got {area.row}")
        if area.width <= 0 or area.right > self.cols:
            raise LayoutError(f"Content area width invalid: col={area.col}, width={area.width}")
        if area.height <= 0 or area.bottom > self.rows:
            raise LayoutError(f"Content area height invalid: row={area.row}, height={area.height}")
        page = Bounds(0, 0, self.cols, self.rows)
        for bar in self.sidebars:
            if not page.contains(bar.bounds):
                raise LayoutError(f"{bar.position.value} sidebar {bar.bounds} lies outside the {self.cols}x{self.rows} grid")

    def sidebar(self, position: SidebarPosition | str) -> Optional[Sidebar]:
        for bar in self.sidebars:
            if bar.position == position:
                return bar
        return None

    @classmethod
    def full_page(cls, cols: int = config.GRID_COLS, rows: int = config.GRID_ROWS, **options) -> "PageLayout":
        return cls(name="full_page", content_area=Bounds(0, 0, cols, rows), cols=cols, rows=rows, **options)

    @classmethod
    def with_sidebars(
        cls,
        left_width: int = 0,
        right_width: int = 0,
        top_height: int = 0,
        cols: int = config.GRID_COLS,
        rows: int = config.GRID_ROWS,
        name: str = "with_sidebars",
        **options,
    ) -> "PageLayout":
        bars: List[Sidebar] = []
        if left_width > 0:
            bars.append(Sidebar(SidebarPosition.LEFT, Bounds(0, 0, left_width, rows)))
        if right_width > 0:
            bars.append(Sidebar(SidebarPosition.RIGHT, Bounds(cols - right_width, 0, right_width, rows)))
        if top_height > 0:
            bars.append(Sidebar(SidebarPosition.TOP, Bounds(left_width, 0, cols - left_width - right_width, top_height)))
        return cls(
            name=name,
            content_area=Bounds(left_width, top_height, cols - left_width - right_width, rows - top_height),
            sidebars=tuple(bars),
            cols=cols,
            rows=rows,
            **options,
        )

    @classmethod
    def weekly(cls, cols: int = config.GRID_COLS, rows: int = config.GRID_ROWS, **options) -> "PageLayout":
        return cls.with_sidebars(left_width=2, right_width=1, top_height=2, cols=cols, rows=rows, name="weekly", **options)
