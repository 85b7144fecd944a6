from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union


class LayoutError(ValueError):
    """Invalid layout declaration (bad constructor arguments, bad bounds)."""


class Direction(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Bounds:
    """Rectangle in grid units with a top-left origin."""

    col: float
    row: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.col + self.width

    @property
    def bottom(self) -> float:
        return self.row + self.height

    def contains(self, other: "Bounds") -> bool:
        return (
            other.col >= self.col
            and other.row >= self.row
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def intersect(self, other: "Bounds") -> Optional["Bounds"]:
        col = max(self.col, other.col)
        row = max(self.row, other.row)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right < col or bottom < row:
            return None
        return Bounds(col, row, right - col, bottom - row)


@dataclass(frozen=True)
class Constraints:
    width: Optional[float] = None
    height: Optional[float] = None
    min_width: Optional[float] = None
    max_width: Optional[float] = None
    min_height: Optional[float] = None
    max_height: Optional[float] = None
    flex: Optional[float] = None

    def fixed(self, axis: str) -> Optional[float]:
        return self.width if axis == "width" else self.height

    def clamp(self, axis: str, value: float) -> float:
        low = self.min_width if axis == "width" else self.min_height
        high = self.max_width if axis == "width" else self.max_height
        if low is not None:
            value = max(low, value)
        if high is not None:
            value = min(high, value)
        return value

    @property
    def flex_weight(self) -> float:
        return self.flex or 0

    @property
    def is_flex(self) -> bool:
        return self.flex_weight > 0


_CONSTRAINT_KEYS = ("width", "height", "min_width", "max_width", "min_height", "max_height", "flex")


def constraints_from(values: Dict[str, Any]) -> Constraints:
    unknown = set(values) - set(_CONSTRAINT_KEYS)
    if unknown:
        raise LayoutError(f"Unknown layout constraints: {', '.join(sorted(unknown))}")
    return Constraints(**values)


@dataclass(eq=False)
class LayoutNode:
    """Primitive constrained box and base of every layout variant.

    The node owns its children exclusively. ``computed_bounds`` stays ``None``
    until :func:`planner.layout.engine.compute_bounds` runs over the tree.
    """

    name: Optional[str] = None
    constraints: Constraints = field(default_factory=Constraints)
    children: List["LayoutNode"] = field(default_factory=list)
    computed_bounds: Optional[Bounds] = None

    kind = "box"

    def add_child(self, child: "LayoutNode") -> "LayoutNode":
        self.children.append(child)
        return child

    def walk(self) -> Iterator["LayoutNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> Optional["LayoutNode"]:
        for node in self.walk():
            if node.name == name:
                return node
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} bounds={self.computed_bounds}>"


def box(name: Optional[str] = None, **constraints: Any) -> LayoutNode:
    return LayoutNode(name=name, constraints=constraints_from(constraints))


@dataclass(eq=False, repr=False)
class ContainerNode(LayoutNode):
    direction: Direction = Direction.VERTICAL
    gap: float = 0

    kind = "container"


def section(name: Optional[str] = None, direction: Union[Direction, str] = Direction.VERTICAL,
            gap: float = 0, **constraints: Any) -> ContainerNode:
    return ContainerNode(
        name=name,
        constraints=constraints_from(constraints),
        direction=Direction(direction),
        gap=gap,
    )


def sidebar(name: Optional[str] = None, *, width: float, **constraints: Any) -> ContainerNode:
    return section(name, Direction.VERTICAL, width=width, **constraints)


def header(name: Optional[str] = None, *, height: float, **constraints: Any) -> ContainerNode:
    return section(name, Direction.HORIZONTAL, height=height, **constraints)


def footer(name: Optional[str] = None, *, height: float, **constraints: Any) -> ContainerNode:
    return section(name, Direction.HORIZONTAL, height=height, **constraints)


def _check_count_or_sizes(label: str, count: Optional[int], sizes: Optional[Sequence[float]], sizes_name: str) -> None:
    if count is None and sizes is None:
        raise LayoutError(f"{label} requires either count or {sizes_name}")
    if count is not None and sizes is not None:
        raise LayoutError(f"{label} accepts count or {sizes_name}, not both")
    if count is not None and count <= 0:
        raise LayoutError(f"{label} count must be positive, got {count}")
    if sizes is not None and len(sizes) == 0:
        raise LayoutError(f"{label} {sizes_name} must not be empty")


@dataclass(eq=False, repr=False)
class ColumnsNode(LayoutNode):
    """Horizontal split into equal (``count``) or explicit (``widths``) slices."""

    count: Optional[int] = None
    widths: Optional[Tuple[float, ...]] = None
    gap: float = 0
    slices: List[Bounds] = field(default_factory=list)

    kind = "columns"

    def __post_init__(self) -> None:
        _check_count_or_sizes("ColumnsNode", self.count, self.widths, "widths")
        if self.widths is not None:
            self.widths = tuple(self.widths)

    @property
    def column_count(self) -> int:
        return self.count if self.count is not None else len(self.widths or ())

    def column_bounds(self, index: int) -> Optional[Bounds]:
        if 0 <= index < len(self.slices):
            return self.slices[index]
        return None

    def each_column(self) -> Iterator[Tuple[int, Bounds]]:
        yield from enumerate(self.slices)


@dataclass(eq=False, repr=False)
class RowsNode(LayoutNode):
    count: Optional[int] = None
    heights: Optional[Tuple[float, ...]] = None
    gap: float = 0
    slices: List[Bounds] = field(default_factory=list)

    kind = "rows"

    def __post_init__(self) -> None:
        _check_count_or_sizes("RowsNode", self.count, self.heights, "heights")
        if self.heights is not None:
            self.heights = tuple(self.heights)

    @property
    def row_count(self) -> int:
        return self.count if self.count is not None else len(self.heights or ())

    def row_bounds(self, index: int) -> Optional[Bounds]:
        if 0 <= index < len(self.slices):
            return self.slices[index]
        return None

    def each_row(self) -> Iterator[Tuple[int, Bounds]]:
        yield from enumerate(self.slices)


def columns(name: Optional[str] = None, count: Optional[int] = None, widths: Optional[Sequence[float]] = None,
            gap: float = 0, **constraints: Any) -> ColumnsNode:
    return ColumnsNode(
        name=name,
        constraints=constraints_from(constraints),
        count=count,
        widths=tuple(widths) if widths is not None else None,
        gap=gap,
    )


def rows(name: Optional[str] = None, count: Optional[int] = None, heights: Optional[Sequence[float]] = None,
         gap: float = 0, **constraints: Any) -> RowsNode:
    return RowsNode(
        name=name,
        constraints=constraints_from(constraints),
        count=count,
        heights=tuple(heights) if heights is not None else None,
        gap=gap,
    )


@dataclass(eq=False, repr=False)
class GridNode(LayoutNode):
    """Rows split crossed with a Columns split; cells are addressed (row, col)."""

    cols: int = 1
    rows: int = 1
    col_gap: float = 0
    row_gap: float = 0
    row_slices: List[Bounds] = field(default_factory=list)
    col_slices: List[Bounds] = field(default_factory=list)

    kind = "grid"

    def __post_init__(self) -> None:
        if self.cols <= 0 or self.rows <= 0:
            raise LayoutError(f"GridNode needs positive cols and rows, got {self.cols}x{self.rows}")

    def cell_bounds(self, row: int, col: int) -> Optional[Bounds]:
        if not (0 <= row < len(self.row_slices) and 0 <= col < len(self.col_slices)):
            return None
        r = self.row_slices[row]
        c = self.col_slices[col]
        return Bounds(c.col, r.row, c.width, r.height)

    def each_cell(self) -> Iterator[Tuple[int, int, Optional[Bounds]]]:
        for r in range(self.rows):
            for c in range(self.cols):
                yield r, c, self.cell_bounds(r, c)


def grid(name: Optional[str] = None, *, cols: int, rows: int, col_gap: float = 0, row_gap: float = 0,
         **constraints: Any) -> GridNode:
    return GridNode(
        name=name,
        constraints=constraints_from(constraints),
        cols=cols,
        rows=rows,
        col_gap=col_gap,
        row_gap=row_gap,
    )


# ---------------------------------------------------------------------------
# Content leaves
# ---------------------------------------------------------------------------


@dataclass(eq=False, repr=False)
class ContentNode(LayoutNode):
    kind = "content"

    def add_child(self, child: LayoutNode) -> LayoutNode:
        raise LayoutError(f"{type(self).__name__} cannot have children")


@dataclass(eq=False, repr=False)
class TextNode(ContentNode):
    content: str = ""
    style: str = "body"
    align: str = "left"
    valign: str = "top"

    kind = "text"


@dataclass(eq=False, repr=False)
class FieldNode(ContentNode):
    lines: Optional[int] = None
    line_style: str = "ruled"
    background: str = "blank"
    label: Optional[str] = None

    kind = "field"


@dataclass(eq=False, repr=False)
class DotGridNode(ContentNode):
    spacing: float = 1

    kind = "dot_grid"


@dataclass(eq=False, repr=False)
class GraphGridNode(ContentNode):
    spacing: float = 1

    kind = "graph_grid"


@dataclass(eq=False, repr=False)
class RuledLinesNode(ContentNode):
    spacing: float = 1
    line_style: str = "solid"

    kind = "ruled_lines"


@dataclass(eq=False, repr=False)
class SpacerNode(ContentNode):
    kind = "spacer"


@dataclass(eq=False, repr=False)
class DividerNode(ContentNode):
    orientation: str = "horizontal"
    line_style: str = "solid"
    thickness: float = 0.5

    kind = "divider"


@dataclass(eq=False, repr=False)
class NavLinkNode(ContentNode):
    """Link to a resolved destination key; ``dest`` is None when unresolved."""

    dest: Optional[str] = None
    label: Optional[str] = None
    style: str = "nav_link"
    current: bool = False

    kind = "nav_link"


@dataclass(eq=False, repr=False)
class TabNode(ContentNode):
    dest: Optional[str] = None
    label: str = ""
    current: bool = False
    rotation: float = -90

    kind = "tab"


@dataclass(eq=False, repr=False)
class CustomNode(ContentNode):
    draw: Optional[Callable[..., None]] = None

    kind = "custom"
