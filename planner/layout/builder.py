from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Sequence

from . import nodes
from .engine import compute_bounds
from .nodes import Bounds, ContentNode, LayoutError, LayoutNode


class LayoutBuilder:
    """Builds a layout tree with ``with`` blocks for containers.

    Example::

        b = LayoutBuilder()
        with b.section("page", direction="vertical"):
            b.header("title", height=2)
            with b.columns("days", count=7):
                for day in days:
                    b.text(day)
        b.compute(grid.page_bounds)
    """

    def __init__(self, root: Optional[LayoutNode] = None) -> None:
        self.root = root
        self._stack: List[LayoutNode] = [root] if root is not None else []

    @property
    def current(self) -> Optional[LayoutNode]:
        return self._stack[-1] if self._stack else None

    def _attach(self, node: LayoutNode) -> LayoutNode:
        parent = self.current
        if parent is None:
            if self.root is not None:
                raise LayoutError("LayoutBuilder already has a root node")
            self.root = node
        else:
            parent.add_child(node)
        return node

    @contextmanager
    def _open(self, node: LayoutNode) -> Iterator[LayoutNode]:
        self._attach(node)
        self._stack.append(node)
        try:
            yield node
        finally:
            self._stack.pop()

    # containers

    def box(self, name: Optional[str] = None, **constraints: Any):
        return self._open(nodes.box(name, **constraints))

    def section(self, name: Optional[str] = None, direction: str = "vertical", gap: float = 0, **constraints: Any):
        return self._open(nodes.section(name, direction, gap, **constraints))

    def sidebar(self, name: Optional[str] = None, *, width: float, **constraints: Any):
        return self._open(nodes.sidebar(name, width=width, **constraints))

    def header(self, name: Optional[str] = None, *, height: float, **constraints: Any):
        return self._open(nodes.header(name, height=height, **constraints))

    def footer(self, name: Optional[str] = None, *, height: float, **constraints: Any):
        return self._open(nodes.footer(name, height=height, **constraints))

    def columns(self, name: Optional[str] = None, count: Optional[int] = None,
                widths: Optional[Sequence[float]] = None, gap: float = 0, **constraints: Any):
        return self._open(nodes.columns(name, count, widths, gap, **constraints))

    def rows(self, name: Optional[str] = None, count: Optional[int] = None,
             heights: Optional[Sequence[float]] = None, gap: float = 0, **constraints: Any):
        return self._open(nodes.rows(name, count, heights, gap, **constraints))

    def grid(self, name: Optional[str] = None, *, cols: int, rows: int, col_gap: float = 0,
             row_gap: float = 0, **constraints: Any):
        return self._open(nodes.grid(name, cols=cols, rows=rows, col_gap=col_gap, row_gap=row_gap, **constraints))

    # leaves

    def content(self, node: ContentNode) -> ContentNode:
        self._attach(node)
        return node

    def _leaf(self, cls, name: Optional[str], constraints: dict, **fields: Any) -> ContentNode:
        return self.content(cls(name=name, constraints=nodes.constraints_from(constraints), **fields))

    def text(self, content: str, name: Optional[str] = None, style: str = "body", align: str = "left",
             valign: str = "top", **constraints: Any) -> ContentNode:
        return self._leaf(nodes.TextNode, name, constraints, content=content, style=style, align=align, valign=valign)

    def field(self, name: Optional[str] = None, lines: Optional[int] = None, line_style: str = "ruled",
              background: str = "blank", label: Optional[str] = None, **constraints: Any) -> ContentNode:
        return self._leaf(
            nodes.FieldNode, name, constraints,
            lines=lines, line_style=line_style, background=background, label=label,
        )

    def dot_grid(self, name: Optional[str] = None, spacing: float = 1, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.DotGridNode, name, constraints, spacing=spacing)

    def graph_grid(self, name: Optional[str] = None, spacing: float = 1, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.GraphGridNode, name, constraints, spacing=spacing)

    def ruled_lines(self, name: Optional[str] = None, spacing: float = 1, line_style: str = "solid",
                    **constraints: Any) -> ContentNode:
        return self._leaf(nodes.RuledLinesNode, name, constraints, spacing=spacing, line_style=line_style)

    def spacer(self, name: Optional[str] = None, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.SpacerNode, name, constraints)

    def divider(self, name: Optional[str] = None, orientation: str = "horizontal", line_style: str = "solid",
                thickness: float = 0.5, **constraints: Any) -> ContentNode:
        return self._leaf(
            nodes.DividerNode, name, constraints,
            orientation=orientation, line_style=line_style, thickness=thickness,
        )

    def nav_link(self, dest: Optional[str], label: Optional[str] = None, name: Optional[str] = None,
                 style: str = "nav_link", current: bool = False, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.NavLinkNode, name, constraints, dest=dest, label=label, style=style, current=current)

    def tab(self, dest: Optional[str], label: str, name: Optional[str] = None, current: bool = False,
            rotation: float = -90, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.TabNode, name, constraints, dest=dest, label=label, current=current, rotation=rotation)

    def custom(self, draw: Callable[..., None], name: Optional[str] = None, **constraints: Any) -> ContentNode:
        return self._leaf(nodes.CustomNode, name, constraints, draw=draw)

    def compute(self, available: Bounds) -> LayoutNode:
        if self.root is None:
            raise LayoutError("Nothing to compute: the builder has no root node")
        compute_bounds(self.root, available)
        return self.root
