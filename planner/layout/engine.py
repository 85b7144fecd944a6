from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .nodes import (
    Bounds,
    ColumnsNode,
    ContainerNode,
    ContentNode,
    Direction,
    GridNode,
    LayoutError,
    LayoutNode,
    RowsNode,
)


def distribute_equal(total: float, count: int, gap: float = 0) -> List[float]:
    """
    Split ``total`` into ``count`` whole-unit slices after removing the gaps.
    The first count-1 slices get floor(usable / count); the last slice also
    absorbs the remainder so the slices always sum to the usable total.
    """
    if count <= 0:
        raise LayoutError(f"count must be positive, got {count}")
    usable = max(total - gap * (count - 1), 0)
    base = usable // count
    remainder = usable - base * count
    sizes = [base] * count
    sizes[-1] = base + remainder
    return sizes


def place_slices(start: float, sizes: Sequence[float], gap: float = 0) -> List[Tuple[float, float]]:
    """Return (offset, size) pairs laid out from ``start`` with ``gap`` between them."""
    out: List[Tuple[float, float]] = []
    offset = start
    for index, size in enumerate(sizes):
        out.append((offset, size))
        offset += size
        if index < len(sizes) - 1:
            offset += gap
    return out


def distribute_flex(remaining: float, weights: Sequence[float]) -> List[float]:
    """
    Proportional shares of ``remaining`` by weight, floored per child.
    The last share is the exact remainder so the shares sum to ``remaining``.
    """
    if not weights:
        return []
    total_weight = sum(weights)
    shares: List[float] = []
    assigned = 0
    for index, weight in enumerate(weights):
        if index == len(weights) - 1:
            share = remaining - assigned
        else:
            share = remaining * weight // total_weight
        shares.append(share)
        assigned += share
    return shares


def _own_bounds(node: LayoutNode, available: Bounds) -> Bounds:
    c = node.constraints
    width = c.width if c.width is not None else c.clamp("width", available.width)
    height = c.height if c.height is not None else c.clamp("height", available.height)
    return Bounds(available.col, available.row, width, height)


def _compute_box(node: LayoutNode, available: Bounds) -> Bounds:
    node.computed_bounds = _own_bounds(node, available)
    for child in node.children:
        compute_bounds(child, node.computed_bounds)
    return node.computed_bounds


def _compute_content(node: LayoutNode, available: Bounds) -> Bounds:
    node.computed_bounds = _own_bounds(node, available)
    return node.computed_bounds


def _compute_container(node: ContainerNode, available: Bounds) -> Bounds:
    own = _own_bounds(node, available)
    node.computed_bounds = own
    children = node.children
    if not children:
        return own

    vertical = node.direction == Direction.VERTICAL
    axis = "height" if vertical else "width"
    extent = own.height if vertical else own.width

    fixed_total = 0
    flex_children: List[LayoutNode] = []
    for child in children:
        fixed = child.constraints.fixed(axis)
        if fixed is not None:
            fixed_total += fixed
        elif child.constraints.is_flex:
            flex_children.append(child)

    remaining = max(extent - fixed_total - node.gap * (len(children) - 1), 0)
    weights = [c.constraints.flex_weight for c in flex_children]
    shares = dict(zip(map(id, flex_children), distribute_flex(remaining, weights)))

    offset = own.row if vertical else own.col
    for index, child in enumerate(children):
        fixed = child.constraints.fixed(axis)
        if fixed is not None:
            size = fixed
        else:
            # neither fixed nor flex: takes no primary-axis space
            size = shares.get(id(child), 0)

        if vertical:
            region = Bounds(own.col, offset, own.width, size)
        else:
            region = Bounds(offset, own.row, size, own.height)
        compute_bounds(child, region)

        offset += size
        if index < len(children) - 1:
            offset += node.gap
    return own


def _slice_sizes(total: float, count: Optional[int], explicit: Optional[Sequence[float]], gap: float) -> List[float]:
    if explicit is not None:
        return list(explicit)
    return distribute_equal(total, count or 0, gap)


def _assign_children(node: LayoutNode, regions: Sequence[Bounds]) -> None:
    if len(node.children) > len(regions):
        label = node.name or type(node).__name__
        raise LayoutError(f"{label} has {len(node.children)} children but only {len(regions)} slots")
    for child, region in zip(node.children, regions):
        compute_bounds(child, region)


def _compute_columns(node: ColumnsNode, available: Bounds) -> Bounds:
    own = _own_bounds(node, available)
    node.computed_bounds = own
    sizes = _slice_sizes(own.width, node.count, node.widths, node.gap)
    node.slices = [
        Bounds(offset, own.row, size, own.height) for offset, size in place_slices(own.col, sizes, node.gap)
    ]
    _assign_children(node, node.slices)
    return own


def _compute_rows(node: RowsNode, available: Bounds) -> Bounds:
    own = _own_bounds(node, available)
    node.computed_bounds = own
    sizes = _slice_sizes(own.height, node.count, node.heights, node.gap)
    node.slices = [
        Bounds(own.col, offset, own.width, size) for offset, size in place_slices(own.row, sizes, node.gap)
    ]
    _assign_children(node, node.slices)
    return own


def _compute_grid(node: GridNode, available: Bounds) -> Bounds:
    own = _own_bounds(node, available)
    node.computed_bounds = own
    row_sizes = distribute_equal(own.height, node.rows, node.row_gap)
    col_sizes = distribute_equal(own.width, node.cols, node.col_gap)
    node.row_slices = [
        Bounds(own.col, offset, own.width, size) for offset, size in place_slices(own.row, row_sizes, node.row_gap)
    ]
    node.col_slices = [
        Bounds(offset, own.row, size, own.height) for offset, size in place_slices(own.col, col_sizes, node.col_gap)
    ]
    cells = [bounds for _, _, bounds in node.each_cell()]
    _assign_children(node, cells)
    return own


_COMPUTERS: Dict[type, Callable[..., Bounds]] = {
    LayoutNode: _compute_box,
    ContainerNode: _compute_container,
    ColumnsNode: _compute_columns,
    RowsNode: _compute_rows,
    GridNode: _compute_grid,
    ContentNode: _compute_content,
}


def _computer_for(node: LayoutNode) -> Callable[..., Bounds]:
    for klass in type(node).__mro__:
        fn = _COMPUTERS.get(klass)
        if fn is not None:
            return fn
    raise LayoutError(f"No layout rule for {type(node).__name__}")


def compute_bounds(node: LayoutNode, available: Bounds) -> Bounds:
    """Compute bounds for ``node`` and its subtree inside ``available``."""
    return _computer_for(node)(node, available)
