from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .grid import GridSystem, PointRect
from .nodes import LayoutNode

logger = logging.getLogger(__name__)

# handler(node, rect) draws one node; the renderer itself never draws.
Handler = Callable[[LayoutNode, PointRect], None]


class LayoutRenderer:
    def __init__(self, grid: GridSystem, handlers: Optional[Dict[str, Handler]] = None) -> None:
        self.grid = grid
        self.handlers: Dict[str, Handler] = dict(handlers or {})

    def render(self, node: LayoutNode) -> int:
        """Walk ``node`` depth first and dispatch to handlers. Returns the number of nodes drawn."""
        if node.computed_bounds is None:
            logger.debug("Skipping %r: bounds not computed", node)
            return 0

        drawn = 0
        handler = self.handlers.get(node.kind)
        if handler is not None:
            handler(node, self.grid.rect(node.computed_bounds))
            drawn += 1
        elif not node.children:
            logger.debug("No handler for node kind %s", node.kind)

        for child in node.children:
            drawn += self.render(child)
        return drawn
