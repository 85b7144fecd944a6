"""Declare, register, render: the three sequential phases of a document build."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .. import config
from ..layout.grid import GridSystem
from ..themes import Theme, get_theme
from .context import DeclarationContext, PlannerDefinition
from .declarations import DocumentMetadata, OutlineEntry, PageDeclaration
from .registry import LinkRegistry, LinkResolver

logger = logging.getLogger(__name__)


class PageRenderError(RuntimeError):
    def __init__(self, decl: PageDeclaration, page_number: int, message: str) -> None:
        super().__init__(f"Page {page_number} ({decl.destination_key}): {message}")
        self.decl = decl
        self.page_number = page_number


@dataclass
class PageRenderContext:
    decl: PageDeclaration
    page_number: int
    total_pages: int
    resolver: LinkResolver
    theme: Theme
    style: Dict[str, Any]
    grid: GridSystem
    params: Dict[str, Any]
    backend: Any = None
    debug: bool = False

    @property
    def page_type(self) -> str:
        return self.decl.page_type

    @property
    def page_params(self) -> Dict[str, Any]:
        return self.decl.params


PageRenderer = Callable[[PageRenderContext], None]


@dataclass
class OutlineNode:
    title: str
    destination_key: Optional[str]
    page_number: Optional[int]
    children: List["OutlineNode"] = field(default_factory=list)
    # bookmark name unique to this entry; several entries may share a page
    anchor: Optional[str] = None

    def first_destination(self) -> Optional[str]:
        if self.destination_key is not None:
            return self.destination_key
        for child in self.children:
            key = child.first_destination()
            if key is not None:
                return key
        return None


@dataclass
class BuildResult:
    pages: List[PageDeclaration]
    registry: LinkRegistry
    outline: List[OutlineNode]
    theme: Theme
    metadata: DocumentMetadata

    @property
    def page_count(self) -> int:
        return len(self.pages)


def _outline_node(entry: OutlineEntry, registry: LinkRegistry) -> Optional[OutlineNode]:
    children = [node for node in (_outline_node(child, registry) for child in entry.children) if node]
    if entry.dest is None:
        if not children:
            logger.warning("Outline section %r has no resolvable entries; skipped", entry.title)
            return None
        return OutlineNode(entry.title, None, None, children)

    info = registry.resolve_key(entry.dest)
    if info is None:
        logger.warning("Outline entry %r points to unknown destination %s; skipped", entry.title, entry.dest)
        return None
    return OutlineNode(entry.title, info.destination_key, info.page_number, children)


def build_outline(ctx: DeclarationContext, registry: LinkRegistry) -> List[OutlineNode]:
    if ctx.outline_entries:
        nodes = (_outline_node(entry, registry) for entry in ctx.outline_entries)
        return [node for node in nodes if node is not None]

    out: List[OutlineNode] = []
    for decl in ctx.pages:
        if not decl.outline_title:
            continue
        info = registry.resolve_key(decl.destination_key)
        out.append(OutlineNode(decl.outline_title, decl.destination_key, info.page_number if info else None))
    return out


def assign_anchors(nodes: List[OutlineNode]) -> Dict[str, List[str]]:
    """Give every outline node its own bookmark name, grouped by the destination it lands on."""
    anchors: Dict[str, List[str]] = {}
    counter = itertools.count(1)

    def visit(items: List[OutlineNode]) -> None:
        for node in items:
            key = node.first_destination()
            if key is not None:
                node.anchor = f"{key}__outline{next(counter)}"
                anchors.setdefault(key, []).append(node.anchor)
            visit(node.children)

    visit(nodes)
    return anchors


class DocumentBuilder:
    """
    Runs a planner definition against a drawing backend.

    The backend receives ``set_metadata(metadata)``, then
    ``begin_page(decl, page_number, anchors)`` / ``end_page()`` around each
    page renderer call, then ``add_outline(nodes)`` and ``finish()``.
    ``anchors`` are the outline bookmark names landing on that page.
    """

    def __init__(
        self,
        backend: Any,
        renderers: Optional[Dict[str, PageRenderer]] = None,
        fallback: Optional[PageRenderer] = None,
        grid: Optional[GridSystem] = None,
        style: Optional[Dict[str, Any]] = None,
        debug: bool = False,
    ) -> None:
        self.backend = backend
        self.renderers = dict(renderers or {})
        self.fallback = fallback
        self.grid = grid or GridSystem()
        self.style = dict(style or {})
        self.debug = debug

    def declare(self, definition: PlannerDefinition, **params: Any) -> DeclarationContext:
        ctx = DeclarationContext()
        definition(ctx, **params)
        return ctx

    def _renderer_for(self, decl: PageDeclaration) -> Optional[PageRenderer]:
        return self.renderers.get(decl.page_type, self.fallback)

    def build(self, definition: PlannerDefinition, **params: Any) -> BuildResult:
        ctx = self.declare(definition, **params)

        registry = LinkRegistry()
        registry.register_all(ctx.pages, ctx.groups.values())

        theme = get_theme(params.get("theme") or ctx.theme_name or config.DEFAULT_THEME)
        style = dict(self.style)
        style.update(theme.style_overrides())
        total_weeks = params.get("total_weeks") or len(ctx.pages_of_type("weekly")) or None

        outline = build_outline(ctx, registry)
        anchors = assign_anchors(outline)

        logger.info("Rendering %d pages (theme=%s)", len(ctx.pages), theme.name)
        self.backend.set_metadata(ctx.document_metadata)

        total = len(ctx.pages)
        for page_number, decl in enumerate(ctx.pages, start=1):
            renderer = self._renderer_for(decl)
            if renderer is None:
                raise PageRenderError(decl, page_number, f"no renderer for page type {decl.page_type!r}")

            page_ctx = PageRenderContext(
                decl=decl,
                page_number=page_number,
                total_pages=total,
                resolver=LinkResolver(registry, decl, total_weeks=total_weeks),
                theme=theme,
                style=style,
                grid=self.grid,
                params=dict(params),
                backend=self.backend,
                debug=self.debug,
            )
            self.backend.begin_page(decl, page_number, anchors.get(decl.destination_key, ()))
            try:
                renderer(page_ctx)
            except Exception as exc:
                raise PageRenderError(decl, page_number, str(exc)) from exc
            self.backend.end_page()

        self.backend.add_outline(outline)
        self.backend.finish()

        return BuildResult(
            pages=list(ctx.pages),
            registry=registry,
            outline=outline,
            theme=theme,
            metadata=ctx.document_metadata,
        )
