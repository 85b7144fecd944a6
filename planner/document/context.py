from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from ..themes import get_theme
from .declarations import (
    DeclarationError,
    DocumentMetadata,
    GroupDeclaration,
    OutlineEntry,
    PageDeclaration,
)
from .page_set import PageSet

PlannerDefinition = Callable[..., None]

PLANNERS: Dict[str, PlannerDefinition] = {}


def define_planner(name: Optional[str] = None) -> Callable[[PlannerDefinition], PlannerDefinition]:
    """Register a planner definition ``fn(ctx, **params)`` under ``name``."""

    def decorator(fn: PlannerDefinition) -> PlannerDefinition:
        PLANNERS[name or fn.__name__] = fn
        return fn

    return decorator


def get_planner(name: str) -> PlannerDefinition:
    try:
        return PLANNERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown planner: {name}. Available: {', '.join(sorted(PLANNERS))}") from exc


class DeclarationContext:
    """Collects page, group, page-set and outline declarations in document order."""

    def __init__(self) -> None:
        self.pages: List[PageDeclaration] = []
        self.groups: Dict[str, GroupDeclaration] = {}
        self.page_sets: Dict[str, PageSet] = {}
        self.outline_entries: List[OutlineEntry] = []
        self.document_metadata = DocumentMetadata()
        self.theme_name: Optional[str] = None
        self._open_groups: List[GroupDeclaration] = []
        self._open_sets: List[PageSet] = []
        self._open_outline: List[OutlineEntry] = []

    def page(
        self,
        page_type: str,
        id: Optional[str] = None,
        title: Optional[str] = None,
        outline_title: Optional[str] = None,
        **params: Any,
    ) -> PageDeclaration:
        decl = PageDeclaration(page_type, id=id, params=params, title=title, outline_title=outline_title)
        self.pages.append(decl)
        for group in self._open_groups:
            group.add_page(decl)
        if self._open_sets:
            self._open_sets[-1].add(decl)
        return decl

    @contextmanager
    def group(self, name: str, cycle: bool = False) -> Iterator[GroupDeclaration]:
        if name in self.groups:
            raise DeclarationError(f"Group {name!r} is already declared")
        group = GroupDeclaration(name=name, cycle=cycle)
        self.groups[name] = group
        self._open_groups.append(group)
        try:
            yield group
        finally:
            self._open_groups.pop()

    @contextmanager
    def page_set(self, name: str, label_pattern: Optional[str] = None, cycle: bool = False) -> Iterator[PageSet]:
        if name in self.page_sets:
            raise DeclarationError(f"Page set {name!r} is already declared")
        if cycle and name in self.groups:
            raise DeclarationError(f"Group {name!r} is already declared")
        page_set = PageSet(name, label_pattern=label_pattern, cycle=cycle)
        self.page_sets[name] = page_set
        self._open_sets.append(page_set)
        try:
            yield page_set
        finally:
            self._open_sets.pop()
        page_set.finalize()
        if page_set.cycle:
            # cycling sets navigate like a cycling group of the same name
            self.groups[name] = GroupDeclaration(name=name, cycle=True, pages=list(page_set))

    def _outline_target(self, dest: Union[PageDeclaration, PageSet, str, None]) -> Optional[str]:
        if isinstance(dest, PageDeclaration):
            return dest.destination_key
        if isinstance(dest, PageSet):
            head = dest.first()
            return head.destination_key if head is not None else None
        return dest

    def outline_entry(self, title: str, dest: Union[PageDeclaration, PageSet, str, None] = None) -> OutlineEntry:
        entry = OutlineEntry(title=title, dest=self._outline_target(dest))
        if self._open_outline:
            self._open_outline[-1].add_child(entry)
        else:
            self.outline_entries.append(entry)
        return entry

    @contextmanager
    def outline(self, title: str, dest: Union[PageDeclaration, PageSet, str, None] = None) -> Iterator[OutlineEntry]:
        entry = self.outline_entry(title, dest)
        self._open_outline.append(entry)
        try:
            yield entry
        finally:
            self._open_outline.pop()

    def metadata(self, **values: Any) -> DocumentMetadata:
        self.document_metadata.update(**values)
        return self.document_metadata

    def theme(self, name: str) -> None:
        self.theme_name = get_theme(name).name

    def pages_of_type(self, page_type: str) -> List[PageDeclaration]:
        return [page for page in self.pages if page.page_type == page_type]
