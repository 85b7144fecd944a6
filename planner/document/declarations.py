"""Declared pages, groups and outline entries.

Declarations describe *what* is in the document. Page numbers and links are
assigned later by the registry; nothing here touches a drawing surface.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .page_set import SetContext


class DeclarationError(ValueError):
    """Invalid or conflicting declaration."""


KEY_SEPARATOR = "_"


def format_key_value(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y%m%d")
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def destination_key_for(page_type: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Stable key for a page: ``page_type`` then ``name_value`` pairs sorted by
    name, joined with ``_``. ``("weekly", {"week_num": 1})`` -> ``weekly_week_num_1``.
    """
    if not params:
        return page_type
    parts = [page_type]
    for name in sorted(params):
        parts.append(f"{name}{KEY_SEPARATOR}{format_key_value(params[name])}")
    return KEY_SEPARATOR.join(parts)


def canonical_params(params: Optional[Mapping[str, Any]]) -> Tuple[Tuple[str, str], ...]:
    return tuple((name, format_key_value(params[name])) for name in sorted(params or {}))


class PageDeclaration:
    def __init__(
        self,
        page_type: str,
        id: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        title: Optional[str] = None,
        outline_title: Optional[str] = None,
    ) -> None:
        if not page_type:
            raise DeclarationError("page_type is required")
        self._page_type = str(page_type)
        self._params: Dict[str, Any] = dict(params or {})
        self._id = id
        self._title = title
        self._outline_title = outline_title
        self._destination_key = id or destination_key_for(self._page_type, self._params)
        self._set_context: Optional[SetContext] = None

    @property
    def page_type(self) -> str:
        return self._page_type

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def params(self) -> Dict[str, Any]:
        return dict(self._params)

    @property
    def title(self) -> Optional[str]:
        return self._title

    @property
    def outline_title(self) -> Optional[str]:
        return self._outline_title

    @property
    def destination_key(self) -> str:
        return self._destination_key

    @property
    def set_context(self) -> Optional[SetContext]:
        return self._set_context

    @set_context.setter
    def set_context(self, value: SetContext) -> None:
        if self._set_context is not None:
            raise DeclarationError(f"Page {self._destination_key} already belongs to set {self._set_context.set_name}")
        self._set_context = value

    @property
    def in_page_set(self) -> bool:
        return self._set_context is not None

    @property
    def outline_label(self) -> Optional[str]:
        if self._set_context is not None and self._set_context.label:
            return self._set_context.label
        return self._outline_title or self._title

    def matches(self, page_type: str, **params: Any) -> bool:
        if page_type != self._page_type:
            return False
        return all(name in self._params and self._params[name] == value for name, value in params.items())

    def __repr__(self) -> str:
        return f"<PageDeclaration {self._destination_key}>"


@dataclass
class GroupDeclaration:
    """Named run of pages; ``cycle`` groups share one navigation tab that advances per visit."""

    name: str
    cycle: bool = False
    pages: List[PageDeclaration] = field(default_factory=list)

    def add_page(self, page: PageDeclaration) -> PageDeclaration:
        self.pages.append(page)
        return page

    @property
    def destination_keys(self) -> List[str]:
        return [page.destination_key for page in self.pages]

    def __len__(self) -> int:
        return len(self.pages)


@dataclass
class OutlineEntry:
    title: str
    dest: Optional[str] = None
    children: List["OutlineEntry"] = field(default_factory=list)

    def add_child(self, entry: "OutlineEntry") -> "OutlineEntry":
        self.children.append(entry)
        return entry

    @property
    def is_section(self) -> bool:
        return self.dest is None


@dataclass
class DocumentMetadata:
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: Optional[str] = None
    creator: Optional[str] = "planner"
    producer: Optional[str] = None

    def update(self, **values: Any) -> None:
        for name, value in values.items():
            if not hasattr(self, name):
                raise DeclarationError(f"Unknown metadata field: {name}")
            setattr(self, name, value)

    def as_pdf_info(self) -> Dict[str, str]:
        info = {
            "Title": self.title,
            "Author": self.author,
            "Subject": self.subject,
            "Keywords": self.keywords,
            "Creator": self.creator,
            "Producer": self.producer,
        }
        return {key: value for key, value in info.items() if value}
