"""Destination registry (pass 1) and link resolution (pass 2).

Pass 1 numbers every declared page and indexes it. Once the whole document
is registered the registry is sealed and becomes read-only; every lookup
before that point is a state error because page numbers are not yet known.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .declarations import GroupDeclaration, PageDeclaration, canonical_params

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_WEEKS = 53


class DuplicateDestinationError(ValueError):
    """Two declarations produced the same destination key."""


class RegistryStateError(RuntimeError):
    """Registry used in the wrong phase (register after seal, resolve before)."""


@dataclass(frozen=True)
class DestinationInfo:
    destination_key: str
    page_number: int
    page_type: str
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class _Group:
    name: str
    cycle: bool
    keys: Tuple[str, ...]


class LinkRegistry:
    def __init__(self) -> None:
        self._by_key: Dict[str, DestinationInfo] = {}
        self._by_params: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], DestinationInfo] = {}
        self._by_type: Dict[str, List[DestinationInfo]] = {}
        self._groups: Dict[str, _Group] = {}
        self._sealed = False

    # pass 1

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_writable(self) -> None:
        if self._sealed:
            raise RegistryStateError("Registry is sealed; pages must be registered before rendering")

    def register(self, decl: PageDeclaration, page_number: int) -> DestinationInfo:
        self._check_writable()
        key = decl.destination_key
        if key in self._by_key:
            existing = self._by_key[key]
            raise DuplicateDestinationError(
                f"Duplicate destination {key!r}: page {page_number} conflicts with page {existing.page_number}"
            )
        info = DestinationInfo(
            destination_key=key,
            page_number=page_number,
            page_type=decl.page_type,
            params=decl.params,
        )
        self._by_key[key] = info
        self._by_params.setdefault((decl.page_type, canonical_params(decl.params)), info)
        self._by_type.setdefault(decl.page_type, []).append(info)
        return info

    def register_group(self, group: GroupDeclaration) -> None:
        self._check_writable()
        self._groups[group.name] = _Group(group.name, group.cycle, tuple(group.destination_keys))

    def register_all(self, pages: Iterable[PageDeclaration], groups: Iterable[GroupDeclaration] = ()) -> None:
        """Number ``pages`` 1..n in order, register ``groups`` and seal."""
        for page_number, decl in enumerate(pages, start=1):
            self.register(decl, page_number)
        for group in groups:
            self.register_group(group)
        self.seal()

    def seal(self) -> None:
        self._sealed = True
        logger.debug("Registry sealed with %d destinations, %d groups", len(self._by_key), len(self._groups))

    # pass 2

    def _check_readable(self) -> None:
        if not self._sealed:
            raise RegistryStateError("Registry is not sealed; resolve links only after all pages are registered")

    def resolve(self, page_type: str, **params: Any) -> Optional[DestinationInfo]:
        self._check_readable()
        exact = self._by_params.get((page_type, canonical_params(params)))
        if exact is not None:
            return exact
        wanted = canonical_params(params)
        for info in self._by_type.get(page_type, ()):
            have = dict(canonical_params(info.params))
            if all(have.get(name) == value for name, value in wanted):
                return info
        return None

    def resolve_key(self, key: str) -> Optional[DestinationInfo]:
        self._check_readable()
        return self._by_key.get(key)

    def exists(self, page_type: str, **params: Any) -> bool:
        return self.resolve(page_type, **params) is not None

    def key_exists(self, key: str) -> bool:
        return self.resolve_key(key) is not None

    def group(self, name: str) -> Optional[List[DestinationInfo]]:
        self._check_readable()
        group = self._groups.get(name)
        if group is None:
            return None
        return [self._by_key[key] for key in group.keys if key in self._by_key]

    def is_cycling(self, name: str) -> bool:
        group = self._groups.get(name)
        return bool(group and group.cycle)

    def next_in_cycle(self, name: str, current_key: Optional[str]) -> Optional[DestinationInfo]:
        """
        Next member of a cycling group after ``current_key``, wrapping to the
        first after the last. A key outside the group enters the cycle at its
        first member. Unknown or non-cycling groups give None.
        """
        self._check_readable()
        group = self._groups.get(name)
        if group is None or not group.cycle or not group.keys:
            return None
        if current_key not in group.keys:
            return self._by_key.get(group.keys[0])
        index = group.keys.index(current_key)
        return self._by_key.get(group.keys[(index + 1) % len(group.keys)])

    def destinations_for_type(self, page_type: str) -> List[DestinationInfo]:
        self._check_readable()
        return list(self._by_type.get(page_type, ()))

    def keys(self) -> List[str]:
        return list(self._by_key)

    def destinations(self) -> List[DestinationInfo]:
        return sorted(self._by_key.values(), key=lambda info: info.page_number)

    @property
    def size(self) -> int:
        return len(self._by_key)

    def __len__(self) -> int:
        return len(self._by_key)


class LinkResolver:
    """Read-only view of a sealed registry bound to the page being rendered."""

    def __init__(
        self,
        registry: LinkRegistry,
        current: Optional[PageDeclaration] = None,
        total_weeks: Optional[int] = None,
    ) -> None:
        self.registry = registry
        self.current = current
        self.total_weeks = total_weeks or DEFAULT_TOTAL_WEEKS

    @property
    def current_key(self) -> Optional[str]:
        return self.current.destination_key if self.current is not None else None

    def resolve(self, page_type: str, **params: Any) -> Optional[DestinationInfo]:
        return self.registry.resolve(page_type, **params)

    def resolve_key(self, key: str) -> Optional[DestinationInfo]:
        return self.registry.resolve_key(key)

    def exists(self, page_type: str, **params: Any) -> bool:
        return self.registry.exists(page_type, **params)

    def page_number_for(self, page_type: str, **params: Any) -> Optional[int]:
        info = self.resolve(page_type, **params)
        return info.page_number if info is not None else None

    def _week_num(self, week_num: Optional[int]) -> Optional[int]:
        if week_num is not None:
            return week_num
        if self.current is None:
            return None
        return self.current.params.get("week_num")

    def dest_for_prev_week(self, week_num: Optional[int] = None) -> Optional[DestinationInfo]:
        num = self._week_num(week_num)
        if num is None or num <= 1:
            return None
        return self.resolve("weekly", week_num=num - 1)

    def dest_for_next_week(self, week_num: Optional[int] = None,
                           total_weeks: Optional[int] = None) -> Optional[DestinationInfo]:
        num = self._week_num(week_num)
        total = total_weeks or self.total_weeks
        if num is None or num >= total:
            return None
        return self.resolve("weekly", week_num=num + 1)

    def next_in_group(self, name: str) -> Optional[DestinationInfo]:
        return self.registry.next_in_cycle(name, self.current_key)

    def group_destinations(self, name: str) -> List[DestinationInfo]:
        return self.registry.group(name) or []

    def in_group(self, name: str) -> bool:
        key = self.current_key
        return any(info.destination_key == key for info in self.group_destinations(name))
