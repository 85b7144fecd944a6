from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional

if TYPE_CHECKING:
    from .declarations import OutlineEntry, PageDeclaration


class PageSetFinalizedError(RuntimeError):
    """A page set was mutated or finalized after finalize()."""


@dataclass(frozen=True)
class SetContext:
    position: int
    total: int
    label: Optional[str]
    set_name: str

    @property
    def first(self) -> bool:
        return self.position == 1

    @property
    def last(self) -> bool:
        return self.position == self.total


def interpolate_label(pattern: Optional[str], position: int, total: int) -> Optional[str]:
    if pattern is None:
        return None
    return pattern.replace("%page", str(position)).replace("%total", str(total))


class PageSet:
    """Ordered pages that paginate as one unit, e.g. "Index 1 of 2".

    Pages are added during declaration; ``finalize()`` then locks the set and
    assigns every page its position, the total and its label.
    """

    def __init__(self, name: str, label_pattern: Optional[str] = None, cycle: bool = False) -> None:
        self.name = name
        self.label_pattern = label_pattern
        self.cycle = cycle
        self.pages: List["PageDeclaration"] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def add(self, page: "PageDeclaration") -> "PageDeclaration":
        if self._finalized:
            raise PageSetFinalizedError(f"Cannot add pages to finalized page set {self.name!r}")
        self.pages.append(page)
        return page

    def finalize(self) -> None:
        if self._finalized:
            raise PageSetFinalizedError(f"Page set {self.name!r} is already finalized")
        total = len(self.pages)
        for position, page in enumerate(self.pages, start=1):
            page.set_context = SetContext(
                position=position,
                total=total,
                label=interpolate_label(self.label_pattern, position, total),
                set_name=self.name,
            )
        self._finalized = True

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> Iterator["PageDeclaration"]:
        return iter(self.pages)

    def __getitem__(self, index: int) -> "PageDeclaration":
        return self.pages[index]

    def first(self) -> Optional["PageDeclaration"]:
        return self.pages[0] if self.pages else None

    def last(self) -> Optional["PageDeclaration"]:
        return self.pages[-1] if self.pages else None

    @property
    def destination_keys(self) -> List[str]:
        return [page.destination_key for page in self.pages]

    def outline_entry(self) -> Optional["OutlineEntry"]:
        from .declarations import OutlineEntry

        head = self.first()
        if head is None:
            return None
        return OutlineEntry(title=self.name, dest=head.destination_key)
