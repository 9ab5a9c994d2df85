"""Dashboard filter and pagination state."""
from dataclasses import dataclass, replace
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FilterState:
    """
    Immutable dashboard query.

    Every filter change produces a new state with the page reset to 1;
    changing the stake also clears the ward, since wards belong to a stake.
    """

    search: str = ""
    gender: str = ""
    t_shirt_size: str = ""
    stake: str = ""
    ward: str = ""
    paid: Optional[bool] = None
    page: int = 1

    def with_search(self, search: str) -> "FilterState":
        return replace(self, search=search, page=1)

    def with_gender(self, gender: str) -> "FilterState":
        return replace(self, gender=gender, page=1)

    def with_t_shirt_size(self, size: str) -> "FilterState":
        return replace(self, t_shirt_size=size, page=1)

    def with_stake(self, stake: str) -> "FilterState":
        if stake == self.stake:
            return self
        return replace(self, stake=stake, ward="", page=1)

    def with_ward(self, ward: str) -> "FilterState":
        return replace(self, ward=ward, page=1)

    def with_paid(self, paid: Optional[bool]) -> "FilterState":
        return replace(self, paid=paid, page=1)

    def with_page(self, page: int) -> "FilterState":
        return replace(self, page=max(1, page))

    def is_filtered(self) -> bool:
        return bool(
            self.search.strip() or self.gender or self.t_shirt_size
            or self.stake or self.ward or self.paid is not None
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a filtered list."""

    items: List[T]
    page: int
    total_pages: int
    total_items: int
    start_index: int  # zero-based index of items[0] in the full list

    @property
    def first_number(self) -> int:
        """1-based position of the first row, 0 for an empty page."""
        return self.start_index + 1 if self.items else 0

    @property
    def last_number(self) -> int:
        return self.start_index + len(self.items)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages
