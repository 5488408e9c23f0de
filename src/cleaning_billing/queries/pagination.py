"""Page container and paging arguments."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from cleaning_billing.errors import ValidationFailure
from cleaning_billing.store.base import Row


@dataclass(frozen=True)
class Page:
    """One page of results plus the match count across all pages."""

    items: list[Row] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def page_count(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total_count

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def first_index(self) -> int:
        """1-based index of the first item shown, 0 when there are none."""
        if self.total_count == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total_count)


def validate_paging(page: int, page_size: int, max_page_size: int) -> None:
    """Reject out-of-range paging arguments."""
    if page < 1:
        raise ValidationFailure("Page numbers start at 1", ["page"])
    if page_size < 1 or page_size > max_page_size:
        raise ValidationFailure(
            f"Page size must be between 1 and {max_page_size}", ["page_size"]
        )
