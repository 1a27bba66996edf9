from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(eq=False)
class DeadlineRecord:
    """
    One tracked deadline. Identity is the id; everything derived from the
    dates (urgency, countdown, retention) lives in derive.py.

    completed_date is set exactly when is_completed is True.
    """

    title: str
    target_date: datetime
    id: UUID = field(default_factory=uuid4)
    created_date: datetime = field(default_factory=utc_now)
    is_completed: bool = False
    completed_date: Optional[datetime] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeadlineRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class SortOption(Enum):
    ADDED_ORDER = "added"
    TITLE = "title"
    DATE_NEAREST = "date"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]

    def next(self) -> "SortOption":
        members = list(SortOption)
        return members[(members.index(self) + 1) % len(members)]


_SORT_LABELS = {
    SortOption.ADDED_ORDER: "Added Order",
    SortOption.TITLE: "Title (A-Z)",
    SortOption.DATE_NEAREST: "Date (Nearest)",
}


class FilterOption(Enum):
    ACTIVE = "active"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Urgency(Enum):
    FAR = "far"
    SOON = "soon"
    NEAR = "near"
    URGENT = "urgent"
    NEUTRAL = "neutral"

    @property
    def color(self) -> str:
        return _URGENCY_COLORS[self]


_URGENCY_COLORS = {
    Urgency.FAR: "blue",
    Urgency.SOON: "green",
    Urgency.NEAR: "orange",
    Urgency.URGENT: "red",
    Urgency.NEUTRAL: "gray",
}
