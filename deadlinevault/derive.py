from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from .models import DeadlineRecord, FilterOption, SortOption, Urgency

EXPIRED_MARKER = "Expired"
DONE_MARKER = "Done"
RETENTION = timedelta(days=30)

DAY = timedelta(days=1)


def filter_records(records: Iterable[DeadlineRecord], option: FilterOption) -> List[DeadlineRecord]:
    want_completed = option is FilterOption.COMPLETED
    return [r for r in records if r.is_completed == want_completed]


def sort_records(records: Iterable[DeadlineRecord], option: SortOption) -> List[DeadlineRecord]:
    """
    Stable sort; ties keep their input order.
    Titles compare by code point, so "Zeta" sorts before "alpha".
    """
    if option is SortOption.TITLE:
        return sorted(records, key=lambda r: r.title)
    if option is SortOption.DATE_NEAREST:
        return sorted(records, key=lambda r: r.target_date)
    return sorted(records, key=lambda r: r.created_date)


def visible_records(
    records: Iterable[DeadlineRecord], filter_option: FilterOption, sort_option: SortOption
) -> List[DeadlineRecord]:
    return sort_records(filter_records(records, filter_option), sort_option)


def days_remaining(target: datetime, now: datetime) -> float:
    return (target - now) / DAY


def classify_urgency(record: DeadlineRecord, now: datetime) -> Urgency:
    """
    far: > 14 days, soon: (7, 14], near: (3, 7], urgent: <= 3 (overdue included).
    Completed records are neutral whatever their dates.
    """
    if record.is_completed:
        return Urgency.NEUTRAL
    days = days_remaining(record.target_date, now)
    if days > 14:
        return Urgency.FAR
    if days > 7:
        return Urgency.SOON
    if days > 3:
        return Urgency.NEAR
    return Urgency.URGENT


def format_countdown(target: datetime, now: datetime) -> str:
    remaining = (target - now).total_seconds()
    if remaining <= 0:
        return EXPIRED_MARKER

    total = int(remaining)
    days, rest = divmod(total, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    if days > 0:
        return f"{days} day {hours} hour"
    return f"{hours} hour {minutes} min {seconds} sec"


def is_expired_completion(record: DeadlineRecord, now: datetime, retention: timedelta = RETENTION) -> bool:
    if not record.is_completed or record.completed_date is None:
        return False
    return record.completed_date < now - retention


def cleanup_expired(
    records: Iterable[DeadlineRecord], now: datetime, retention: timedelta = RETENTION
) -> Tuple[List[DeadlineRecord], int]:
    """
    Drop completed records finished more than `retention` before `now`.
    Returns (kept, removed_count); a nonzero count must be persisted.
    """
    kept: List[DeadlineRecord] = []
    removed = 0
    for r in records:
        if is_expired_completion(r, now, retention):
            removed += 1
        else:
            kept.append(r)
    return kept, removed
