from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from . import derive
from .errors import DeserializationError, ValidationError
from .models import DeadlineRecord, FilterOption, SortOption, Urgency, utc_now
from .vault import Vault

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# (title, offset from "now") for a freshly created vault
SEED_DEADLINES: Tuple[Tuple[str, timedelta], ...] = (
    ("Semester Project", timedelta(days=16)),
    ("Mid-term Essay", timedelta(days=12)),
    ("Lab Report", timedelta(days=6)),
    ("Quiz Preparation", timedelta(days=3)),
    ("Final Exam", timedelta(days=20)),
    ("Presentation Slide", timedelta(days=9)),
    ("Code Review", timedelta(days=2)),
    ("Team Meeting", timedelta(hours=5)),
)


@dataclass(frozen=True)
class RowView:
    record: DeadlineRecord
    urgency: Urgency
    countdown: str


def seed_records(now: datetime) -> List[DeadlineRecord]:
    return [DeadlineRecord(title=t, target_date=now + off, created_date=now) for t, off in SEED_DEADLINES]


class Session:
    """
    Owns the in-memory collection for one vault.

    Every mutating command writes the whole vault before returning; a
    PersistenceError from that write propagates, and the in-memory change
    is kept (call flush() to retry). Commands return the refreshed view.
    """

    def __init__(self, vault: Vault, clock: Optional[Clock] = None, seed: bool = True) -> None:
        self.vault = vault
        self.clock: Clock = clock or utc_now
        self.now: datetime = self.clock()
        self.sort_option = SortOption.ADDED_ORDER
        self.filter_option = FilterOption.ACTIVE
        self._records: List[DeadlineRecord] = []
        self._open(seed)

    def _open(self, seed: bool) -> None:
        try:
            loaded = self.vault.load()
        except DeserializationError as e:
            log.warning("ignoring unreadable vault %s: %s", self.vault.path, e)
            loaded = []

        if not loaded:
            if seed and not self.vault.exists():
                self._records = seed_records(self.now)
                self._sort()
                log.info("created vault %s with %d example deadlines", self.vault.path, len(self._records))
                self._persist()
            return

        self._records = loaded
        if self._prune() > 0:
            self._persist()
        self._sort()

    @property
    def records(self) -> Tuple[DeadlineRecord, ...]:
        return tuple(self._records)

    def get(self, record_id: UUID) -> Optional[DeadlineRecord]:
        for r in self._records:
            if r.id == record_id:
                return r
        return None

    def row(self, record: DeadlineRecord) -> RowView:
        if record.is_completed:
            countdown = derive.DONE_MARKER
        else:
            countdown = derive.format_countdown(record.target_date, self.now)
        return RowView(record, derive.classify_urgency(record, self.now), countdown)

    def view(self) -> List[RowView]:
        visible = derive.visible_records(self._records, self.filter_option, self.sort_option)
        return [self.row(r) for r in visible]

    def add(self, title: str, target_date: datetime) -> List[RowView]:
        _check_title(title)
        _check_target(target_date)
        now = self.clock()
        if target_date <= now:
            raise ValidationError("Target date must be in the future.")
        self._records.append(DeadlineRecord(title=title, target_date=target_date, created_date=now))
        self._sort()
        self._persist()
        return self.view()

    def edit(self, record_id: UUID, title: str, target_date: datetime) -> List[RowView]:
        _check_title(title)
        _check_target(target_date)
        record = self.get(record_id)
        if record is None:
            log.debug("edit: no record %s", record_id)
            return self.view()
        record.title = title
        record.target_date = target_date
        self._sort()
        self._persist()
        return self.view()

    def toggle_completion(self, record_id: UUID) -> List[RowView]:
        record = self.get(record_id)
        if record is None:
            log.debug("toggle: no record %s", record_id)
            return self.view()
        record.is_completed = not record.is_completed
        record.completed_date = self.clock() if record.is_completed else None
        self._persist()
        return self.view()

    def tick(self, now: Optional[datetime] = None) -> List[RowView]:
        self.now = now if now is not None else self.clock()
        return self.view()

    def set_sort_option(self, option: SortOption) -> List[RowView]:
        self.sort_option = option
        self._sort()
        return self.view()

    def cycle_sort_option(self) -> List[RowView]:
        return self.set_sort_option(self.sort_option.next())

    def set_filter_option(self, option: FilterOption) -> List[RowView]:
        self.filter_option = option
        return self.view()

    def cleanup(self) -> int:
        removed = self._prune()
        if removed:
            self._persist()
        return removed

    def flush(self) -> None:
        self._persist()

    def _prune(self) -> int:
        self._records, removed = derive.cleanup_expired(self._records, self.now)
        if removed:
            log.info("removed %d completed deadlines older than %d days", removed, derive.RETENTION.days)
        return removed

    def _sort(self) -> None:
        self._records = derive.sort_records(self._records, self.sort_option)

    def _persist(self) -> None:
        self.vault.save(self._records)


def _check_title(title: str) -> None:
    if not title or not title.strip():
        raise ValidationError("Title must not be empty.")


def _check_target(target_date: datetime) -> None:
    if target_date.tzinfo is None or target_date.utcoffset() is None:
        raise ValidationError("Target date must carry a timezone.")
