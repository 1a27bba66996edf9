from datetime import datetime, timedelta, timezone
from uuid import UUID

from deadlinevault.models import DeadlineRecord, FilterOption, SortOption, Urgency

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_defaults_assign_fresh_identity():
    a = DeadlineRecord(title="A", target_date=NOW)
    b = DeadlineRecord(title="A", target_date=NOW)
    assert isinstance(a.id, UUID)
    assert a.id != b.id
    assert a.created_date.tzinfo is not None
    assert a.is_completed is False
    assert a.completed_date is None


def test_equality_is_by_id():
    a = DeadlineRecord(title="A", target_date=NOW)
    same = DeadlineRecord(id=a.id, title="renamed", target_date=NOW + timedelta(days=1))
    assert a == same
    assert len({a, same}) == 1
    assert a != DeadlineRecord(title="A", target_date=NOW)


def test_sort_option_cycles_through_all_modes():
    seen = []
    opt = SortOption.ADDED_ORDER
    for _ in range(3):
        seen.append(opt)
        opt = opt.next()
    assert opt is SortOption.ADDED_ORDER
    assert seen == [SortOption.ADDED_ORDER, SortOption.TITLE, SortOption.DATE_NEAREST]


def test_labels_and_colors():
    assert SortOption.TITLE.label == "Title (A-Z)"
    assert FilterOption.COMPLETED.label == "Completed"
    assert [u.color for u in Urgency] == ["blue", "green", "orange", "red", "gray"]
