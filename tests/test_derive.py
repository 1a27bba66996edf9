from datetime import datetime, timedelta, timezone

from deadlinevault import derive
from deadlinevault.models import DeadlineRecord, FilterOption, SortOption, Urgency

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _rec(title="T", days=1.0, created=0, completed_days_ago=None):
    r = DeadlineRecord(
        title=title,
        target_date=NOW + timedelta(days=days),
        created_date=NOW - timedelta(hours=100 - created),
    )
    if completed_days_ago is not None:
        r.is_completed = True
        r.completed_date = NOW - timedelta(days=completed_days_ago)
    return r


def test_urgency_bands():
    assert derive.classify_urgency(_rec(days=15), NOW) is Urgency.FAR
    assert derive.classify_urgency(_rec(days=14), NOW) is Urgency.SOON
    assert derive.classify_urgency(_rec(days=10), NOW) is Urgency.SOON
    assert derive.classify_urgency(_rec(days=7), NOW) is Urgency.NEAR
    assert derive.classify_urgency(_rec(days=3), NOW) is Urgency.URGENT
    assert derive.classify_urgency(_rec(days=-1 / 24), NOW) is Urgency.URGENT


def test_urgency_uses_fractional_days():
    r = _rec(days=14)
    r.target_date += timedelta(seconds=1)
    assert derive.classify_urgency(r, NOW) is Urgency.FAR
    r = _rec(days=3)
    r.target_date += timedelta(minutes=1)
    assert derive.classify_urgency(r, NOW) is Urgency.NEAR


def test_completed_is_neutral_regardless_of_dates():
    assert derive.classify_urgency(_rec(days=-5, completed_days_ago=1), NOW) is Urgency.NEUTRAL
    assert derive.classify_urgency(_rec(days=50, completed_days_ago=1), NOW) is Urgency.NEUTRAL


def test_countdown_expired():
    assert derive.format_countdown(NOW - timedelta(seconds=1), NOW) == "Expired"
    assert derive.format_countdown(NOW, NOW) == "Expired"


def test_countdown_under_a_day():
    assert derive.format_countdown(NOW + timedelta(minutes=90), NOW) == "1 hour 30 min 0 sec"
    later = NOW + timedelta(minutes=45, seconds=12, milliseconds=700)
    assert derive.format_countdown(later, NOW) == "0 hour 45 min 12 sec"


def test_countdown_days_and_hours():
    assert derive.format_countdown(NOW + timedelta(hours=25), NOW) == "1 day 1 hour"
    assert derive.format_countdown(NOW + timedelta(days=3, hours=5, minutes=59), NOW) == "3 day 5 hour"
    assert derive.format_countdown(NOW + timedelta(days=1), NOW) == "1 day 0 hour"


def test_filter_partitions_by_completion():
    active = _rec("a")
    done = _rec("d", completed_days_ago=1)
    assert derive.filter_records([active, done], FilterOption.ACTIVE) == [active]
    assert derive.filter_records([active, done], FilterOption.COMPLETED) == [done]


def test_sort_modes():
    a = _rec("beta", days=5, created=1)
    b = _rec("Alpha", days=2, created=2)
    c = _rec("alpha", days=9, created=0)
    assert [r.title for r in derive.sort_records([a, b, c], SortOption.ADDED_ORDER)] == ["alpha", "beta", "Alpha"]
    assert [r.title for r in derive.sort_records([a, b, c], SortOption.TITLE)] == ["Alpha", "alpha", "beta"]
    assert [r.title for r in derive.sort_records([a, b, c], SortOption.DATE_NEAREST)] == ["Alpha", "beta", "alpha"]


def test_sort_is_stable_on_ties():
    first = _rec("same", days=1, created=5)
    second = _rec("same", days=1, created=5)
    third = _rec("same", days=1, created=5)
    for option in SortOption:
        out = derive.sort_records([first, second, third], option)
        assert [r.id for r in out] == [first.id, second.id, third.id]


def test_cleanup_retention_window():
    old = _rec("old", completed_days_ago=31)
    recent = _rec("recent", completed_days_ago=29)
    edge = _rec("edge", completed_days_ago=30)
    ancient_active = _rec("active", days=-400)
    ancient_active.created_date = NOW - timedelta(days=900)

    kept, removed = derive.cleanup_expired([old, recent, edge, ancient_active], NOW)
    assert removed == 1
    assert kept == [recent, edge, ancient_active]


def test_cleanup_nothing_to_remove():
    records = [_rec("a"), _rec("b", completed_days_ago=2)]
    kept, removed = derive.cleanup_expired(records, NOW)
    assert removed == 0
    assert kept == records
