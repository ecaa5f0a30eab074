import random
from datetime import date, datetime, timedelta, timezone

import pytest

from processing.selection import (
    canonical_date_string,
    date_hash,
    select_daily_index,
    select_random_index,
    to_utc_date,
    utc_today,
)
from retrieval.errors import EmptyCorpus

# (date string, corpus size, expected index), worked out by hand
AGREEMENT_TABLE = [
    ("2024-1-15", 700, 441),
    ("2024-1-15", 9, 0),
    ("2024-1-1", 9, 1),
    ("2024-12-31", 9, 3),
    ("2026-10-19", 9, 0),
    ("2026-10-19", 100, 95),
]


def test_canonical_date_string_has_no_padding():
    assert canonical_date_string(date(2024, 1, 5)) == "2024-1-5"
    assert canonical_date_string(date(2024, 12, 31)) == "2024-12-31"


def test_date_hash_sums_code_points():
    # 50+48+50+52+45+49+45+49+53
    assert date_hash("2024-1-15") == 441
    assert date_hash("") == 0


def test_agreement_table():
    for date_string, size, expected in AGREEMENT_TABLE:
        day = date.fromisoformat(
            "{:04d}-{:02d}-{:02d}".format(*map(int, date_string.split("-")))
        )
        assert canonical_date_string(day) == date_string
        assert select_daily_index(day, size) == expected, f"Failed for {date_string}, {size}"


def test_deterministic():
    day = date(2025, 3, 8)
    assert select_daily_index(day, 701) == select_daily_index(day, 701)


def test_range_invariant():
    start = date(2024, 1, 1)
    for offset in range(0, 800, 7):
        day = start + timedelta(days=offset)
        for size in (1, 2, 9, 18, 700):
            assert 0 <= select_daily_index(day, size) < size


def test_time_of_day_does_not_matter():
    morning = datetime(2024, 1, 15, 0, 1, tzinfo=timezone.utc)
    night = datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc)
    assert select_daily_index(morning, 700) == select_daily_index(night, 700) == 441


def test_aware_datetimes_use_utc_date():
    # 23:30 in UTC-5 is already the next day in UTC
    eastern = timezone(timedelta(hours=-5))
    late = datetime(2024, 1, 15, 23, 30, tzinfo=eastern)
    assert canonical_date_string(late) == "2024-1-16"
    assert select_daily_index(late, 700) == 442

    # 01:00 in UTC+5:30 is still the previous day in UTC
    india = timezone(timedelta(hours=5, minutes=30))
    early = datetime(2024, 1, 16, 1, 0, tzinfo=india)
    assert to_utc_date(early) == date(2024, 1, 15)


def test_naive_datetime_is_taken_as_utc():
    assert canonical_date_string(datetime(2024, 1, 15, 23, 59)) == "2024-1-15"


def test_utc_today_from_clock():
    now = datetime(2024, 2, 29, 22, 0, tzinfo=timezone(timedelta(hours=-3)))
    assert utc_today(now) == date(2024, 3, 1)


def test_empty_corpus_raises():
    with pytest.raises(EmptyCorpus):
        select_daily_index(date(2024, 1, 15), 0)
    with pytest.raises(EmptyCorpus):
        select_random_index(0)


def test_negative_size_is_rejected():
    with pytest.raises(ValueError):
        select_daily_index(date(2024, 1, 15), -3)


def test_random_index_in_range():
    rng = random.Random(42)
    for _ in range(200):
        assert 0 <= select_random_index(9, rng=rng) < 9
    assert select_random_index(1) == 0


if __name__ == "__main__":
    pytest.main([__file__])
