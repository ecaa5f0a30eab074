import random
from datetime import date, datetime, timezone
from typing import Optional, Union

from retrieval.errors import EmptyCorpus

DateLike = Union[date, datetime]


def utc_today(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    return to_utc_date(now)


def to_utc_date(value: DateLike) -> date:
    """
    Calendar date of `value` in UTC.

    Aware datetimes are converted to UTC, naive datetimes are taken to be UTC
    already and plain dates are used as given.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def canonical_date_string(value: DateLike) -> str:
    day = to_utc_date(value)
    # No zero padding: 2024-01-05 -> "2024-1-5"
    return f"{day.year}-{day.month}-{day.day}"


def date_hash(date_string: str) -> int:
    return sum(ord(char) for char in date_string)


def _check_size(corpus_size: int) -> None:
    if corpus_size < 0:
        raise ValueError(f"Corpus size must not be negative, got {corpus_size}")
    if corpus_size == 0:
        raise EmptyCorpus("No shloks available to select from")


def select_daily_index(value: DateLike, corpus_size: int) -> int:
    _check_size(corpus_size)
    return abs(date_hash(canonical_date_string(value)) % corpus_size)


def select_random_index(corpus_size: int, rng: Optional[random.Random] = None) -> int:
    _check_size(corpus_size)
    rng = rng or random
    return rng.randrange(corpus_size)
