from __future__ import annotations

from datetime import date

from binday.schemas import CollectionEntry

# A schedule with this many upcoming collections or fewer needs re-fetching
STALE_THRESHOLD = 3


def upcoming_count(schedule: list[CollectionEntry], today: date) -> int:
    return sum(1 for entry in schedule if entry.collection_date >= today)


def is_stale(schedule: list[CollectionEntry], today: date) -> bool:
    """True when the schedule is about to run out of forward-looking dates."""
    return upcoming_count(schedule, today) <= STALE_THRESHOLD
