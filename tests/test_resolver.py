"""Tests for picking the next collection out of an unsorted schedule."""

from __future__ import annotations

from datetime import date, timedelta

from binday.schemas import CollectionEntry, ContainerKind
from binday.services.freshness import is_stale
from binday.services.resolver import resolve_next

D = date(2026, 3, 2)
BLACK, SILVER, GREEN = ContainerKind.BLACK, ContainerKind.SILVER, ContainerKind.GREEN


def _entry(container: ContainerKind, offset: int) -> CollectionEntry:
    day = D + timedelta(days=offset)
    return CollectionEntry(date_label=day.strftime("%A"), collection_date=day, container=container)


def _pairs(entries: list[CollectionEntry]) -> list[tuple[ContainerKind, date]]:
    return [(e.container, e.collection_date) for e in entries]


def test_list_order_wins_over_date_order():
    schedule = [_entry(GREEN, 10), _entry(BLACK, 3)]
    assert _pairs(resolve_next(schedule, D).entries) == [(GREEN, D + timedelta(days=10))]


def test_same_day_recycling_and_garden_are_paired():
    schedule = [_entry(GREEN, 2), _entry(SILVER, 2), _entry(BLACK, 9)]
    assert _pairs(resolve_next(schedule, D).entries) == [
        (GREEN, D + timedelta(days=2)),
        (SILVER, D + timedelta(days=2)),
    ]


def test_different_days_are_not_paired():
    schedule = [_entry(GREEN, 2), _entry(SILVER, 5)]
    assert _pairs(resolve_next(schedule, D).entries) == [(GREEN, D + timedelta(days=2))]


def test_black_is_returned_alone():
    schedule = [_entry(BLACK, 1), _entry(SILVER, 1), _entry(GREEN, 1)]
    assert _pairs(resolve_next(schedule, D).entries) == [(BLACK, D + timedelta(days=1))]


def test_black_never_joins_as_partner():
    schedule = [_entry(SILVER, 1), _entry(BLACK, 1), _entry(GREEN, 1)]
    result = resolve_next(schedule, D).entries
    assert _pairs(result) == [(SILVER, D + timedelta(days=1))]


def test_past_entries_are_skipped():
    schedule = [_entry(BLACK, -7), _entry(SILVER, -7), _entry(GREEN, 7)]
    assert _pairs(resolve_next(schedule, D).entries) == [(GREEN, D + timedelta(days=7))]


def test_today_qualifies():
    schedule = [_entry(BLACK, -1), _entry(SILVER, 0), _entry(GREEN, 0)]
    assert [e.container for e in resolve_next(schedule, D).entries] == [SILVER, GREEN]


def test_past_entry_between_pair_is_ignored():
    schedule = [_entry(GREEN, 4), _entry(BLACK, -3), _entry(SILVER, 4)]
    assert [e.container for e in resolve_next(schedule, D).entries] == [GREEN, SILVER]


def test_all_past_gives_empty_result():
    schedule = [_entry(BLACK, -14), _entry(SILVER, -7), _entry(GREEN, -1)]
    assert resolve_next(schedule, D).entries == []


def test_empty_schedule():
    resolution = resolve_next([], D)
    assert resolution.entries == []
    assert resolution.refresh_recommended is False


def test_single_non_black_entry():
    assert _pairs(resolve_next([_entry(SILVER, 3)], D).entries) == [(SILVER, D + timedelta(days=3))]


def test_resolution_is_repeatable():
    schedule = [_entry(SILVER, -1), _entry(GREEN, 6), _entry(SILVER, 6), _entry(BLACK, 13)]
    assert resolve_next(schedule, D) == resolve_next(schedule, D)


def test_pair_always_shares_a_date_and_excludes_black():
    schedules = [
        [_entry(GREEN, 1), _entry(SILVER, 1)],
        [_entry(SILVER, 1), _entry(BLACK, 1)],
        [_entry(GREEN, 1), _entry(GREEN, 1), _entry(SILVER, 1)],
        [_entry(BLACK, 0), _entry(BLACK, 0)],
    ]
    for schedule in schedules:
        entries = resolve_next(schedule, D).entries
        assert len(entries) <= 2
        if len(entries) == 2:
            assert entries[0].collection_date == entries[1].collection_date
            assert BLACK not in {e.container for e in entries}


class TestRefreshSignal:
    def test_plenty_remaining(self):
        schedule = [_entry(BLACK, 7 * i) for i in range(6)]
        assert resolve_next(schedule, D).refresh_recommended is False

    def test_three_left_after_next_collection(self):
        schedule = [_entry(BLACK, -21), _entry(BLACK, -14),
                    _entry(BLACK, 0), _entry(BLACK, 7), _entry(BLACK, 14), _entry(BLACK, 21)]
        resolution = resolve_next(schedule, D)
        assert resolution.refresh_recommended is True
        assert _pairs(resolution.entries) == [(BLACK, D)]

    def test_four_left_after_next_collection(self):
        schedule = [_entry(BLACK, -7), _entry(GREEN, 0), _entry(SILVER, 0),
                    _entry(BLACK, 7), _entry(GREEN, 14), _entry(SILVER, 14)]
        assert resolve_next(schedule, D).refresh_recommended is False

    def test_fires_on_schedule_that_is_not_stale(self):
        schedule = [_entry(BLACK, 7 * i) for i in range(4)]
        assert is_stale(schedule, D) is False
        assert resolve_next(schedule, D).refresh_recommended is True

    def test_no_signal_without_upcoming_entries(self):
        schedule = [_entry(BLACK, -7)]
        assert resolve_next(schedule, D).refresh_recommended is False
