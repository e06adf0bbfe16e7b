"""Pick the next collection out of a property's schedule.

The schedule comes straight from the council page and is scanned in that
order, never sorted. General waste (Black) is always collected on its own;
recycling (Silver) and garden waste (Green) can share a visit, in which case
both are returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from binday.schemas import CollectionEntry, ContainerKind
from binday.services.freshness import STALE_THRESHOLD


@dataclass(frozen=True)
class Resolution:
    """Result of resolving the next collection.

    refresh_recommended is set when few entries remain after the next
    collection. Acting on it is up to the caller.
    """
    entries: list[CollectionEntry] = field(default_factory=list)
    refresh_recommended: bool = False


def resolve_next(schedule: list[CollectionEntry], today: date) -> Resolution:
    selected: list[CollectionEntry] = []
    refresh_recommended = False

    for position, entry in enumerate(schedule):
        if entry.collection_date < today:
            continue

        if not selected:
            # Entries left in the schedule after this one
            refresh_recommended = len(schedule) - position - 1 <= STALE_THRESHOLD
            selected.append(entry)
            # Black bins are only ever collected alone
            if entry.container == ContainerKind.BLACK:
                break
            continue

        # Second upcoming entry: only a same-day partner joins the first
        if (
            entry.collection_date == selected[0].collection_date
            and entry.container != ContainerKind.BLACK
        ):
            selected.append(entry)
        break

    return Resolution(entries=selected, refresh_recommended=refresh_recommended)
