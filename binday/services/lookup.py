"""Answer "which bins go out next, and when?" for a household address.

Ties the property cache, the council web service and the resolver together.
The cache is always tried first; a miss or a stale schedule triggers a fresh
scrape which is written back before resolving.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import date
from typing import Protocol
from urllib.parse import quote

from binday.errors import AddressIncomplete, BinCollectionUnavailable, BinDayError, ParseError
from binday.metrics import BACKGROUND_REFRESH_TOTAL, CACHE_LOOKUPS_TOTAL, PARSE_ERRORS_TOTAL
from binday.parsers.schedule import parse_schedule
from binday.schemas import Address, CollectionEntry, NextCollection, PropertyRecord
from binday.services.freshness import is_stale
from binday.services.resolver import resolve_next

logger = logging.getLogger(__name__)


class ScheduleSource(Protocol):
    async def fetch_property_id(self, address_line: str, postal_code: str) -> str: ...

    async def fetch_raw_schedule(self, property_id: str) -> str: ...


class PropertyStore(Protocol):
    async def get(self, address_key: str) -> PropertyRecord | None: ...

    async def put(self, record: PropertyRecord) -> bool: ...

    async def list_records(self) -> list[PropertyRecord]: ...


def normalise_postcode(postal_code: str) -> str:
    return re.sub(r"\s+", " ", postal_code.strip())


def make_address_key(address: Address) -> str:
    """Build the cache key for an address, e.g. ``1%20test%20road:sk11 3ab``."""
    line = (address.address_line or "").strip()
    postcode = normalise_postcode(address.postal_code or "")
    if not line or not postcode:
        logger.info(
            "Address is not complete. Line 1: %r Postcode: %r",
            address.address_line, address.postal_code,
        )
        raise AddressIncomplete("Address line and postcode are both required")
    return f"{quote(line.casefold())}:{postcode.casefold()}"


def render_next_collection(entries: list[CollectionEntry]) -> str:
    bins = " and ".join(entry.container.value for entry in entries)
    return f"Your {bins} bin is due on {entries[0].date_label}."


class CollectionService:
    def __init__(self, cache: PropertyStore, source: ScheduleSource):
        self._cache = cache
        self._source = source
        self._tasks: set[asyncio.Task] = set()

    async def next_collection(self, address: Address, today: date) -> NextCollection:
        address_key = make_address_key(address)
        record = await self._cache.get(address_key)
        refreshed = False

        if record is None:
            CACHE_LOOKUPS_TOTAL.labels(result="miss").inc()
            property_id = await self._source.fetch_property_id(
                address.address_line.strip(), normalise_postcode(address.postal_code)
            )
            record = await self._fetch_record(address_key, property_id)
            refreshed = True
        elif is_stale(record.schedule, today):
            CACHE_LOOKUPS_TOTAL.labels(result="stale").inc()
            logger.info("Stored bin collection data is stale for %s, refreshing", address_key)
            record = await self._fetch_record(address_key, record.property_id)
            refreshed = True
        else:
            CACHE_LOOKUPS_TOTAL.labels(result="hit").inc()

        if refreshed:
            await self._cache.put(record)

        resolution = resolve_next(record.schedule, today)
        if not resolution.entries:
            logger.error("No upcoming bin collection found for %s", address_key)
            raise BinCollectionUnavailable(f"No collection on or after {today.isoformat()}")

        refresh_scheduled = resolution.refresh_recommended and not refreshed
        if refresh_scheduled:
            self._schedule_refresh(record)

        message = render_next_collection(resolution.entries)
        logger.info("Responding with: %s", message)
        return NextCollection(
            address_key=address_key,
            entries=resolution.entries,
            message=message,
            refreshed=refreshed,
            refresh_scheduled=refresh_scheduled,
        )

    async def refresh(self, record: PropertyRecord) -> PropertyRecord:
        """Re-scrape a known property and replace its cached record."""
        fresh = await self._fetch_record(record.address_key, record.property_id)
        await self._cache.put(fresh)
        return fresh

    async def refresh_stale(self, today: date) -> int:
        """Refresh every cached property whose schedule has gone stale."""
        refreshed = 0
        for record in await self._cache.list_records():
            if not is_stale(record.schedule, today):
                continue
            try:
                await self.refresh(record)
                refreshed += 1
            except BinDayError as e:
                logger.warning("Refresh failed for %s: %s", record.address_key, e)
        logger.info("Stale sweep refreshed %d properties", refreshed)
        return refreshed

    async def aclose(self) -> None:
        """Wait for any background refreshes still running."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _fetch_record(self, address_key: str, property_id: str) -> PropertyRecord:
        raw = await self._source.fetch_raw_schedule(property_id)
        try:
            schedule = parse_schedule(raw)
        except ParseError:
            PARSE_ERRORS_TOTAL.labels(endpoint="job_list").inc()
            raise
        return PropertyRecord(address_key=address_key, property_id=property_id, schedule=schedule)

    def _schedule_refresh(self, record: PropertyRecord) -> None:
        logger.info("Few collections left for %s, refreshing in background", record.address_key)
        task = asyncio.create_task(self._background_refresh(record))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_refresh(self, record: PropertyRecord) -> None:
        try:
            await self.refresh(record)
            BACKGROUND_REFRESH_TOTAL.labels(status="completed").inc()
        except BinDayError as e:
            logger.warning("Background refresh failed for %s: %s", record.address_key, e)
            BACKGROUND_REFRESH_TOTAL.labels(status="failed").inc()
        except Exception:
            logger.exception("Background refresh crashed for %s", record.address_key)
            BACKGROUND_REFRESH_TOTAL.labels(status="failed").inc()
