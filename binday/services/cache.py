"""Property cache backed by the ``properties`` table.

Lookups favour availability: any storage problem is logged and reported as
a miss (or a failed write) so the caller can fall back to the council web
service instead of failing the request.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from binday.metrics import CACHE_LOOKUPS_TOTAL
from binday.models import Property
from binday.schemas import CollectionEntry, PropertyRecord

logger = logging.getLogger(__name__)


def _dump_schedule(schedule: list[CollectionEntry]) -> str:
    return json.dumps([entry.model_dump(mode="json") for entry in schedule])


def _load_record(row: Property) -> PropertyRecord:
    return PropertyRecord(
        address_key=row.address_key,
        property_id=row.property_id,
        schedule=[CollectionEntry.model_validate(item) for item in json.loads(row.schedule)],
    )


class PropertyCache:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, address_key: str) -> PropertyRecord | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(Property, address_key)
        except SQLAlchemyError as e:
            logger.warning("Property cache read failed for %s: %s", address_key, e)
            CACHE_LOOKUPS_TOTAL.labels(result="error").inc()
            return None

        if row is None:
            logger.info("No cached data for %s", address_key)
            return None

        try:
            return _load_record(row)
        except (ValueError, TypeError) as e:  # ValidationError is a ValueError
            logger.warning("Discarding unreadable cached schedule for %s: %s", address_key, e)
            CACHE_LOOKUPS_TOTAL.labels(result="error").inc()
            return None

    async def put(self, record: PropertyRecord) -> bool:
        try:
            async with self._session_factory() as session:
                row = await session.get(Property, record.address_key)
                if row is None:
                    row = Property(address_key=record.address_key)
                    session.add(row)
                row.property_id = record.property_id
                row.schedule = _dump_schedule(record.schedule)
                row.updated_at = datetime.utcnow()
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Property cache write failed for %s: %s", record.address_key, e)
            return False

        logger.info("Cached %d entries for %s", len(record.schedule), record.address_key)
        return True

    async def list_records(self) -> list[PropertyRecord]:
        """Return every readable cached record. Used by the stale sweep."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(Property).order_by(Property.address_key))
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning("Property cache listing failed: %s", e)
            return []

        records = []
        for row in rows:
            try:
                records.append(_load_record(row))
            except (ValueError, TypeError) as e:  # ValidationError is a ValueError
                logger.warning("Skipping unreadable cached schedule for %s: %s", row.address_key, e)
        return records
