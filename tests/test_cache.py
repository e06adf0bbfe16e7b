"""Property cache tests against an in-memory SQLite database."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from binday.database import Base
from binday.models import Property
from binday.schemas import CollectionEntry, ContainerKind, PropertyRecord
from binday.services.cache import PropertyCache


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


def _record(key: str = "1%20test%20road:sk11 3ab", *dates: date) -> PropertyRecord:
    dates = dates or (date(2026, 3, 3), date(2026, 3, 10))
    return PropertyRecord(
        address_key=key,
        property_id="100010198765",
        schedule=[
            CollectionEntry(date_label="Tuesday", collection_date=d, container=ContainerKind.SILVER)
            for d in dates
        ],
    )


def _broken_factory() -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(
        side_effect=OperationalError("SELECT 1", {}, Exception("database is locked"))
    )
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    return factory


@pytest.mark.asyncio
async def test_get_unknown_key_is_a_miss(session_factory):
    cache = PropertyCache(session_factory)
    assert await cache.get("nowhere:zz1 1zz") is None


@pytest.mark.asyncio
async def test_put_then_get(session_factory):
    cache = PropertyCache(session_factory)
    record = _record()

    assert await cache.put(record) is True
    assert await cache.get(record.address_key) == record


@pytest.mark.asyncio
async def test_put_replaces_whole_record(session_factory):
    cache = PropertyCache(session_factory)
    await cache.put(_record("k:1", date(2026, 3, 3), date(2026, 3, 10), date(2026, 3, 17)))
    await cache.put(_record("k:1", date(2026, 4, 7)))

    stored = await cache.get("k:1")
    assert [e.collection_date for e in stored.schedule] == [date(2026, 4, 7)]


@pytest.mark.asyncio
async def test_unreadable_schedule_is_a_miss(session_factory):
    async with session_factory() as session:
        session.add(Property(address_key="k:1", property_id="1", schedule="{not json"))
        await session.commit()

    cache = PropertyCache(session_factory)
    assert await cache.get("k:1") is None


@pytest.mark.asyncio
async def test_list_records_skips_unreadable_rows(session_factory):
    cache = PropertyCache(session_factory)
    await cache.put(_record("a:1"))
    async with session_factory() as session:
        session.add(Property(address_key="b:1", property_id="2", schedule='[{"date_label": "x"}]'))
        await session.commit()
    await cache.put(_record("c:1"))

    records = await cache.list_records()
    assert [r.address_key for r in records] == ["a:1", "c:1"]


@pytest.mark.asyncio
async def test_storage_failure_on_read_is_a_miss():
    cache = PropertyCache(_broken_factory())
    assert await cache.get("k:1") is None


@pytest.mark.asyncio
async def test_storage_failure_on_write_returns_false():
    cache = PropertyCache(_broken_factory())
    assert await cache.put(_record()) is False


@pytest.mark.asyncio
async def test_storage_failure_on_list_returns_empty():
    cache = PropertyCache(_broken_factory())
    assert await cache.list_records() == []
