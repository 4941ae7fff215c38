import asyncio
from datetime import datetime, timezone

import pytest

from fileshare.config import Settings
from fileshare.services.errors import StoreFailure
from fileshare.services.metadata_store import (
    FileRecord,
    InMemoryMetadataStore,
    SqlMetadataStore,
    build_metadata_store,
)


def make_record(key: str = "0123456789abcdef0123456789abcdef.txt") -> FileRecord:
    return FileRecord(
        key=key,
        original_name="test.txt",
        mime_type="text/plain",
        size_bytes=5,
        upload_date=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )


@pytest.mark.asyncio
async def test_memory_put_get():
    store = InMemoryMetadataStore()
    record = make_record()
    await store.put(record)
    assert await store.get(record.key) == record
    assert await store.get("missing") is None


@pytest.mark.asyncio
async def test_memory_rejects_second_put_for_same_key():
    store = InMemoryMetadataStore()
    await store.put(make_record())
    with pytest.raises(StoreFailure):
        await store.put(make_record())


def test_records_are_immutable():
    record = make_record()
    with pytest.raises(AttributeError):
        record.size_bytes = 10


@pytest.mark.asyncio
async def test_sql_put_get_round_trips_every_field():
    store = SqlMetadataStore.from_url("sqlite+aiosqlite:///:memory:")
    await store.start()
    try:
        record = make_record()
        await store.put(record)
        assert await store.get(record.key) == record
        assert await store.get("missing") is None
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sql_duplicate_key_is_store_failure():
    store = SqlMetadataStore.from_url("sqlite+aiosqlite:///:memory:")
    await store.start()
    try:
        await store.put(make_record())
        with pytest.raises(StoreFailure):
            await store.put(make_record())
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_sql_get_without_tables_is_store_failure():
    store = SqlMetadataStore.from_url("sqlite+aiosqlite:///:memory:")
    try:
        with pytest.raises(StoreFailure):
            await store.get("anything")
    finally:
        await store.close()


def test_build_metadata_store():
    assert isinstance(build_metadata_store(Settings(METADATA_STORE_TYPE="memory")), InMemoryMetadataStore)
    with pytest.raises(ValueError):
        build_metadata_store(Settings(METADATA_STORE_TYPE="redis"))


@pytest.mark.asyncio
async def test_sql_concurrent_puts_all_survive():
    store = SqlMetadataStore.from_url("sqlite+aiosqlite:///:memory:")
    await store.start()
    try:
        keys = [f"{i:032x}.bin" for i in range(40)]
        await asyncio.gather(*[store.put(make_record(key)) for key in keys])
        found = await asyncio.gather(*[store.get(key) for key in keys])
        assert [r.key for r in found if r is not None] == keys
    finally:
        await store.close()
