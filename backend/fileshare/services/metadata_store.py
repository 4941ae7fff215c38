"""Metadata store: key -> FileRecord.

Populated only by the ingest route, read by the retrieval and info routes.
There is deliberately no update, list or delete operation.
"""
import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import StaticPool

from fileshare.config import Settings
from fileshare.database import build_engine, build_sessionmaker
from fileshare.models import Base, StoredFile
from fileshare.services.errors import StoreFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileRecord:
    """Descriptive record for one stored blob. Immutable once created."""
    key: str
    original_name: str
    mime_type: str
    size_bytes: int
    upload_date: datetime


class MetadataStore(ABC):

    async def start(self) -> None:
        """Prepare backing resources. Called once from the app lifespan."""

    async def close(self) -> None:
        """Release backing resources."""

    @abstractmethod
    async def put(self, record: FileRecord) -> None:
        ...

    @abstractmethod
    async def get(self, key: str) -> FileRecord | None:
        ...


class InMemoryMetadataStore(MetadataStore):
    """Volatile dict behind a lock; safe for concurrent readers and writers."""

    def __init__(self):
        self._records: dict[str, FileRecord] = {}
        self._lock = threading.Lock()

    async def put(self, record: FileRecord) -> None:
        with self._lock:
            if record.key in self._records:
                raise StoreFailure(f"Metadata for {record.key} already registered")
            self._records[record.key] = record

    async def get(self, key: str) -> FileRecord | None:
        with self._lock:
            return self._records.get(key)


class SqlMetadataStore(MetadataStore):
    """Records in the ``files`` table. One session per operation."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._sessions = build_sessionmaker(engine)
        # StaticPool hands every session the same connection; interleaved
        # commits/rollbacks on it would discard each other's inserts
        self._shared_connection_lock = asyncio.Lock() if isinstance(engine.sync_engine.pool, StaticPool) else None

    @asynccontextmanager
    async def _session(self):
        guard = self._shared_connection_lock or nullcontext()
        async with guard:
            async with self._sessions() as db:
                yield db

    @classmethod
    def from_url(cls, database_url: str) -> "SqlMetadataStore":
        return cls(build_engine(database_url))

    async def start(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    async def put(self, record: FileRecord) -> None:
        row = StoredFile(
            key=record.key,
            original_name=record.original_name,
            mime_type=record.mime_type,
            size_bytes=record.size_bytes,
            upload_date=record.upload_date,
        )
        try:
            async with self._session() as db:
                db.add(row)
                await db.commit()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed registering metadata for {record.key}: {e}") from e

    async def get(self, key: str) -> FileRecord | None:
        try:
            async with self._session() as db:
                row = await db.get(StoredFile, key)
        except SQLAlchemyError as e:
            raise StoreFailure(f"Failed reading metadata for {key}: {e}") from e
        if row is None:
            return None
        upload_date = row.upload_date
        # SQLite drops tzinfo on the way back
        if upload_date.tzinfo is None:
            upload_date = upload_date.replace(tzinfo=timezone.utc)
        return FileRecord(
            key=row.key,
            original_name=row.original_name,
            mime_type=row.mime_type,
            size_bytes=row.size_bytes,
            upload_date=upload_date,
        )


def build_metadata_store(config: Settings) -> MetadataStore:
    if config.METADATA_STORE_TYPE == "memory":
        return InMemoryMetadataStore()
    if config.METADATA_STORE_TYPE == "sql":
        return SqlMetadataStore.from_url(config.DATABASE_URL)
    raise ValueError(f"Unknown metadata store type: {config.METADATA_STORE_TYPE}")
