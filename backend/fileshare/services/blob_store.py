"""Blob storage abstraction. Local filesystem by default, in-memory for tests."""
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from fileshare.config import Settings
from fileshare.services.errors import NotFound, PayloadTooLarge, StoreFailure

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def is_safe_key(key: str) -> bool:
    """A key must be a single path component that cannot escape the store."""
    return bool(key) and not key.startswith(".") and not any(c in key for c in "/\\\x00")


class BlobStore(ABC):
    """Persists and retrieves raw byte payloads by key."""

    @abstractmethod
    async def write(self, key: str, chunks: AsyncIterator[bytes], max_bytes: int) -> int:
        """Consume ``chunks`` into the blob ``key``. Returns bytes persisted.

        Raises PayloadTooLarge as soon as the running total passes
        ``max_bytes``, StoreFailure on any I/O error. Nothing is left
        registered as a success in either case.
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    async def open(self, key: str) -> AsyncIterator[bytes]:
        """Return a chunked reader for ``key``. Raises NotFound if absent."""


class LocalBlobStore(BlobStore):
    """One file per key under ``base_path``."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_path / key

    async def write(self, key: str, chunks: AsyncIterator[bytes], max_bytes: int) -> int:
        if not is_safe_key(key):
            raise StoreFailure(f"Refusing to write unsafe key {key!r}")
        path = self._path(key)
        try:
            # "x" never clobbers an existing blob on a key collision
            f = await aiofiles.open(path, "xb")
        except OSError as e:
            raise StoreFailure(f"Failed creating blob {key}: {e}") from e

        written = 0
        try:
            try:
                async for chunk in chunks:
                    written += len(chunk)
                    if written > max_bytes:
                        raise PayloadTooLarge(f"Blob {key} exceeded {max_bytes} bytes")
                    await f.write(chunk)
            finally:
                await f.close()
        except PayloadTooLarge:
            await self._discard(path)
            raise
        except OSError as e:
            await self._discard(path)
            raise StoreFailure(f"Failed writing blob {key}: {e}") from e
        return written

    async def exists(self, key: str) -> bool:
        if not is_safe_key(key):
            return False
        return await aiofiles.os.path.isfile(self._path(key))

    async def open(self, key: str) -> AsyncIterator[bytes]:
        if not is_safe_key(key):
            raise NotFound(f"Unsafe key {key!r}")
        try:
            handle = await aiofiles.open(self._path(key), "rb")
        except FileNotFoundError as e:
            raise NotFound(f"Blob {key} not found") from e
        except OSError as e:
            raise StoreFailure(f"Failed opening blob {key}: {e}") from e
        return self._read_chunks(handle)

    @staticmethod
    async def _read_chunks(handle) -> AsyncIterator[bytes]:
        try:
            while chunk := await handle.read(CHUNK_SIZE):
                yield chunk
        finally:
            await handle.close()

    @staticmethod
    async def _discard(path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial blob {path}: {e}")


class MemoryBlobStore(BlobStore):
    """Process-local blobs. Contents vanish with the process."""

    def __init__(self):
        self._blobs: dict[str, bytes] = {}
        self._lock = threading.Lock()

    async def write(self, key: str, chunks: AsyncIterator[bytes], max_bytes: int) -> int:
        if not is_safe_key(key):
            raise StoreFailure(f"Refusing to write unsafe key {key!r}")
        buffer = bytearray()
        async for chunk in chunks:
            buffer.extend(chunk)
            if len(buffer) > max_bytes:
                raise PayloadTooLarge(f"Blob {key} exceeded {max_bytes} bytes")
        with self._lock:
            if key in self._blobs:
                raise StoreFailure(f"Blob {key} already exists")
            self._blobs[key] = bytes(buffer)
        return len(buffer)

    async def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    async def open(self, key: str) -> AsyncIterator[bytes]:
        with self._lock:
            data = self._blobs.get(key)
        if data is None:
            raise NotFound(f"Blob {key} not found")
        return self._read_chunks(data)

    @staticmethod
    async def _read_chunks(data: bytes) -> AsyncIterator[bytes]:
        for start in range(0, len(data), CHUNK_SIZE):
            yield data[start:start + CHUNK_SIZE]


def build_blob_store(config: Settings) -> BlobStore:
    if config.BLOB_STORE_TYPE == "local":
        return LocalBlobStore(config.BLOB_STORE_PATH)
    if config.BLOB_STORE_TYPE == "memory":
        return MemoryBlobStore()
    raise ValueError(f"Unknown blob store type: {config.BLOB_STORE_TYPE}")
