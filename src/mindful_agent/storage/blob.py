"""Blob stores — the flat key→bytes persistence collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindful_agent.storage.database import BlobRow, get_session_factory

logger = structlog.get_logger(__name__)


class BlobStore(ABC):
    """Contract for durable named blobs."""

    @abstractmethod
    async def save_blob(self, key: str, data: bytes) -> None:
        """Store *data* under *key*, replacing any previous value."""

    @abstractmethod
    async def load_blob(self, key: str) -> bytes | None:
        """Return the blob for *key*, or ``None`` when absent."""

    async def delete_blob(self, key: str) -> None:  # noqa: B027
        """Remove *key* (default: no-op)."""


class MemoryBlobStore(BlobStore):
    """Process-local store; nothing survives a restart."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.blobs: dict[str, bytes] = dict(initial or {})

    async def save_blob(self, key: str, data: bytes) -> None:
        self.blobs[key] = data

    async def load_blob(self, key: str) -> bytes | None:
        return self.blobs.get(key)

    async def delete_blob(self, key: str) -> None:
        self.blobs.pop(key, None)


class SqlBlobStore(BlobStore):
    """Blobs stored in the ``blobs`` table via SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._factory = session_factory

    def _session(self) -> AsyncSession:
        factory = self._factory or get_session_factory()
        return factory()

    async def save_blob(self, key: str, data: bytes) -> None:
        async with self._session() as session:
            row = await session.get(BlobRow, key)
            if row is None:
                session.add(BlobRow(key=key, data=data))
            else:
                row.data = data
            await session.commit()

    async def load_blob(self, key: str) -> bytes | None:
        async with self._session() as session:
            result = await session.execute(select(BlobRow.data).where(BlobRow.key == key))
            return result.scalar_one_or_none()

    async def delete_blob(self, key: str) -> None:
        async with self._session() as session:
            row = await session.get(BlobRow, key)
            if row is not None:
                await session.delete(row)
                await session.commit()
