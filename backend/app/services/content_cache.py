"""
Cached server methods for file contents.
"""

from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheMethod, CacheRegistry, build_backend
from app.core.config import settings
from app.models.file import File
from app.models.published_file import PublishedFile
from app.utils.exceptions import NotFoundError

FILE_CACHE = "file"
PUBLISHED_FILE_CACHE = "publishedFile"


class FileBufferCache(CacheMethod):
    """Content of a project file by id."""

    name = FILE_CACHE

    async def compute(self, db: AsyncSession, key) -> bytes:
        buffer = (await db.execute(select(File.buffer).where(File.id == int(key)))).scalar_one_or_none()
        if buffer is None:
            raise NotFoundError(f"File not found: {key}")
        return bytes(buffer)


class PublishedFileBufferCache(CacheMethod):
    """Content of a published file by id."""

    name = PUBLISHED_FILE_CACHE

    async def compute(self, db: AsyncSession, key) -> bytes:
        buffer = (
            await db.execute(select(PublishedFile.buffer).where(PublishedFile.id == int(key)))
        ).scalar_one_or_none()
        if buffer is None:
            raise NotFoundError(f"Published file not found: {key}")
        return bytes(buffer)


def build_cache_registry(
    session_factory: Callable[[], AsyncSession],
    enabled: Optional[bool] = None,
    backend=None,
) -> CacheRegistry:
    """Instantiate every cached method against one backend."""
    if backend is None:
        backend = build_backend(settings.CACHE_ENABLED if enabled is None else enabled)
    return CacheRegistry({
        cls.name: cls(backend, session_factory)
        for cls in (FileBufferCache, PublishedFileBufferCache)
    })


_cache_registry: Optional[CacheRegistry] = None


def get_cache() -> CacheRegistry:
    """Dependency returning the process-wide cache registry."""
    global _cache_registry
    if _cache_registry is None:
        from app.core.database import AsyncSessionLocal
        _cache_registry = build_cache_registry(AsyncSessionLocal)
    return _cache_registry
