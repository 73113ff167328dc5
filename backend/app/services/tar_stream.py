"""
Streaming tar archives built from cached file contents.
"""

import asyncio
import tarfile
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Sequence, Tuple

from app.core.logging import log_error

# Concurrent content fetches allowed while building an archive
TAR_FETCH_CONCURRENCY = 2

# Normally this would be application/x-tar, but some browsers refuse to
# decompress a gzipped stream served with that type.
TAR_MEDIA_TYPE = "application/octet-stream"

_END_OF_ARCHIVE = tarfile.NUL * (tarfile.BLOCKSIZE * 2)


def tar_entry(name: str, data: bytes, mtime: Optional[float] = None) -> bytes:
    """Header, content and padding for one regular-file member."""
    info = tarfile.TarInfo(name=name)
    info.size = len(data)
    info.mode = 0o644
    info.mtime = int(mtime if mtime is not None else time.time())

    header = info.tobuf(format=tarfile.PAX_FORMAT)
    remainder = len(data) % tarfile.BLOCKSIZE
    padding = tarfile.NUL * (tarfile.BLOCKSIZE - remainder) if remainder else b""
    return header + data + padding


async def stream_tar(
    entries: Sequence[Tuple[str, Any]],
    fetch: Callable[[Any], Awaitable[bytes]],
    concurrency: int = TAR_FETCH_CONCURRENCY,
) -> AsyncIterator[bytes]:
    """
    Yield a tar archive of ``entries`` chunk by chunk.

    Each entry is ``(name, key)``; contents are loaded with ``fetch(key)``.
    At most ``concurrency`` contents are held at any time, counting both
    fetches in flight and fetched contents not yet taken by the consumer: the
    next fetch starts only after a finished member has been yielded. Members
    are emitted in completion order, which may differ from ``entries``.
    """
    remaining = iter(entries)
    pending = set()

    async def load(name: str, key: Any) -> Tuple[str, bytes]:
        return name, await fetch(key)

    def start_next() -> None:
        for name, key in remaining:
            pending.add(asyncio.ensure_future(load(name, key)))
            return

    try:
        for _ in range(max(1, concurrency)):
            start_next()

        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                pending.discard(task)
                name, data = task.result()
                yield tar_entry(name, data)
                start_next()
        yield _END_OF_ARCHIVE
    except Exception as exc:
        # Headers are already sent; all we can do is log and cut the stream short
        log_error(exc, context={"operation": "stream_tar"})
        raise
    finally:
        for task in pending:
            if not task.done():
                task.cancel()
