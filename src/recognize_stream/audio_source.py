import asyncio
import logging
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192


class AudioSink(Protocol):
    async def write(self, chunk: bytes) -> None: ...
    async def finish(self) -> None: ...


async def read_chunks(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    with open(path, "rb") as f:
        while True:
            chunk = await asyncio.to_thread(f.read, chunk_size)
            if not chunk:
                return
            yield chunk


async def pipe_file(path: Path, sink: AudioSink, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Write ``path`` into ``sink`` chunk by chunk, then signal end of input.

    Each chunk is only read once the previous write has completed, so the
    sink's backpressure throttles the file read. Returns the bytes written.
    """
    total = 0
    async for chunk in read_chunks(path, chunk_size):
        await sink.write(chunk)
        total += len(chunk)
    logger.info("Finished streaming %s (%d bytes)", path.name, total)
    await sink.finish()
    return total
