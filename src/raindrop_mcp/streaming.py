"""Chunked delivery of large tool results over STDIO.

A JSON-RPC response whose result holds many content items (or is flagged
as streamed) is split into several messages of ``chunk_size`` items each.
Every chunk keeps the rest of the result, with ``structuredContent`` sliced
the same way, and gets chunk bookkeeping in the result's ``_meta``; only the
last chunk has ``partial: False``.
"""
import asyncio
import logging
import math
from typing import Any, Awaitable, Callable

from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage

logger = logging.getLogger("raindrop-mcp.streaming")

CHUNK_SIZE = 25
STREAMING_THRESHOLD = 50
CHUNK_DELAY_SECONDS = 0.01
LARGE_DATASET_TOTAL = 100

META_KEY = "_meta"
STRUCTURED_KEY = "structuredContent"

SendFn = Callable[[dict], Awaitable[None]]


def _metadata(source: Any) -> dict:
    if not isinstance(source, dict):
        return {}
    merged = {}
    for key in ("metadata", META_KEY):
        if isinstance(source.get(key), dict):
            merged.update(source[key])
    return merged


def _is_large(total: Any) -> bool:
    return isinstance(total, (int, float)) and not isinstance(total, bool) and total > LARGE_DATASET_TOTAL


class StreamingChunker:
    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        threshold: int = STREAMING_THRESHOLD,
        delay: float = CHUNK_DELAY_SECONDS,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.chunk_size = chunk_size
        self.threshold = threshold
        self.delay = delay

    def should_stream(self, message: dict) -> bool:
        result = message.get("result")
        if not isinstance(result, dict):
            return False

        content = result.get("content")
        if isinstance(content, list):
            if len(content) > self.threshold:
                return True
            for item in content:
                meta = _metadata(item)
                if _is_large(meta.get("total")) or meta.get("streamingEnabled") or meta.get("chunksLoaded"):
                    return True

        meta = _metadata(result)
        structured = result.get("structuredContent")
        if isinstance(structured, dict):
            meta.update(_metadata(structured))
        return bool(meta.get("streamed") or meta.get("streaming"))

    def _structured_slice(self, structured: Any, index: int, total_chunks: int) -> Any:
        """The part of ``structuredContent`` that belongs to chunk ``index``.

        Its content list is sliced like the result content. Anything else is
        only sent with the last chunk.
        """
        last = index == total_chunks - 1
        if not isinstance(structured, dict) or not isinstance(structured.get("content"), list):
            return structured if last else None
        items = structured["content"]
        part = dict(structured)
        part["content"] = items[index * self.chunk_size:(index + 1) * self.chunk_size]
        if last:
            part["content"] = items[index * self.chunk_size:]
        return part

    def chunk(self, message: dict) -> list[dict]:
        """Split ``message.result.content`` into chunk messages."""
        result = message["result"]
        content = result["content"]
        total_items = len(content)
        total_chunks = max(1, math.ceil(total_items / self.chunk_size))
        base_meta = result.get(META_KEY) or {}
        structured = result.get(STRUCTURED_KEY)

        chunks = []
        for index in range(total_chunks):
            part = content[index * self.chunk_size:(index + 1) * self.chunk_size]
            chunk_result = dict(result)
            chunk_result["content"] = part
            if structured is not None:
                structured_part = self._structured_slice(structured, index, total_chunks)
                if structured_part is None:
                    del chunk_result[STRUCTURED_KEY]
                else:
                    chunk_result[STRUCTURED_KEY] = structured_part
            chunk_result[META_KEY] = {
                **base_meta,
                "streaming": True,
                "partial": index < total_chunks - 1,
                "chunkIndex": index,
                "totalChunks": total_chunks,
                "itemsInChunk": len(part),
                "totalItems": total_items,
            }
            chunks.append({**message, "result": chunk_result})
        return chunks

    async def send(self, message: dict, send: SendFn) -> int:
        """Send ``message``, chunked when needed. Returns the number of messages sent."""
        if not self.should_stream(message):
            await send(message)
            return 1

        result = message["result"]
        if not isinstance(result.get("content"), list):
            meta = {**(result.get(META_KEY) or {}), "streaming": True, "partial": False}
            await send({**message, "result": {**result, META_KEY: meta}})
            return 1

        chunks = self.chunk(message)
        logger.info(
            f"Streaming {len(result['content'])} items in {len(chunks)} chunks "
            f"(response id {message.get('id')})"
        )
        for index, chunk in enumerate(chunks):
            await send(chunk)
            logger.debug(f"Sent chunk {index + 1}/{len(chunks)}")
            if index < len(chunks) - 1:
                await asyncio.sleep(self.delay)
        return len(chunks)


class StreamingWriteStream:
    """Write stream wrapper that routes outgoing messages through a chunker."""

    def __init__(self, stream: Any, chunker: StreamingChunker):
        self._stream = stream
        self._chunker = chunker

    async def send(self, item: SessionMessage) -> None:
        message = item.message.model_dump(by_alias=True, mode="json", exclude_none=True)
        if not self._chunker.should_stream(message):
            await self._stream.send(item)
            return

        async def send_raw(payload: dict) -> None:
            await self._stream.send(
                SessionMessage(message=JSONRPCMessage.model_validate(payload), metadata=item.metadata)
            )

        await self._chunker.send(message, send_raw)

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def __aenter__(self) -> "StreamingWriteStream":
        await self._stream.__aenter__()
        return self

    async def __aexit__(self, *exc_info) -> Any:
        return await self._stream.__aexit__(*exc_info)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._stream, name)
