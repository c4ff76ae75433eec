"""
Location: python/wetrocloud_sdk/stream.py

Summary:
    NDJSON (Newline Delimited JSON) relay for streaming responses. Splits
    an arbitrarily chunked byte stream into records, re-encodes each
    record as compact JSON and yields it as soon as it is complete.

Usage:
    Used by client.py to relay the streaming "query collection" response.
    The relay is transport-agnostic: any (async) iterable of bytes or str
    chunks can be fed through it.

Example:
    from wetrocloud_sdk.stream import relay_ndjson, iter_response_bytes

    async with client.open_stream("POST", "collection/query/", payload) as response:
        async for line in relay_ndjson(iter_response_bytes(response)):
            print(line, end="")
"""

import codecs
import json
import logging
from typing import (
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Union,
)

import httpx

from .errors import RecordParseError, TransportError

logger = logging.getLogger(__name__)

DELIMITER = "\n"

Chunk = Union[bytes, str]
ParseErrorHook = Callable[[RecordParseError], None]


class NdjsonBuffer:
    """
    Incremental newline splitter holding at most one partial record.

    Byte chunks go through an incremental UTF-8 decoder, so a multi-byte
    character split across two chunks is reassembled before delimiting.
    Invalid byte sequences decode to U+FFFD.

    After every feed() the pending tail contains no delimiter.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._pending = ""

    @property
    def pending(self) -> str:
        """Unterminated text waiting for its delimiter."""
        return self._pending

    def feed(self, chunk: Chunk) -> list[str]:
        """
        Append a chunk and extract every complete, non-blank segment.

        Args:
            chunk: Raw bytes or already decoded text

        Returns:
            Complete segments in arrival order (delimiters stripped)
        """
        text = self._decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        if DELIMITER not in text:
            self._pending += text
            return []

        *complete, self._pending = (self._pending + text).split(DELIMITER)
        return [segment for segment in complete if segment.strip()]

    def flush(self) -> list[str]:
        """
        Drain the buffer at end of stream.

        Returns:
            The tail as a single segment, or nothing if it is blank
        """
        tail = self._pending + self._decoder.decode(b"", final=True)
        self.reset()
        return [tail] if tail.strip() else []

    def reset(self) -> None:
        """Drop pending text and any partially decoded bytes."""
        self._pending = ""
        self._decoder.reset()


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def canonicalize_record(segment: str) -> str:
    """
    Parse one segment and re-encode it as compact JSON.

    Key order is kept and non-ASCII text is not escaped, so encoding the
    result again is a no-op.

    Args:
        segment: Raw record text

    Returns:
        Canonical JSON text (without delimiter)

    Raises:
        RecordParseError: If the segment is not valid JSON or nests too
            deeply to decode
    """
    try:
        value = json.loads(segment, parse_constant=_reject_constant)
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (ValueError, RecursionError) as e:
        raise RecordParseError(segment, str(e)) from e


def _emit(segment: str, on_parse_error: Optional[ParseErrorHook]) -> Optional[str]:
    try:
        return canonicalize_record(segment) + DELIMITER
    except RecordParseError as e:
        logger.warning("Skipping malformed NDJSON record %.80r: %s", segment, e.reason)
        if on_parse_error is not None:
            on_parse_error(e)
        return None


async def relay_ndjson(
    chunks: AsyncIterable[Chunk],
    *,
    on_parse_error: Optional[ParseErrorHook] = None,
) -> AsyncIterator[str]:
    """
    Relay an async chunk source as canonical NDJSON lines.

    Each yielded line is one record followed by a newline, produced as
    soon as its delimiter arrives. Malformed records are logged, passed
    to on_parse_error and skipped. The unterminated tail is emitted once
    the source is exhausted; if the relay is closed early it is dropped.

    Args:
        chunks: Async iterable of bytes or str chunks
        on_parse_error: Optional hook called with each RecordParseError

    Yields:
        JSON text lines terminated by "\\n"

    Raises:
        TransportError: Propagated from the chunk source
    """
    buffer = NdjsonBuffer()
    try:
        async for chunk in chunks:
            for segment in buffer.feed(chunk):
                line = _emit(segment, on_parse_error)
                if line is not None:
                    yield line

        for segment in buffer.flush():
            line = _emit(segment, on_parse_error)
            if line is not None:
                yield line
    finally:
        buffer.reset()
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()


def iter_ndjson_lines(
    chunks: Iterable[Chunk],
    *,
    on_parse_error: Optional[ParseErrorHook] = None,
) -> Iterator[str]:
    """
    Synchronous counterpart of relay_ndjson() for blocking sources.

    Args:
        chunks: Iterable of bytes or str chunks
        on_parse_error: Optional hook called with each RecordParseError

    Yields:
        JSON text lines terminated by "\\n"
    """
    buffer = NdjsonBuffer()
    for chunk in chunks:
        for segment in buffer.feed(chunk):
            line = _emit(segment, on_parse_error)
            if line is not None:
                yield line

    for segment in buffer.flush():
        line = _emit(segment, on_parse_error)
        if line is not None:
            yield line


async def iter_response_bytes(response: httpx.Response) -> AsyncIterator[bytes]:
    """
    Read raw body chunks from a streaming httpx response.

    Args:
        response: An httpx.Response opened with client.stream()

    Yields:
        Body chunks as delivered by the transport

    Raises:
        TransportError: If reading the body fails mid-stream
    """
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        raise TransportError(
            f"upstream stream failed: {e}",
            status_code=response.status_code,
        ) from e
