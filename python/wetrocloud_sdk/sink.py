"""
Location: python/wetrocloud_sdk/sink.py

Summary:
    Downstream side of the NDJSON relay. Forwards relayed lines to a
    consumer one at a time, either through a generic EventSink or as a
    FastAPI StreamingResponse.

Usage:
    Used by applications serving the streaming collection query to their
    own clients. Both paths close the upstream relay as soon as the
    consumer goes away, which releases the upstream connection.

Example:
    from fastapi import FastAPI, Request
    from wetrocloud_sdk.sink import ndjson_response

    @app.post("/ask")
    async def ask(request: Request, body: AskBody):
        lines = client.stream_query_collection(body.collection_id, body.query)
        return ndjson_response(lines, request)
"""

import logging
from typing import AsyncIterator, Optional, Protocol, runtime_checkable

from fastapi import Request
from fastapi.responses import StreamingResponse

from .errors import SinkWriteError

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"


@runtime_checkable
class EventSink(Protocol):
    """
    Protocol for a consumer of relayed NDJSON lines.

    send() must write and flush the line before returning, and raise
    (any exception) once the consumer can no longer accept output.
    """

    async def send(self, line: str) -> None:
        """
        Deliver one line to the consumer.

        Args:
            line: JSON text terminated by a newline
        """
        ...


async def _close(events: AsyncIterator[str]) -> None:
    aclose = getattr(events, "aclose", None)
    if aclose is not None:
        await aclose()


async def pipe_to_sink(events: AsyncIterator[str], sink: EventSink) -> int:
    """
    Forward every relayed line to sink as soon as it is produced.

    Args:
        events: Lines from relay_ndjson() or stream_query_collection()
        sink: Destination for the lines

    Returns:
        Number of lines delivered

    Raises:
        SinkWriteError: If the sink rejects a line; events is closed first
        TransportError: Propagated from events
    """
    delivered = 0
    async for line in events:
        try:
            await sink.send(line)
        except Exception as e:
            await _close(events)
            raise SinkWriteError(f"sink rejected line after {delivered} delivered: {e}") from e
        delivered += 1
    return delivered


async def _disconnect_aware(
    events: AsyncIterator[str],
    request: Optional[Request],
) -> AsyncIterator[str]:
    try:
        async for line in events:
            if request is not None and await request.is_disconnected():
                logger.info("Client disconnected, stopping NDJSON relay")
                return
            yield line
    finally:
        await _close(events)


def ndjson_response(
    events: AsyncIterator[str],
    request: Optional[Request] = None,
    status_code: int = 200,
) -> StreamingResponse:
    """
    Wrap relayed lines in a streaming FastAPI response.

    Args:
        events: Lines from stream_query_collection()
        request: Incoming request, used to detect client disconnects
        status_code: Response status (default 200)

    Returns:
        StreamingResponse with media type application/x-ndjson
    """
    return StreamingResponse(
        _disconnect_aware(events, request),
        status_code=status_code,
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
