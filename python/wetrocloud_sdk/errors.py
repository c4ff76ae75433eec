"""
Location: python/wetrocloud_sdk/errors.py

Summary:
    Exception hierarchy for wetrocloud-sdk. Separates fatal transport and
    sink failures from the local, non-fatal record parse failures reported
    by the NDJSON relay.

Usage:
    Raised by client.py (TransportError), sink.py (SinkWriteError) and
    built by stream.py (RecordParseError, reported but never raised out
    of the relay).

Example:
    from wetrocloud_sdk.errors import TransportError

    try:
        async for line in client.stream_query_collection("col", "hi"):
            print(line, end="")
    except TransportError as e:
        print("stream aborted:", e.status_code)
"""

from typing import Any, Optional


class WetrocloudError(Exception):
    """Base class for all wetrocloud-sdk errors."""
    pass


class TransportError(WetrocloudError):
    """
    The upstream connection could not be opened or failed mid-stream.

    Attributes:
        status_code: HTTP status of the upstream response, if one arrived
        response: Decoded upstream error body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RecordParseError(WetrocloudError):
    """
    One NDJSON segment could not be parsed as JSON.

    Attributes:
        segment: The raw text of the rejected segment
    """

    def __init__(self, segment: str, reason: str):
        super().__init__(f"invalid NDJSON record: {reason}")
        self.segment = segment
        self.reason = reason


class SinkWriteError(WetrocloudError):
    """The downstream consumer can no longer accept output."""
    pass
