"""
Location: python/wetrocloud_sdk/__init__.py

Summary:
    Main package initialization for wetrocloud-sdk. Exports all public
    classes and functions for convenient importing.

Usage:
    from wetrocloud_sdk import WetrocloudClient, ClientConfig

    # Or import specific modules
    from wetrocloud_sdk.stream import relay_ndjson, NdjsonBuffer
    from wetrocloud_sdk.sink import ndjson_response, pipe_to_sink

Version: 0.1.0
"""

from .client import WetrocloudClient
from .types import (
    ClientConfig,
    ChatMessage,
    ChatResponse,
    CollectionCreated,
    CollectionList,
    ErrorResponse,
    ResourceInserted,
)
from .errors import (
    WetrocloudError,
    TransportError,
    RecordParseError,
    SinkWriteError,
)
from .stream import NdjsonBuffer, canonicalize_record, relay_ndjson, iter_ndjson_lines
from .sink import EventSink, ndjson_response, pipe_to_sink

__version__ = "0.1.0"

__all__ = [
    # Main client
    "WetrocloudClient",
    # Types
    "ClientConfig",
    "ChatMessage",
    "ChatResponse",
    "CollectionCreated",
    "CollectionList",
    "ErrorResponse",
    "ResourceInserted",
    # Exceptions
    "WetrocloudError",
    "TransportError",
    "RecordParseError",
    "SinkWriteError",
    # NDJSON relay
    "NdjsonBuffer",
    "canonicalize_record",
    "relay_ndjson",
    "iter_ndjson_lines",
    # Downstream sinks
    "EventSink",
    "ndjson_response",
    "pipe_to_sink",
]
