"""
Shared pytest fixtures for wetrocloud-sdk tests.

This module provides common fixtures used across all test files,
including a client configuration, sample API payloads and a chunked
httpx transport for exercising the streaming relay.
"""

import httpx
import pytest

from wetrocloud_sdk.types import ClientConfig

BASE_URL = "https://api.test.wetrocloud.com/v1"


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, optionally failing after them."""

    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk
        if self.error is not None:
            raise self.error

    async def aclose(self):
        self.closed = True


@pytest.fixture
def config():
    """Client configuration pointing at a test base URL."""
    return ClientConfig(api_key="wtc-test-key", base_url=BASE_URL)


@pytest.fixture
def make_streaming_transport():
    """
    Build an httpx.MockTransport that answers with a chunked body.

    The returned transport records every request it receives on
    transport.requests.
    """
    def factory(chunks, status_code=200, error=None):
        requests = []
        stream = ChunkedStream(chunks, error=error)

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                status_code,
                headers={"content-type": "application/x-ndjson"},
                stream=stream,
            )

        transport = httpx.MockTransport(handler)
        transport.requests = requests
        transport.stream = stream
        return transport

    return factory


@pytest.fixture
def sample_collection_list():
    """Raw collection/all/ response."""
    return {
        "count": 2,
        "next": None,
        "previous": None,
        "results": [
            {"collection_id": "docs", "created_at": "2025-03-01T10:00:00Z"},
            {"collection_id": "faq", "created_at": "2025-03-02T11:30:00Z"},
        ],
    }


@pytest.fixture
def sample_query_lines():
    """NDJSON body of a streaming collection query."""
    return [
        '{"response": "Large language", "tokens": 3, "success": true}\n',
        '{"response": " models are", "tokens": 6, "success": true}\n',
        '{"response": " neural networks.", "tokens": 10, "success": true}\n',
    ]
