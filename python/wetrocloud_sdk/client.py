"""
Location: python/wetrocloud_sdk/client.py

Summary:
    Main WetrocloudClient class for wetrocloud-sdk. Maps the Wetrocloud
    REST endpoints (collections, resources, text generation,
    categorization, image-to-text, data extraction) onto async methods.

Usage:
    The primary entry point for using the SDK. Create a WetrocloudClient
    from a ClientConfig, then call endpoint methods. Non-streaming calls
    return the {"error", "response"} failure shape instead of raising;
    the streaming query raises TransportError.

Example:
    from wetrocloud_sdk import WetrocloudClient, ClientConfig

    async with WetrocloudClient(ClientConfig(api_key="wtc-...")) as client:
        created = await client.create_collection("my_collection")
        await client.insert_resource("my_collection", "https://example.com", "web")

        async for line in client.stream_query_collection("my_collection", "Summarize"):
            print(line, end="")
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence, Union

import httpx

from .errors import TransportError
from .stream import ParseErrorHook, iter_response_bytes, relay_ndjson
from .types import (
    ChatMessage,
    ChatResponse,
    ClientConfig,
    CollectionCreated,
    CollectionList,
    ErrorResponse,
    ResourceInserted,
)

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "llama-3.3-70b"
COMPACT_SEPARATORS = (",", ":")


class WetrocloudClient:
    """
    Async client for the Wetrocloud API.

    Attributes:
        config: Connection settings
        base_url: Base URL for API requests (no trailing slash)
        default_headers: Headers sent with every request
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        headers: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the WetrocloudClient.

        Args:
            config: ClientConfig with API key, version and optional base URL
            headers: Optional extra headers for all requests
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.config = config
        self.base_url = config.resolved_base_url
        self.default_headers = {
            "Authorization": f"Bearer {config.api_key}",
            **(headers or {}),
        }

        self._http = httpx.AsyncClient(
            timeout=config.timeout,
            headers=self.default_headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client and release pooled connections."""
        await self._http.aclose()

    async def __aenter__(self) -> "WetrocloudClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _token_headers(self, content_type: str) -> dict[str, str]:
        # Collection chat/delete and resource removal authenticate with "Token".
        return {
            "Authorization": f"Token {self.config.api_key}",
            "Content-Type": content_type,
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
        *,
        form: bool = False,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Send one request and decode the JSON response.

        Args:
            method: HTTP method
            endpoint: Path relative to base_url (e.g. "collection/all/")
            data: Optional payload; no body is sent when empty
            form: Send data form-encoded instead of as JSON
            headers: Optional headers for this request only

        Returns:
            Decoded JSON body (None for an empty or non-JSON body), or
            {"error": str, "response": Any} when the request fails at the
            transport level or with an error status
        """
        url = self._url(endpoint)
        kwargs: dict[str, Any] = {}
        if data:
            if form:
                kwargs["data"] = data
            else:
                kwargs["json"] = data
        if headers:
            kwargs["headers"] = headers

        logger.debug("%s %s", method, url)
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
            return _decode_body(response)
        except httpx.HTTPStatusError as e:
            logger.warning("%s %s failed with status %s", method, url, e.response.status_code)
            return {"error": str(e), "response": _decode_body(e.response)}
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            return {"error": str(e), "response": None}

    @asynccontextmanager
    async def open_stream(
        self,
        method: str,
        endpoint: str,
        data: Optional[dict] = None,
        *,
        headers: Optional[dict[str, str]] = None,
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a streaming request; the body is read lazily by the caller.

        The connection is released when the context exits, whether the
        body was fully read, the caller stopped early or an error occurred.

        Args:
            method: HTTP method
            endpoint: Path relative to base_url
            data: Optional JSON payload
            headers: Optional headers for this request only

        Yields:
            The open httpx.Response with a 2xx status

        Raises:
            TransportError: If the connection fails or the status is an error
        """
        url = self._url(endpoint)
        logger.debug("%s %s (stream)", method, url)
        try:
            async with self._http.stream(method, url, json=data or None, headers=headers) as response:
                if response.is_error:
                    await response.aread()
                    raise TransportError(
                        f"upstream returned {response.status_code} for {method} {url}",
                        status_code=response.status_code,
                        response=_decode_body(response),
                    )
                yield response
        except httpx.RequestError as e:
            raise TransportError(f"could not open stream {method} {url}: {e}") from e

    async def create_collection(
        self,
        collection_id: Optional[str] = None,
    ) -> Union[CollectionCreated, ErrorResponse]:
        """
        Create a new collection.

        Args:
            collection_id: Unique identifier for the collection

        Returns:
            CollectionCreated, or ErrorResponse if the call failed
        """
        result = await self.request("POST", "collection/create/", {"collection_id": collection_id})
        if _is_error(result):
            return ErrorResponse.from_result(result)
        return CollectionCreated(
            collection_id=_field(result, "collection_id"),
            success=_field(result, "success", False),
        )

    async def list_collections(self) -> Union[CollectionList, ErrorResponse]:
        """
        List all collections with pagination metadata.

        Returns:
            CollectionList, or ErrorResponse if the call failed
        """
        result = await self.request("GET", "collection/all/")
        if _is_error(result):
            return ErrorResponse.from_result(result)
        return CollectionList(
            count=_field(result, "count", 0),
            next=_field(result, "next"),
            previous=_field(result, "previous"),
            collections=_field(result, "results", []),
        )

    async def insert_resource(
        self,
        collection_id: str,
        resource: str,
        type: str,
    ) -> Union[ResourceInserted, ErrorResponse]:
        """
        Insert a resource into a collection.

        Args:
            collection_id: Target collection
            resource: URL or content of the resource
            type: Resource type (e.g. "web", "file", "text")

        Returns:
            ResourceInserted, or ErrorResponse if the call failed
        """
        result = await self.request(
            "POST",
            "resource/insert/",
            {"collection_id": collection_id, "resource": resource, "type": type},
        )
        if _is_error(result):
            return ErrorResponse.from_result(result)
        return ResourceInserted(
            resource_id=_field(result, "resource_id"),
            success=_field(result, "success", False),
            tokens=_field(result, "tokens", 0),
        )

    async def query_collection(
        self,
        collection_id: str,
        request_query: str,
        *,
        model: Optional[str] = None,
        json_schema: Optional[dict] = None,
        json_schema_rules: Optional[str] = None,
    ) -> Any:
        """
        Query a collection and wait for the whole answer.

        Args:
            collection_id: Collection to query
            request_query: The question
            model: Optional model name
            json_schema: Optional JSON schema for structured output
            json_schema_rules: Optional rules for the structured output

        Returns:
            Decoded JSON answer or the error shape
        """
        payload = _query_payload(collection_id, request_query, model, json_schema, json_schema_rules)
        return await self.request("POST", "collection/query/", payload)

    async def stream_query_collection(
        self,
        collection_id: str,
        request_query: str,
        *,
        model: Optional[str] = None,
        json_schema: Optional[dict] = None,
        json_schema_rules: Optional[str] = None,
        on_parse_error: Optional[ParseErrorHook] = None,
    ) -> AsyncIterator[str]:
        """
        Query a collection and relay the NDJSON answer as it arrives.

        Suitable for handing straight to sink.ndjson_response().

        Args:
            collection_id: Collection to query
            request_query: The question
            model: Optional model name
            json_schema: Optional JSON schema for structured output
            json_schema_rules: Optional rules for the structured output
            on_parse_error: Optional hook for malformed records

        Yields:
            Canonical JSON lines terminated by "\\n"

        Raises:
            TransportError: If the stream cannot be opened or breaks
        """
        payload = _query_payload(collection_id, request_query, model, json_schema, json_schema_rules)
        async with self.open_stream("POST", "collection/query/", payload) as response:
            lines = relay_ndjson(iter_response_bytes(response), on_parse_error=on_parse_error)
            try:
                async for line in lines:
                    yield line
            finally:
                await lines.aclose()

    async def chat_with_collection(
        self,
        collection_id: str,
        message: str,
        chat_history: Sequence[Union[ChatMessage, dict]],
    ) -> Union[ChatResponse, ErrorResponse]:
        """
        Chat with a collection, passing the prior conversation.

        Args:
            collection_id: Collection to chat with
            message: New user message
            chat_history: Previous turns as ChatMessage or {"role", "content"} dicts

        Returns:
            ChatResponse, or ErrorResponse if the call failed
        """
        history = [
            m.model_dump() if isinstance(m, ChatMessage) else ChatMessage(**m).model_dump()
            for m in chat_history
        ]
        result = await self.request(
            "POST",
            "collection/query/",
            {"collection_id": collection_id, "message": message, "chat_history": history},
            headers=self._token_headers("application/json"),
        )
        if _is_error(result):
            return ErrorResponse.from_result(result)
        return ChatResponse(
            response=_field(result, "response"),
            tokens=_field(result, "tokens", 0),
            success=_field(result, "success", False),
        )

    async def remove_resource(self, collection_id: str, resource_id: str) -> Any:
        """Remove a resource from a collection (form-encoded DELETE)."""
        return await self.request(
            "DELETE",
            "resource/remove/",
            {"collection_id": collection_id, "resource_id": resource_id},
            form=True,
            headers=self._token_headers("application/x-www-form-urlencoded"),
        )

    async def delete_collection(self, collection_id: str) -> Any:
        """Delete a collection and everything in it."""
        return await self.request(
            "DELETE",
            "collection/delete/",
            {"collection_id": collection_id},
            headers=self._token_headers("application/json"),
        )

    async def categorize_data(
        self,
        resource: str,
        categories: list[str],
        *,
        type: str = "text",
        json_schema: Optional[dict] = None,
        prompt: Optional[str] = None,
    ) -> Any:
        """
        Assign a resource to one of the given categories.

        Args:
            resource: Text or data to categorize
            categories: Candidate category names
            type: Resource type (default "text")
            json_schema: Expected response schema (default {"label": "string"})
            prompt: Optional custom prompt

        Returns:
            Decoded JSON answer or the error shape
        """
        payload = {
            "resource": resource,
            "type": type,
            "json_schema": json_schema if json_schema is not None else {"label": "string"},
            "categories": categories,
        }
        if prompt:
            payload["prompt"] = prompt
        return await self.request("POST", "categorize/", payload)

    async def generate_text(
        self,
        messages: Sequence[Union[ChatMessage, dict]],
        model: str = DEFAULT_TEXT_MODEL,
    ) -> Any:
        """
        Generate text from a list of chat messages.

        The endpoint takes a form body with messages as a JSON string.
        """
        encoded = json.dumps([
            m.model_dump() if isinstance(m, ChatMessage) else dict(m)
            for m in messages
        ], separators=COMPACT_SEPARATORS)
        return await self.request(
            "POST",
            "text-generation/",
            {"messages": encoded, "model": model},
            form=True,
        )

    async def image_to_text(self, image_url: str, request_query: str) -> Any:
        """Ask a question about the image at image_url."""
        return await self.request(
            "POST",
            "image-to-text/",
            {"image_url": image_url, "request_query": request_query},
        )

    async def extract_data_from_website(self, website_url: str, json_schema: dict) -> Any:
        """
        Extract structured data from a web page.

        Args:
            website_url: Page to extract from
            json_schema: Shape of the data to extract, e.g. {"title": ""}

        Returns:
            Decoded JSON answer or the error shape
        """
        return await self.request(
            "POST",
            "data-extraction/",
            {
                "website": website_url,
                "json_schema": json.dumps(json_schema, separators=COMPACT_SEPARATORS),
            },
        )


def _query_payload(
    collection_id: str,
    request_query: str,
    model: Optional[str],
    json_schema: Optional[dict],
    json_schema_rules: Optional[str],
) -> dict:
    payload: dict[str, Any] = {
        "collection_id": collection_id,
        "request_query": request_query,
    }
    if json_schema:
        payload["json_schema"] = json.dumps(json_schema, separators=COMPACT_SEPARATORS)
    if json_schema_rules:
        payload["json_schema_rules"] = json_schema_rules
    if model:
        payload["model"] = model
    return payload


def _is_error(result: Any) -> bool:
    return isinstance(result, dict) and result.get("error") is not None


def _field(result: Any, key: str, default: Any = None) -> Any:
    # Missing keys, explicit nulls and bodiless responses all fall back to default.
    if not isinstance(result, dict):
        return default
    value = result.get(key)
    return default if value is None else value


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


__all__ = ["WetrocloudClient"]
