"""
Location: python/wetrocloud_sdk/types.py

Summary:
    Pydantic models for wetrocloud-sdk. Defines the client configuration
    and the narrowed result shapes returned by WetrocloudClient methods.

Usage:
    ClientConfig is passed to WetrocloudClient. The result models are
    built by client.py from raw API responses; ErrorResponse carries the
    {"error", "response"} failure shape of the non-streaming surface.

Example:
    from wetrocloud_sdk.types import ClientConfig

    config = ClientConfig(api_key="wtc-...", api_version="v1")
    # or, with the wire-style names
    config = ClientConfig(apiKey="wtc-...", baseUrl="http://localhost:8000/v1")
"""

import os
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_HOST = "https://api.wetrocloud.com"


class ClientConfig(BaseModel):
    """
    Connection settings for WetrocloudClient.

    Attributes:
        api_key: Wetrocloud API key, sent as a bearer token
        api_version: API version path segment (e.g. "v1")
        base_url: Full base URL override, mainly for tests and proxies
        timeout: Request timeout in seconds
    """
    api_key: str = Field(alias="apiKey", min_length=1)
    api_version: str = Field("v1", alias="apiVersion")
    base_url: Optional[str] = Field(None, alias="baseUrl")
    timeout: float = 120.0

    model_config = {"populate_by_name": True}

    @property
    def resolved_base_url(self) -> str:
        """Base URL without a trailing slash."""
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"{DEFAULT_HOST}/{self.api_version}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Build a config from WETROCLOUD_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            ClientConfig

        Raises:
            ValueError: If WETROCLOUD_API_KEY is not set
        """
        env = os.environ if environ is None else environ
        api_key = env.get("WETROCLOUD_API_KEY")
        if not api_key:
            raise ValueError("WETROCLOUD_API_KEY is not set")

        data: dict[str, Any] = {"api_key": api_key}
        if env.get("WETROCLOUD_API_VERSION"):
            data["api_version"] = env["WETROCLOUD_API_VERSION"]
        if env.get("WETROCLOUD_BASE_URL"):
            data["base_url"] = env["WETROCLOUD_BASE_URL"]
        if env.get("WETROCLOUD_TIMEOUT"):
            data["timeout"] = float(env["WETROCLOUD_TIMEOUT"])
        return cls(**data)


class ChatMessage(BaseModel):
    """A single chat turn, e.g. {"role": "user", "content": "Hello"}."""
    role: str
    content: str


class ErrorResponse(BaseModel):
    """
    Failure shape of a non-streaming call.

    Attributes:
        error: Transport or HTTP error message
        response: Decoded error body from the API, if there was one
    """
    error: str
    response: Optional[Any] = None

    @classmethod
    def from_result(cls, result: Mapping[str, Any]) -> "ErrorResponse":
        return cls(error=str(result["error"]), response=result.get("response"))


class CollectionCreated(BaseModel):
    collection_id: Optional[str] = None
    success: bool = False


class CollectionList(BaseModel):
    """
    One page of collections.

    Attributes:
        count: Total number of collections
        next: URL of the next page, if any
        previous: URL of the previous page, if any
        collections: Collection records on this page
    """
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    collections: list[dict[str, Any]] = Field(default_factory=list)


class ResourceInserted(BaseModel):
    resource_id: Optional[str] = None
    success: bool = False
    tokens: int = 0


class ChatResponse(BaseModel):
    """Answer from chatting with a collection."""
    response: Optional[Any] = None
    tokens: int = 0
    success: bool = False
