"""
Tests for wetrocloud_sdk.types module.

Tests Pydantic model validation, wire-name aliases, environment loading
and the error response shape.
"""

import pytest
from pydantic import ValidationError

from wetrocloud_sdk.types import (
    ChatMessage,
    ClientConfig,
    CollectionList,
    ErrorResponse,
)


class TestClientConfig:
    """Tests for ClientConfig model."""

    def test_defaults(self):
        """Test default version, timeout and base URL."""
        config = ClientConfig(api_key="wtc-key")
        assert config.api_version == "v1"
        assert config.timeout == 120.0
        assert config.base_url is None
        assert config.resolved_base_url == "https://api.wetrocloud.com/v1"

    def test_aliases(self):
        """Test construction with the camelCase option names."""
        config = ClientConfig(apiKey="wtc-key", apiVersion="v2", baseUrl="http://localhost:9000/v2/")
        assert config.api_key == "wtc-key"
        assert config.api_version == "v2"
        assert config.resolved_base_url == "http://localhost:9000/v2"

    def test_missing_api_key(self):
        """Test that the API key is required."""
        with pytest.raises(ValidationError):
            ClientConfig()

    def test_empty_api_key(self):
        """Test that an empty API key is rejected."""
        with pytest.raises(ValidationError):
            ClientConfig(api_key="")

    def test_from_env(self):
        """Test loading every option from the environment."""
        config = ClientConfig.from_env({
            "WETROCLOUD_API_KEY": "wtc-env",
            "WETROCLOUD_API_VERSION": "v3",
            "WETROCLOUD_BASE_URL": "http://proxy.local/v3",
            "WETROCLOUD_TIMEOUT": "15",
        })
        assert config.api_key == "wtc-env"
        assert config.api_version == "v3"
        assert config.resolved_base_url == "http://proxy.local/v3"
        assert config.timeout == 15.0

    def test_from_env_defaults(self):
        """Test that only the key is required in the environment."""
        config = ClientConfig.from_env({"WETROCLOUD_API_KEY": "wtc-env"})
        assert config.api_version == "v1"
        assert config.base_url is None

    def test_from_env_reads_os_environ(self, monkeypatch):
        """Test that os.environ is used when no mapping is given."""
        monkeypatch.setenv("WETROCLOUD_API_KEY", "wtc-os")
        monkeypatch.delenv("WETROCLOUD_BASE_URL", raising=False)
        assert ClientConfig.from_env().api_key == "wtc-os"

    def test_from_env_missing_key(self):
        """Test that a missing key raises ValueError."""
        with pytest.raises(ValueError, match="WETROCLOUD_API_KEY"):
            ClientConfig.from_env({})


class TestErrorResponse:
    """Tests for ErrorResponse model."""

    def test_from_result(self):
        """Test building from the raw error shape."""
        error = ErrorResponse.from_result({"error": "Client error '404'", "response": {"detail": "x"}})
        assert error.error == "Client error '404'"
        assert error.response == {"detail": "x"}

    def test_from_result_without_response(self):
        """Test that a missing response defaults to None."""
        assert ErrorResponse.from_result({"error": "timeout"}).response is None


class TestResultModels:
    """Tests for result models."""

    def test_collection_list_defaults(self):
        """Test empty collection list defaults."""
        result = CollectionList()
        assert result.count == 0
        assert result.collections == []

    def test_chat_message_requires_content(self):
        """Test that chat messages need role and content."""
        with pytest.raises(ValidationError):
            ChatMessage(role="user")
