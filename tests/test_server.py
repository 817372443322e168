"""
Tests for the MCP server wiring and configuration.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import asyncio
import pytest
from unittest.mock import Mock

from config import Config
from server import create_client, create_server
from twenty_client import TwentyClient


@pytest.fixture
def config():
    return Config(
        twenty_api_key="test_key",
        twenty_api_url="https://api.twenty.com",
        twenty_is_lead_object="isLeads",
        server_name="is-lead-tracker-test",
        log_level="INFO",
        max_requests_per_minute=100,
    )


class TestServer:
    """Tests for tool registration."""

    def test_tools_registered(self, config):
        """Test that the six IS Lead tools are exposed under their names."""
        mcp = create_server(config, Mock())

        tools = asyncio.run(mcp.list_tools())

        assert sorted(t.name for t in tools) == [
            "create_is_lead",
            "get_is_lead",
            "get_is_lead_stats",
            "list_is_leads_by_phase",
            "search_is_leads",
            "update_is_lead",
        ]

    def test_tool_arguments_use_crm_field_names(self, config):
        mcp = create_server(config, Mock())

        tools = {t.name: t for t in asyncio.run(mcp.list_tools())}

        properties = tools["update_is_lead"].inputSchema["properties"]
        assert "leadSource" in properties
        assert "lostReason" in properties
        assert tools["update_is_lead"].inputSchema["required"] == ["id"]

    def test_tool_descriptions_list_reference_countries(self, config):
        """Test that the write tools list every reference country."""
        mcp = create_server(config, Mock())

        tools = {t.name: t for t in asyncio.run(mcp.list_tools())}

        countries = [
            "Japan", "USA", "UK", "Germany", "France", "Thailand",
            "Singapore", "Australia", "Canada", "UAE", "Other",
        ]
        for name in ("create_is_lead", "update_is_lead"):
            description = tools[name].description
            for country in countries:
                assert country in description, f"{country} missing from {name}"
        assert "Cafe/Restaurant" in tools["create_is_lead"].description

    def test_tool_calls_client(self, config):
        """Test that a tool call reaches the injected client."""
        client = Mock()
        client.search_leads.return_value = []
        mcp = create_server(config, client)

        asyncio.run(mcp.call_tool("search_is_leads", {"phase": "LOST"}))

        search = client.search_leads.call_args[0][0]
        assert search.phase == "LOST"

    def test_create_client(self, config):
        client = create_client(config)
        assert isinstance(client, TwentyClient)
        assert client.object_name == "isLeads"

    def test_create_client_rejects_bad_config(self, config):
        config.twenty_api_key = ""
        with pytest.raises(ValueError) as exc_info:
            create_client(config)
        assert "TWENTY_API_KEY" in str(exc_info.value)


class TestConfig:
    """Tests for Config."""

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TWENTY_API_KEY", "env_key")
        monkeypatch.setenv("TWENTY_API_URL", "https://crm.example.com")
        monkeypatch.setenv("TWENTY_API_MAX_REQUESTS_PER_MINUTE", "30")
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        config = Config.from_env()

        assert config.twenty_api_key == "env_key"
        assert config.twenty_api_url == "https://crm.example.com"
        assert config.max_requests_per_minute == 30
        assert config.log_level == "INFO"
        assert config.validate() == []

    def test_validate_errors(self, config):
        config.log_level = "LOUD"
        config.max_requests_per_minute = 0
        config.twenty_api_url = "api.twenty.com"

        errors = config.validate()

        assert len(errors) == 3
