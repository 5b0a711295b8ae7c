"""Integration tests for the cognitive report MCP server."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from cogreport.core.server import main
from cogreport.core.server.app import create_app


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _text(result) -> str:
    content = getattr(result, "content", result)
    return content[0].text


ALL_EXPECTED_TOOLS = [
    "health_check",
    "cognitive_metrics",
    "cognitive_report",
]


@pytest.fixture
def client(library):
    """Create an MCP client connected to a server using the packaged library."""
    mcp = create_app(library_override=library)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check tool should report the loaded block library."""
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            result_text = str(result)
            assert "ok" in result_text
            assert "block_library_version" in result_text
            assert "3.1.0" in result_text
    _run(_check())


def test_cognitive_metrics(client, sample_assessment):
    async def _check():
        async with client:
            result = await client.call_tool("cognitive_metrics", {"assessment": sample_assessment})
            payload = json.loads(_text(result))
            assert payload["status"] == "ok"
            assert payload["metrics"]["subtype"] == "INATTENTIVE"
            assert payload["biomarkers"]["switching"]["rating"] == "Elevated"
            assert payload["biomarkers"]["ies"]["available"]
    _run(_check())


def test_cognitive_report_seeded(client, sample_assessment):
    """Same seed, same text; audience falls back to the configured default."""
    async def _check():
        async with client:
            args = {"assessment": sample_assessment, "seed": 3}
            first = json.loads(_text(await client.call_tool("cognitive_report", args)))
            second = json.loads(_text(await client.call_tool("cognitive_report", args)))
            assert first["status"] == "ok"
            assert first["report"]["audience"] == "patient"
            assert first["report"]["metadata"]["seed"] == 3
            assert len(first["report"]["sections"]) == 18
            assert first["report"]["sections"] == second["report"]["sections"]
    _run(_check())


def test_cognitive_report_clinician(client, sample_assessment):
    async def _check():
        async with client:
            result = await client.call_tool(
                "cognitive_report",
                {"assessment": sample_assessment, "audience": "clinician", "seed": 1},
            )
            report = json.loads(_text(result))["report"]
            assert report["audience"] == "clinician"
            assert len(report["annotations"]["diagnostic_codes"]) == 5
    _run(_check())


def test_cognitive_report_invalid_audience(client, sample_assessment):
    async def _check():
        async with client:
            result = await client.call_tool(
                "cognitive_report", {"assessment": sample_assessment, "audience": "press"}
            )
            payload = json.loads(_text(result))
            assert payload["status"] == "error"
            assert "press" in payload["message"]
    _run(_check())


def test_cognitive_report_malformed_task(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "cognitive_report", {"assessment": {"cpt": ["not", "a", "mapping"]}}
            )
            payload = json.loads(_text(result))
            assert payload["status"] == "error"
            assert "cpt" in payload["message"]
    _run(_check())


def test_block_library_resource(client):
    async def _check():
        async with client:
            contents = await client.read_resource("blocks://attention/library")
            data = json.loads(contents[0].text)
            assert data["library"] == "attention"
            assert data["version"] == "3.1.0"
            assert data["file_count"] == 11
            assert data["patient_term_count"] > 0
            names = [f["name"] for f in data["files"]]
            assert "terminology" in names
    _run(_check())


class TestLoopbackGuard:
    @pytest.mark.parametrize("host", ["127.0.0.1", "localhost", "::1"])
    def test_loopback_hosts(self, host):
        assert main._is_loopback_host(host)

    @pytest.mark.parametrize("host", ["0.0.0.0", "192.168.1.20", "example.org"])
    def test_non_loopback_hosts(self, host):
        assert not main._is_loopback_host(host)

    def test_refuses_public_bind(self, monkeypatch):
        monkeypatch.setenv("COG_HOST", "0.0.0.0")
        monkeypatch.setenv("COG_ALLOW_INSECURE_BIND", "false")
        with pytest.raises(RuntimeError, match="COG_ALLOW_INSECURE_BIND"):
            main.run()
