"""Tests for the MCP server tools."""

import json

import pytest
from fastmcp import Client

from desk_mcp import server
from linak_desk.exceptions import (
    DeskCommunicationError,
    DeskConfigError,
    DeskConnectionError,
    DeskLinkLostError,
    DeskNotFoundError,
)


@pytest.fixture(autouse=True)
def config_file(monkeypatch, tmp_path):
    monkeypatch.setenv("LINAK_DESK_CONFIG", str(tmp_path / "desk.json"))
    return tmp_path / "desk.json"


async def call(tool: str, **arguments) -> str:
    async with Client(server.mcp) as client:
        result = await client.call_tool(tool, arguments)
    return result.content[0].text


@pytest.mark.parametrize(
    "error,expected",
    [
        (DeskConfigError("No preferred device id."), "Error: No preferred device id."),
        (DeskNotFoundError("gone"), "Error: Desk not found. Is it powered on?"),
        (DeskLinkLostError("dropped"), "Error: Desk disconnected during the operation - dropped"),
        (DeskConnectionError("refused"), "Error: Could not connect to desk - refused"),
        (DeskCommunicationError("read failed"), "Error: Communication failed - read failed"),
    ],
)
def test_describe_error(error, expected):
    assert server.describe_error(error) == expected


def test_config_from_environment():
    config = server.get_config()
    server.get_presets(config).store("stand", 1100)

    assert server.get_config().as_dict() == {"positions": {"stand": 1100}}


class TestTools:
    @pytest.mark.asyncio
    async def test_save_list_delete(self, config_file):
        assert await call("save_preset", name="sit", height_mm=700) == 'Saved position "sit": 700mm (27.6")'
        assert json.loads(config_file.read_text()) == {"positions": {"sit": 700}}

        assert await call("list_presets") == "Saved positions [1]:\nsit: 700mm"

        assert await call("delete_preset", name="sit") == 'Position "sit" deleted.'
        assert await call("list_presets") == "No saved positions"

    @pytest.mark.asyncio
    async def test_save_zero_deletes(self):
        await call("save_preset", name="sit", height_mm=700)
        assert await call("save_preset", name="sit", height_mm=0) == 'Position "sit" deleted.'

    @pytest.mark.asyncio
    async def test_save_empty_name(self, config_file):
        assert await call("save_preset", name="", height_mm=700) == "Error: Position name can not be empty"
        assert await call("delete_preset", name="") == "Error: Position name can not be empty"

    @pytest.mark.asyncio
    async def test_get_position_without_config(self):
        text = await call("get_position")

        assert text.startswith("Error: ")
        assert "[Config 1/2]" in text
        assert "[Config 2/2]" in text

    @pytest.mark.asyncio
    async def test_show_config(self):
        await call("save_preset", name="stand", height_mm=1100)

        assert json.loads(await call("show_config")) == {"positions": {"stand": 1100}}
