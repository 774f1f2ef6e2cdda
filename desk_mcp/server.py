"""
MCP Server for Linak Standing Desk Control.

Exposes height reading and saved positions as tools that LLMs can call
via the Model Context Protocol.
"""

import json

from fastmcp import Context, FastMCP

from linak_desk import (
    DeskCommunicationError,
    DeskConfig,
    DeskConnectionError,
    DeskController,
    DeskLinkLostError,
    DeskNotFoundError,
    DeskUsageError,
    PresetRegistry,
    load_settings,
)
from linak_desk.config import open_storage

# Create MCP server
mcp = FastMCP(
    "Linak Desk",
    instructions="Read your Linak standing desk height via BLE and manage saved positions. "
    "Tools: get_position (current height), list_presets, save_preset (named height, "
    "current height if omitted), delete_preset, show_config.",
)


def get_config() -> DeskConfig:
    """Open the config file named by the environment."""
    return DeskConfig(open_storage(load_settings()))


def get_presets(config: DeskConfig) -> PresetRegistry:
    controller = DeskController(config)
    return PresetRegistry(config.storage, height_reader=controller.read_position_mm)


def describe_error(e: Exception) -> str:
    if isinstance(e, DeskUsageError):
        return f"Error: {e}"
    if isinstance(e, DeskNotFoundError):
        return "Error: Desk not found. Is it powered on?"
    if isinstance(e, DeskLinkLostError):
        return f"Error: Desk disconnected during the operation - {e}"
    if isinstance(e, DeskConnectionError):
        return f"Error: Could not connect to desk - {e}"
    return f"Error: Communication failed - {e}"


@mcp.tool()
async def get_position(ctx: Context) -> str:
    """
    Get the current desk height.

    Returns the height in both millimeters and inches.
    """
    try:
        height_mm = await DeskController(get_config()).read_position_mm()
        return f"Current height: {height_mm}mm ({height_mm / 25.4:.1f} inches)"
    except (DeskUsageError, DeskConnectionError, DeskCommunicationError) as e:
        return describe_error(e)


@mcp.tool()
async def list_presets(ctx: Context) -> str:
    """List all saved desk positions by name."""
    positions = get_presets(get_config()).list()
    if not positions:
        return "No saved positions"
    lines = [f"{name}: {height}mm" for name, height in positions.items()]
    return f"Saved positions [{len(positions)}]:\n" + "\n".join(lines)


@mcp.tool()
async def save_preset(ctx: Context, name: str, height_mm: int | None = None) -> str:
    """
    Save a named desk position.

    Args:
        name: Name for the position (e.g. "sit", "stand")
        height_mm: Height in millimeters. Omit to save the desk's current height.
            Zero or negative deletes the position.

    Returns:
        Confirmation of the saved height.
    """
    try:
        saved = await get_presets(get_config()).save(name, height_mm)
    except (DeskUsageError, DeskConnectionError, DeskCommunicationError) as e:
        return describe_error(e)
    if saved is None:
        return f'Position "{name}" deleted.'
    return f'Saved position "{name}": {saved}mm ({saved / 25.4:.1f}")'


@mcp.tool()
async def delete_preset(ctx: Context, name: str) -> str:
    """
    Delete a saved desk position. Deleting an unknown name is not an error.

    Args:
        name: Name of the position to delete
    """
    try:
        get_presets(get_config()).delete(name)
    except DeskUsageError as e:
        return describe_error(e)
    return f'Position "{name}" deleted.'


@mcp.tool()
async def show_config(ctx: Context) -> str:
    """Show the stored desk configuration (device id, lowest position, presets)."""
    return json.dumps(get_config().as_dict(), indent=2)


def run_server():
    """Run the MCP server."""
    mcp.run()


if __name__ == "__main__":
    run_server()
