"""
CLI interface for desk control.

Provides the linak-desk command: scan for the desk, configure it,
read its height and manage saved positions.
"""

import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import Prompt

from linak_desk.config import DeskConfig, load_settings, open_storage
from linak_desk.const import DEFAULT_SCAN_DURATION, KEY_DEVICE_ID, KEY_LOWEST_POS_MM
from linak_desk.controller import DeskController
from linak_desk.exceptions import (
    DeskCommunicationError,
    DeskConnectionError,
    DeskLinkLostError,
    DeskNotFoundError,
    DeskUsageError,
    DeviceSelectionError,
)
from linak_desk.presets import PresetRegistry
from linak_desk.scanner import print_devices, scan_devices, select_device

console = Console()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def set_config(config: DeskConfig, key: str, value) -> None:
    config.storage.set(key, value)
    console.print(f"💾 Saved config.{key} = {value}")


async def run_scan(config: DeskConfig, args: list[str]):
    """Scan for BLE devices and store the one the operator picks."""
    try:
        scan_time = float(args[0]) if args else DEFAULT_SCAN_DURATION
    except ValueError:
        raise DeskUsageError(f"Scan time must be a number of seconds, got {args[0]!r}") from None

    console.print(f"🔍 Scanning devices for {scan_time:g} seconds...")
    devices = await scan_devices(scan_time)

    print_devices(devices)
    if not devices:
        console.print("\n⚠️  No devices found. Make sure your desk is powered on and paired.")
        return

    try:
        answer = Prompt.ask(f"\nScanning is finished. Select preferred device number [1 - {len(devices)}]")
    except EOFError:
        raise DeviceSelectionError("No device selected (input closed)") from None
    device_id = select_device(devices, answer)
    config.device_id = device_id
    console.print(f"✅ Saved preferred device [{answer.strip()}] id: {device_id}")


def run_set_lowest_position(config: DeskConfig, args: list[str]):
    if not args:
        raise DeskUsageError("Usage: lowest_pos_mm <value>")
    try:
        value = int(args[0])
    except ValueError:
        raise DeskUsageError(f"Lowest position must be a whole number of mm, got {args[0]!r}") from None
    set_config(config, KEY_LOWEST_POS_MM, value)


def run_set_device_id(config: DeskConfig, args: list[str]):
    if not args or not args[0].strip():
        raise DeskUsageError("Usage: device_id <value>")
    set_config(config, KEY_DEVICE_ID, args[0].strip())


def run_show_config(config: DeskConfig):
    console.print("Current Config:")
    console.print_json(json.dumps(config.as_dict()))


async def run_position(controller: DeskController):
    device_id, _ = controller.config.check_ready()
    console.print(f"🔌 Connecting to {device_id}...")
    height = await controller.read_position_mm()
    console.print(f"📏 Current position is {height} mm")


def run_positions(presets: PresetRegistry):
    positions = presets.list()
    if not positions:
        console.print("No saved positions")
        return
    console.print(f"Saved positions [{len(positions)}]:")
    for name, height in positions.items():
        console.print(f"  {name}: {height} mm")


async def run_save(presets: PresetRegistry, args: list[str]):
    if not args:
        raise DeskUsageError("Usage: save <name> [height_mm]")
    name = args[0]
    height = None
    if len(args) > 1:
        try:
            height = int(args[1])
        except ValueError:
            raise DeskUsageError(f"Height must be a whole number of mm, got {args[1]!r}") from None

    saved = await presets.save(name, height)
    if saved is None:
        console.print(f'🗑️  Position "{name}" deleted.')
    else:
        console.print(f'✅ Saved new position "{name}": {saved} mm')


def run_delete(presets: PresetRegistry, args: list[str]):
    if not args:
        raise DeskUsageError("Usage: del <name>")
    presets.delete(args[0])
    console.print(f'🗑️  Position "{args[0]}" deleted.')


async def run_command(config: DeskConfig, args: list[str]) -> int:
    """Dispatch one command. Returns the process exit code."""
    controller = DeskController(config)
    presets = PresetRegistry(config.storage, height_reader=controller.read_position_mm)
    command, rest = args[0], args[1:]

    try:
        if command == "scan":
            await run_scan(config, rest)
        elif command == "lowest_pos_mm":
            run_set_lowest_position(config, rest)
        elif command == "device_id":
            run_set_device_id(config, rest)
        elif command == "config":
            run_show_config(config)
        elif command in ("p", "position"):
            await run_position(controller)
        elif command in ("ps", "positions"):
            run_positions(presets)
        elif command == "save":
            await run_save(presets, rest)
        elif command == "del":
            run_delete(presets, rest)
        else:
            console.print(f"Unknown command: {command}")
            print_help()
            return EXIT_USAGE

    except DeskUsageError as e:
        console.print(f"⚠️  {e}", highlight=False)
        return EXIT_USAGE
    except DeskNotFoundError as e:
        console.print(f"❌ {e}")
        return EXIT_FAILURE
    except DeskLinkLostError as e:
        console.print(f"❌ {e}. Exit...")
        return EXIT_FAILURE
    except DeskConnectionError as e:
        console.print(f"❌ Connection failed: {e}")
        return EXIT_FAILURE
    except DeskCommunicationError as e:
        console.print(f"❌ Communication error: {e}")
        return EXIT_FAILURE
    return EXIT_OK


def print_help():
    """Print help for desk commands."""
    print(
        """
Usage: linak-desk <command> [args]

Commands:
  scan [seconds]             Scan and select the desk to control (default: 10s).
                             The desk must be ALREADY PAIRED.
  lowest_pos_mm <value>      Set the desk's lowest position in mm (e.g. 617)
  device_id <value>          Set the desk Bluetooth device id manually
  config                     Show current config
  position, p                Connect to the desk and show its current height
  positions, ps              List saved positions
  save <name> [height_mm]    Save a position; without height_mm the current
                             desk height is used
  del <name>                 Delete a saved position

Examples:
  linak-desk scan 15
  linak-desk lowest_pos_mm 617
  linak-desk device_id E1:AA:BB:CC:DD:EE
  linak-desk save sit 720
"""
    )


def main():
    """Entry point for linak-desk command."""
    args = sys.argv[1:]
    if not args or args[0] in ("-h", "--help", "help"):
        print_help()
        return

    settings = load_settings()
    setup_logging(settings.log_level)
    config = DeskConfig(open_storage(settings))
    try:
        code = asyncio.run(run_command(config, args))
    except KeyboardInterrupt:
        console.print("\n🛑 Interrupted")
        code = EXIT_INTERRUPTED
    sys.exit(code)


if __name__ == "__main__":
    main()
