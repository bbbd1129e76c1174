#!/usr/bin/env python3
"""Command-line access to the virtual-network readers.

Usage:
    vmnetconf [--settings FILE] [-v] dhcp [FILE] [--host NAME | --subnet ADDR]
    vmnetconf [--settings FILE] [-v] netmap [FILE] [--name NAME | --device DEV]
    vmnetconf [--settings FILE] [-v] networking [FILE] [--name NAME | --device DEV]
    vmnetconf [--settings FILE] [-v] leases [FILE] [--apple]

Every command prints JSON on stdout. FILE defaults to the path configured in
the settings file or the VMNETCONF_* environment variables.
"""
import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from .base import NetworkNameMapper
from .config import Settings
from .errors import VmnetConfError
from .loader import NetworkFiles
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _with_file(settings: Settings, key: str, path: Optional[Path]) -> Settings:
    if path is None:
        return settings
    return replace(settings, **{key: path})


def _map_query(mapper: NetworkNameMapper, args: argparse.Namespace) -> Any:
    if args.name:
        return {"name": args.name, "devices": mapper.name_into_devices(args.name)}
    if args.device:
        return {"device": args.device, "name": mapper.device_into_name(args.device)}
    return mapper.to_dict()


def cmd_dhcp(files: NetworkFiles, args: argparse.Namespace) -> Any:
    config = files.dhcp_configuration()
    if args.host:
        return config.host_by_name(args.host).to_dict()
    if args.subnet:
        return config.subnet_by_address(args.subnet).to_dict()
    return config.to_list()


def cmd_netmap(files: NetworkFiles, args: argparse.Namespace) -> Any:
    return _map_query(files.network_map(), args)


def cmd_networking(files: NetworkFiles, args: argparse.Namespace) -> Any:
    return _map_query(files.networking_config(), args)


def cmd_leases(files: NetworkFiles, args: argparse.Namespace) -> Any:
    result = files.apple_leases() if args.apple else files.dhcpd_leases()
    return result.to_dict()


COMMANDS = {
    "dhcp": ("dhcp_config", cmd_dhcp),
    "netmap": ("network_map", cmd_netmap),
    "networking": ("networking", cmd_networking),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vmnetconf",
        description="Inspect virtual-network configuration files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Dump every declaration of a DHCP configuration
    vmnetconf dhcp /Library/Preferences/VMware\\ Fusion/vmnet8/dhcpd.conf

    # Which devices carry the NAT network?
    vmnetconf networking --name nat

    # Leases handed out by macOS bootpd
    vmnetconf leases /var/db/dhcpd_leases --apple

Environment:
    VMNETCONF_NETWORKING, VMNETCONF_NETWORK_MAP, ...    Default file locations
    VMNETCONF_LOG_LEVEL=DEBUG                           Console log level
""",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="Settings file (default: ./vmnetconf.yaml or ~/.config/vmnetconf/vmnetconf.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write rotating log files (see VMNETCONF_LOG_FILE)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    dhcp = sub.add_parser("dhcp", help="DHCP server configuration")
    dhcp.add_argument("file", nargs="?", type=Path, help="Configuration file")
    group = dhcp.add_mutually_exclusive_group()
    group.add_argument("--host", help="Show the declaration of one host")
    group.add_argument("--subnet", help="Show the subnet declaration containing an address")

    for name, help_text in (("netmap", "Network name map"), ("networking", "Networking command log")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("file", nargs="?", type=Path, help="File to read")
        group = cmd.add_mutually_exclusive_group()
        group.add_argument("--name", help="List the devices carrying a network name")
        group.add_argument("--device", help="Show the network name of a device")

    leases = sub.add_parser("leases", help="DHCP lease file")
    leases.add_argument("file", nargs="?", type=Path, help="Lease file")
    leases.add_argument("--apple", action="store_true", help="Read the macOS bootpd dialect")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the vmnetconf CLI."""
    args = build_parser().parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else None,
        log_to_file=args.log_file,
    )

    try:
        settings = Settings.load(args.settings)

        if args.command == "leases":
            key = "apple_leases" if args.apple else "dhcpd_leases"
            handler = cmd_leases
        else:
            key, handler = COMMANDS[args.command]

        files = NetworkFiles(_with_file(settings, key, args.file))
        result = handler(files, args)

    except VmnetConfError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
