"""Locations of the virtual-network files to read.

Environment variables (override the settings file):
- VMNETCONF_DHCP_CONFIG: DHCP server configuration (vmnetdhcp.conf)
- VMNETCONF_NETWORK_MAP: Network name map (netmap.conf)
- VMNETCONF_NETWORKING: Networking command log
- VMNETCONF_DHCPD_LEASES: ISC dhcpd lease file
- VMNETCONF_APPLE_LEASES: macOS bootpd lease file
- VMNETCONF_INTERFACE_PREFIX: Device name prefix of vmnet interfaces (default: vmnet)

Settings file (vmnetconf.yaml):

    files:
      dhcp_config: /Library/Preferences/VMware Fusion/vmnet8/dhcpd.conf
      network_map: netmap.conf          # relative to this file
      networking: /Library/Preferences/VMware Fusion/networking
    interface_prefix: vmnet
"""
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml

from ..networking.schema import INTERFACE_PREFIX

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "vmnetconf.yaml"

ENV_VARS = {
    "dhcp_config": "VMNETCONF_DHCP_CONFIG",
    "network_map": "VMNETCONF_NETWORK_MAP",
    "networking": "VMNETCONF_NETWORKING",
    "dhcpd_leases": "VMNETCONF_DHCPD_LEASES",
    "apple_leases": "VMNETCONF_APPLE_LEASES",
}
PREFIX_ENV_VAR = "VMNETCONF_INTERFACE_PREFIX"


def default_search_paths() -> list[Path]:
    """Settings file locations tried by Settings.load(), in order."""
    return [
        Path.cwd() / SETTINGS_FILENAME,
        Path.home() / ".config" / "vmnetconf" / SETTINGS_FILENAME,
    ]


@dataclass
class Settings:
    """Which files to read, and how vmnet devices are named."""
    dhcp_config: Optional[Path] = None
    network_map: Optional[Path] = None
    networking: Optional[Path] = None
    dhcpd_leases: Optional[Path] = None
    apple_leases: Optional[Path] = None
    interface_prefix: str = INTERFACE_PREFIX

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls().with_env()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Settings":
        """Load settings from a YAML file.

        Relative file paths are taken relative to the settings file.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Settings file not found: {path}")
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        base = path.parent
        files = data.get("files") or {}
        unknown = set(files) - set(ENV_VARS)
        if unknown:
            logger.warning(f"Ignoring unknown file entries in {path}: {sorted(unknown)}")

        paths = {}
        for name in ENV_VARS:
            value = files.get(name)
            if value:
                resolved = Path(value).expanduser()
                paths[name] = resolved if resolved.is_absolute() else base / resolved

        logger.debug(f"Loaded settings from {path}")
        return cls(
            interface_prefix=data.get("interface_prefix", INTERFACE_PREFIX),
            **paths,
        )

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Settings":
        """Load the settings file (explicit or first found), then apply the environment."""
        if path is not None:
            return cls.from_file(path).with_env()

        for candidate in default_search_paths():
            if candidate.exists():
                return cls.from_file(candidate).with_env()

        return cls.from_env()

    def with_env(self) -> "Settings":
        """Return a copy with every variable set in the environment applied."""
        overrides: dict = {}
        for name, var in ENV_VARS.items():
            value = os.environ.get(var)
            if value:
                overrides[name] = Path(value).expanduser()

        prefix = os.environ.get(PREFIX_ENV_VAR)
        if prefix:
            overrides["interface_prefix"] = prefix

        return replace(self, **overrides)

    def to_dict(self) -> dict:
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = str(value) if isinstance(value, Path) else value
        return result
