"""Open the configured virtual-network files and hand them to their readers."""
import logging
from pathlib import Path
from typing import IO, Any, Callable, Optional

from .base import NetworkNameMapper
from .config import Settings
from .dhcp import DhcpConfiguration, read_dhcp_configuration
from .errors import LookupFailedError
from .leases import (
    AppleDhcpdLeaseEntry,
    DhcpdLeaseEntry,
    LeaseReadResult,
    read_apple_dhcpd_lease_entries,
    read_dhcpd_lease_entries,
)
from .netmap import NetworkMap, read_network_map
from .networking import NetworkingConfig, local_interface_exists, read_networking_config
from .utils.logging_config import timed_section

logger = logging.getLogger(__name__)


class NetworkFiles:
    """Lazy access to every file named by a Settings instance.

    Each file is read at most once; later calls return the cached model.

    Usage:
        files = NetworkFiles(Settings.load())
        devices = files.name_mapper().name_into_devices("nat")
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        interface_exists: Callable[[str], bool] = local_interface_exists,
    ):
        self.settings = settings or Settings.load()
        self.interface_exists = interface_exists
        self._cache: dict[str, Any] = {}

    def _read(self, key: str, reader: Callable[[IO], Any]) -> Any:
        if key in self._cache:
            return self._cache[key]

        path: Optional[Path] = getattr(self.settings, key)
        if path is None:
            raise LookupFailedError(f"no {key} file configured")

        logger.info(f"Reading {key} from {path}")
        with timed_section(f"load_{key}", source=str(path)):
            with open(path, "rb") as fd:
                result = reader(fd)

        self._cache[key] = result
        return result

    def dhcp_configuration(self) -> DhcpConfiguration:
        return self._read("dhcp_config", read_dhcp_configuration)

    def network_map(self) -> NetworkMap:
        return self._read("network_map", read_network_map)

    def networking_config(self) -> NetworkingConfig:
        return self._read(
            "networking",
            lambda fd: read_networking_config(
                fd, self.interface_exists, self.settings.interface_prefix
            ),
        )

    def dhcpd_leases(self) -> LeaseReadResult[DhcpdLeaseEntry]:
        return self._read("dhcpd_leases", read_dhcpd_lease_entries)

    def apple_leases(self) -> LeaseReadResult[AppleDhcpdLeaseEntry]:
        return self._read("apple_leases", read_apple_dhcpd_lease_entries)

    def name_mapper(self) -> NetworkNameMapper:
        """Prefer the networking log, falling back to the network map.

        Raises:
            LookupFailedError: If neither file is configured
        """
        if self.settings.networking is not None:
            return self.networking_config()
        if self.settings.network_map is not None:
            return self.network_map()
        raise LookupFailedError("neither a networking file nor a network map is configured")
