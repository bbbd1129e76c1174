"""Interface shared by the models that map network names to devices."""
from abc import ABC, abstractmethod


class NetworkNameMapper(ABC):
    """Translate between user-facing network names and host devices.

    Implemented by NetworkMap (netmap.conf) and NetworkingConfig (the
    networking command log), so callers can resolve names without caring
    which file the host provides.
    """

    @abstractmethod
    def name_into_devices(self, name: str) -> list[str]:
        """Return every device carrying the network `name`.

        Raises:
            NetworkNameError: If no device carries that name
        """
        pass

    @abstractmethod
    def device_into_name(self, device: str) -> str:
        """Return the network name of `device`.

        Raises:
            NetworkNameError: If the device cannot be mapped
        """
        pass
