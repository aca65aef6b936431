from abc import ABC, abstractmethod
from typing import List, Optional

from device import DeviceRecord


class BaseController(ABC):
    """Abstract base class for the network controllers that report connected clients.

    Fetch methods return ``None`` when the controller could not be queried;
    transport errors are not raised to the caller.
    """

    @abstractmethod
    def list_clients(self) -> Optional[List[DeviceRecord]]:
        """Returns the clients currently connected, or None on failure."""

    def list_clients_extended(self) -> Optional[List[DeviceRecord]]:
        """Returns the extended client list (including Teleport clients), or None on failure.

        Controllers without an extended view report the standard list.
        """
        return self.list_clients()

    @abstractmethod
    def reestablish_session(self) -> None:
        """Tears down the current session and opens a new one."""
