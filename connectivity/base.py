# connectivity/base.py
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

WIFI = "wifi"

@dataclass(frozen=True)
class ConnectionInfo:
    attachment: str  # "wifi", "ethernet", "cellular", "none", ...
    ip_address: Optional[str] = None

class BaseConnectivity(ABC):
    """Abstract base class for finding out how and where we are attached to a network."""

    def request_permission(self) -> bool:
        """Asks for whatever permission is needed to read network details.

        Returns:
            True if granted. Providers that need nothing keep the default.
        """
        return True

    @abstractmethod
    def get_connection(self) -> ConnectionInfo:
        """Reads the current attachment type and local IPv4 address.

        Returns:
            A ConnectionInfo. ip_address is None when no address is assigned.
        """
        pass
