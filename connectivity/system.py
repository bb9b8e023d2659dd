# connectivity/system.py
import socket
import logging
from pathlib import Path
from typing import Dict, Optional

from dynaconf import Dynaconf

from .base import BaseConnectivity, ConnectionInfo, WIFI

logger = logging.getLogger(__name__)

class SystemConnectivity(BaseConnectivity):
    """Reads the attachment from the host running the scan."""

    def __init__(self, config: Optional[Dynaconf] = None, sysfs_root: str = "/sys/class/net"):
        config = config or {}
        self.probe_address = config.get("probe_address", "8.8.8.8")
        self.fallback_attachment = config.get("attachment", WIFI)
        self.sysfs_root = Path(sysfs_root)

    def get_connection(self) -> ConnectionInfo:
        ip = self._local_ip()
        if ip is None:
            return ConnectionInfo(attachment="none")
        return ConnectionInfo(attachment=self._attachment_for(ip), ip_address=ip)

    def _local_ip(self) -> Optional[str]:
        """Returns the source address the kernel would use for outbound traffic.

        Connecting a UDP socket sends nothing; it only selects a route.
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.connect((self.probe_address, 80))
            return sock.getsockname()[0]
        except OSError as e:
            logger.warning(f"Could not determine local IPv4 address: {e}")
            return None
        finally:
            sock.close()

    def _attachment_for(self, ip: str) -> str:
        """Classifies the interface holding ip, using sysfs where available."""
        iface = self._interfaces().get(ip)
        if iface is None or not self.sysfs_root.is_dir():
            logger.debug(f"Interface for {ip} unknown, assuming '{self.fallback_attachment}'")
            return self.fallback_attachment
        if (self.sysfs_root / iface / "wireless").exists() or (self.sysfs_root / iface / "phy80211").exists():
            return WIFI
        return "ethernet"

    def _interfaces(self) -> Dict[str, str]:
        """Maps IPv4 address -> interface name."""
        try:
            names = [name for _, name in socket.if_nameindex()]
        except OSError:
            return {}
        mapping: Dict[str, str] = {}
        for name in names:
            addr = _ipv4_of(name)
            if addr:
                mapping[addr] = name
        return mapping

def _ipv4_of(iface: str) -> Optional[str]:
    try:
        import fcntl
        import struct
    except ImportError:  # not a POSIX platform
        return None
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        packed = fcntl.ioctl(sock.fileno(), 0x8915,  # SIOCGIFADDR
                             struct.pack("256s", iface[:15].encode()))
        return socket.inet_ntoa(packed[20:24])
    except OSError:
        return None
    finally:
        sock.close()

class StaticConnectivity(BaseConnectivity):
    """Attachment and address taken verbatim from configuration."""

    def __init__(self, config: Optional[Dynaconf] = None):
        config = config or {}
        self.attachment = config.get("attachment", WIFI)
        self.ip_address = config.get("ip_address")

    def get_connection(self) -> ConnectionInfo:
        return ConnectionInfo(attachment=self.attachment, ip_address=self.ip_address)
