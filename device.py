# device.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict

ONLINE = "online"
OFFLINE = "offline"
UNKNOWN_VENDOR = "Unknown"

@dataclass
class Device:
    id: str
    ip: str
    mac: str
    vendor: Optional[str] = None
    model: Optional[str] = None
    status: str = OFFLINE
    open_ports: List[int] = field(default_factory=list)
    mac_synthetic: bool = False  # True when the MAC was fabricated, not read off the wire

    def ports_text(self) -> str:
        return ",".join(str(port) for port in self.open_ports)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "ip": self.ip,
            "mac": self.mac,
            "vendor": self.vendor or UNKNOWN_VENDOR,
            "model": self.model,
            "status": self.status,
            "openPorts": self.ports_text(),
            "macSynthetic": self.mac_synthetic,
        }

@dataclass(frozen=True)
class ProbeResult:
    open_ports: tuple = ()

    @property
    def alive(self) -> bool:
        return len(self.open_ports) > 0

@dataclass(frozen=True)
class NetworkContext:
    """Per-session snapshot of where we are and how long we may take."""
    prefix: str
    local_ip: str
    timeout_ms: int

    @property
    def gateway_ip(self) -> str:
        return f"{self.prefix}.1"
