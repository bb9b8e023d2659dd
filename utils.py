# utils.py
import re
from typing import Optional

def format_mac(mac: str) -> str:
    """Formats a MAC address to lowercase with colons."""
    return mac.lower().replace("-", ":")

def is_valid_ipv4(ip: str) -> bool:
    """Checks if a string is a valid IPv4 address."""
    pattern = r"^(\d{1,3}\.){3}\d{1,3}$"
    if re.match(pattern, ip):
        parts = ip.split('.')
        return all(0 <= int(part) <= 255 for part in parts)
    return False

def is_valid_prefix(prefix: str) -> bool:
    """Checks if a string is a /24 prefix such as '192.168.0'."""
    return is_valid_ipv4(f"{prefix}.0")

def ip_prefix(ip: str) -> Optional[str]:
    """Returns the first three octets of an IPv4 address, or None if it isn't one."""
    if not is_valid_ipv4(ip):
        return None
    return ".".join(ip.split(".")[:3])

def oui_key(mac: str) -> str:
    """Uppercase hex of the upper 24 bits of a MAC, e.g. '000C42'."""
    return re.sub(r"[^0-9a-fA-F]", "", mac).upper()[:6]

def synthesize_mac(ip: str) -> str:
    """Builds a locally administered MAC from an IPv4 address.

    No real hardware address is obtainable from a port probe, so every
    address handed out here has the locally-administered bit set and will
    never collide with a registered vendor prefix.
    """
    octets = [int(part) for part in ip.split(".")]
    return format_mac(":".join(f"{b:02x}" for b in [0x02, 0x00] + octets))
