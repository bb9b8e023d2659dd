# vendors.py
import logging
from typing import Dict, Optional

import aiohttp
from mac_vendor_lookup import AsyncMacLookup

from device import UNKNOWN_VENDOR
from utils import oui_key

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://api.macvendors.com/{mac}"
DEFAULT_LOOKUP_TIMEOUT_MS = 3000

# Upper 24 bits of the MAC -> manufacturer, for when the remote lookup is unreachable
LOCAL_VENDORS: Dict[str, str] = {
    # Routers and network equipment
    "000C42": "Mikrotik",
    "000C43": "Ralink Technology",
    "001122": "Cimsys",
    "001A79": "Ubiquiti Networks",
    "002722": "Ubiquiti Networks",
    "00156D": "Ubiquiti Networks",
    "00E04C": "Realtek Semiconductor",
    "5C514F": "Intel Corporate",
    "8C8813": "TP-Link Technologies",
    "E4AB89": "TP-Link Technologies",
    "A0F3C1": "TP-Link Technologies",
    "AABBCC": "Intelbras",
    "B40247": "Intelbras",
    "FCECDA": "Ubiquiti Networks",
    "DC9FDB": "Ubiquiti Networks",
    "0418D6": "Ubiquiti Networks",
    "245A4C": "Ubiquiti Networks",
    # Phones and computers
    "D46AA8": "Xiaomi Communications",
    "586AB1": "Xiaomi Communications",
    "28E31F": "Xiaomi Communications",
    "7451BA": "Xiaomi Communications",
    "606BBD": "Samsung Electronics",
    "001632": "Samsung Electronics",
    "5C497D": "Samsung Electronics",
    "94350A": "Samsung Electronics",
    "001DE1": "Apple",
    "001124": "Apple",
    "000A27": "Apple",
    "000393": "Apple",
    "0C5415": "Apple",
    "980021": "Dell",
    "002170": "Dell",
    "00219B": "Dell",
    # Carriers and ISPs
    "58696C": "Vivo/Telefônica",
    "9C431E": "NET/Claro",
    "F8E71E": "Ruckus Wireless",
    "001293": "GE Energy",
    # Registration authorities
    "78C2C0": "IEEE Registration Authority",
    "70B3D5": "IEEE Registration Authority",
}

class VendorTable:
    """Static prefix table with longest-prefix matching.

    Keys are uppercase hex strings. A lookup returns the vendor of the longest
    key the queried OUI starts with, so adding a more specific entry never
    depends on insertion order.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        entries = LOCAL_VENDORS if entries is None else entries
        self._entries = {oui_key(prefix): vendor for prefix, vendor in entries.items() if oui_key(prefix)}
        self._keys = sorted(self._entries, key=len, reverse=True)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, mac: str) -> str:
        key = oui_key(mac)
        if not key:
            return UNKNOWN_VENDOR
        for prefix in self._keys:
            if key.startswith(prefix):
                return self._entries[prefix]
        return UNKNOWN_VENDOR

class VendorResolver:
    """Resolves a MAC to a manufacturer name.

    Order: remote lookup service, then (optionally) the offline OUI database
    shipped by mac-vendor-lookup, then the static table. Never raises: a
    failing stage falls through to the next one, and an address nobody
    recognises resolves to "Unknown".
    """

    def __init__(self, table: Optional[VendorTable] = None, lookup_url: str = DEFAULT_LOOKUP_URL,
                 timeout_ms: int = DEFAULT_LOOKUP_TIMEOUT_MS, use_oui_database: bool = False):
        self.table = table or VendorTable()
        self.lookup_url = lookup_url
        self.timeout_ms = timeout_ms
        self.mac_lookup = AsyncMacLookup() if use_oui_database else None

    async def resolve(self, mac: str, session: Optional[aiohttp.ClientSession] = None) -> str:
        vendor = await self.lookup_remote(mac, session)
        if vendor is not None:
            return vendor or UNKNOWN_VENDOR

        if self.mac_lookup is not None:
            vendor = await self.lookup_oui_database(mac)
            if vendor:
                return vendor

        return self.table.lookup(mac)

    async def lookup_remote(self, mac: str, session: Optional[aiohttp.ClientSession] = None) -> Optional[str]:
        """Asks the remote service. Returns None when it could not answer."""
        if not self.lookup_url:
            return None
        timeout = aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
        try:
            url = self.lookup_url.format(mac=mac)
            if session is None:
                async with aiohttp.ClientSession() as own_session:
                    return await self._fetch(own_session, url, timeout)
            return await self._fetch(session, url, timeout)
        except Exception as e:
            logger.warning(f"Remote vendor lookup failed for {mac}, using local table: {e!r}")
            return None

    async def _fetch(self, session: aiohttp.ClientSession, url: str, timeout: aiohttp.ClientTimeout) -> Optional[str]:
        async with session.get(url, timeout=timeout) as response:
            if response.status != 200:
                logger.warning(f"Remote vendor lookup returned status {response.status} for {url}")
                return None
            return (await response.text()).strip()

    async def lookup_oui_database(self, mac: str) -> Optional[str]:
        try:
            return await self.mac_lookup.lookup(mac)
        except Exception as e:
            logger.debug(f"Could not determine vendor for MAC {mac} from OUI database: {e}")
            return None
