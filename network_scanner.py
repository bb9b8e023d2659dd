# network_scanner.py
import argparse
import asyncio
import dataclasses
import ipaddress
import json
import logging
import time
from typing import Awaitable, Callable, List, Optional

import aiohttp
from mac_vendor_lookup import MacLookup

from classifier import classify_model
from connectivity import BaseConnectivity, WIFI, get_connectivity
from device import Device, NetworkContext, ProbeResult, ONLINE, UNKNOWN_VENDOR
from prober import COMMON_PORTS, new_session, probe_host
from scheduler import sweep_subnet
from settings import ScanSettings, SettingsError, load_config, load_settings
from utils import ip_prefix, synthesize_mac
from vendors import VendorResolver, VendorTable, LOCAL_VENDORS

logger = logging.getLogger(__name__)

SELF_VENDOR = "This Device"
SELF_MODEL = "Mobile"
GATEWAY_VENDOR = "Gateway"
GATEWAY_MODEL = "Roteador"

ProberFunc = Callable[[aiohttp.ClientSession, str, float], Awaitable[ProbeResult]]

def device_id(ip: str, session_token: str, kind: str = "device") -> str:
    return f"{kind}-{ip.replace('.', '-')}-{session_token}"

def build_resolver(settings: ScanSettings) -> VendorResolver:
    table = VendorTable({**LOCAL_VENDORS, **settings.extra_vendor_prefixes})
    return VendorResolver(table=table,
                          lookup_url=settings.vendor_lookup_url,
                          timeout_ms=settings.vendor_lookup_timeout_ms,
                          use_oui_database=settings.use_oui_database)

class NetworkScanner:
    """Discovers devices on the local Wi-Fi /24.

    One call to scan() is one session: the network context is read once,
    self and gateway are seeded, the rest of the subnet is swept in batches
    and every device found is tagged with a vendor and model guess.
    Failures never escape; a scan that cannot run returns an empty list.
    """

    def __init__(self, settings: ScanSettings, connectivity: BaseConnectivity,
                 vendor_resolver: Optional[VendorResolver] = None,
                 prober: ProberFunc = probe_host):
        self.settings = settings
        self.connectivity = connectivity
        self.vendor_resolver = vendor_resolver or build_resolver(settings)
        self.prober = prober

    def resolve_context(self) -> Optional[NetworkContext]:
        """Captures the NetworkContext for a session, or None if we aren't on usable Wi-Fi."""
        if not self.connectivity.request_permission():
            logger.warning("Network permission not granted, scan may be limited")

        info = self.connectivity.get_connection()
        logger.info(f"Connection type: {info.attachment}")
        if info.attachment != WIFI:
            logger.info("Not attached to a Wi-Fi network, nothing to scan")
            return None
        if not info.ip_address:
            logger.info("Device IP address not available")
            return None

        ip = str(info.ip_address)
        prefix = ip_prefix(ip)
        if prefix is None:
            logger.info(f"Invalid IP address format: {ip}")
            return None
        if prefix != self.settings.network_prefix:
            logger.info(f"Detected network prefix {prefix} overrides configured {self.settings.network_prefix}")

        return NetworkContext(prefix=prefix, local_ip=ip, timeout_ms=self.settings.scan_timeout_ms)

    async def scan(self) -> List[Device]:
        logger.info("Starting network scan")
        session_token = str(int(time.time() * 1000))

        try:
            context = self.resolve_context()
            if context is None:
                return []

            max_connections = self.settings.batch_size * len(COMMON_PORTS)
            async with new_session(max_connections) as session:
                devices = await self._seed_known_hosts(session, context, session_token)
                logger.info(f"Scanning network {context.prefix}.0/24")
                devices += await self._sweep(session, context, session_token,
                                             exclude=[d.ip for d in devices])
        except Exception:
            logger.exception("Network scan failed")
            return []

        await self._enrich(devices)
        logger.info(f"Scan finished: {len(devices)} devices found")
        return devices

    async def _seed_known_hosts(self, session: aiohttp.ClientSession, context: NetworkContext,
                                session_token: str) -> List[Device]:
        devices = [Device(
            id=device_id(context.local_ip, session_token),
            ip=context.local_ip,
            mac=synthesize_mac(context.local_ip),
            vendor=SELF_VENDOR,
            model=SELF_MODEL,
            status=ONLINE,
            mac_synthetic=True,
        )]

        gateway_ip = context.gateway_ip
        if gateway_ip != context.local_ip:
            result = await self.prober(session, gateway_ip, self.settings.gateway_timeout_ms)
            if result.alive:
                devices.append(Device(
                    id=device_id(gateway_ip, session_token, kind="gateway"),
                    ip=gateway_ip,
                    mac=synthesize_mac(gateway_ip),
                    vendor=GATEWAY_VENDOR,
                    model=GATEWAY_MODEL,
                    status=ONLINE,
                    open_ports=sorted(result.open_ports),
                    mac_synthetic=True,
                ))
            else:
                logger.info(f"Gateway {gateway_ip} did not respond")
        return devices

    async def _sweep(self, session: aiohttp.ClientSession, context: NetworkContext,
                     session_token: str, exclude: List[str]) -> List[Device]:
        async def probe(ip: str, timeout_ms: float) -> ProbeResult:
            return await self.prober(session, ip, timeout_ms)

        results = await sweep_subnet(context.prefix, probe,
                                     timeout_ms=context.timeout_ms / 10,
                                     exclude=exclude,
                                     batch_size=self.settings.batch_size)
        return [
            Device(
                id=device_id(ip, session_token),
                ip=ip,
                mac=synthesize_mac(ip),
                status=ONLINE,
                open_ports=sorted(result.open_ports),
                mac_synthetic=True,
            )
            for ip, result in results if result.alive
        ]

    async def _enrich(self, devices: List[Device]) -> None:
        pending = [d for d in devices if not (d.vendor and d.vendor != UNKNOWN_VENDOR and d.model)]
        if not pending:
            return
        async with aiohttp.ClientSession() as session:
            vendors = await asyncio.gather(
                *(self.vendor_resolver.resolve(d.mac, session) for d in pending),
                return_exceptions=True)
        for device, vendor in zip(pending, vendors):
            if isinstance(vendor, BaseException):
                logger.debug(f"Could not determine vendor for MAC {device.mac}: {vendor!r}")
                vendor = UNKNOWN_VENDOR
            device.vendor = vendor
            device.model = classify_model(vendor, device.open_ports)

def scan_network(scanner: NetworkScanner) -> List[Device]:
    """Runs one scan session to completion and returns its devices."""
    return asyncio.run(scanner.scan())

def main():
    parser = argparse.ArgumentParser(description="Wi-Fi network device scanner")
    parser.add_argument("--settings", help="Path to a settings file (default: config/settings.toml)")
    parser.add_argument("--timeout", type=int, help="Scan timeout in milliseconds (1000-30000)")
    parser.add_argument("--update-mac-db", action="store_true", help="Force update of the MAC vendor database")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(levelname)s - %(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

    if args.update_mac_db:
        # Update the database if requested.
        MacLookup().update_vendors()

    config = load_config(args.settings)
    try:
        settings = load_settings(config)
        if args.timeout is not None:
            settings = dataclasses.replace(settings, scan_timeout_ms=args.timeout)
    except SettingsError as e:
        parser.error(str(e))

    scanner = NetworkScanner(settings, get_connectivity(config))
    devices = scan_network(scanner)
    devices.sort(key=lambda d: ipaddress.IPv4Address(d.ip))
    print(json.dumps([d.to_dict() for d in devices], indent=4))

if __name__ == "__main__":
    main()
