# prober.py
import asyncio
import logging
from typing import Optional

import aiohttp

from device import ProbeResult

logger = logging.getLogger(__name__)

# Ports commonly exposed by devices found on home and small-office networks
COMMON_PORTS = (21, 22, 23, 80, 443, 445, 554, 1723, 3389, 5000, 8080, 8443, 8888, 9100)

def _is_timeout(err: BaseException) -> bool:
    if isinstance(err, asyncio.TimeoutError):
        return True
    # A SYN that never gets answered surfaces as a connector error wrapping ETIMEDOUT
    if isinstance(err, aiohttp.ClientConnectorError):
        return isinstance(err.os_error, TimeoutError)
    return False

async def check_port(session: aiohttp.ClientSession, host: str, port: int, timeout_ms: float) -> bool:
    """Checks whether something is listening on host:port.

    Sends a bare HTTP HEAD and reads the outcome:
      - any response, whatever the status, means open;
      - a timeout means closed;
      - any other error (refused, reset, garbage instead of HTTP) also
        means open, because something on the other end answered.

    The last rule favours open when the signal is ambiguous and will report
    hosts that actively refuse the connection as listening.

    Args:
        session: Shared aiohttp session for the scan.
        host: IPv4 address to probe.
        port: TCP port.
        timeout_ms: Deadline for this single check.

    Returns:
        True if the port is considered open, False otherwise.
    """
    timeout = timeout_ms / 1000
    url = f"http://{host}:{port}/"
    try:
        async with session.head(url, timeout=aiohttp.ClientTimeout(total=timeout),
                                allow_redirects=False) as response:
            logger.debug(f"{host}:{port} answered HTTP {response.status}")
            return True
    except Exception as e:
        if _is_timeout(e):
            logger.debug(f"{host}:{port} timed out after {timeout_ms:.0f}ms")
            return False
        logger.debug(f"{host}:{port} answered with an error, treating as open: {e!r}")
        return True

async def probe_host(session: aiohttp.ClientSession, host: str, timeout_ms: float,
                     ports: Optional[tuple] = None) -> ProbeResult:
    """Checks every catalog port on a host concurrently and collects the open ones.

    Each check gets half of the host budget. All checks are awaited to
    completion; one failing never cancels the others.
    """
    ports = ports or COMMON_PORTS
    checks = [check_port(session, host, port, timeout_ms / 2) for port in ports]
    results = await asyncio.gather(*checks, return_exceptions=True)

    open_ports = []
    for port, result in zip(ports, results):
        if isinstance(result, BaseException):
            logger.debug(f"Check of {host}:{port} failed unexpectedly: {result!r}")
            continue
        if result:
            open_ports.append(port)

    if open_ports:
        logger.debug(f"{host} is alive, open ports: {open_ports}")
    return ProbeResult(open_ports=tuple(sorted(open_ports)))

def new_session(max_connections: int) -> aiohttp.ClientSession:
    """Creates the HTTP session used for one scan.

    Connections are never reused; every probe is a fresh handshake.
    """
    connector = aiohttp.TCPConnector(limit=max_connections, force_close=True, ssl=False)
    return aiohttp.ClientSession(connector=connector)
