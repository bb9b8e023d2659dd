# scheduler.py
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from device import ProbeResult

logger = logging.getLogger(__name__)

FIRST_HOST = 2   # .1 is the gateway and is probed on its own
LAST_HOST = 254
BATCH_SIZE = 10

ProbeFunc = Callable[[str, float], Awaitable[ProbeResult]]
ProgressFunc = Callable[[int, int, int], None]

def host_batches(prefix: str, exclude: Iterable[str] = (), batch_size: int = BATCH_SIZE) -> List[List[str]]:
    """Splits prefix.2 .. prefix.254 into consecutive batches, dropping excluded addresses.

    Batches are cut over the suffix range first, so a batch that held an
    excluded address is simply one host shorter.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    skip = set(exclude)
    batches = []
    for start in range(FIRST_HOST, LAST_HOST + 1, batch_size):
        end = min(start + batch_size, LAST_HOST + 1)
        batch = [f"{prefix}.{suffix}" for suffix in range(start, end)]
        batch = [ip for ip in batch if ip not in skip]
        if batch:
            batches.append(batch)
    return batches

async def sweep_subnet(prefix: str, probe: ProbeFunc, timeout_ms: float,
                       exclude: Iterable[str] = (), batch_size: int = BATCH_SIZE,
                       on_progress: Optional[ProgressFunc] = None) -> List[Tuple[str, ProbeResult]]:
    """Probes every candidate host of a /24, one batch at a time.

    Hosts within a batch are probed concurrently and the next batch only
    starts once every probe of the current one has settled. A probe that
    raises is logged and skipped; it never stops the sweep.

    Args:
        prefix: First three octets of the subnet, e.g. '192.168.1'.
        probe: Coroutine function taking (ip, timeout_ms) and returning a ProbeResult.
        timeout_ms: Budget handed to each host probe.
        exclude: Addresses already accounted for (self, gateway).
        batch_size: Number of hosts probed at once.
        on_progress: Called after each batch with (scanned, total, found).

    Returns:
        (ip, ProbeResult) for every host whose probe completed, in address order.
    """
    batches = host_batches(prefix, exclude, batch_size)
    total = sum(len(batch) for batch in batches)
    results: List[Tuple[str, ProbeResult]] = []
    scanned = 0
    found = 0

    for batch in batches:
        outcomes = await asyncio.gather(*(probe(ip, timeout_ms) for ip in batch), return_exceptions=True)
        for ip, outcome in zip(batch, outcomes):
            scanned += 1
            if isinstance(outcome, BaseException):
                logger.warning(f"Probe of {ip} failed: {outcome!r}")
                continue
            results.append((ip, outcome))
            if outcome.alive:
                found += 1

        logger.info(f"Progress: {scanned}/{total}, devices found: {found}")
        if on_progress:
            on_progress(scanned, total, found)

    return results
