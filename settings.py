# settings.py
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from dynaconf import Dynaconf

from scheduler import BATCH_SIZE
from utils import is_valid_prefix
from vendors import DEFAULT_LOOKUP_URL, DEFAULT_LOOKUP_TIMEOUT_MS

logger = logging.getLogger(__name__)

MIN_SCAN_TIMEOUT_MS = 1000
MAX_SCAN_TIMEOUT_MS = 30000

class SettingsError(ValueError):
    """Raised when the scan configuration is unusable."""

@dataclass(frozen=True)
class ScanSettings:
    network_prefix: str = "192.168.0"
    scan_timeout_ms: int = 5000
    batch_size: int = BATCH_SIZE
    gateway_timeout_ms: int = 2000
    vendor_lookup_url: str = DEFAULT_LOOKUP_URL
    vendor_lookup_timeout_ms: int = DEFAULT_LOOKUP_TIMEOUT_MS
    use_oui_database: bool = False
    extra_vendor_prefixes: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not is_valid_prefix(self.network_prefix):
            raise SettingsError(f'Network prefix must look like "192.168.0", got {self.network_prefix!r}')
        if not MIN_SCAN_TIMEOUT_MS <= self.scan_timeout_ms <= MAX_SCAN_TIMEOUT_MS:
            raise SettingsError(
                f"Scan timeout must be between {MIN_SCAN_TIMEOUT_MS} and {MAX_SCAN_TIMEOUT_MS} ms, "
                f"got {self.scan_timeout_ms}")
        if not 1 <= self.batch_size <= BATCH_SIZE:
            raise SettingsError(f"Batch size must be between 1 and {BATCH_SIZE}, got {self.batch_size}")

def load_config(settings_file: Optional[str] = None) -> Dynaconf:
    return Dynaconf(
        settings_files=[settings_file or 'config/settings.toml'],
        envvar_prefix="WIFISCAN",
    )

def load_settings(config: Dynaconf) -> ScanSettings:
    """Reads and validates the scan settings once, for one session."""
    general = config.get("general") or {}
    scan = config.get("scan") or {}
    vendor = config.get("vendor") or {}
    try:
        settings = ScanSettings(
            network_prefix=str(general.get("network_prefix", "192.168.0")),
            scan_timeout_ms=int(general.get("scan_timeout_ms", 5000)),
            batch_size=int(scan.get("batch_size", BATCH_SIZE)),
            gateway_timeout_ms=int(scan.get("gateway_timeout_ms", 2000)),
            vendor_lookup_url=vendor.get("lookup_url", DEFAULT_LOOKUP_URL),
            vendor_lookup_timeout_ms=int(vendor.get("lookup_timeout_ms", DEFAULT_LOOKUP_TIMEOUT_MS)),
            use_oui_database=bool(vendor.get("use_oui_database", False)),
            extra_vendor_prefixes=dict(vendor.get("extra_prefixes") or {}),
        )
    except SettingsError:
        raise
    except (TypeError, ValueError) as err:
        raise SettingsError(f"Invalid scan settings: {err}") from err
    logger.debug(f"Loaded scan settings: {settings}")
    return settings
