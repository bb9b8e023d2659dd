# connectivity/__init__.py
from dynaconf import Dynaconf

from .base import BaseConnectivity, ConnectionInfo, WIFI
from .system import SystemConnectivity, StaticConnectivity

def get_connectivity(config: Dynaconf) -> BaseConnectivity:
    """Connectivity factory: returns an instance of the configured provider."""

    connectivity_type = config.general.get("connectivity", "system")

    if connectivity_type == "system":
        return SystemConnectivity(config.get("system_connectivity"))
    elif connectivity_type == "static":
        return StaticConnectivity(config.get("static_connectivity"))
    else:
        raise ValueError(f"Unsupported connectivity type: {connectivity_type}")
