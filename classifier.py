# classifier.py
from typing import Iterable, Optional

# Checked in order; the first vendor substring found decides the model
VENDOR_MODELS = (
    ("Mikrotik", "RouterBOARD"),
    ("Intelbras", "Roteador"),
    ("Ubiquiti", "Access Point"),
    ("TP-Link", "Roteador"),
    ("Apple", "iPhone/iPad"),
    ("Samsung", "Galaxy"),
    ("Xiaomi", "Redmi"),
)

# Only consulted when the vendor said nothing
PORT_MODELS = (
    (22, "Linux/SSH device"),
    (80, "Web server"),
    (8080, "IP camera/Web server"),
    (554, "RTSP camera"),
    (3389, "Windows computer"),
)

def classify_model(vendor: Optional[str], open_ports: Iterable[int]) -> Optional[str]:
    """Guesses a model label from the vendor name, then from open ports."""
    if vendor:
        for needle, model in VENDOR_MODELS:
            if needle in vendor:
                return model

    ports = set(open_ports)
    for port, model in PORT_MODELS:
        if port in ports:
            return model
    return None
