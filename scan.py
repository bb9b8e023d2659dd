# scan.py
from connectivity import get_connectivity  # Import the factory
from network_scanner import NetworkScanner, scan_network
from settings import load_config, load_settings

config = load_config()

def main():
    """Simple test script to run one scan and display what it found."""

    scanner = NetworkScanner(load_settings(config), get_connectivity(config))
    devices = scan_network(scanner)

    for device in devices:
        print(device)

if __name__ == "__main__":
    main()
