"""
Utility functions for mqttbench
"""
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import yaml

from .models import BrokerAddress

DEFAULT_PORTS = {
    "tcp": 1883,
    "mqtt": 1883,
    "ssl": 8883,
    "tls": 8883,
    "mqtts": 8883,
    "ws": 80,
    "wss": 443,
}

TLS_SCHEMES = ("ssl", "tls", "mqtts", "wss")
WEBSOCKET_SCHEMES = ("ws", "wss")


def create_fixed_size_message(size: int) -> str:
    """
    Build the publish payload: the digits 0-9 repeated up to ``size`` characters.

    Args:
        size: Payload length in bytes

    Returns:
        Message string, e.g. size=13 gives "0123456789012"
    """
    digits = "0123456789"
    repeats, rest = divmod(size, len(digits))
    return digits * repeats + digits[:rest]


def topic_for(prefix: str, client_index: int, iteration: int) -> str:
    """Topic used by client ``client_index`` on iteration ``iteration``"""
    return f"{prefix}/{client_index}/{iteration}"


def client_id_for(prefix: str, client_index: int) -> str:
    return f"{prefix}-{client_index}"


def parse_broker_uri(uri: str) -> BrokerAddress:
    """
    Parse a broker URI such as tcp://host:1883 or wss://host/mqtt.

    Args:
        uri: Broker URI

    Returns:
        BrokerAddress with the port defaulted from the scheme

    Raises:
        ValueError: If the scheme is unsupported or the host is missing
    """
    parts = urlsplit(uri)
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ValueError(f"Unsupported broker scheme: {parts.scheme or '(none)'}")
    if not parts.hostname:
        raise ValueError(f"Broker URI has no host: {uri}")

    try:
        port = parts.port or DEFAULT_PORTS[scheme]
    except ValueError as e:
        raise ValueError(f"Invalid broker port in {uri}: {e}")

    transport = "websockets" if scheme in WEBSOCKET_SCHEMES else "tcp"
    return BrokerAddress(
        uri=uri,
        scheme=scheme,
        host=parts.hostname,
        port=port,
        transport=transport,
        tls=scheme in TLS_SCHEMES,
        path=parts.path or "/mqtt",
    )


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load and parse a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed YAML content as dictionary

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file is not valid YAML
    """
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")
