"""
Benchmark configuration: defaults, YAML profiles and validation
"""
import math
from pathlib import Path
from typing import Any, Optional

from .errors import ACTION_HINT, BROKER_HINT, ConfigurationError, ProfileError
from .logger import get_logger
from .models import Action, BenchmarkOptions, QoS
from .utils import load_yaml_file, parse_broker_uri

BROKER_PLACEHOLDER = "tcp://{host}:{port}"
ACTION_PLACEHOLDER = "p/pub/publish or s/sub/subscribe"

DEFAULTS: dict[str, Any] = {
    "broker": BROKER_PLACEHOLDER,
    "action": ACTION_PLACEHOLDER,
    "clients": 10,
    "count": 100,
    "size": 1024,
    "qos": 0,
    "settle": 3.0,
}

PROFILE_KEYS = tuple(DEFAULTS)


def load_profile(path: Path) -> dict[str, Any]:
    """
    Load the ``benchmark`` section of a YAML profile.

    Args:
        path: Path to the profile

    Returns:
        Mapping of option name to value, unknown keys dropped

    Raises:
        ProfileError: If the file is missing, not YAML or not a mapping
    """
    logger = get_logger()
    logger.debug(f"Loading profile: {path}")

    try:
        data = load_yaml_file(path)
    except (FileNotFoundError, ValueError) as e:
        raise ProfileError(path, str(e))

    if not isinstance(data, dict) or not isinstance(data.get("benchmark"), dict):
        raise ProfileError(path, "Missing 'benchmark' section")

    section = data["benchmark"]
    unknown = sorted(set(section) - set(PROFILE_KEYS))
    if unknown:
        logger.warning(f"Ignoring unknown profile keys: {', '.join(unknown)}")

    return {key: section[key] for key in PROFILE_KEYS if key in section}


def resolve_values(
    cli_values: dict[str, Any],
    profile: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Merge option values: explicit flag, then profile, then default."""
    values = dict(DEFAULTS)
    values.update(profile or {})
    values.update({k: v for k, v in cli_values.items() if v is not None})
    return values


def _as_int(flag: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(flag, value)
    if isinstance(value, float) and not value.is_integer():
        raise ConfigurationError(flag, value, "Must be a whole number")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise ConfigurationError(flag, value)


def _as_float(flag: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(flag, value)
    if not math.isfinite(number):
        raise ConfigurationError(flag, value, "Must be a finite number")
    return number


def build_options(values: dict[str, Any]) -> tuple[Action, BenchmarkOptions]:
    """
    Validate resolved option values.

    Args:
        values: Output of ``resolve_values``

    Returns:
        The selected action and the immutable run options

    Raises:
        ConfigurationError: On the first invalid value
    """
    broker = values.get("broker")
    if not broker or broker == BROKER_PLACEHOLDER:
        raise ConfigurationError("broker", broker, BROKER_HINT)
    try:
        parse_broker_uri(broker)
    except ValueError as e:
        raise ConfigurationError("broker", broker, f"{e}. {BROKER_HINT}")

    action = Action.parse(values.get("action"))
    if action is None:
        raise ConfigurationError("action", values.get("action"), ACTION_HINT)

    clients = _as_int("clients", values.get("clients"))
    if clients <= 0:
        raise ConfigurationError("clients", clients, "Must be a positive integer")

    count = _as_int("count", values.get("count"))
    if count <= 0:
        raise ConfigurationError("count", count, "Must be a positive integer")

    size = _as_int("size", values.get("size"))
    if size < 0:
        raise ConfigurationError("size", size, "Must be zero or more bytes")

    qos = _as_int("qos", values.get("qos"))
    if qos not in (0, 1, 2):
        raise ConfigurationError("qos", qos, "MQTT QoS is 0, 1 or 2")

    settle = _as_float("settle", values.get("settle"))
    if settle < 0:
        raise ConfigurationError("settle", settle, "Must be zero or more seconds")

    options = BenchmarkOptions(
        broker=broker,
        clients=clients,
        count=count,
        size=size,
        qos=QoS(qos),
        settle_seconds=settle,
    )
    return action, options
