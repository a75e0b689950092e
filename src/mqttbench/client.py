"""
MQTT client adapter built on paho-mqtt
"""
import threading
from typing import Optional

import paho.mqtt.client as mqtt

from .logger import get_logger
from .models import BenchmarkOptions, BrokerAddress, QoS
from .utils import client_id_for, parse_broker_uri


class BenchmarkClient:
    """
    One MQTT session driven synchronously by a single worker.

    Publish and subscribe block until the broker has completed the
    exchange for the requested QoS. Failures are logged and reported
    through the return value, never raised.
    """

    def __init__(self, client: mqtt.Client, client_id: str, index: int):
        self.client_id = client_id
        self.index = index
        self._client = client
        self._connected = threading.Event()
        self._connack = None
        # mid -> SUBACK state, shared with the paho network thread
        self._lock = threading.Lock()
        self._suback_events: dict[int, threading.Event] = {}
        self._suback_codes: dict[int, list] = {}

        client.on_connect = self._on_connect
        client.on_subscribe = self._on_subscribe

    def _on_connect(self, client, userdata, connect_flags, reason_code, properties):
        self._connack = reason_code
        self._connected.set()

    def _on_subscribe(self, client, userdata, mid, reason_code_list, properties):
        with self._lock:
            self._suback_codes[mid] = list(reason_code_list)
            self._suback_events.setdefault(mid, threading.Event()).set()

    def connect(self, address: BrokerAddress, keepalive: int, timeout: float) -> bool:
        """
        Open the session and wait for the broker's CONNACK.

        Args:
            address: Parsed broker endpoint
            keepalive: MQTT keep-alive interval in seconds
            timeout: Seconds to wait for CONNACK

        Returns:
            True once the broker accepted the session
        """
        logger = get_logger()
        try:
            self._client.connect(address.host, address.port, keepalive=keepalive)
        except (OSError, ValueError) as e:
            logger.error(f"Connected error: {e}")
            return False

        self._client.loop_start()

        if not self._connected.wait(timeout):
            logger.error(f"Connected error: no CONNACK from {address.uri} within {timeout:g}s")
            self.disconnect()
            return False

        if self._connack is not None and self._connack.is_failure:
            logger.error(f"Connected error: {self._connack}")
            self.disconnect()
            return False

        logger.debug(f"Connected {self.client_id} to {address.uri}")
        return True

    def publish(self, topic: str, qos: QoS, payload: str) -> bool:
        """Publish one message and wait until the QoS flow completes."""
        logger = get_logger()
        try:
            info = self._client.publish(topic, payload, qos=int(qos), retain=False)
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                logger.error(f"Publish error: {mqtt.error_string(info.rc)}")
                return False
            info.wait_for_publish()
        except (OSError, RuntimeError, ValueError) as e:
            logger.error(f"Publish error: {e}")
            return False
        return True

    def subscribe(self, topic: str, qos: QoS) -> bool:
        """Subscribe to one topic and wait for the matching SUBACK."""
        logger = get_logger()
        try:
            rc, mid = self._client.subscribe(topic, qos=int(qos))
        except (OSError, ValueError) as e:
            logger.error(f"Subscribe error: {e}")
            return False

        if rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Subscribe error: {mqtt.error_string(rc)}")
            return False

        with self._lock:
            event = self._suback_events.setdefault(mid, threading.Event())
        event.wait()
        with self._lock:
            self._suback_events.pop(mid, None)
            codes = self._suback_codes.pop(mid, [])

        failed = [code for code in codes if code.is_failure]
        if failed:
            logger.error(f"Subscribe error: {failed[0]}")
            return False
        return True

    def disconnect(self) -> None:
        """Close the session. Errors are logged at DEBUG and dropped."""
        logger = get_logger()
        try:
            self._client.disconnect()
        except Exception as e:
            logger.debug(f"Disconnect error ({self.client_id}): {e}")
        try:
            self._client.loop_stop()
        except Exception as e:
            logger.debug(f"Network loop stop error ({self.client_id}): {e}")


def create_paho_client(address: BrokerAddress, client_id: str) -> mqtt.Client:
    """Build a paho client configured for the broker's transport."""
    client = mqtt.Client(
        mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        clean_session=True,
        protocol=mqtt.MQTTv311,
        transport=address.transport,
    )
    if address.transport == "websockets":
        client.ws_set_options(path=address.path)
    if address.tls:
        client.tls_set()
    return client


def connect_client(
    broker: str,
    index: int,
    options: BenchmarkOptions,
) -> Optional[BenchmarkClient]:
    """
    Connect client ``index`` to the broker.

    Args:
        broker: Broker URI
        index: Client index, used to derive a unique client ID
        options: Run options (keep-alive, connect timeout, ID prefix)

    Returns:
        A connected BenchmarkClient, or None if the connection failed
    """
    logger = get_logger()
    client_id = client_id_for(options.client_id_prefix, index)

    try:
        address = parse_broker_uri(broker)
        paho_client = create_paho_client(address, client_id)
    except (OSError, ValueError) as e:
        logger.error(f"Connected error: {e}")
        return None

    client = BenchmarkClient(paho_client, client_id, index)
    if not client.connect(address, options.keepalive, options.connect_timeout):
        return None
    return client
