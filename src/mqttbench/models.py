"""
Data models for mqttbench
"""
from dataclasses import dataclass
from enum import Enum, IntEnum


class QoS(IntEnum):
    """MQTT quality of service levels"""
    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


class Action(Enum):
    """What every client does during the timed phase"""
    PUBLISH = "pub"
    SUBSCRIBE = "sub"

    @classmethod
    def parse(cls, text: str | None) -> "Action | None":
        """Map p/pub/publish and s/sub/subscribe to an Action, anything else to None"""
        if text in ("p", "pub", "publish"):
            return cls.PUBLISH
        if text in ("s", "sub", "subscribe"):
            return cls.SUBSCRIBE
        return None

    @property
    def label(self) -> str:
        return "Publish" if self is Action.PUBLISH else "Subscribe"


@dataclass(frozen=True)
class BrokerAddress:
    """Broker endpoint parsed from a URI"""
    uri: str
    scheme: str
    host: str
    port: int
    transport: str = "tcp"
    tls: bool = False
    path: str = "/mqtt"


@dataclass(frozen=True)
class BenchmarkOptions:
    """Validated options for a single benchmark run"""
    broker: str
    clients: int = 10
    count: int = 100
    size: int = 1024
    qos: QoS = QoS.AT_MOST_ONCE
    settle_seconds: float = 3.0
    keepalive: int = 60
    connect_timeout: float = 30.0
    topic_prefix: str = "/mqtt-bench/benchmark"
    client_id_prefix: str = "mqtt-benchmark"

    @property
    def total_count(self) -> int:
        return self.clients * self.count


@dataclass(frozen=True)
class BenchmarkResult:
    """Aggregate outcome of a completed run"""
    action: Action
    broker: str
    clients: int
    count: int
    total_count: int
    duration_s: float

    @property
    def duration_ms(self) -> int:
        return int(self.duration_s * 1000)

    @property
    def throughput(self) -> float:
        """Messages per second over the timed window"""
        if self.duration_s <= 0:
            return float("inf")
        return self.total_count / self.duration_s

    def summary(self) -> str:
        return (
            f"{self.action.label} result : broker={self.broker}, "
            f"clients={self.clients}, count={self.count}, "
            f"duration={self.duration_ms}ms, "
            f"throughput={self.throughput:.2f}messages/sec"
        )
