"""
Core benchmark logic
"""
import threading
import time
from typing import Callable, Optional, Protocol

import click

from . import __version__
from .client import connect_client
from .errors import ConnectionFailure, MqttBenchError
from .logger import get_logger
from .models import Action, BenchmarkOptions, BenchmarkResult, QoS
from .utils import create_fixed_size_message, topic_for


class Client(Protocol):
    def publish(self, topic: str, qos: QoS, payload: str) -> bool: ...

    def subscribe(self, topic: str, qos: QoS) -> bool: ...

    def disconnect(self) -> None: ...


Connector = Callable[[str, int, BenchmarkOptions], Optional[Client]]


class Worker(threading.Thread):
    """Runs ``options.count`` sequential operations against one client."""

    def __init__(
        self,
        index: int,
        client: Client,
        action: Action,
        options: BenchmarkOptions,
        message: str,
    ) -> None:
        super().__init__(name=f"worker-{index}")
        self.index = index
        self.client = client
        self.action = action
        self.options = options
        self.message = message
        self.attempts = 0
        self.failures = 0

    def run(self) -> None:
        logger = get_logger()
        for iteration in range(self.options.count):
            topic = topic_for(self.options.topic_prefix, self.index, iteration)
            try:
                if self.action is Action.PUBLISH:
                    ok = self.client.publish(topic, self.options.qos, self.message)
                else:
                    ok = self.client.subscribe(topic, self.options.qos)
            except Exception as e:
                logger.error(f"{self.action.label} error on {topic}: {e!r}")
                ok = False
            self.attempts += 1
            if not ok:
                self.failures += 1


def disconnect_all(clients: list[Client]) -> None:
    for client in clients:
        client.disconnect()


def connect_all(options: BenchmarkOptions, connect: Connector) -> list[Client]:
    """
    Connect every client, in index order.

    Args:
        options: Run options
        connect: Factory returning a connected client or None

    Returns:
        One connected client per index

    Raises:
        ConnectionFailure: If any client fails; clients already
            connected are disconnected first
    """
    logger = get_logger()
    clients: list[Client] = []

    for index in range(options.clients):
        client = connect(options.broker, index, options)
        if client is None:
            logger.debug(f"Disconnecting {len(clients)} already connected clients")
            disconnect_all(clients)
            raise ConnectionFailure(index, options.broker)
        clients.append(client)

    logger.info(f"Connected {len(clients)} clients to {options.broker}")
    return clients


def run_workers(
    clients: list[Client],
    action: Action,
    options: BenchmarkOptions,
    message: str,
) -> tuple[float, list[Worker]]:
    """Start one worker per client and wait for all of them. Returns elapsed seconds."""
    workers = [
        Worker(index, client, action, options, message)
        for index, client in enumerate(clients)
    ]

    start = time.perf_counter()
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()
    elapsed = time.perf_counter() - start

    return elapsed, workers


def execute(
    action: Action,
    options: BenchmarkOptions,
    connect: Connector = connect_client,
) -> BenchmarkResult:
    """
    Run one benchmark: connect, operate, disconnect, report.

    Args:
        action: Publish or subscribe
        options: Validated run options
        connect: Client factory, defaults to the paho-mqtt adapter

    Returns:
        BenchmarkResult for the timed window

    Raises:
        ConnectionFailure: If any client could not connect
    """
    logger = get_logger()
    message = create_fixed_size_message(options.size)

    logger.info(
        f"Connecting {options.clients} clients to {options.broker} "
        f"({action.label.lower()}, count={options.count}, qos={int(options.qos)})"
    )
    clients = connect_all(options, connect)

    try:
        if options.settle_seconds > 0:
            logger.info(f"Waiting {options.settle_seconds:g}s for sessions to settle")
            time.sleep(options.settle_seconds)

        logger.info(f"Running {options.total_count} {action.label.lower()} operations")
        elapsed, workers = run_workers(clients, action, options, message)
    finally:
        logger.debug(f"Disconnecting {len(clients)} clients")
        disconnect_all(clients)

    failures = sum(worker.failures for worker in workers)
    if failures:
        logger.warning(f"{failures} of {options.total_count} operations failed")

    result = BenchmarkResult(
        action=action,
        broker=options.broker,
        clients=options.clients,
        count=options.count,
        total_count=options.total_count,
        duration_s=elapsed,
    )

    click.echo()
    click.echo(result.summary())
    return result


def run_benchmark(action: Action, options: BenchmarkOptions) -> BenchmarkResult:
    """Run ``execute`` and turn fatal benchmark errors into exit code 1."""
    logger = get_logger()
    logger.info(f"mqttbench v{__version__}")

    try:
        return execute(action, options)

    except MqttBenchError as e:
        logger.debug(f"Fatal: {e.message}")
        e.display()
        raise SystemExit(1)

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        raise
