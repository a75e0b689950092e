"""Shared fixtures: an in-memory client standing in for the broker."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import pytest

from mqttbench.models import BenchmarkOptions


class FakeClient:
    """
    Records every call; ``fail_iterations`` makes those calls return False
    and ``raise_iterations`` makes them raise KeyError.
    """

    def __init__(
        self,
        broker: str,
        index: int,
        fail_iterations: frozenset[int] = frozenset(),
        raise_iterations: frozenset[int] = frozenset(),
        delay: float = 0.0,
        events: Optional[list] = None,
    ):
        self.broker = broker
        self.index = index
        self.fail_iterations = fail_iterations
        self.raise_iterations = raise_iterations
        self.delay = delay
        self.events = events if events is not None else []
        self.published: list[tuple[str, int, str]] = []
        self.subscribed: list[tuple[str, int]] = []
        self.disconnects = 0
        self.threads: set[str] = set()

    def _operate(self, calls: list, call: tuple) -> bool:
        self.threads.add(threading.current_thread().name)
        if self.delay:
            time.sleep(self.delay)
        calls.append(call)
        iteration = len(calls) - 1
        self.events.append((self.index, "operation", iteration))
        if iteration in self.raise_iterations:
            raise KeyError(call[0])
        return iteration not in self.fail_iterations

    def publish(self, topic, qos, payload) -> bool:
        return self._operate(self.published, (topic, int(qos), payload))

    def subscribe(self, topic, qos) -> bool:
        return self._operate(self.subscribed, (topic, int(qos)))

    def disconnect(self) -> None:
        self.events.append((self.index, "disconnect", None))
        self.disconnects += 1


class FakeConnector:
    """Connect callable for ``execute``; fails for the indices in ``fail_at``."""

    def __init__(
        self,
        fail_at: frozenset[int] = frozenset(),
        fail_iterations=None,
        raise_iterations=None,
        delay: float = 0.0,
    ):
        self.fail_at = fail_at
        self.fail_iterations = fail_iterations or {}
        self.raise_iterations = raise_iterations or {}
        self.delay = delay
        self.attempts: list[int] = []
        self.clients: list[FakeClient] = []
        # Shared across clients, in the order calls happened
        self.events: list[tuple[int, str, Optional[int]]] = []

    def __call__(self, broker: str, index: int, options: BenchmarkOptions) -> Optional[FakeClient]:
        self.attempts.append(index)
        if index in self.fail_at:
            return None
        client = FakeClient(
            broker,
            index,
            frozenset(self.fail_iterations.get(index, ())),
            frozenset(self.raise_iterations.get(index, ())),
            delay=self.delay,
            events=self.events,
        )
        self.clients.append(client)
        return client

    @property
    def operations(self) -> int:
        return sum(len(c.published) + len(c.subscribed) for c in self.clients)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def options() -> BenchmarkOptions:
    return BenchmarkOptions(
        broker="tcp://localhost:1883",
        clients=2,
        count=5,
        size=0,
        settle_seconds=0,
    )


@pytest.fixture(autouse=True)
def _reset_logger():
    """Drop handlers bound to a previous test's captured stdout."""
    yield
    logging.getLogger("mqttbench").handlers.clear()
