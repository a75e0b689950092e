"""
Error handling
"""
from typing import Optional

import click


class MqttBenchError(Exception):
    """Base exception for mqttbench errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(self.message)

    def display(self):
        """Display formatted error message."""
        click.secho(f"[ERROR] {self.message}", fg="red", bold=True)
        if self.hint:
            click.secho(f"  Hint: {self.hint}", fg="yellow")


class ConfigurationError(MqttBenchError):
    """Raised when a command line option or profile value is invalid."""

    def __init__(self, flag: str, value, hint: Optional[str] = None):
        self.flag = flag
        self.value = value
        super().__init__(f"Invalid argument : -{flag} -> {value}", hint)


class ProfileError(ConfigurationError):
    """Raised when a benchmark profile cannot be loaded."""

    def __init__(self, path, reason: str):
        super().__init__(
            "config",
            path,
            f"{reason}. The profile must be a YAML mapping with a 'benchmark' section.",
        )


class ConnectionFailure(MqttBenchError):
    """Raised when a client cannot connect and the run is aborted."""

    def __init__(self, client_index: int, broker: str):
        self.client_index = client_index
        self.broker = broker
        # The adapter already logged the cause, keep this to one line
        super().__init__(
            f"Client {client_index} could not connect to {broker}, benchmark aborted"
        )


BROKER_HINT = "Use a URI such as tcp://localhost:1883"
ACTION_HINT = "Use p/pub/publish or s/sub/subscribe"
