"""
mqttbench: concurrent MQTT publish/subscribe load generator
"""

__version__ = "0.1.0"

from .core import execute, run_benchmark

__all__ = [
    "__version__",
    "execute",
    "run_benchmark",
]
