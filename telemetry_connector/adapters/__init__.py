"""
Adapters for the telemetry connector.

This module contains the concrete implementations of port interfaces
that handle external I/O: the MQTT subscriber and publisher, and the
relational stores.
"""

from .storage import PostgresTelemetryStore, SQLiteTelemetryStore, SQLiteDeadLetter
from .mqtt_remote.client_async import MqttTelemetrySubscriber
from .mqtt_local.publisher_async import SyntheticPublisher

__all__ = [
    "PostgresTelemetryStore", "SQLiteTelemetryStore", "SQLiteDeadLetter",
    "MqttTelemetrySubscriber", "SyntheticPublisher",
]
