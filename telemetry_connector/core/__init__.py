"""
Core domain models and pure functions for the telemetry connector.

This module contains the domain models and pure logic that are
independent of external I/O and infrastructure concerns.
"""

from .models import TelemetryMessage, TopicAddress, TelemetryRecord, VALUE_TYPE
from .topic import decode, encode, subscription_filter
from .counters import next_readings, DEFAULT_MEASUREMENTS
from .errors import (
    ConnectorError, ConfigError, ConnectError, BusError,
    TopicError, MalformedTopicError,
    StoreError, StoreUnavailableError, StoreRejectedError,
)

__all__ = [
    "TelemetryMessage", "TopicAddress", "TelemetryRecord", "VALUE_TYPE",
    "decode", "encode", "subscription_filter",
    "next_readings", "DEFAULT_MEASUREMENTS",
    "ConnectorError", "ConfigError", "ConnectError", "BusError",
    "TopicError", "MalformedTopicError",
    "StoreError", "StoreUnavailableError", "StoreRejectedError",
]
