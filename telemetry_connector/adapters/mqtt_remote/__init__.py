"""
MQTT subscriber adapter for the telemetry connector.

This module provides the implementation of TelemetryIngestPort
for receiving telemetry from an MQTT broker.
"""

from .client_async import MqttTelemetrySubscriber

__all__ = ["MqttTelemetrySubscriber"]
