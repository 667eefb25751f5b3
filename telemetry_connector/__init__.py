"""
telemetry-connector.

MQTT telemetry ingestion into a relational store, plus a synthetic
telemetry publisher for end-to-end checks.
"""

__version__ = "0.1.0"
