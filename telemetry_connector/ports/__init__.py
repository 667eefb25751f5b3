"""
Port interfaces for the telemetry connector.

This module defines the port interfaces (Protocols) that define
the contracts between the ingestion loop and external adapters.
"""

from .ingest import TelemetryIngestPort
from .store import TelemetryStorePort
from .deadletter import DeadLetterPort

__all__ = ["TelemetryIngestPort", "TelemetryStorePort", "DeadLetterPort"]
