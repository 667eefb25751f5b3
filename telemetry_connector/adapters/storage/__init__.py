"""
Storage adapters for the telemetry connector.

This module contains the Store Writer implementations (PostgreSQL and
SQLite) and the SQLite dead-letter sink.
"""

from .postgres_telemetry import PostgresTelemetryStore
from .sqlite_telemetry import SQLiteTelemetryStore
from .sqlite_deadletter import SQLiteDeadLetter, DeadLetterItem

__all__ = ["PostgresTelemetryStore", "SQLiteTelemetryStore", "SQLiteDeadLetter", "DeadLetterItem"]
