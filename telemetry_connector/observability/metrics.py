"""
Metrics definitions for the telemetry connector.

This module defines Prometheus metrics for monitoring
the ingestion pipeline and the synthetic publisher.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
messages_received = Counter(
    "telemetry_messages_received_total",
    "Number of telemetry messages received from the bus"
)

rows_written = Counter(
    "telemetry_rows_written_total",
    "Number of telemetry rows inserted into the store"
)

decode_failures = Counter(
    "telemetry_decode_failures_total",
    "Number of messages whose topic could not be decoded"
)

store_failures = Counter(
    "telemetry_store_failures_total",
    "Number of failed store writes",
    ["kind"]
)

dead_letters = Counter(
    "telemetry_dead_letters_total",
    "Messages written to the dead-letter sink",
    ["stage"]
)

reconnects = Counter(
    "bus_reconnects_total",
    "MQTT subscriber reconnects"
)

published = Counter(
    "simulator_messages_published_total",
    "Synthetic telemetry messages published",
    ["measurement"]
)

# 히스토그램 메트릭
store_write_seconds = Histogram(
    "store_write_duration_seconds",
    "Time spent on a single store INSERT",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# 게이지 메트릭
loop_running = Gauge(
    "ingestion_loop_running",
    "1 while the ingestion loop is in the running state"
)
