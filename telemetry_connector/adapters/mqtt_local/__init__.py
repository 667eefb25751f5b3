"""
Synthetic MQTT publisher adapter for the telemetry connector.

This module provides the synthetic telemetry generator used to
validate the pipeline end-to-end.
"""

from .publisher_async import SyntheticPublisher

__all__ = ["SyntheticPublisher"]
