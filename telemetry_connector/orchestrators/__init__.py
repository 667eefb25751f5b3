"""
Orchestrators for the telemetry connector.

This module contains the ingestion loop that coordinates
the flow between ports and adapters.
"""
from .ingestion import IngestionLoop, LoopState, WriteFailurePolicy

__all__ = ["IngestionLoop", "LoopState", "WriteFailurePolicy"]
