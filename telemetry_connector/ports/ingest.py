"""
Telemetry ingestion port interface.

This module defines the protocol for receiving telemetry messages.
"""

from typing import AsyncIterator, Protocol
from telemetry_connector.core.models import TelemetryMessage


class TelemetryIngestPort(Protocol):
    """텔레메트리 수집 포트 인터페이스"""

    def recv(self) -> AsyncIterator[TelemetryMessage]:
        """
        수신한 메시지를 도착 순서대로 비동기적으로 반환합니다.

        Yields:
            TelemetryMessage
        """
        ...

    async def stop(self) -> None:
        """수신을 중지합니다."""
        ...
