"""
Dead-letter port interface.

This module defines the protocol for keeping messages that could not be
decoded or stored.
"""

from typing import List, Optional, Protocol
from telemetry_connector.core.models import TelemetryMessage


class DeadLetterPort(Protocol):
    """처리 실패 메시지 저장소 포트 인터페이스"""

    async def put(self, message: TelemetryMessage, stage: str, reason: str) -> int:
        """
        실패한 메시지를 저장합니다.

        Args:
            message: 원시 메시지
            stage: 실패 단계 ("decode" 또는 "store")
            reason: 실패 사유

        Returns:
            생성된 항목의 ID
        """
        ...

    async def pending(self, limit: int = 100, stage: Optional[str] = None) -> List:
        """
        오래된 순서로 항목을 조회합니다.

        Args:
            limit: 최대 조회 건수
            stage: 지정하면 해당 실패 단계의 항목만 조회
        """
        ...

    async def delete(self, item_id: int) -> None:
        ...

    async def mark_attempt(self, item_id: int) -> None:
        ...
