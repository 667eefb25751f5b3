"""
Telemetry store port interface.

This module defines the protocol for persisting telemetry rows.
"""

from typing import Protocol


class TelemetryStorePort(Protocol):
    """텔레메트리 저장소 포트 인터페이스"""

    @property
    def is_connected(self) -> bool:
        ...

    async def connect(self) -> None:
        """
        저장소에 연결합니다.

        Raises:
            ConnectError: 연결할 수 없는 경우
        """
        ...

    async def record(self, device_id: str, measurement_name: str, value: str) -> None:
        """
        텔레메트리 한 행을 추가합니다.

        Args:
            device_id: 장치 ID
            measurement_name: 측정값 이름
            value: 원시 페이로드 문자열

        Raises:
            StoreUnavailableError: 연결이 끊긴 경우
            StoreRejectedError: 저장소가 쓰기를 거부한 경우
        """
        ...

    async def close(self) -> None:
        """연결을 닫습니다."""
        ...
