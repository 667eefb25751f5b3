"""
Core domain models for the telemetry connector.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

from typing import Literal
from pydantic import BaseModel, ConfigDict

# 현재 저장되는 값 타입은 항상 integer
ValueType = Literal["integer"]
VALUE_TYPE: ValueType = "integer"


class TelemetryMessage(BaseModel):
    """브로커에서 수신한 원시 텔레메트리 메시지"""
    topic: str
    payload: str

    @classmethod
    def from_bytes(cls, topic: str, payload: bytes | bytearray | str | None) -> "TelemetryMessage":
        """
        바이트 페이로드로부터 메시지를 생성합니다.

        디코딩할 수 없는 바이트는 대체 문자로 바뀝니다.
        """
        if payload is None:
            text = ""
        elif isinstance(payload, (bytes, bytearray)):
            text = bytes(payload).decode("utf-8", errors="replace")
        else:
            text = str(payload)
        return cls(topic=topic, payload=text)


class TopicAddress(BaseModel):
    """토픽에서 해석한 엔티티 식별자"""
    model_config = ConfigDict(frozen=True)

    device_id: str
    measurement_name: str


class TelemetryRecord(BaseModel):
    """telemetry 테이블의 한 행"""
    device_id: str
    name: str
    value: str
    type: ValueType = VALUE_TYPE
