"""
Error taxonomy for the telemetry connector.

Startup errors (ConfigError, ConnectError) are fatal; per-message errors
(TopicError, StoreError) are handled by the ingestion loop according to
its write failure policy.
"""


class ConnectorError(Exception):
    """커넥터 예외의 공통 기반 클래스"""


class ConfigError(ConnectorError):
    """환경 설정 누락 또는 잘못된 값"""


class ConnectError(ConnectorError):
    """시작 시 버스 또는 저장소에 연결할 수 없음"""

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"{target} 연결 실패: {reason}")


class BusError(ConnectorError):
    """시작 이후 복구할 수 없는 버스 전송 오류"""


class TopicError(ConnectorError):
    """토픽을 TopicAddress로 해석할 수 없음"""

    def __init__(self, topic: str, reason: str):
        self.topic = topic
        self.reason = reason
        super().__init__(f"{reason}: {topic!r}")


class MalformedTopicError(TopicError):
    """'/' 세그먼트가 3개 미만인 토픽"""

    def __init__(self, topic: str):
        super().__init__(topic, "malformed topic (expected <root>/<device>/<measurement>)")


class StoreError(ConnectorError):
    """저장소 쓰기 실패"""

    kind = "error"


class StoreUnavailableError(StoreError):
    """연결이 끊겼거나 전송 계층 오류"""

    kind = "unavailable"


class StoreRejectedError(StoreError):
    """저장소가 쓰기를 거부함 (제약 조건, SQL 오류 등)"""

    kind = "rejected"
