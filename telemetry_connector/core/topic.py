"""
Topic codec for the telemetry connector.

Topics follow ``<root>/<device_id>/<measurement_name>``. Decoding is pure
and performs no validation of identifier content.
"""

from .errors import MalformedTopicError
from .models import TopicAddress

SEPARATOR = "/"
MIN_SEGMENTS = 3
WILDCARDS = ("+", "#")


def decode(topic: str) -> TopicAddress:
    """
    토픽을 (device_id, measurement_name)으로 해석합니다.

    Args:
        topic: 수신한 MQTT 토픽

    Returns:
        TopicAddress

    Raises:
        MalformedTopicError: 세그먼트가 3개 미만인 경우
    """
    segments = topic.split(SEPARATOR)
    if len(segments) < MIN_SEGMENTS:
        raise MalformedTopicError(topic)
    return TopicAddress(device_id=segments[1], measurement_name=segments[2])


def encode(root: str, device_id: str, measurement_name: str) -> str:
    """발행용 토픽 문자열을 만듭니다."""
    return SEPARATOR.join((root.rstrip(SEPARATOR), device_id, measurement_name))


def subscription_filter(root: str) -> str:
    """
    구독 필터를 결정합니다.

    와일드카드가 이미 있으면 그대로 사용하고, 루트 토픽만 주어지면
    ``<root>/+/+``로 확장합니다.
    """
    if any(w in root for w in WILDCARDS):
        return root
    return f"{root.rstrip(SEPARATOR)}/+/+"
