"""
Synthetic telemetry publisher for the telemetry connector.

This module publishes one message per measurement for a single device on
a fixed interval, using the same topic scheme the connector decodes.
"""

import asyncio
from typing import Dict, Mapping, Optional
from aiomqtt import Client, MqttError
from telemetry_connector.common.retry import retry_with_backoff
from telemetry_connector.core.counters import DEFAULT_MEASUREMENTS, WRAP_AT, next_readings
from telemetry_connector.core.topic import encode
from telemetry_connector.observability import metrics
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("simulator")

class SyntheticPublisher:
    """합성 텔레메트리 발행기"""

    def __init__(self,
                 *,
                 broker_host: str,
                 broker_port: int,
                 topic_root: str,
                 device_id: str,
                 measurements: Optional[Mapping[str, int]] = None,
                 client_id: str | None = "mqtt_simulator",
                 keepalive: int = 20,
                 qos: int = 1,
                 interval_sec: float = 10.0,
                 wrap_at: int = WRAP_AT,
                 backoff_initial: float = 1.0,
                 backoff_max: float = 30.0,
                 max_connect_retries: int = 10):
        """
        초기화합니다.

        Args:
            broker_host: MQTT 브로커 호스트
            broker_port: MQTT 브로커 포트
            topic_root: 토픽 루트
            device_id: 발행할 장치 ID
            measurements: 측정값 이름별 초기 카운터
            client_id: 클라이언트 ID
            keepalive: keepalive 시간
            qos: 발행 QoS
            interval_sec: 발행 주기 (초)
            wrap_at: 카운터 초기화 기준값
            backoff_initial: 재연결 초기 백오프 시간
            backoff_max: 재연결 최대 백오프 시간
            max_connect_retries: 연결 최대 재시도 횟수
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.topic_root = topic_root.rstrip("/")
        self.device_id = device_id
        self.state: Dict[str, int] = dict(measurements if measurements is not None else DEFAULT_MEASUREMENTS)
        self.client_id = client_id
        self.keepalive = keepalive
        self.qos = qos
        self.interval_sec = interval_sec
        self.wrap_at = wrap_at
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.max_connect_retries = max_connect_retries

        self.last_round_failures = 0
        self._running = False

    def _make_client(self) -> Client:
        return Client(
            hostname=self.broker_host,
            port=self.broker_port,
            identifier=self.client_id,
            keepalive=self.keepalive,
        )

    async def publish_round(self, client: Client, state: Mapping[str, int]) -> Dict[str, int]:
        """
        측정값마다 메시지 하나씩 발행합니다.

        Args:
            client: 연결된 MQTT 클라이언트
            state: 현재 카운터 상태

        Returns:
            다음 라운드 상태
        """
        readings, new_state = next_readings(state, self.wrap_at)
        self.last_round_failures = 0
        for name, value in readings.items():
            topic = encode(self.topic_root, self.device_id, name)
            try:
                await client.publish(topic, str(value), qos=self.qos)
                metrics.published.labels(measurement=name).inc()
                log.debug(f"발행: {topic} = {value}")
            except MqttError as e:
                self.last_round_failures += 1
                log.error(f"{name} 메시지 발행 실패: {e}")
        return new_state

    async def _run_connected(self) -> None:
        async with self._make_client() as client:
            log.info(f"시뮬레이터 연결됨: {self.broker_host}:{self.broker_port}, 토픽 '{self.topic_root}/{self.device_id}/+'")
            try:
                while self._running:
                    self.state = await self.publish_round(client, self.state)
                    if self.state and self.last_round_failures == len(self.state):
                        raise MqttError("라운드의 모든 발행이 실패함")
                    await asyncio.sleep(self.interval_sec)
            except MqttError as e:
                # 연결 이후의 끊김은 재시도 횟수에 포함하지 않고 바로 재연결
                log.warning(f"시뮬레이터 연결 끊김: {e}")

    async def start(self) -> None:
        """발행 루프를 시작합니다. 연결이 끊기면 백오프 후 다시 연결합니다."""
        self._running = True
        while self._running:
            await retry_with_backoff(
                self._run_connected,
                max_retries=self.max_connect_retries,
                base_delay=self.backoff_initial,
                max_delay=self.backoff_max,
                retry_on=(MqttError,),
                operation_name="시뮬레이터 MQTT 연결",
            )

    async def stop(self) -> None:
        """발행을 중지합니다."""
        self._running = False
        log.info("시뮬레이터 중지 요청됨")
