import asyncio
from contextlib import AsyncExitStack
from typing import AsyncIterator, Optional
from aiomqtt import Client, MqttError

from telemetry_connector.common.retry import backoff_delay
from telemetry_connector.core.errors import BusError, ConnectError
from telemetry_connector.core.models import TelemetryMessage
from telemetry_connector.core.topic import subscription_filter
from telemetry_connector.observability import metrics
from telemetry_connector.observability.logging_setup import get_logger
log = get_logger("mqtt.subscriber")

class MqttTelemetrySubscriber:
    """MQTT 텔레메트리 구독 어댑터

    최초 연결 실패는 ConnectError로 즉시 전달합니다. 이후 연결이 끊기면
    reconnect=True일 때 백오프 후 재연결/재구독하고, False이면 BusError를 던집니다.
    """

    def __init__(
        self,
        host: str,
        port: int,
        topic: str,
        *,
        client_id: str | None = "mqtt_connector",
        keepalive: int = 20,
        clean_session: bool = True,
        qos: int = 1,
        connect_timeout: float = 10.0,
        prefetch: int = 0,
        reconnect: bool = True,
        backoff_initial: float = 1.0,
        backoff_max: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.topic = subscription_filter(topic)
        self.client_id = client_id
        self.keepalive = keepalive
        self.clean_session = clean_session
        self.qos = qos
        self.connect_timeout = connect_timeout
        self.prefetch = prefetch
        self.reconnect = reconnect
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max

        self.client: Client | None = None
        self._running = False
        self._ever_connected = False

    @property
    def connected(self) -> bool:
        return self.client is not None

    def _make_client(self) -> Client:
        return Client(
            hostname=self.host,
            port=self.port,
            identifier=self.client_id,
            keepalive=self.keepalive,
            clean_session=self.clean_session,
            timeout=self.connect_timeout,
            max_queued_incoming_messages=self.prefetch or None,
        )

    async def _open(self, stack: AsyncExitStack) -> Client:
        """브로커에 연결하고 구독합니다. 두 단계 모두 connect_timeout으로 제한됩니다."""
        client = await asyncio.wait_for(
            stack.enter_async_context(self._make_client()),
            timeout=self.connect_timeout,
        )
        log.info(f"MQTT 브로커 연결됨: {self.host}:{self.port}")
        await asyncio.wait_for(client.subscribe(self.topic, qos=self.qos), timeout=self.connect_timeout)
        log.info(f"토픽 구독됨: {self.topic} (qos={self.qos})")
        return client

    async def recv(self) -> AsyncIterator[TelemetryMessage]:
        self._running = True
        attempt = 0
        while self._running:
            try:
                async with AsyncExitStack() as stack:
                    self.client = await self._open(stack)
                    self._ever_connected = True
                    attempt = 0

                    async for message in self.client.messages:
                        if not self._running:
                            break
                        yield TelemetryMessage.from_bytes(str(message.topic), message.payload)

                    if self._running:
                        raise MqttError("메시지 스트림이 종료됨")

            except (MqttError, asyncio.TimeoutError) as e:
                reason = str(e) or type(e).__name__
                if not self._ever_connected:
                    raise ConnectError("mqtt", f"{self.host}:{self.port}: {reason}") from e
                if not self.reconnect:
                    raise BusError(f"MQTT 연결 끊김: {reason}") from e

                attempt += 1
                metrics.reconnects.inc()
                delay = backoff_delay(attempt, self.backoff_initial, self.backoff_max)
                log.warning(f"MQTT 연결 끊김: {reason}. {delay:.1f}초 후 재연결 (시도 {attempt})")
                self.client = None
                await asyncio.sleep(delay)
            finally:
                self.client = None

    async def stop(self) -> None:
        """수신 루프를 종료합니다. 다음 메시지 또는 태스크 취소 시점에 연결이 해제됩니다."""
        self._running = False
        log.info("MQTT 구독 종료 요청됨")
