"""
Ingestion loop for the telemetry connector.

This module drains the subscriber's message stream, decodes each topic
and forwards the payload to the store. Messages are processed strictly
one at a time.
"""

import enum
from typing import Dict, Optional
from telemetry_connector.core import topic as topic_codec
from telemetry_connector.core.errors import StoreError, TopicError
from telemetry_connector.core.models import TelemetryMessage
from telemetry_connector.observability import metrics
from telemetry_connector.observability.logging_setup import get_logger
from telemetry_connector.ports.deadletter import DeadLetterPort
from telemetry_connector.ports.ingest import TelemetryIngestPort
from telemetry_connector.ports.store import TelemetryStorePort

log = get_logger("ingestion")

# dead-letter 실패 단계
STAGE_DECODE = "decode"
STAGE_STORE = "store"

class LoopState(str, enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"

class WriteFailurePolicy(str, enum.Enum):
    RECOVER = "recover"   # 로그 + dead-letter 후 계속
    FATAL = "fatal"       # 루프 중지, 예외 전파

class IngestionLoop:
    """수집 → 토픽 해석 → 저장 파이프라인"""

    def __init__(self,
                 ingest: TelemetryIngestPort,
                 store: TelemetryStorePort,
                 *,
                 write_failure_policy: WriteFailurePolicy = WriteFailurePolicy.RECOVER,
                 dead_letter: Optional[DeadLetterPort] = None):
        """
        초기화합니다.

        Args:
            ingest: 텔레메트리 수집 포트
            store: 텔레메트리 저장소 포트
            write_failure_policy: 저장 실패 시 정책
            dead_letter: 실패 메시지 저장소 (선택)
        """
        self.ingest = ingest
        self.store = store
        self.policy = WriteFailurePolicy(write_failure_policy)
        self.dead_letter = dead_letter
        self.state = LoopState.STOPPED

        self.received = 0
        self.stored = 0
        self.decode_failed = 0
        self.store_failed = 0

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    async def start(self) -> None:
        """
        루프를 시작합니다.

        버스가 종료되거나 FATAL 정책에서 저장이 실패하면 STOPPED로 전환됩니다.

        Raises:
            BusError: 버스 전송이 복구 불가능하게 끊긴 경우
            StoreError: FATAL 정책에서 저장이 실패한 경우
        """
        self._set_state(LoopState.RUNNING)
        log.info(f"수집 루프 시작 (write_failure_policy={self.policy.value})")
        try:
            async for message in self.ingest.recv():
                if not self.running:
                    break
                await self.handle(message)
        finally:
            self._set_state(LoopState.STOPPED)
            log.info(f"수집 루프 종료: {self.stats()}")

    async def handle(self, message: TelemetryMessage) -> bool:
        """
        메시지 하나를 처리합니다.

        Returns:
            저장에 성공하면 True
        """
        self.received += 1
        metrics.messages_received.inc()
        log.debug(f"수신: topic={message.topic} payload={message.payload}")

        try:
            address = topic_codec.decode(message.topic)
        except TopicError as e:
            self.decode_failed += 1
            metrics.decode_failures.inc()
            log.warning(f"토픽 해석 실패: topic={message.topic!r} payload={message.payload!r} reason={e.reason}")
            await self._dead_letter(message, STAGE_DECODE, str(e))
            return False

        try:
            await self.store.record(address.device_id, address.measurement_name, message.payload)
        except StoreError as e:
            self.store_failed += 1
            metrics.store_failures.labels(kind=e.kind).inc()
            log.error(
                f"저장 실패({e.kind}): topic={message.topic!r} payload={message.payload!r} "
                f"device_id={address.device_id!r} name={address.measurement_name!r} error={e}"
            )
            await self._dead_letter(message, STAGE_STORE, str(e))
            if self.policy is WriteFailurePolicy.FATAL:
                self._set_state(LoopState.STOPPED)
                raise
            return False

        self.stored += 1
        metrics.rows_written.inc()
        log.info(f"저장 완료: device_id={address.device_id} name={address.measurement_name} value={message.payload}")
        return True

    async def replay_dead_letters(self, limit: int = 100) -> int:
        """
        Dead-letter 항목을 다시 처리합니다.

        저장 단계에서 실패한 항목만 대상으로 합니다. 토픽 해석 실패 항목은
        다시 처리해도 성공할 수 없으므로 조회용으로만 남겨 둡니다.
        성공한 항목은 삭제하고, 실패한 항목은 시도 횟수만 증가시킵니다.
        재처리 중 새 dead-letter는 만들지 않습니다.

        Returns:
            재처리에 성공한 항목 수
        """
        if self.dead_letter is None:
            return 0

        sink, self.dead_letter = self.dead_letter, None
        replayed = 0
        try:
            for item in await sink.pending(limit, stage=STAGE_STORE):
                try:
                    ok = await self.handle(item.to_message())
                except StoreError:
                    await sink.mark_attempt(item.id)
                    raise
                if ok:
                    await sink.delete(item.id)
                    replayed += 1
                else:
                    await sink.mark_attempt(item.id)
        finally:
            self.dead_letter = sink
        log.info(f"dead-letter 재처리 완료: {replayed}건 성공")
        return replayed

    async def stop(self) -> None:
        """루프를 중지하고 수집을 종료합니다."""
        self._set_state(LoopState.STOPPED)
        await self.ingest.stop()

    def stats(self) -> Dict[str, int]:
        return {
            "received": self.received,
            "stored": self.stored,
            "decode_failed": self.decode_failed,
            "store_failed": self.store_failed,
        }

    def _set_state(self, state: LoopState) -> None:
        self.state = state
        metrics.loop_running.set(1 if state is LoopState.RUNNING else 0)

    async def _dead_letter(self, message: TelemetryMessage, stage: str, reason: str) -> None:
        if self.dead_letter is None:
            return
        try:
            await self.dead_letter.put(message, stage, reason)
            metrics.dead_letters.labels(stage=stage).inc()
        except Exception as e:
            log.error(f"dead-letter 저장 실패: topic={message.topic!r} error={e}")
