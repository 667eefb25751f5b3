# telemetry_connector/main.py
import os, sys, asyncio, signal, contextlib
from typing import Optional
import uvicorn
from telemetry_connector.settings import Settings, build_settings
from telemetry_connector.core.errors import ConnectorError
from telemetry_connector.observability.health import create_app
from telemetry_connector.observability.logging_setup import setup_logging, get_logger
from telemetry_connector.adapters.mqtt_remote.client_async import MqttTelemetrySubscriber
from telemetry_connector.adapters.storage import PostgresTelemetryStore, SQLiteTelemetryStore, SQLiteDeadLetter
from telemetry_connector.orchestrators import IngestionLoop, WriteFailurePolicy

log = get_logger()

def build_store(s: Settings):
    if s.store.backend == "sqlite":
        return SQLiteTelemetryStore(s.store.sqlite_path)
    return PostgresTelemetryStore(
        host=s.store.host,
        port=s.store.port,
        user=s.store.user,
        password=s.store.password,
        database=s.store.database,
        connect_timeout=s.store.connect_timeout,
        command_timeout=s.store.command_timeout,
    )

def build_subscriber(s: Settings) -> MqttTelemetrySubscriber:
    return MqttTelemetrySubscriber(
        host=s.bus.host,
        port=s.bus.port,
        topic=s.bus.topic,
        client_id=s.bus.client_id,
        keepalive=s.bus.keepalive,
        clean_session=s.bus.clean_session,
        qos=s.bus.qos,
        connect_timeout=s.bus.connect_timeout,
        prefetch=s.bus.prefetch,
        reconnect=s.bus.reconnect,
        backoff_initial=s.bus.backoff_initial_sec,
        backoff_max=s.bus.backoff_max_sec,
    )

async def start_http(settings: Settings, loop: IngestionLoop, subscriber) -> Optional[asyncio.Task]:
    if not settings.observability.metrics_enabled: return None
    app = create_app(settings, loop=loop, subscriber=subscriber)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="warning")
    ).serve())

def _install_signal_handlers(stop: asyncio.Future) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
        except NotImplementedError: pass

async def main() -> None:
    # 로거 초기화 (설정 로드 전이므로 환경변수 직접 사용)
    setup_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FORMAT", "dev").lower())

    s = build_settings()
    log.info("설정 로드 완료")

    # 저장소 연결 (실패 시 ConnectError로 즉시 종료)
    store = build_store(s)
    await store.connect()

    dead_letter = None
    if s.reliability.dead_letter_path:
        dead_letter = SQLiteDeadLetter(s.reliability.dead_letter_path); await dead_letter.init()

    subscriber = build_subscriber(s)
    ingestion = IngestionLoop(
        subscriber,
        store,
        write_failure_policy=WriteFailurePolicy(s.reliability.write_failure_policy),
        dead_letter=dead_letter,
    )
    log.info("수집 루프 생성 완료")

    http_task = None
    try:
        if dead_letter is not None and s.reliability.dead_letter_replay_on_start:
            await ingestion.replay_dead_letters()

        http_task = await start_http(s, ingestion, subscriber)
        if http_task:
            log.info(f"HTTP 서버 시작됨 port:{s.observability.http_port}")

        stop = asyncio.get_running_loop().create_future()
        _install_signal_handlers(stop)

        loop_task = asyncio.create_task(ingestion.start())
        done, _ = await asyncio.wait({stop, loop_task}, return_when=asyncio.FIRST_COMPLETED)
        if loop_task in done:
            loop_task.result()
            log.warning("메시지 스트림이 종료되었습니다")
        else:
            log.info("종료 신호 수신, 구독 해제 중")
            await ingestion.stop()
            loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await loop_task
    finally:
        if http_task: http_task.cancel()
        await store.close()

def run() -> None:
    """콘솔 스크립트 진입점. 시작 실패는 0이 아닌 종료 코드로 끝납니다."""
    try:
        asyncio.run(main())
    except ConnectorError as e:
        log.critical(f"치명적 오류로 종료: {type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    run()
