# telemetry_connector/simulate.py
import os, sys, asyncio, signal, contextlib
from aiomqtt import MqttError
from telemetry_connector.settings import build_simulator_settings
from telemetry_connector.core.errors import ConnectorError
from telemetry_connector.observability.logging_setup import setup_logging, get_logger
from telemetry_connector.adapters.mqtt_local.publisher_async import SyntheticPublisher

log = get_logger("simulator")

async def main() -> None:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"), os.getenv("LOG_FORMAT", "dev").lower())
    s = build_simulator_settings()

    publisher = SyntheticPublisher(
        broker_host=s.host,
        broker_port=s.port,
        topic_root=s.topic,
        device_id=s.device_id,
        measurements=s.measurements,
        client_id=s.client_id,
        keepalive=s.keepalive,
        qos=s.qos,
        interval_sec=s.interval_sec,
        wrap_at=s.wrap_at,
        backoff_initial=s.backoff_initial_sec,
        backoff_max=s.backoff_max_sec,
    )
    log.info(f"'{s.topic}/{s.device_id}/<measurement>' 토픽으로 {sorted(s.measurements)} 발행 시작")

    stop = asyncio.get_running_loop().create_future()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
        except NotImplementedError: pass

    task = asyncio.create_task(publisher.start())
    done, _ = await asyncio.wait({stop, task}, return_when=asyncio.FIRST_COMPLETED)
    if task in done:
        task.result()
    else:
        await publisher.stop()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

def run() -> None:
    """콘솔 스크립트 진입점."""
    try:
        asyncio.run(main())
    except (ConnectorError, MqttError) as e:
        log.critical(f"시뮬레이터 종료: {type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    run()
