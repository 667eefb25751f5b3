"""
HTTP endpoints for telemetry connector observability.

This module implements health, readiness, metrics, and info endpoints
for monitoring and operational visibility.
"""

from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from telemetry_connector.settings import Settings
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("http")

def create_app(settings: Settings, loop=None, subscriber=None) -> FastAPI:
    """
    FastAPI 애플리케이션을 생성합니다.

    Args:
        settings: 커넥터 설정
        loop: IngestionLoop (레디니스 판단용, 선택)
        subscriber: MqttTelemetrySubscriber (레디니스 판단용, 선택)
    """
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="MQTT telemetry ingestion connector"
    )

    start_time = time.time()

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (루프 동작 중 + 브로커 연결됨)"""
        loop_running = bool(loop is not None and loop.running)
        bus_connected = bool(subscriber is not None and subscriber.connected)
        body = {
            "status": "ready" if loop_running and bus_connected else "not_ready",
            "service": settings.observability.service_name,
            "loop_running": loop_running,
            "bus_connected": bus_connected,
            "timestamp": time.time()
        }
        return JSONResponse(body, status_code=200 if body["status"] == "ready" else 503)

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        return Response(
            generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        body = {
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level,
            "store_backend": settings.store.backend,
            "topic": settings.bus.topic,
            "write_failure_policy": settings.reliability.write_failure_policy,
        }
        if loop is not None:
            body["stats"] = loop.stats()
        return JSONResponse(body)

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info"
            }
        })

    return app
