"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import asyncio
import tempfile
import os
from typing import List
from telemetry_connector.core.models import TelemetryMessage
from telemetry_connector.settings import Settings, BusSettings, StoreSettings


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings(
        bus=BusSettings(host="localhost", port=1883, topic="sensors/#"),
        store=StoreSettings(backend="sqlite", sqlite_path=":memory:"),
    )
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    return settings


@pytest.fixture
async def sqlite_store(temp_db_path):
    """연결된 SQLite 텔레메트리 저장소"""
    from telemetry_connector.adapters.storage.sqlite_telemetry import SQLiteTelemetryStore
    store = SQLiteTelemetryStore(temp_db_path)
    await store.connect()
    yield store
    await store.close()


class ListIngest:
    """정해진 메시지 목록을 순서대로 내보내는 수집 포트"""

    def __init__(self, messages: List[TelemetryMessage]):
        self.messages = list(messages)
        self.stopped = False

    async def recv(self):
        for message in self.messages:
            yield message
            await asyncio.sleep(0)

    async def stop(self):
        self.stopped = True


@pytest.fixture
def make_ingest():
    """(topic, payload) 목록으로 수집 포트를 만듭니다."""
    def _make(*pairs):
        return ListIngest([TelemetryMessage(topic=t, payload=p) for t, p in pairs])
    return _make


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 통합 테스트 마커 추가
        if "integration" in item.name:
            item.add_marker(pytest.mark.integration)
