"""
SQLite telemetry store for the telemetry connector.

This module implements the Store Writer against a local SQLite file
over one persistent aiosqlite connection. It mirrors the PostgreSQL
table layout and is used for development and tests.
"""

import time
from typing import List, Optional
import aiosqlite
from telemetry_connector.core.errors import (
    ConnectError, StoreRejectedError, StoreUnavailableError,
)
from telemetry_connector.core.models import TelemetryRecord, VALUE_TYPE
from telemetry_connector.observability import metrics
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("store.sqlite")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS telemetry (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    device_id TEXT NOT NULL,
    name TEXT NOT NULL,
    value TEXT NOT NULL,
    type TEXT NOT NULL
);
"""

INSERT_SQL = "INSERT INTO telemetry (device_id, name, value, type) VALUES (?, ?, ?, ?)"

class SQLiteTelemetryStore:
    """SQLite 기반 텔레메트리 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        self.db: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self.db is not None

    async def connect(self) -> None:
        """데이터베이스를 열고 스키마를 초기화합니다."""
        db = None
        try:
            db = await aiosqlite.connect(self.path)
            await db.executescript(SCHEMA)
            await db.commit()
        except (OSError, aiosqlite.Error) as e:
            if db is not None:
                # 열린 연결은 닫아 작업 스레드를 종료
                await db.close()
            raise ConnectError("sqlite", f"{self.path}: {e}") from e
        self.db = db
        log.info(f"SQLite 텔레메트리 저장소 연결됨: {self.path}")

    async def record(self, device_id: str, measurement_name: str, value: str) -> None:
        """telemetry 테이블에 한 행을 추가합니다."""
        if self.db is None:
            raise StoreUnavailableError("SQLite 연결이 없습니다")

        started = time.perf_counter()
        try:
            await self.db.execute(INSERT_SQL, (device_id, measurement_name, value, VALUE_TYPE))
            await self.db.commit()
        except aiosqlite.Error as e:
            raise StoreRejectedError(str(e)) from e
        except ValueError as e:
            # 닫힌 연결 사용
            raise StoreUnavailableError(str(e)) from e
        finally:
            metrics.store_write_seconds.observe(time.perf_counter() - started)

    async def fetch_all(self) -> List[TelemetryRecord]:
        """
        저장된 모든 행을 삽입 순서대로 반환합니다.

        Returns:
            TelemetryRecord 목록
        """
        if self.db is None:
            raise StoreUnavailableError("SQLite 연결이 없습니다")
        cursor = await self.db.execute(
            "SELECT device_id, name, value, type FROM telemetry ORDER BY id ASC"
        )
        rows = await cursor.fetchall()
        return [TelemetryRecord(device_id=r[0], name=r[1], value=r[2], type=r[3]) for r in rows]

    async def get_count(self) -> int:
        """현재 저장된 행 수를 반환합니다."""
        if self.db is None:
            raise StoreUnavailableError("SQLite 연결이 없습니다")
        cursor = await self.db.execute("SELECT COUNT(*) FROM telemetry")
        result = await cursor.fetchone()
        return result[0] if result else 0

    async def close(self) -> None:
        """연결을 닫습니다."""
        if self.db is not None:
            await self.db.close()
            self.db = None
            log.info("SQLite 텔레메트리 저장소 종료됨")
