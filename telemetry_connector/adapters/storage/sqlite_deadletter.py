"""
SQLite-based dead-letter sink for the telemetry connector.

Messages that could not be decoded or stored are kept here together
with the failure stage and reason, so they can be replayed or
inspected later.
"""

import aiosqlite
import time
from dataclasses import dataclass
from typing import List, Optional
from telemetry_connector.core.models import TelemetryMessage
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("deadletter")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS dead_letter (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    payload TEXT NOT NULL,
    stage TEXT NOT NULL,
    reason TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_dead_letter_created ON dead_letter(created_at);
"""

@dataclass
class DeadLetterItem:
    """Dead-letter 항목"""
    id: int
    topic: str
    payload: str
    stage: str
    reason: str
    created_at: int
    attempts: int

    def to_message(self) -> TelemetryMessage:
        return TelemetryMessage(topic=self.topic, payload=self.payload)

class SQLiteDeadLetter:
    """SQLite 기반 Dead-letter 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteDeadLetter 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info(f"SQLiteDeadLetter 스키마 초기화 완료: {self.path}")

    async def put(self, message: TelemetryMessage, stage: str, reason: str) -> int:
        """
        실패한 메시지를 추가합니다.

        Args:
            message: 원시 메시지
            stage: 실패 단계
            reason: 실패 사유

        Returns:
            생성된 항목의 ID
        """
        now = int(time.time())

        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "INSERT INTO dead_letter (topic, payload, stage, reason, created_at) VALUES (?, ?, ?, ?, ?)",
                (message.topic, message.payload, stage, reason, now)
            )
            await db.commit()
            return cursor.lastrowid

    async def pending(self, limit: int = 100, stage: Optional[str] = None) -> List[DeadLetterItem]:
        """
        오래된 순서로 항목을 조회합니다 (삭제하지 않음).

        Args:
            limit: 최대 조회 건수
            stage: 지정하면 해당 실패 단계의 항목만 조회
        """
        where, params = ("", (limit,)) if stage is None else ("WHERE stage = ? ", (stage, limit))
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT id, topic, payload, stage, reason, created_at, attempts "
                f"FROM dead_letter {where}ORDER BY created_at ASC, id ASC LIMIT ?",
                params
            )
            rows = await cursor.fetchall()
            return [DeadLetterItem(*row) for row in rows]

    async def mark_attempt(self, item_id: int) -> None:
        """재처리 시도 횟수를 증가시킵니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "UPDATE dead_letter SET attempts = attempts + 1 WHERE id = ?",
                (item_id,)
            )
            await db.commit()

    async def delete(self, item_id: int) -> None:
        """재처리에 성공한 항목을 삭제합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.execute("DELETE FROM dead_letter WHERE id = ?", (item_id,))
            await db.commit()

    async def get_count(self) -> int:
        """현재 저장된 항목 수를 반환합니다."""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM dead_letter")
            result = await cursor.fetchone()
            return result[0] if result else 0
