"""
Storage Adapter 모듈 단위 테스트

이 모듈은 텔레메트리 저장소와 dead-letter 어댑터의 기능을 테스트합니다.
"""

import pytest
import asyncio
import os
from unittest.mock import AsyncMock, Mock, patch
import aiosqlite
import asyncpg

from telemetry_connector.adapters.storage.sqlite_telemetry import SQLiteTelemetryStore
from telemetry_connector.adapters.storage.postgres_telemetry import PostgresTelemetryStore, INSERT_SQL
from telemetry_connector.adapters.storage.sqlite_deadletter import SQLiteDeadLetter, DeadLetterItem
from telemetry_connector.core.errors import (
    ConnectError, StoreRejectedError, StoreUnavailableError,
)
from telemetry_connector.core.models import TelemetryMessage, TelemetryRecord


class TestSQLiteTelemetryStore:
    """SQLite 텔레메트리 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_connect_creates_schema(self, temp_db_path):
        """연결 시 스키마 생성"""
        store = SQLiteTelemetryStore(temp_db_path)
        assert store.is_connected is False

        await store.connect()
        try:
            assert store.is_connected is True
            assert await store.get_count() == 0
        finally:
            await store.close()

        assert store.is_connected is False

    @pytest.mark.asyncio
    async def test_record_then_read_yields_one_row(self, sqlite_store):
        """record 후 조회하면 정확히 한 행"""
        await sqlite_store.record("device123", "temperature", "42")

        rows = await sqlite_store.fetch_all()
        assert rows == [TelemetryRecord(device_id="device123", name="temperature", value="42", type="integer")]

    @pytest.mark.asyncio
    async def test_same_record_twice_yields_two_rows(self, sqlite_store):
        """멱등성 없음: 같은 값 두 번이면 두 행"""
        await sqlite_store.record("device123", "temperature", "42")
        await sqlite_store.record("device123", "temperature", "42")

        assert await sqlite_store.get_count() == 2

    @pytest.mark.asyncio
    async def test_value_is_stored_as_raw_text(self, sqlite_store):
        """값은 숫자로 변환하지 않고 원문 그대로 저장"""
        await sqlite_store.record("d", "n", "007")
        await sqlite_store.record("d", "n", "not-a-number")

        values = [r.value for r in await sqlite_store.fetch_all()]
        assert values == ["007", "not-a-number"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("device_id,name,value", [
        ("dev'; DROP TABLE telemetry; --", "temperature", "1"),
        ("device123", "x'); DELETE FROM telemetry; --", "2"),
        ("device123", "temperature", "3'); UPDATE telemetry SET value='0"),
        ("/* comment */", "-- tail", "'"),
    ])
    async def test_injection_strings_are_stored_verbatim(self, sqlite_store, device_id, name, value):
        """SQL 특수 문자는 데이터로만 저장되고 다른 행에 영향 없음"""
        await sqlite_store.record("other", "humidity", "55")

        await sqlite_store.record(device_id, name, value)

        rows = await sqlite_store.fetch_all()
        assert rows == [
            TelemetryRecord(device_id="other", name="humidity", value="55"),
            TelemetryRecord(device_id=device_id, name=name, value=value),
        ]

    @pytest.mark.asyncio
    async def test_record_without_connection_is_unavailable(self, temp_db_path):
        """연결 전 record는 Unavailable"""
        store = SQLiteTelemetryStore(temp_db_path)

        with pytest.raises(StoreUnavailableError):
            await store.record("d", "n", "1")

    @pytest.mark.asyncio
    async def test_record_after_close_is_unavailable(self, temp_db_path):
        """종료 후 record는 Unavailable"""
        store = SQLiteTelemetryStore(temp_db_path)
        await store.connect()
        await store.close()

        with pytest.raises(StoreUnavailableError):
            await store.record("d", "n", "1")

    @pytest.mark.asyncio
    async def test_record_rejected_when_table_missing(self, sqlite_store):
        """저장소가 거부하면 Rejected"""
        await sqlite_store.db.execute("DROP TABLE telemetry")
        await sqlite_store.db.commit()

        with pytest.raises(StoreRejectedError):
            await sqlite_store.record("d", "n", "1")

    @pytest.mark.asyncio
    async def test_connect_failure_raises_connect_error(self, tmp_path):
        """SQLite 파일이 아니면 ConnectError"""
        path = tmp_path / "not_a_database.db"
        path.write_bytes(b"this is not an sqlite database" * 100)
        store = SQLiteTelemetryStore(str(path))

        with pytest.raises(ConnectError) as exc_info:
            await store.connect()

        assert exc_info.value.target == "sqlite"
        assert store.is_connected is False

    @pytest.mark.asyncio
    async def test_connect_failure_closes_opened_connection(self, temp_db_path):
        """스키마 초기화 실패 시 열린 연결을 닫음"""
        conn = AsyncMock()
        conn.executescript.side_effect = aiosqlite.OperationalError("disk I/O error")
        store = SQLiteTelemetryStore(temp_db_path)

        with patch("aiosqlite.connect", new=AsyncMock(return_value=conn)):
            with pytest.raises(ConnectError):
                await store.connect()

        conn.close.assert_awaited_once()
        assert store.db is None


class TestPostgresTelemetryStore:
    """PostgreSQL 텔레메트리 저장소 테스트 (asyncpg 모킹)"""

    @pytest.fixture
    def store(self):
        return PostgresTelemetryStore(
            host="db.local",
            port=5432,
            user="telemetry",
            password="secret",
            database="telemetry",
            connect_timeout=3.0,
            command_timeout=1.5,
        )

    @pytest.fixture
    def mock_conn(self):
        conn = AsyncMock()
        conn.is_closed = Mock(return_value=False)
        return conn

    @pytest.mark.asyncio
    async def test_connect_passes_settings(self, store, mock_conn):
        """연결 인자 전달"""
        with patch("asyncpg.connect", new=AsyncMock(return_value=mock_conn)) as connect:
            await store.connect()

        connect.assert_awaited_once_with(
            host="db.local", port=5432, user="telemetry", password="secret",
            database="telemetry", timeout=3.0,
        )
        assert store.is_connected is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        OSError("connection refused"),
        asyncio.TimeoutError(),
        asyncpg.InvalidPasswordError("bad password"),
    ])
    async def test_connect_failure_raises_connect_error(self, store, error):
        """연결 실패는 ConnectError"""
        with patch("asyncpg.connect", new=AsyncMock(side_effect=error)):
            with pytest.raises(ConnectError) as exc_info:
                await store.connect()

        assert exc_info.value.target == "postgres"
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_record_uses_bound_parameters(self, store, mock_conn):
        """모든 값은 바인딩 파라미터로 전달"""
        store.conn = mock_conn
        device_id = "dev'; DROP TABLE telemetry; --"

        await store.record(device_id, "temperature", "42")

        mock_conn.execute.assert_awaited_once_with(
            INSERT_SQL, device_id, "temperature", "42", "integer", timeout=1.5,
        )
        sql = mock_conn.execute.await_args.args[0]
        assert device_id not in sql
        assert "$1" in sql and "$4" in sql

    @pytest.mark.asyncio
    async def test_record_without_connection_is_unavailable(self, store):
        """연결 전 record는 Unavailable"""
        with pytest.raises(StoreUnavailableError):
            await store.record("d", "n", "1")

    @pytest.mark.asyncio
    async def test_record_on_closed_connection_is_unavailable(self, store, mock_conn):
        """닫힌 연결에서 record는 Unavailable"""
        mock_conn.is_closed.return_value = True
        store.conn = mock_conn

        with pytest.raises(StoreUnavailableError):
            await store.record("d", "n", "1")
        mock_conn.execute.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        ConnectionResetError("reset by peer"),
        asyncpg.exceptions.ConnectionDoesNotExistError("connection was closed"),
        asyncpg.exceptions.ConnectionFailureError("connection failure"),
    ])
    async def test_transport_failure_is_unavailable(self, store, mock_conn, error):
        """전송 계층 오류는 Unavailable"""
        mock_conn.execute.side_effect = error
        store.conn = mock_conn

        with pytest.raises(StoreUnavailableError):
            await store.record("d", "n", "1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        asyncpg.exceptions.UndefinedTableError("relation \"telemetry\" does not exist"),
        asyncpg.exceptions.NotNullViolationError("null value"),
        asyncpg.exceptions.StringDataRightTruncationError("value too long"),
    ])
    async def test_statement_failure_is_rejected(self, store, mock_conn, error):
        """저장소 거부는 Rejected"""
        mock_conn.execute.side_effect = error
        store.conn = mock_conn

        with pytest.raises(StoreRejectedError):
            await store.record("d", "n", "1")

    @pytest.mark.asyncio
    async def test_close(self, store, mock_conn):
        """연결 종료"""
        store.conn = mock_conn

        await store.close()

        mock_conn.close.assert_awaited_once()
        assert store.conn is None
        assert store.is_connected is False


class TestSQLiteDeadLetter:
    """SQLite Dead-letter 저장소 테스트"""

    @pytest.fixture
    async def dead_letter(self, temp_db_path):
        sink = SQLiteDeadLetter(temp_db_path)
        await sink.init()
        return sink

    @pytest.mark.asyncio
    async def test_init_schema(self, dead_letter):
        """스키마 초기화"""
        assert os.path.exists(dead_letter.path)
        assert await dead_letter.get_count() == 0

    @pytest.mark.asyncio
    async def test_put_and_pending(self, dead_letter):
        """추가 후 오래된 순서로 조회"""
        first = await dead_letter.put(TelemetryMessage(topic="sensors/bad", payload="1"), "decode", "malformed")
        await dead_letter.put(TelemetryMessage(topic="sensors/d/t", payload="2"), "store", "unavailable")

        items = await dead_letter.pending()

        assert len(items) == 2
        assert all(isinstance(item, DeadLetterItem) for item in items)
        assert items[0].id == first
        assert items[0].topic == "sensors/bad"
        assert items[0].stage == "decode"
        assert items[0].reason == "malformed"
        assert items[0].attempts == 0
        assert items[1].to_message() == TelemetryMessage(topic="sensors/d/t", payload="2")

    @pytest.mark.asyncio
    async def test_pending_limit(self, dead_letter):
        """조회 건수 제한"""
        for i in range(5):
            await dead_letter.put(TelemetryMessage(topic=f"t{i}", payload=str(i)), "decode", "x")

        items = await dead_letter.pending(limit=2)

        assert [item.topic for item in items] == ["t0", "t1"]

    @pytest.mark.asyncio
    async def test_mark_attempt_and_delete(self, dead_letter):
        """시도 횟수 증가 및 삭제"""
        item_id = await dead_letter.put(TelemetryMessage(topic="t", payload="p"), "store", "x")

        await dead_letter.mark_attempt(item_id)
        await dead_letter.mark_attempt(item_id)
        assert (await dead_letter.pending())[0].attempts == 2

        await dead_letter.delete(item_id)
        assert await dead_letter.get_count() == 0

    @pytest.mark.asyncio
    async def test_pending_filters_by_stage(self, dead_letter):
        """실패 단계로 조회 범위 제한"""
        for i in range(3):
            await dead_letter.put(TelemetryMessage(topic=f"bad{i}", payload=str(i)), "decode", "malformed")
        store_id = await dead_letter.put(TelemetryMessage(topic="sensors/d/t", payload="9"), "store", "down")

        items = await dead_letter.pending(limit=3, stage="store")

        assert [item.id for item in items] == [store_id]
        assert len(await dead_letter.pending(limit=10, stage="decode")) == 3
        assert len(await dead_letter.pending(limit=10)) == 4
