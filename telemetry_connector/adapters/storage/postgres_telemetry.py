"""
PostgreSQL telemetry store for the telemetry connector.

This module implements the Store Writer against PostgreSQL using a single
persistent asyncpg connection. Every value is sent as a bound parameter.
"""

import asyncio
import time
from typing import Optional
import asyncpg
from telemetry_connector.core.errors import (
    ConnectError, StoreRejectedError, StoreUnavailableError,
)
from telemetry_connector.core.models import VALUE_TYPE
from telemetry_connector.observability import metrics
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("store.postgres")

INSERT_SQL = "INSERT INTO telemetry (device_id, name, value, type) VALUES ($1, $2, $3, $4)"

# 연결 자체가 끊긴 경우로 분류되는 예외
_UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.PostgresConnectionError,
)

class PostgresTelemetryStore:
    """asyncpg 기반 텔레메트리 저장소 (단일 영속 연결)"""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: str,
        *,
        connect_timeout: float = 10.0,
        command_timeout: Optional[float] = None,
    ):
        """
        초기화합니다.

        Args:
            host: PostgreSQL 호스트
            port: PostgreSQL 포트
            user: 사용자명
            password: 비밀번호
            database: 데이터베이스 이름
            connect_timeout: 연결 수립 제한 시간 (초)
            command_timeout: INSERT 한 건의 제한 시간 (초), None이면 무제한
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.conn: Optional[asyncpg.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self.conn is not None and not self.conn.is_closed()

    async def connect(self) -> None:
        """데이터베이스에 연결합니다."""
        log.info(f"PostgreSQL 연결 중 host:{self.host} port:{self.port} db:{self.database} user:{self.user}")
        try:
            self.conn = await asyncpg.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                timeout=self.connect_timeout,
            )
        except (OSError, asyncio.TimeoutError, asyncpg.PostgresError, asyncpg.exceptions.InterfaceError) as e:
            raise ConnectError("postgres", f"{self.host}:{self.port}/{self.database}: {e}") from e
        log.info("PostgreSQL 연결됨")

    async def record(self, device_id: str, measurement_name: str, value: str) -> None:
        """telemetry 테이블에 한 행을 추가합니다."""
        if not self.is_connected:
            raise StoreUnavailableError("PostgreSQL 연결이 없습니다")

        started = time.perf_counter()
        try:
            await self.conn.execute(
                INSERT_SQL, device_id, measurement_name, value, VALUE_TYPE,
                timeout=self.command_timeout,
            )
        except _UNAVAILABLE_ERRORS as e:
            raise StoreUnavailableError(str(e)) from e
        except asyncpg.PostgresError as e:
            raise StoreRejectedError(str(e)) from e
        finally:
            metrics.store_write_seconds.observe(time.perf_counter() - started)

    async def close(self) -> None:
        """연결을 닫습니다."""
        if self.conn is not None:
            try:
                await self.conn.close(timeout=self.connect_timeout)
            except (OSError, asyncio.TimeoutError, asyncpg.exceptions.InterfaceError) as e:
                log.warning(f"PostgreSQL 연결 종료 중 오류: {e}")
            self.conn = None
            log.info("PostgreSQL 연결 종료됨")
