"""
Retry utilities for the telemetry connector.

This module provides retry and backoff helpers used when
(re)connecting to the message bus.
"""

import asyncio
import random
from typing import Awaitable, Callable, Tuple, Type, TypeVar
from telemetry_connector.observability.logging_setup import get_logger

log = get_logger("retry")

T = TypeVar('T')

def backoff_delay(attempt: int, base: float, max_delay: float) -> float:
    """
    지수 백오프 지연 시간을 계산합니다.

    Args:
        attempt: 현재 시도 횟수 (1부터 시작)
        base: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
    """
    return min(max_delay, base * (2 ** max(0, attempt - 1)))

async def exponential_backoff(attempt: int, base: float, max_delay: float) -> None:
    """지수 백오프 지연을 수행합니다."""
    await asyncio.sleep(backoff_delay(attempt, base, max_delay))

async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    operation_name: str = "operation",
) -> T:
    """
    지수 백오프와 함께 함수를 재시도합니다.

    Args:
        func: 재시도할 비동기 함수
        max_retries: 최대 재시도 횟수
        base_delay: 기본 지연 시간 (초)
        max_delay: 최대 지연 시간 (초)
        jitter: 지터 적용 여부
        retry_on: 재시도 대상 예외 타입
        operation_name: 로그에 표시할 작업 이름

    Returns:
        함수 실행 결과

    Raises:
        마지막 시도에서 발생한 예외
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except retry_on as e:
            if attempt > max_retries:
                log.error(f"{operation_name} 최종 실패 (시도 {attempt}회): {e}")
                raise

            delay = backoff_delay(attempt, base_delay, max_delay)
            if jitter:
                delay = delay * (0.5 + random.random() * 0.5)

            log.warning(f"{operation_name} 실패 (시도 {attempt}/{max_retries + 1}): {e}. {delay:.1f}초 후 재시도")
            await asyncio.sleep(delay)
