from __future__ import annotations
import logging
import sys
from loguru import logger

# ---- stdlib logging → loguru 인터셉트 ----
class InterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.bind(component=record.name).opt(depth=6, exception=record.exc_info).log(level, record.getMessage())

def _hook_stdlib_logging() -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    # 시끄러운 로거는 필요 시 레벨만 조정 가능
    for noisy in ("uvicorn", "uvicorn.error", "asyncio", "aiomqtt", "asyncpg"):
        l = logging.getLogger(noisy)
        l.handlers = [InterceptHandler()]
        l.propagate = False

# ---- 개발 콘솔 포맷(사람 친화) ----
DEV_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level:<7}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<cyan>{file}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

DEFAULT_COMPONENT = "connector"

def setup_logging_dev(log_level: str = "INFO") -> None:
    """
    개발 콘솔 전용 loguru 초기화.
    - 콘솔 컬러 출력
    - stdlib logging 흡수
    """
    logger.remove()  # 기본 sink 제거
    logger.configure(extra={"component": DEFAULT_COMPONENT})
    logger.add(
        sink=sys.stderr,
        format=DEV_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
        level=log_level.upper(),
        enqueue=False,
    )
    _hook_stdlib_logging()

def setup_logging_json(log_level: str = "INFO") -> None:
    """
    운영용 JSON 로그 초기화.
    - 한 줄에 하나의 JSON 레코드 (stdout)
    - bind()로 붙인 컨텍스트는 record.extra에 포함
    """
    logger.remove()
    logger.configure(extra={"component": DEFAULT_COMPONENT})
    logger.add(
        sink=sys.stdout,
        serialize=True,
        backtrace=False,
        diagnose=False,
        level=log_level.upper(),
        enqueue=False,
    )
    _hook_stdlib_logging()

def setup_logging(log_level: str = "INFO", log_format: str = "dev") -> None:
    """LOG_FORMAT 값에 따라 sink를 선택합니다."""
    if log_format == "json":
        setup_logging_json(log_level)
    else:
        setup_logging_dev(log_level)

def get_logger(name: str = DEFAULT_COMPONENT, **ctx):
    """선택적으로 컨텍스트를 바인딩한 logger 반환."""
    return logger.bind(component=name, **ctx)
