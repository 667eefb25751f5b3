# telemetry_connector/settings.py
from __future__ import annotations
import os
from typing import Dict, List, Literal, Mapping, Optional
from pydantic import BaseModel, Field, ValidationError
from telemetry_connector.core.counters import DEFAULT_MEASUREMENTS, parse_measurements
from telemetry_connector.core.errors import ConfigError

class BusSettings(BaseModel):
    host: str
    port: int
    topic: str
    client_id: str = "mqtt_connector"
    keepalive: int = 20
    clean_session: bool = True
    qos: int = Field(default=1, ge=0, le=2)
    connect_timeout: float = 10.0
    prefetch: int = Field(default=0, ge=0)       # 0 = unbounded
    reconnect: bool = True
    backoff_initial_sec: float = 1.0
    backoff_max_sec: float = 30.0

class StoreSettings(BaseModel):
    backend: Literal["postgres", "sqlite"] = "postgres"
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    sqlite_path: Optional[str] = None
    connect_timeout: float = 10.0
    command_timeout: Optional[float] = None

class Reliability(BaseModel):
    write_failure_policy: Literal["recover", "fatal"] = "recover"
    dead_letter_path: Optional[str] = None
    dead_letter_replay_on_start: bool = False

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "telemetry-connector"
    build_version: str = "0.1.0"
    log_level: str = "INFO"
    log_format: Literal["dev", "json"] = "dev"

class Settings(BaseModel):
    bus: BusSettings
    store: StoreSettings
    reliability: Reliability = Field(default_factory=Reliability)
    observability: Observability = Field(default_factory=Observability)

class SimulatorSettings(BaseModel):
    host: str
    port: int
    topic: str
    device_id: str
    client_id: str = "mqtt_simulator"
    keepalive: int = 20
    qos: int = Field(default=1, ge=0, le=2)
    interval_sec: float = Field(default=10.0, gt=0)
    measurements: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_MEASUREMENTS))
    wrap_at: int = 100
    backoff_initial_sec: float = 1.0
    backoff_max_sec: float = 30.0
    log_level: str = "INFO"
    log_format: Literal["dev", "json"] = "dev"

_TRUE = ("1", "true", "yes", "on")

def _b(value: str) -> bool:
    return value.lower() in _TRUE

class _EnvReader:
    """환경 변수를 읽으면서 누락된 필수 항목을 모읍니다."""

    def __init__(self, environ: Mapping[str, str]):
        self.env = environ
        self.missing: List[str] = []

    def require(self, name: str) -> Optional[str]:
        value = self.env.get(name)
        if value is None or value == "":
            self.missing.append(name)
            return None
        return value

    def optional(self, name: str, target: dict, key: str, convert=None) -> None:
        value = self.env.get(name)
        if value is None or value == "":
            return
        target[key] = convert(value) if convert else value

    def check(self, what: str) -> None:
        if self.missing:
            raise ConfigError(f"{what}: 필수 환경 변수 누락: {', '.join(self.missing)}")

def _validate(model, data: dict, what: str):
    try:
        return model(**data)
    except ValidationError as e:
        raise ConfigError(f"{what}: 잘못된 설정 값: {e}") from e

def build_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    커넥터 설정을 환경 변수에서 만듭니다.

    Raises:
        ConfigError: 필수 값 누락 또는 변환 실패
    """
    env = _EnvReader(os.environ if environ is None else environ)

    # MQTT
    bus = {
        "host": env.require("MQTT_HOST"),
        "port": env.require("MQTT_PORT"),
        "topic": env.require("MQTT_TOPIC"),
    }
    env.optional("MQTT_CLIENT_ID", bus, "client_id")
    env.optional("MQTT_KEEPALIVE", bus, "keepalive")
    env.optional("MQTT_QOS", bus, "qos")
    env.optional("MQTT_CLEAN_SESSION", bus, "clean_session", _b)
    env.optional("MQTT_CONNECT_TIMEOUT", bus, "connect_timeout")
    env.optional("MQTT_PREFETCH", bus, "prefetch")
    env.optional("MQTT_RECONNECT", bus, "reconnect", _b)
    env.optional("MQTT_BACKOFF_INITIAL_SEC", bus, "backoff_initial_sec")
    env.optional("MQTT_BACKOFF_MAX_SEC", bus, "backoff_max_sec")

    # 저장소
    store: dict = {"backend": env.env.get("STORE_BACKEND") or "postgres"}
    if store["backend"] == "sqlite":
        store["sqlite_path"] = env.require("SQLITE_PATH")
    else:
        store["host"] = env.require("POSTGRES_HOST")
        store["port"] = env.require("POSTGRES_PORT")
        store["user"] = env.require("POSTGRES_USER")
        store["password"] = env.require("POSTGRES_PASSWORD")
        store["database"] = env.require("POSTGRES_DB")
    env.optional("STORE_CONNECT_TIMEOUT", store, "connect_timeout")
    env.optional("STORE_COMMAND_TIMEOUT", store, "command_timeout")

    env.check("connector")

    # 신뢰성
    reliability: dict = {}
    env.optional("WRITE_FAILURE_POLICY", reliability, "write_failure_policy", str.lower)
    env.optional("DEAD_LETTER_PATH", reliability, "dead_letter_path")
    env.optional("DEAD_LETTER_REPLAY_ON_START", reliability, "dead_letter_replay_on_start", _b)

    # 관측성
    observability: dict = {}
    env.optional("METRICS_ENABLED", observability, "metrics_enabled", _b)
    env.optional("METRICS_PORT", observability, "http_port")
    env.optional("LOG_LEVEL", observability, "log_level")
    env.optional("LOG_FORMAT", observability, "log_format", str.lower)

    return Settings(
        bus=_validate(BusSettings, bus, "MQTT"),
        store=_validate(StoreSettings, store, "store"),
        reliability=_validate(Reliability, reliability, "reliability"),
        observability=_validate(Observability, observability, "observability"),
    )

def build_simulator_settings(environ: Optional[Mapping[str, str]] = None) -> SimulatorSettings:
    """
    시뮬레이터 설정을 환경 변수에서 만듭니다.

    Raises:
        ConfigError: 필수 값 누락 또는 변환 실패
    """
    env = _EnvReader(os.environ if environ is None else environ)
    data = {
        "host": env.require("MQTT_HOST"),
        "port": env.require("MQTT_PORT"),
        "topic": env.require("MQTT_TOPIC"),
        "device_id": env.require("DEVICE_ID"),
    }
    env.check("simulator")

    env.optional("MQTT_CLIENT_ID", data, "client_id")
    env.optional("MQTT_KEEPALIVE", data, "keepalive")
    env.optional("SIMULATOR_INTERVAL_SEC", data, "interval_sec")
    env.optional("LOG_LEVEL", data, "log_level")
    env.optional("LOG_FORMAT", data, "log_format", str.lower)
    try:
        env.optional("SIMULATOR_MEASUREMENTS", data, "measurements", parse_measurements)
    except ValueError as e:
        raise ConfigError(f"simulator: SIMULATOR_MEASUREMENTS 형식 오류: {e}") from e

    return _validate(SimulatorSettings, data, "simulator")
