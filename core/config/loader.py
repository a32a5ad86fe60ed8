"""
설정 로더

ledger.yaml 로드 및 Ledger 설정 생성
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths
from core.errors import ValidationError
from core.types import normalize_currency

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    tenants_dir: Path
    base_currency: str = Defaults.BASE_CURRENCY
    log_level: str = Defaults.LOG_LEVEL

    @property
    def log_level_value(self) -> int:
        """logging 모듈 레벨 값"""
        return logging.getLevelName(self.log_level)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _resolve_path(value: Any, default: Path) -> Path:
    """상대 경로는 프로젝트 루트 기준으로 해석"""
    if value is None or value == "":
        return default
    path = Path(str(value))
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        raise ConfigLoadError(f"ledger.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("ledger.yaml이 비어 있습니다")

    if not isinstance(data, dict):
        raise ConfigLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    database = data.get("database") or {}
    if not isinstance(database, dict):
        raise ConfigLoadError("ledger.yaml의 'database'는 매핑이어야 합니다")

    try:
        base_currency = normalize_currency(
            data.get("base_currency", Defaults.BASE_CURRENCY)
        )
    except ValidationError as e:
        raise ConfigLoadError(f"ledger.yaml의 base_currency가 잘못되었습니다: {e}") from e

    log_level = str(data.get("log_level", Defaults.LOG_LEVEL)).upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigLoadError(
            f"유효하지 않은 log_level입니다: '{log_level}'. "
            f"유효한 값: {list(VALID_LOG_LEVELS)}"
        )

    return LedgerConfig(
        db_path=_resolve_path(database.get("path"), Paths.MAIN_DB),
        tenants_dir=_resolve_path(database.get("tenants_dir"), Paths.TENANTS_DIR),
        base_currency=base_currency,
        log_level=log_level,
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    ledger.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: LedgerConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            type(self)._config = load_config(config_path)

    @property
    def config(self) -> LedgerConfig:
        """로드된 설정"""
        assert self._config is not None
        return self._config

    @property
    def db_path(self) -> Path:
        """메인 DB 경로"""
        return self.config.db_path

    @property
    def tenants_dir(self) -> Path:
        """테넌트 DB 디렉토리"""
        return self.config.tenants_dir

    @property
    def base_currency(self) -> str:
        """기본 통화"""
        return self.config.base_currency

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
