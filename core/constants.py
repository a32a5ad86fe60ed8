"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    BASE_CURRENCY: str = "EUR"
    EXCHANGE_RATE: str = "1"

    # 분개 번호: JE-00001
    ENTRY_NUMBER_PREFIX: str = "JE-"
    ENTRY_NUMBER_WIDTH: int = 5

    # 취소(역분개) 분개의 source_type
    VOID_SOURCE_TYPE: str = "VOID"
    REVERSAL_LINE_DESCRIPTION: str = "Reversal"

    # 계층 구조 조상 탐색 최대 횟수
    MAX_HIERARCHY_HOPS: int = 64

    BUDGET_PERIOD: str = "ANNUAL"

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    TENANTS_DIR: Path = DATA_DIR / "tenants"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"

    # DB 파일 (메인 연결, 테넌트 DB는 TENANTS_DIR 아래에 ATTACH)
    MAIN_DB: Path = DATA_DIR / "ledger.db"
