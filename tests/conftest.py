"""
pytest 공통 fixture 정의

임시 디렉토리, 설정 파일, 고정 시각/ID 생성기
"""

import itertools
import tempfile
from collections.abc import Callable
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from core.config.loader import Settings


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    config_content = f"""# 테스트용 ledger.yaml
database:
  path: "{temp_dir / 'ledger.db'}"
  tenants_dir: "{temp_dir / 'tenants'}"

base_currency: usd
log_level: debug
"""
    config_path = temp_dir / "ledger.yaml"
    config_path.write_text(config_content, encoding="utf-8")
    return config_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def now() -> datetime:
    """고정 현재 시각"""
    return datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def today(now: datetime) -> date:
    return now.date()


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    """고정 시각 clock"""
    return lambda: now


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """순차 ID 생성기 (id-0001, id-0002, ...)"""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter):04d}"
