"""
타입 정의 모듈

테넌트 식별 등 Ledger 전반에서 공유하는 핵심 타입 정의
"""

import re
from dataclasses import dataclass

from core.constants import Defaults
from core.errors import ValidationError

# SQL 식별자로 직접 삽입되므로 엄격하게 제한
SCHEMA_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]{0,62}$")
# SQLite 예약 스키마 (공유 메인 DB, 임시 DB)
RESERVED_SCHEMA_NAMES = frozenset({"main", "temp"})
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def validate_schema_name(schema_name: str) -> str:
    """스키마 이름 검증

    Raises:
        ValidationError: 허용되지 않는 식별자인 경우
    """
    if not SCHEMA_NAME_PATTERN.match(schema_name or ""):
        raise ValidationError(f"invalid schema name: {schema_name!r}", schema_name=schema_name)
    if schema_name in RESERVED_SCHEMA_NAMES:
        raise ValidationError(f"reserved schema name: {schema_name!r}", schema_name=schema_name)
    return schema_name


def normalize_currency(currency: str) -> str:
    """통화 코드 정규화 (대문자 3자리)"""
    code = (currency or "").strip().upper()
    if not CURRENCY_PATTERN.match(code):
        raise ValidationError(f"invalid currency code: {currency!r}", currency=currency)
    return code


@dataclass(frozen=True)
class TenantScope:
    """테넌트 범위 (불변)

    모든 Ledger 연산의 첫 인자로 전달되며 절대 추론하지 않는다.
    schema_name은 테넌트 DB가 ATTACH된 별칭.
    """

    tenant_id: str
    schema_name: str
    base_currency: str = Defaults.BASE_CURRENCY

    @classmethod
    def create(
        cls,
        tenant_id: str,
        schema_name: str,
        base_currency: str = Defaults.BASE_CURRENCY,
    ) -> "TenantScope":
        """TenantScope 생성 헬퍼

        스키마 이름과 통화 코드를 검증/정규화한다.
        """
        if not tenant_id:
            raise ValidationError("tenant_id is required")
        return cls(
            tenant_id=tenant_id,
            schema_name=validate_schema_name(schema_name),
            base_currency=normalize_currency(base_currency),
        )
