"""
요청 스키마 (Pydantic)

Ledger 서비스 입력 데이터의 형태 검증.
회계 규칙(차대 균형, 음수, 차대 동시 기입)은 엔진에서 ValidationError로 검증한다.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from core.ledger.types import AccountType, BudgetPeriod


def _upper_currency(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    code = value.strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"currency must be a 3-letter code: {value!r}")
    return code


class CreateAccountRequest(BaseModel):
    """계정 생성 요청"""

    code: str = Field(..., description="계정 코드 (테넌트 내 유일)")
    name: str = Field(..., description="계정 이름")
    account_type: AccountType = Field(..., description="계정 유형")
    parent_id: str | None = Field(default=None, description="상위 계정 ID")
    description: str = Field(default="", description="설명")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"code": "1000", "name": "Cash", "account_type": "ASSET"},
                {"code": "4000", "name": "Sales Revenue", "account_type": "REVENUE"},
            ]
        }
    }


class CreateJournalEntryLineRequest(BaseModel):
    """분개 라인 생성 요청

    currency 미지정 시 테넌트 기준 통화, exchange_rate 미지정(또는 0) 시 1.
    """

    account_id: str = Field(..., description="계정 ID")
    description: str = Field(default="", description="라인 설명")
    debit_amount: Decimal = Field(default=Decimal("0"), description="차변 금액")
    credit_amount: Decimal = Field(default=Decimal("0"), description="대변 금액")
    currency: str | None = Field(default=None, description="거래 통화 (ISO 4217)")
    exchange_rate: Decimal | None = Field(default=None, description="거래 통화 → 기준 통화 환율")

    @field_validator("currency")
    @classmethod
    def _normalize_currency(cls, value: str | None) -> str | None:
        return _upper_currency(value)


class CreateJournalEntryRequest(BaseModel):
    """분개 생성 요청"""

    entry_date: date = Field(..., description="분개 일자")
    description: str = Field(..., description="적요")
    reference: str = Field(default="", description="참조 번호")
    source_type: str = Field(default="", description="원천 문서 유형 (INVOICE 등)")
    source_id: str | None = Field(default=None, description="원천 문서 ID")
    lines: list[CreateJournalEntryLineRequest] = Field(default_factory=list, description="분개 라인")
    user_id: str = Field(..., description="작성자 ID")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "entry_date": "2026-01-15",
                    "description": "Cash sale",
                    "lines": [
                        {"account_id": "<cash-id>", "debit_amount": "100"},
                        {"account_id": "<revenue-id>", "credit_amount": "100"},
                    ],
                    "user_id": "<user-id>",
                }
            ]
        }
    }


class CreateCostCenterRequest(BaseModel):
    """코스트센터 생성 요청"""

    code: str = Field(..., description="코스트센터 코드 (테넌트 내 유일)")
    name: str = Field(..., description="코스트센터 이름")
    description: str = Field(default="", description="설명")
    parent_id: str | None = Field(default=None, description="상위 코스트센터 ID")
    is_active: bool = Field(default=True, description="활성 여부")
    budget_amount: Decimal | None = Field(default=None, description="예산 금액 (없으면 예산 미설정)")
    budget_period: BudgetPeriod | None = Field(default=None, description="예산 기간 (기본 ANNUAL)")


class UpdateCostCenterRequest(CreateCostCenterRequest):
    """코스트센터 수정 요청 (전체 필드 교체)"""


class CreateCostAllocationRequest(BaseModel):
    """코스트 배분 요청

    amount 미지정 시 라인 기준 금액 × allocation_percentage / 100.
    """

    journal_entry_line_id: str = Field(..., description="배분 대상 분개 라인 ID")
    amount: Decimal | None = Field(default=None, description="배분 금액")
    allocation_percentage: Decimal | None = Field(default=None, description="배분 비율 (%)")
    allocation_date: date = Field(..., description="배분 일자")
    notes: str = Field(default="", description="메모")
