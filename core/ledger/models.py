"""
Ledger 데이터 모델

Account, JournalEntry, JournalEntryLine, AccountBalance 정의.
금액은 모두 Decimal (부동소수점 오차 없음).
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from core.constants import Defaults
from core.ledger.types import AccountType, JournalEntryStatus

ZERO = Decimal("0")


@dataclass
class Account:
    """계정 (Chart of Accounts 노드)

    code는 테넌트 내 유일. parent_id로 계층 구성.
    """

    id: str
    tenant_id: str
    code: str
    name: str
    account_type: AccountType
    parent_id: str | None = None
    is_active: bool = True
    is_system: bool = False
    description: str = ""
    created_at: datetime | None = None

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type.is_debit_normal


@dataclass
class JournalEntryLine:
    """분개 라인

    debit/credit 중 하나만 0이 아님.
    base_debit/base_credit = 금액 × 환율 (기준 통화, 저장 후 재계산하지 않음)
    """

    id: str
    tenant_id: str
    journal_entry_id: str
    account_id: str
    debit_amount: Decimal = ZERO
    credit_amount: Decimal = ZERO
    currency: str = Defaults.BASE_CURRENCY
    exchange_rate: Decimal = Decimal("1")
    base_debit: Decimal = ZERO
    base_credit: Decimal = ZERO
    description: str = ""
    line_order: int = 0


@dataclass
class JournalEntry:
    """분개

    하나의 거래에 대한 복식부기 기록.
    차변 합계 = 대변 합계 (기준 통화, 정확히 일치)
    DRAFT 이외 상태에서는 불변.
    """

    id: str
    tenant_id: str
    entry_number: str
    entry_date: date
    description: str
    created_by: str
    status: JournalEntryStatus = JournalEntryStatus.DRAFT
    reference: str = ""
    source_type: str = ""
    source_id: str | None = None
    lines: list[JournalEntryLine] = field(default_factory=list)
    posted_at: datetime | None = None
    posted_by: str | None = None
    voided_at: datetime | None = None
    voided_by: str | None = None
    void_reason: str = ""
    created_at: datetime | None = None

    @property
    def total_debits(self) -> Decimal:
        """기준 통화 차변 합계"""
        return sum((line.base_debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        """기준 통화 대변 합계"""
        return sum((line.base_credit for line in self.lines), ZERO)

    def is_balanced(self) -> bool:
        """차대 균형 여부 (허용 오차 없음)"""
        return self.total_debits == self.total_credits


@dataclass
class AccountBalance:
    """계정 잔액 (조회 시 계산, 저장하지 않음)

    net_balance는 계정 유형의 정상 잔액 방향 기준 부호.
    """

    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    debit_balance: Decimal = ZERO
    credit_balance: Decimal = ZERO
    net_balance: Decimal = ZERO


def net_balance(account_type: AccountType, debits: Decimal, credits: Decimal) -> Decimal:
    """정상 잔액 방향 기준 순잔액

    차변 계정: debits - credits, 대변 계정: credits - debits
    """
    if account_type.is_debit_normal:
        return debits - credits
    return credits - debits
