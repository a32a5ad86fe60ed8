"""
복식부기 타입 정의

AccountType, JournalEntryStatus 등 Ledger 시스템에서 사용하는 Enum 정의
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 유형

    복식부기의 5대 계정 유형.
    str을 상속하여 JSON 직렬화 가능.
    """

    ASSET = "ASSET"  # 자산
    LIABILITY = "LIABILITY"  # 부채
    EQUITY = "EQUITY"  # 자본
    REVENUE = "REVENUE"  # 수익
    EXPENSE = "EXPENSE"  # 비용

    @property
    def is_debit_normal(self) -> bool:
        """차변 잔액 계정 여부 (ASSET, EXPENSE)"""
        return NORMAL_SIDE[self] is JournalSide.DEBIT


class JournalSide(str, Enum):
    """분개 방향 (차변/대변)"""

    DEBIT = "DEBIT"  # 차변 (자산 증가, 비용 증가)
    CREDIT = "CREDIT"  # 대변 (부채/자본/수익 증가)


class JournalEntryStatus(str, Enum):
    """분개 상태

    DRAFT --post--> POSTED --void--> VOIDED
    DRAFT로 되돌아가는 전이는 없고 VOIDED는 종료 상태.
    """

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    VOIDED = "VOIDED"


class BudgetPeriod(str, Enum):
    """코스트센터 예산 기간"""

    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUAL = "ANNUAL"


# 계정 유형별 정상 잔액 방향
NORMAL_SIDE: dict[AccountType, JournalSide] = {
    AccountType.ASSET: JournalSide.DEBIT,
    AccountType.EXPENSE: JournalSide.DEBIT,
    AccountType.LIABILITY: JournalSide.CREDIT,
    AccountType.EQUITY: JournalSide.CREDIT,
    AccountType.REVENUE: JournalSide.CREDIT,
}

# 허용된 상태 전이 (현재 상태 → 가능한 다음 상태)
ALLOWED_TRANSITIONS: dict[JournalEntryStatus, frozenset[JournalEntryStatus]] = {
    JournalEntryStatus.DRAFT: frozenset({JournalEntryStatus.POSTED}),
    JournalEntryStatus.POSTED: frozenset({JournalEntryStatus.VOIDED}),
    JournalEntryStatus.VOIDED: frozenset(),
}


def can_transition(current: JournalEntryStatus, target: JournalEntryStatus) -> bool:
    """상태 전이 가능 여부"""
    return target in ALLOWED_TRANSITIONS[current]
