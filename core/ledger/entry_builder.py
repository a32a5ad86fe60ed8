"""
분개 생성기

요청을 분개로 변환하고 복식부기 규칙을 검증.
취소 분개(역분개)는 원본을 변경하지 않는 순수 함수로 생성.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Decimal

from core.constants import Defaults
from core.errors import ValidationError
from core.ledger.models import ZERO, JournalEntry, JournalEntryLine
from core.ledger.requests import CreateJournalEntryLineRequest, CreateJournalEntryRequest
from core.ledger.types import JournalEntryStatus
from core.types import TenantScope, normalize_currency

ONE = Decimal("1")


def format_amount(amount: Decimal) -> str:
    """메시지용 금액 표기 (후행 0, 지수 표기 제거)

    예: Decimal("100.00") → "100", Decimal("92.50") → "92.5"
    """
    if amount == ZERO:
        return "0"
    return f"{amount.normalize():f}"


def validate_lines(lines: Iterable[JournalEntryLine]) -> tuple[Decimal, Decimal]:
    """분개 라인 검증

    생성 시(요청 기반)와 전기 시(저장된 분개) 모두 호출.

    Args:
        lines: 검증할 분개 라인

    Returns:
        (기준 통화 차변 합계, 대변 합계)

    Raises:
        ValidationError: 라인 없음, 차대 동시 기입, 음수, 불균형, 0 금액
    """
    lines = list(lines)
    if not lines:
        raise ValidationError("journal entry must have at least one line")

    total_debits = ZERO
    total_credits = ZERO

    for line in lines:
        if line.debit_amount > ZERO and line.credit_amount > ZERO:
            raise ValidationError(
                "line cannot have both debit and credit amounts",
                account_id=line.account_id,
            )
        if line.debit_amount < ZERO or line.credit_amount < ZERO:
            raise ValidationError(
                "amounts cannot be negative",
                account_id=line.account_id,
            )
        total_debits += line.base_debit
        total_credits += line.base_credit

    if total_debits != total_credits:
        raise ValidationError(
            f"journal entry does not balance: "
            f"debits={format_amount(total_debits)}, credits={format_amount(total_credits)}",
            total_debits=total_debits,
            total_credits=total_credits,
        )

    if total_debits == ZERO:
        raise ValidationError("journal entry cannot have zero amounts")

    return total_debits, total_credits


def validate_entry(entry: JournalEntry) -> tuple[Decimal, Decimal]:
    """저장된 분개 재검증 (전기 직전)"""
    return validate_lines(entry.lines)


def build_line(
    scope: TenantScope,
    entry_id: str,
    request: CreateJournalEntryLineRequest,
    line_id: str,
    line_order: int = 0,
) -> JournalEntryLine:
    """라인 요청 → JournalEntryLine

    통화 미지정 시 테넌트 기준 통화, 환율 0/미지정 시 1.
    기준 금액 = 금액 × 환율.
    """
    rate = request.exchange_rate
    if rate is None or rate == ZERO:
        rate = ONE
    if rate < ZERO:
        raise ValidationError(
            "exchange rate cannot be negative",
            account_id=request.account_id,
            exchange_rate=rate,
        )

    currency = normalize_currency(request.currency or scope.base_currency)

    return JournalEntryLine(
        id=line_id,
        tenant_id=scope.tenant_id,
        journal_entry_id=entry_id,
        account_id=request.account_id,
        description=request.description,
        debit_amount=request.debit_amount,
        credit_amount=request.credit_amount,
        currency=currency,
        exchange_rate=rate,
        base_debit=request.debit_amount * rate,
        base_credit=request.credit_amount * rate,
        line_order=line_order,
    )


def build_entry(
    scope: TenantScope,
    request: CreateJournalEntryRequest,
    *,
    created_at: datetime,
    id_factory: Callable[[], str],
) -> JournalEntry:
    """분개 생성 요청 → DRAFT 분개 (검증 포함)

    entry_number는 저장 트랜잭션 안에서 할당되므로 빈 값으로 반환.

    Args:
        scope: 테넌트 범위
        request: 분개 생성 요청
        created_at: 생성 시각
        id_factory: ID 생성 함수

    Returns:
        검증을 통과한 DRAFT 분개

    Raises:
        ValidationError: 필수값 누락 또는 복식부기 규칙 위반
    """
    if not request.description:
        raise ValidationError("description is required")
    if not request.user_id:
        raise ValidationError("user_id is required")

    entry_id = id_factory()
    lines = []
    for i, line_request in enumerate(request.lines):
        if not line_request.account_id:
            raise ValidationError("line account_id is required", line_order=i)
        lines.append(build_line(scope, entry_id, line_request, id_factory(), i))

    validate_lines(lines)

    return JournalEntry(
        id=entry_id,
        tenant_id=scope.tenant_id,
        entry_number="",
        entry_date=request.entry_date,
        description=request.description,
        reference=request.reference,
        source_type=request.source_type,
        source_id=request.source_id,
        status=JournalEntryStatus.DRAFT,
        lines=lines,
        created_at=created_at,
        created_by=request.user_id,
    )


def build_reversal(
    original: JournalEntry,
    *,
    user_id: str,
    reason: str,
    now: datetime,
    id_factory: Callable[[], str],
) -> JournalEntry:
    """취소 분개 생성 (원본 불변)

    각 라인의 차변/대변만 교환하고 계정, 통화, 환율, 기준 금액은 유지.
    오늘 날짜로 즉시 POSTED 상태.

    Args:
        original: 취소 대상 분개
        user_id: 취소 요청자
        reason: 취소 사유 (그대로 기록)
        now: 현재 시각 (entry_date는 now의 날짜)
        id_factory: ID 생성 함수

    Returns:
        새 역분개 (entry_number는 저장 시 할당)
    """
    reversal_id = id_factory()
    lines = [
        JournalEntryLine(
            id=id_factory(),
            tenant_id=original.tenant_id,
            journal_entry_id=reversal_id,
            account_id=line.account_id,
            description=Defaults.REVERSAL_LINE_DESCRIPTION,
            debit_amount=line.credit_amount,
            credit_amount=line.debit_amount,
            currency=line.currency,
            exchange_rate=line.exchange_rate,
            base_debit=line.base_credit,
            base_credit=line.base_debit,
            line_order=line.line_order,
        )
        for line in original.lines
    ]

    return JournalEntry(
        id=reversal_id,
        tenant_id=original.tenant_id,
        entry_number="",
        entry_date=now.date(),
        description=f"Reversal of {original.entry_number}: {reason}",
        reference=original.entry_number,
        source_type=Defaults.VOID_SOURCE_TYPE,
        source_id=original.id,
        status=JournalEntryStatus.POSTED,
        lines=lines,
        posted_at=now,
        posted_by=user_id,
        created_at=now,
        created_by=user_id,
    )
