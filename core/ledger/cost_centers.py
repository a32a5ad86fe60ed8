"""
코스트센터 (Cost Center Tracker)

전기된 분개 라인 금액을 예산 단위(코스트센터)에 배분하고 예산 사용률을 보고.
계정과목과 독립적인 오버레이이며 분개 엔진의 메모리 타입에 의존하지 않는다.

삭제 규칙: 하위 코스트센터 또는 배분 내역이 있으면 삭제 불가 (삭제 전 사전 검사)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.errors import NotFoundError, ReferentialIntegrityError, ValidationError
from core.ledger.hierarchy import check_parent
from core.ledger.models import ZERO
from core.ledger.requests import (
    CreateCostAllocationRequest,
    CreateCostCenterRequest,
    UpdateCostCenterRequest,
)
from core.ledger.store import LedgerStore
from core.ledger.types import BudgetPeriod, JournalEntryStatus
from core.types import TenantScope
from core.utils.ids import new_id
from core.utils.timezone import format_date, format_ts, now_utc, parse_date, parse_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

COST_CENTER_COLUMNS = (
    "id, tenant_id, code, name, description, parent_id, is_active, "
    "budget_amount, budget_period, created_at, updated_at"
)

ALLOCATION_COLUMNS = (
    "id, tenant_id, cost_center_id, journal_entry_line_id, amount, "
    "allocation_percentage, allocation_date, notes, created_at"
)


@dataclass
class CostCenter:
    """코스트센터 (예산 단위)"""

    id: str
    tenant_id: str
    code: str
    name: str
    description: str = ""
    parent_id: str | None = None
    is_active: bool = True
    budget_amount: Decimal | None = None
    budget_period: BudgetPeriod = BudgetPeriod.ANNUAL
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CostAllocation:
    """코스트 배분 (전기된 분개 라인 → 코스트센터)"""

    id: str
    tenant_id: str
    cost_center_id: str
    journal_entry_line_id: str
    amount: Decimal
    allocation_date: date
    allocation_percentage: Decimal | None = None
    notes: str = ""
    created_at: datetime | None = None


@dataclass
class CostCenterSummary:
    """코스트센터별 기간 요약"""

    cost_center: CostCenter
    total_expenses: Decimal
    budget_amount: Decimal
    budget_used_percentage: Decimal
    is_over_budget: bool
    period_start: date
    period_end: date


@dataclass
class CostCenterReport:
    """전체 코스트센터 보고서"""

    tenant_id: str
    period_start: date
    period_end: date
    generated_at: datetime
    cost_centers: list[CostCenterSummary] = field(default_factory=list)
    total_expenses: Decimal = ZERO
    total_budget: Decimal = ZERO


def summarize(
    cost_center: CostCenter,
    expenses: Decimal,
    start: date,
    end: date,
) -> CostCenterSummary:
    """코스트센터 요약 계산

    예산이 없거나 0이면 사용률 0, 초과 아님.
    """
    budget = cost_center.budget_amount or ZERO
    used = ZERO
    over = False
    if budget > ZERO:
        used = expenses / budget * HUNDRED
        over = expenses > budget

    return CostCenterSummary(
        cost_center=cost_center,
        total_expenses=expenses,
        budget_amount=budget,
        budget_used_percentage=used,
        is_over_budget=over,
        period_start=start,
        period_end=end,
    )


def _row_to_cost_center(row: tuple[Any, ...]) -> CostCenter:
    return CostCenter(
        id=row[0],
        tenant_id=row[1],
        code=row[2],
        name=row[3],
        description=row[4] or "",
        parent_id=row[5],
        is_active=bool(row[6]),
        budget_amount=Decimal(row[7]) if row[7] is not None else None,
        budget_period=BudgetPeriod(row[8] or BudgetPeriod.ANNUAL.value),
        created_at=parse_ts(row[9]),
        updated_at=parse_ts(row[10]),
    )


def _row_to_allocation(row: tuple[Any, ...]) -> CostAllocation:
    return CostAllocation(
        id=row[0],
        tenant_id=row[1],
        cost_center_id=row[2],
        journal_entry_line_id=row[3],
        amount=Decimal(row[4]),
        allocation_percentage=Decimal(row[5]) if row[5] is not None else None,
        allocation_date=parse_date(row[6]),
        notes=row[7] or "",
        created_at=parse_ts(row[8]),
    )


class CostCenterStore:
    """코스트센터 저장소

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get(self, scope: TenantScope, cost_center_id: str) -> CostCenter | None:
        """코스트센터 단건 조회"""
        row = await self.db.fetchone(
            f"""
            SELECT {COST_CENTER_COLUMNS}
            FROM {scope.schema_name}.cost_centers
            WHERE id = ? AND tenant_id = ?
            """,
            (cost_center_id, scope.tenant_id),
        )
        return _row_to_cost_center(row) if row else None

    async def list(self, scope: TenantScope, active_only: bool = False) -> list[CostCenter]:
        """코스트센터 목록 (코드 순)"""
        sql = f"""
            SELECT {COST_CENTER_COLUMNS}
            FROM {scope.schema_name}.cost_centers
            WHERE tenant_id = ?
        """
        if active_only:
            sql += " AND is_active = 1"
        sql += " ORDER BY code"
        rows = await self.db.fetchall(sql, (scope.tenant_id,))
        return [_row_to_cost_center(row) for row in rows]

    async def get_parent(self, scope: TenantScope, cost_center_id: str) -> tuple[bool, str | None]:
        """계층 검사용 (존재 여부, parent_id) 조회"""
        row = await self.db.fetchone(
            f"""
            SELECT parent_id FROM {scope.schema_name}.cost_centers
            WHERE id = ? AND tenant_id = ?
            """,
            (cost_center_id, scope.tenant_id),
        )
        if row is None:
            return False, None
        return True, row[0]

    async def insert(self, scope: TenantScope, cc: CostCenter) -> None:
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO {scope.schema_name}.cost_centers ({COST_CENTER_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    cc.id,
                    scope.tenant_id,
                    cc.code,
                    cc.name,
                    cc.description,
                    cc.parent_id,
                    int(cc.is_active),
                    str(cc.budget_amount) if cc.budget_amount is not None else None,
                    cc.budget_period.value,
                    format_ts(cc.created_at),
                    format_ts(cc.updated_at),
                ),
            )

    async def update(self, scope: TenantScope, cc: CostCenter) -> int:
        """코스트센터 수정

        Returns:
            변경된 행 수
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                f"""
                UPDATE {scope.schema_name}.cost_centers
                SET code = ?, name = ?, description = ?, parent_id = ?, is_active = ?,
                    budget_amount = ?, budget_period = ?, updated_at = ?
                WHERE id = ? AND tenant_id = ?
                """,
                (
                    cc.code,
                    cc.name,
                    cc.description,
                    cc.parent_id,
                    int(cc.is_active),
                    str(cc.budget_amount) if cc.budget_amount is not None else None,
                    cc.budget_period.value,
                    format_ts(cc.updated_at),
                    cc.id,
                    scope.tenant_id,
                ),
            )
        return cursor.rowcount

    async def delete(self, scope: TenantScope, cost_center_id: str) -> None:
        """코스트센터 삭제

        하위 코스트센터 수, 배분 수를 먼저 확인한 뒤 삭제.

        Raises:
            ReferentialIntegrityError: 하위 코스트센터 또는 배분이 있는 경우
            NotFoundError: 대상 없음
        """
        schema = scope.schema_name
        async with self.db.transaction():
            row = await self.db.fetchone(
                f"SELECT COUNT(*) FROM {schema}.cost_centers WHERE parent_id = ? AND tenant_id = ?",
                (cost_center_id, scope.tenant_id),
            )
            child_count = row[0] if row else 0
            if child_count > 0:
                raise ReferentialIntegrityError(
                    f"cannot delete cost center with {child_count} children",
                    cost_center_id=cost_center_id,
                    child_count=child_count,
                )

            row = await self.db.fetchone(
                f"SELECT COUNT(*) FROM {schema}.cost_allocations WHERE cost_center_id = ? AND tenant_id = ?",
                (cost_center_id, scope.tenant_id),
            )
            allocation_count = row[0] if row else 0
            if allocation_count > 0:
                raise ReferentialIntegrityError(
                    f"cannot delete cost center with {allocation_count} allocations",
                    cost_center_id=cost_center_id,
                    allocation_count=allocation_count,
                )

            cursor = await self.db.execute(
                f"DELETE FROM {schema}.cost_centers WHERE id = ? AND tenant_id = ?",
                (cost_center_id, scope.tenant_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("cost center", cost_center_id)

    async def insert_allocation(self, scope: TenantScope, allocation: CostAllocation) -> None:
        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO {scope.schema_name}.cost_allocations ({ALLOCATION_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    allocation.id,
                    scope.tenant_id,
                    allocation.cost_center_id,
                    allocation.journal_entry_line_id,
                    str(allocation.amount),
                    (
                        str(allocation.allocation_percentage)
                        if allocation.allocation_percentage is not None
                        else None
                    ),
                    format_date(allocation.allocation_date),
                    allocation.notes,
                    format_ts(allocation.created_at),
                ),
            )

    async def list_allocations(
        self,
        scope: TenantScope,
        cost_center_id: str,
    ) -> list[CostAllocation]:
        """배분 내역 (배분 일자 순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {ALLOCATION_COLUMNS}
            FROM {scope.schema_name}.cost_allocations
            WHERE cost_center_id = ? AND tenant_id = ?
            ORDER BY allocation_date, created_at
            """,
            (cost_center_id, scope.tenant_id),
        )
        return [_row_to_allocation(row) for row in rows]

    async def get_expenses_by_period(
        self,
        scope: TenantScope,
        cost_center_id: str,
        start: date,
        end: date,
    ) -> Decimal:
        """기간 내 배분 금액 합계 (start ≤ allocation_date ≤ end)"""
        rows = await self.db.fetchall(
            f"""
            SELECT amount FROM {scope.schema_name}.cost_allocations
            WHERE cost_center_id = ? AND tenant_id = ?
              AND allocation_date >= ? AND allocation_date <= ?
            """,
            (cost_center_id, scope.tenant_id, format_date(start), format_date(end)),
        )
        return sum((Decimal(row[0]) for row in rows), ZERO)


class CostCenterService:
    """코스트센터 서비스

    Args:
        db: SQLite 어댑터
        store: CostCenterStore (None이면 db로 생성)
        ledger_store: 분개 라인 조회용 LedgerStore (None이면 db로 생성)
        clock: 현재 시각 함수
        id_factory: 신규 ID 생성 함수
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: CostCenterStore | None = None,
        ledger_store: LedgerStore | None = None,
        clock: Callable[[], datetime] = now_utc,
        id_factory: Callable[[], str] = new_id,
    ):
        self.db = db
        self.store = store or CostCenterStore(db)
        self.ledger_store = ledger_store or LedgerStore(db)
        self.clock = clock
        self.id_factory = id_factory

    async def get(self, scope: TenantScope, cost_center_id: str) -> CostCenter:
        """코스트센터 조회

        Raises:
            NotFoundError: 없거나 다른 테넌트 소유
        """
        cc = await self.store.get(scope, cost_center_id)
        if cc is None:
            raise NotFoundError("cost center", cost_center_id)
        return cc

    async def list(self, scope: TenantScope, active_only: bool = False) -> list[CostCenter]:
        return await self.store.list(scope, active_only)

    async def _validate_request(
        self,
        scope: TenantScope,
        cost_center_id: str | None,
        request: CreateCostCenterRequest,
    ) -> None:
        if not request.code.strip():
            raise ValidationError("cost center code is required")
        if not request.name.strip():
            raise ValidationError("cost center name is required")
        if request.budget_amount is not None and request.budget_amount < ZERO:
            raise ValidationError(
                "budget amount cannot be negative",
                budget_amount=request.budget_amount,
            )
        await check_parent(
            "cost center",
            cost_center_id,
            request.parent_id,
            lambda node_id: self.store.get_parent(scope, node_id),
        )

    async def create(self, scope: TenantScope, request: CreateCostCenterRequest) -> CostCenter:
        """코스트센터 생성 (예산 기간 기본 ANNUAL)

        Raises:
            ValidationError: code/name 누락, 음수 예산
            ReferentialIntegrityError: 상위 코스트센터 없음, 코드 중복
        """
        await self._validate_request(scope, None, request)

        now = self.clock()
        cc = CostCenter(
            id=self.id_factory(),
            tenant_id=scope.tenant_id,
            code=request.code.strip(),
            name=request.name.strip(),
            description=request.description,
            parent_id=request.parent_id,
            is_active=request.is_active,
            budget_amount=request.budget_amount,
            budget_period=request.budget_period or BudgetPeriod.ANNUAL,
            created_at=now,
            updated_at=now,
        )
        await self.store.insert(scope, cc)

        logger.info(
            f"Cost center created: {cc.code}",
            extra={"tenant_id": scope.tenant_id, "cost_center_id": cc.id},
        )
        return cc

    async def update(
        self,
        scope: TenantScope,
        cost_center_id: str,
        request: UpdateCostCenterRequest,
    ) -> CostCenter:
        """코스트센터 수정 (전체 필드 교체, updated_at 갱신)

        Raises:
            NotFoundError: 대상 없음
            ValidationError: code/name 누락, 음수 예산, 계층 순환
            ReferentialIntegrityError: 상위 코스트센터 없음, 코드 중복
        """
        cc = await self.get(scope, cost_center_id)
        await self._validate_request(scope, cost_center_id, request)

        cc.code = request.code.strip()
        cc.name = request.name.strip()
        cc.description = request.description
        cc.parent_id = request.parent_id
        cc.is_active = request.is_active
        cc.budget_amount = request.budget_amount
        cc.budget_period = request.budget_period or BudgetPeriod.ANNUAL
        cc.updated_at = self.clock()

        if await self.store.update(scope, cc) == 0:
            raise NotFoundError("cost center", cost_center_id)

        logger.info(
            f"Cost center updated: {cc.code}",
            extra={"tenant_id": scope.tenant_id, "cost_center_id": cc.id},
        )
        return cc

    async def delete(self, scope: TenantScope, cost_center_id: str) -> None:
        """코스트센터 삭제

        Raises:
            ReferentialIntegrityError: 하위 코스트센터 또는 배분 존재
            NotFoundError: 대상 없음
        """
        try:
            await self.store.delete(scope, cost_center_id)
        except ReferentialIntegrityError as e:
            logger.warning(
                f"Cost center delete rejected: {e.message}",
                extra={"tenant_id": scope.tenant_id, "cost_center_id": cost_center_id},
            )
            raise

        logger.info(
            "Cost center deleted",
            extra={"tenant_id": scope.tenant_id, "cost_center_id": cost_center_id},
        )

    async def allocate(
        self,
        scope: TenantScope,
        cost_center_id: str,
        request: CreateCostAllocationRequest,
    ) -> CostAllocation:
        """전기된 분개 라인 금액을 코스트센터에 배분

        amount가 없으면 라인 기준 금액(차변 또는 대변) × 비율 / 100.

        Raises:
            NotFoundError: 코스트센터 또는 분개 라인 없음
            ValidationError: 미전기 분개, 금액/비율 누락 또는 범위 오류
        """
        await self.get(scope, cost_center_id)

        found = await self.ledger_store.get_line(scope, request.journal_entry_line_id)
        if found is None:
            raise NotFoundError("journal entry line", request.journal_entry_line_id)
        line, status = found
        if status is not JournalEntryStatus.POSTED:
            raise ValidationError(
                f"allocations require a posted journal entry, current status: {status.value}",
                journal_entry_line_id=line.id,
            )

        percentage = request.allocation_percentage
        if percentage is not None and not (ZERO < percentage <= HUNDRED):
            raise ValidationError(
                "allocation percentage must be greater than 0 and at most 100",
                allocation_percentage=percentage,
            )

        amount = request.amount
        if amount is None:
            if percentage is None:
                raise ValidationError("allocation requires an amount or a percentage")
            base = line.base_debit if line.base_debit > ZERO else line.base_credit
            amount = base * percentage / HUNDRED
        if amount <= ZERO:
            raise ValidationError("allocation amount must be positive", amount=amount)

        allocation = CostAllocation(
            id=self.id_factory(),
            tenant_id=scope.tenant_id,
            cost_center_id=cost_center_id,
            journal_entry_line_id=line.id,
            amount=amount,
            allocation_percentage=percentage,
            allocation_date=request.allocation_date,
            notes=request.notes,
            created_at=self.clock(),
        )
        await self.store.insert_allocation(scope, allocation)

        logger.info(
            "Cost allocated",
            extra={
                "tenant_id": scope.tenant_id,
                "cost_center_id": cost_center_id,
                "journal_entry_line_id": line.id,
                "amount": str(amount),
            },
        )
        return allocation

    async def list_allocations(self, scope: TenantScope, cost_center_id: str) -> list[CostAllocation]:
        """배분 내역 (배분 일자 순)"""
        await self.get(scope, cost_center_id)
        return await self.store.list_allocations(scope, cost_center_id)

    async def report(self, scope: TenantScope, start: date, end: date) -> CostCenterReport:
        """활성 코스트센터 전체의 기간 예산 사용 보고서

        Raises:
            ValidationError: start > end
        """
        if start > end:
            raise ValidationError(
                f"start date {start.isoformat()} is after end date {end.isoformat()}",
                start=start.isoformat(),
                end=end.isoformat(),
            )

        report = CostCenterReport(
            tenant_id=scope.tenant_id,
            period_start=start,
            period_end=end,
            generated_at=self.clock(),
        )

        for cc in await self.store.list(scope, active_only=True):
            expenses = await self.store.get_expenses_by_period(scope, cc.id, start, end)
            summary = summarize(cc, expenses, start, end)
            report.cost_centers.append(summary)
            report.total_expenses += expenses
            report.total_budget += summary.budget_amount

        return report
