"""
잔액 집계 및 재무제표 (Balance Aggregator)

- 계정 잔액 (as_of 기준 누계)
- 시산표
- 기간 손익 발생액
- 재무상태표 / 손익계산서 (시산표/기간 잔액에서 파생)

전기된 분개(POSTED, VOIDED)만 집계. DRAFT는 제외.
취소된 원본과 역분개가 함께 집계되어 취소 후 잔액은 전기 이전과 같다.
각 조회는 개별 SELECT로 수행되며 여러 조회 간 공유 스냅샷을 보장하지 않는다.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from core.errors import NotFoundError, ValidationError
from core.ledger.models import ZERO, AccountBalance, net_balance
from core.ledger.store import LedgerStore
from core.ledger.types import AccountType
from core.types import TenantScope
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


@dataclass
class TrialBalance:
    """시산표"""

    tenant_id: str
    as_of_date: date
    generated_at: datetime
    accounts: list[AccountBalance] = field(default_factory=list)
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    is_balanced: bool = True


@dataclass
class BalanceSheet:
    """재무상태표

    이익잉여금 = 수익 순잔액 - 비용 순잔액 (as_of까지 누계)
    자본 합계 = 자본 계정 순잔액 + 이익잉여금
    """

    tenant_id: str
    as_of_date: date
    generated_at: datetime
    assets: list[AccountBalance] = field(default_factory=list)
    liabilities: list[AccountBalance] = field(default_factory=list)
    equity: list[AccountBalance] = field(default_factory=list)
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO
    retained_earnings: Decimal = ZERO
    is_balanced: bool = True


@dataclass
class IncomeStatement:
    """손익계산서 (기간 발생액)"""

    tenant_id: str
    start_date: date
    end_date: date
    generated_at: datetime
    revenue: list[AccountBalance] = field(default_factory=list)
    expenses: list[AccountBalance] = field(default_factory=list)
    total_revenue: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_income: Decimal = ZERO


class ReportService:
    """잔액 집계 서비스

    Args:
        store: LedgerStore
        clock: 현재 시각 함수 (generated_at)
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.clock = clock

    async def account_balance(
        self,
        scope: TenantScope,
        account_id: str,
        as_of: date,
    ) -> Decimal:
        """계정 잔액 (as_of 포함 누계, 정상 잔액 방향 기준)

        차변 계정(ASSET, EXPENSE): 차변 - 대변
        대변 계정(LIABILITY, EQUITY, REVENUE): 대변 - 차변

        Raises:
            NotFoundError: 계정 없음
        """
        account = await self.store.get_account(scope, account_id)
        if account is None:
            raise NotFoundError("account", account_id)

        debits, credits = await self.store.get_account_totals(scope, account_id, as_of)
        return net_balance(account.account_type, debits, credits)

    async def trial_balance(self, scope: TenantScope, as_of: date) -> TrialBalance:
        """시산표 (활동 없는 계정 제외, 코드 순)"""
        balances = await self.store.get_trial_balance_rows(scope, as_of)

        total_debits = sum((b.debit_balance for b in balances), ZERO)
        total_credits = sum((b.credit_balance for b in balances), ZERO)
        report = TrialBalance(
            tenant_id=scope.tenant_id,
            as_of_date=as_of,
            generated_at=self.clock(),
            accounts=balances,
            total_debits=total_debits,
            total_credits=total_credits,
            is_balanced=total_debits == total_credits,
        )

        if not report.is_balanced:
            logger.error(
                "Trial balance out of balance",
                extra={
                    "tenant_id": scope.tenant_id,
                    "as_of": as_of.isoformat(),
                    "total_debits": str(total_debits),
                    "total_credits": str(total_credits),
                },
            )
        return report

    async def period_balances(
        self,
        scope: TenantScope,
        start: date,
        end: date,
    ) -> list[AccountBalance]:
        """수익/비용 계정 기간 발생액 (REVENUE → EXPENSE, 코드 순)"""
        return await self.store.get_period_balance_rows(scope, start, end)

    async def balance_sheet(self, scope: TenantScope, as_of: date) -> BalanceSheet:
        """재무상태표 (시산표에서 파생)

        balanced iff 자산 합계 == 부채 합계 + 자본 합계
        """
        balances = await self.store.get_trial_balance_rows(scope, as_of)
        sheet = BalanceSheet(
            tenant_id=scope.tenant_id,
            as_of_date=as_of,
            generated_at=self.clock(),
        )

        revenue = ZERO
        expenses = ZERO
        for balance in balances:
            if balance.account_type is AccountType.ASSET:
                sheet.assets.append(balance)
                sheet.total_assets += balance.net_balance
            elif balance.account_type is AccountType.LIABILITY:
                sheet.liabilities.append(balance)
                sheet.total_liabilities += balance.net_balance
            elif balance.account_type is AccountType.EQUITY:
                sheet.equity.append(balance)
                sheet.total_equity += balance.net_balance
            elif balance.account_type is AccountType.REVENUE:
                revenue += balance.net_balance
            else:
                expenses += balance.net_balance

        sheet.retained_earnings = revenue - expenses
        sheet.total_equity += sheet.retained_earnings
        sheet.is_balanced = sheet.total_assets == sheet.total_liabilities + sheet.total_equity
        return sheet

    async def income_statement(
        self,
        scope: TenantScope,
        start: date,
        end: date,
    ) -> IncomeStatement:
        """손익계산서 (기간 발생액에서 파생)

        Raises:
            ValidationError: start > end
        """
        if start > end:
            raise ValidationError(
                f"start date {start.isoformat()} is after end date {end.isoformat()}",
                start=start.isoformat(),
                end=end.isoformat(),
            )

        balances = await self.period_balances(scope, start, end)
        statement = IncomeStatement(
            tenant_id=scope.tenant_id,
            start_date=start,
            end_date=end,
            generated_at=self.clock(),
        )

        for balance in balances:
            if balance.account_type is AccountType.REVENUE:
                statement.revenue.append(balance)
                statement.total_revenue += balance.net_balance
            else:
                statement.expenses.append(balance)
                statement.total_expenses += balance.net_balance

        statement.net_income = statement.total_revenue - statement.total_expenses
        return statement
