"""
복식부기 (Double-Entry Bookkeeping) Ledger 엔진

테넌트별 스키마에 분개를 기록하고 잔액/재무제표를 계산.
전기된 분개는 변경되지 않으며 취소는 역분개로만 가능.

사용 예시:
```python
from adapters.db import SQLiteAdapter
from core.ledger import LedgerService, ReportService, attach_tenant
from core.types import TenantScope

tenant = TenantScope.create("acme", "tenant_acme")

async with SQLiteAdapter(db_path) as db:
    await attach_tenant(db, tenant)
    ledger = LedgerService(db)
    reports = ReportService(ledger.store)

    # 분개 생성 → 전기
    entry = await ledger.create_entry(tenant, request)
    await ledger.post_entry(tenant, entry.id, user_id)

    # 시산표 조회
    trial_balance = await reports.trial_balance(tenant, date.today())
```
"""

from core.ledger.cost_centers import (
    CostAllocation,
    CostCenter,
    CostCenterReport,
    CostCenterService,
    CostCenterStore,
    CostCenterSummary,
)
from core.ledger.entry_builder import build_entry, build_reversal, validate_entry, validate_lines
from core.ledger.models import Account, AccountBalance, JournalEntry, JournalEntryLine
from core.ledger.reports import BalanceSheet, IncomeStatement, ReportService, TrialBalance
from core.ledger.requests import (
    CreateAccountRequest,
    CreateCostAllocationRequest,
    CreateCostCenterRequest,
    CreateJournalEntryLineRequest,
    CreateJournalEntryRequest,
    UpdateCostCenterRequest,
)
from core.ledger.schema import attach_tenant, init_tenant_schema
from core.ledger.service import LedgerService
from core.ledger.store import LedgerStore
from core.ledger.types import AccountType, BudgetPeriod, JournalEntryStatus, JournalSide

__all__ = [
    # 핵심 클래스
    "LedgerService",
    "LedgerStore",
    "ReportService",
    "CostCenterService",
    "CostCenterStore",
    # 모델
    "Account",
    "AccountBalance",
    "JournalEntry",
    "JournalEntryLine",
    "CostCenter",
    "CostAllocation",
    # 보고서
    "TrialBalance",
    "BalanceSheet",
    "IncomeStatement",
    "CostCenterSummary",
    "CostCenterReport",
    # 요청
    "CreateAccountRequest",
    "CreateJournalEntryRequest",
    "CreateJournalEntryLineRequest",
    "CreateCostCenterRequest",
    "UpdateCostCenterRequest",
    "CreateCostAllocationRequest",
    # 분개 생성/검증
    "build_entry",
    "build_reversal",
    "validate_entry",
    "validate_lines",
    # 스키마
    "attach_tenant",
    "init_tenant_schema",
    # Enum
    "AccountType",
    "JournalSide",
    "JournalEntryStatus",
    "BudgetPeriod",
]
